#!/usr/bin/env python3
"""
Install a cron job that runs the saved searches every RUN_INTERVAL_HOURS (from .env).
Run once: python setup_cron.py
"""
from __future__ import annotations

import os
import subprocess
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent
load_dotenv(ROOT / ".env")
hours = int(os.environ.get("RUN_INTERVAL_HOURS", "24"))
venv_python = ROOT / ".venv" / "bin" / "python"
run_script = ROOT / "run_searches.py"
schedule = "0 6 * * *" if hours >= 24 else f"0 */{hours} * * *"
entry = f"{schedule} cd {ROOT} && {venv_python} {run_script}"


def main():
    if not venv_python.exists():
        print("Error: .venv not found. Run: python -m venv .venv && pip install -e .")
        return 1
    try:
        out = subprocess.run(
            ["crontab", "-l"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        existing = (out.stdout or "").strip() if out.returncode == 0 else ""
        if entry in existing:
            print("Cron entry already present. No change.")
            return 0
        # Replace any older jobsweep entry instead of stacking schedules.
        kept = [line for line in existing.splitlines() if str(run_script) not in line]
        new_crontab = "\n".join(kept + [entry]).strip()
        proc = subprocess.run(
            ["crontab", "-"],
            input=new_crontab + "\n",
            capture_output=True,
            text=True,
            timeout=5,
        )
        if proc.returncode != 0:
            _write_crontab_file(new_crontab)
            print("Could not install crontab automatically. Run manually:")
            print(f"  crontab {ROOT / 'crontab.txt'}")
            return 1
        print(f"Cron installed: {schedule}")
        print(f"  Entry: {entry}")
        return 0
    except subprocess.TimeoutExpired:
        _write_crontab_file(entry)
        print("Crontab timed out. To install manually, run:")
        print(f"  crontab {ROOT / 'crontab.txt'}")
        return 1
    except FileNotFoundError:
        print("crontab not found. Use an external scheduler to call /api/cron/run-searches instead.")
        _write_crontab_file(entry)
        return 1


def _write_crontab_file(content: str) -> None:
    path = ROOT / "crontab.txt"
    path.write_text(content + "\n", encoding="utf-8")
    print(f"Wrote {path}")


if __name__ == "__main__":
    raise SystemExit(main())
