from __future__ import annotations

import logging
from datetime import datetime

from jobsweep import log as jlog


def test_log_dir_follows_env(tmp_path, monkeypatch):
    monkeypatch.setenv("JOBSWEEP_LOG_DIR", str(tmp_path))
    assert jlog.log_dir() == tmp_path
    assert jlog.log_file_for(datetime(2026, 3, 10)) == tmp_path / "jobsweep_2026-03-10.log"


def test_log_dir_defaults_to_project_logs(monkeypatch):
    monkeypatch.delenv("JOBSWEEP_LOG_DIR", raising=False)
    assert jlog.log_dir().name == "logs"


def test_configure_adds_console_and_file_handlers(tmp_path, monkeypatch):
    monkeypatch.setenv("JOBSWEEP_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("LOG_LEVEL", "warning")
    root = logging.getLogger("jobsweep-test-root")

    jlog._configure(root)
    try:
        assert root.level == logging.WARNING
        kinds = sorted(type(h).__name__ for h in root.handlers)
        assert kinds == ["FileHandler", "StreamHandler"]
        assert (tmp_path / "logs").is_dir()
    finally:
        for h in list(root.handlers):
            h.close()
            root.removeHandler(h)


def test_unwritable_log_dir_falls_back_to_console(tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("JOBSWEEP_LOG_DIR", str(blocker / "logs"))
    root = logging.getLogger("jobsweep-test-readonly")

    jlog._configure(root)
    try:
        assert [type(h).__name__ for h in root.handlers] == ["StreamHandler"]
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
