"""Scheduled job discovery and deduplication."""
