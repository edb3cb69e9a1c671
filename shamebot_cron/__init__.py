"""Shamebot cron: time-triggered nudges for tasks."""

__version__ = "0.1.0"
