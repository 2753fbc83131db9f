"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("PROMQC_BASE_URL", "http://prometheus:9090")
os.environ.setdefault("PROMQC_LOG_LEVEL", "DEBUG")
