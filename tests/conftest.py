"""Shared pytest fixtures for the aspmailer test suite."""

from __future__ import annotations

# Rich checks these at import time
import os

os.environ["NO_COLOR"] = "1"
os.environ["TERM"] = "dumb"
os.environ["FORCE_COLOR"] = "0"
os.environ["COLUMNS"] = "200"

from collections.abc import Iterator

import pytest

from aspmailer.config import clear_config

# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start every test without a cached configuration or config env var."""
    monkeypatch.delenv("ASPMAILER_CONFIG", raising=False)
    clear_config()
    yield
    clear_config()
