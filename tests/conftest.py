# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {"id": "clean-env", "name": "clean_restkit_env", "anchor": "fixture-clean-restkit-env", "kind": "fixture"},
#     {"id": "log-records", "name": "restkit_log", "anchor": "fixture-restkit-log", "kind": "fixture"},
#     {"id": "log-level", "name": "restore_restkit_level", "anchor": "fixture-restore-restkit-level", "kind": "fixture"}
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

This module configures shared pytest behaviour: ``src`` on ``sys.path``,
hermetic HTTP fixtures, a clean ``RESTKIT_*`` environment for every test, and
a hypothesis profile suited to CI.

Usage:
    pytest --help  # to inspect custom options
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Generator

import pytest
from hypothesis import HealthCheck, settings

# --- Globals ---

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from tests.fixtures.http_mocking import client_factory, http_mock  # noqa: E402,F401

settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    database=None,
)
settings.load_profile("ci")


@pytest.fixture(autouse=True)
def clean_restkit_env() -> Generator[None, None, None]:
    """Strip ``RESTKIT_*`` and proxy variables so settings tests are deterministic."""

    original_env = dict(os.environ)
    for var in list(os.environ):
        if var.upper().startswith("RESTKIT_") or var.lower() in {
            "http_proxy",
            "https_proxy",
            "all_proxy",
        }:
            os.environ.pop(var, None)
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(original_env)


@pytest.fixture
def restkit_log() -> Generator[logging.Logger, None, None]:
    """Provide an isolated logger usable as a client log sink with ``caplog``."""

    package_logger = logging.getLogger("RestKit")
    previous_propagate = package_logger.propagate
    package_logger.propagate = True
    logger = logging.getLogger("RestKit.tests.sink")
    logger.setLevel(logging.DEBUG)
    logger.propagate = True
    try:
        yield logger
    finally:
        package_logger.propagate = previous_propagate


@pytest.fixture(autouse=True)
def restore_restkit_level() -> Generator[None, None, None]:
    """Undo level changes ``Client.from_settings`` makes to the package logger."""

    package_logger = logging.getLogger("RestKit")
    previous_level = package_logger.level
    try:
        yield
    finally:
        package_logger.setLevel(previous_level)
