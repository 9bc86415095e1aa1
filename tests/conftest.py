"""Root test configuration: isolate config lookup and logging state per test"""

import logging

import pytest


@pytest.fixture(autouse=True)
def isolate_env(tmp_path, monkeypatch):
    """Run each test from a clean tmp directory with no VAULTPUB_* overrides."""
    monkeypatch.chdir(tmp_path)
    for name in ("VAULT_ROOT", "BASE_FOLDERS", "SETTING_KEYS", "PARSER_CONFIG", "MAX_WORKERS", "LOG_LEVEL"):
        monkeypatch.delenv(f"VAULTPUB_{name}", raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging so caplog sees records in later tests.

    configure_logging is a no-op once a handler exists, so removing it here lets
    the next test bind the handler to its own (possibly captured) stderr.
    """
    yield
    pkg_logger = logging.getLogger("vaultpub")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
