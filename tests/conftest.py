"""Global test fixtures."""

import logging
import os

import pytest

# Tests must not pick up a developer's YAML config or provider credentials
os.environ.pop("FEDAUTH_CONFIG_FILE", None)
for key in [k for k in os.environ if k.startswith("FEDAUTH_AUTH__")]:
    os.environ.pop(key)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Commands call configure_logging; undo it so handlers don't outlive capture."""
    root = logging.getLogger()
    level, handlers = root.level, root.handlers[:]
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
