import logging

import pytest


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Drop the console/file handlers the CLI installs on the root logger."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in before and type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
