import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """The CLI reconfigures the package logger; undo that between tests."""
    yield
    logger = logging.getLogger("perturbzoom")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
