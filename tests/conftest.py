from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.fake_backend import FakeBackend
from tests._fixtures.source_tree import SourceTree


@pytest.fixture(autouse=True)
def _reset_typeann_logger():
    """Undo handlers installed by configure_logging so caplog keeps working."""
    yield
    logger = logging.getLogger("typeann")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Provide a backend whose front-end and oracle answer from memory."""
    return FakeBackend()


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTree:
    """Provide a source tree builder rooted at the pytest tmp_path."""
    return SourceTree(tmp_path)
