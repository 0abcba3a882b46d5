"""Shared fixtures for proto-glue tests."""
import logging
import textwrap
from pathlib import Path
from typing import Callable

import pytest
import structlog


@pytest.fixture
def write_proto(tmp_path: Path) -> Callable[..., Path]:
    """Writes .proto source into the test's temporary directory and returns its path."""
    def _write(source: str, file_name: str = "schema.proto") -> Path:
        proto_path = tmp_path / file_name
        proto_path.write_text(textwrap.dedent(source))
        return proto_path
    return _write


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() so handlers never outlive a test's captured streams."""
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
