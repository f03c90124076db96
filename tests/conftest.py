"""
Shared test fixtures for mft-stream tests.

Every MFT image used by the suite is synthesized by ``tests/builders.py``
and written to ``tmp_path`` (or wrapped in ``BytesIO``); no evidence
files are needed.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from tests.builders import sample_image


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def sample_bytes() -> bytes:
    """The 12-slot image described in ``builders.sample_image``."""
    return sample_image()


@pytest.fixture()
def sample_path(tmp_path: Path, sample_bytes: bytes) -> Path:
    """The sample image written to disk as ``$MFT``."""
    path = tmp_path / "$MFT"
    path.write_bytes(sample_bytes)
    return path


@pytest.fixture()
def sample_stream(sample_bytes: bytes) -> io.BytesIO:
    return io.BytesIO(sample_bytes)


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (CLI and export round trips)",
    )
