"""
mft-stream: streaming reader for NTFS Master File Tables.

Public API surface:

- ``open(path_or_file_like, config=None)`` -- **recommended entry
  point**.  Returns an ``MftParser`` over an extracted $MFT file or any
  binary stream with ``read`` and ``seek``.  The parser hands out one
  iterator: ``entries()`` (``MftRecord`` objects), ``entries_json()``
  (JSON text) or ``entries_csv()`` (CSV rows as bytes).

- ``run_export(config)`` -- Bulk export.  Takes an ``ExportConfig`` or
  the path of its YAML file, writes ``entries`` and ``_errors`` tables
  (CSV, Parquet or JSON lines) and returns the written paths.

Per-slot failures are returned by the iterators as exception
instances rather than raised; check values with
``isinstance(value, MftStreamError)``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from mft_stream.config import ExportConfig, ParserConfig, load_config
from mft_stream.exceptions import MftStreamError
from mft_stream.export import export_entries
from mft_stream.iterator import EntriesIterator, OutputFormat
from mft_stream.parser import MftParser
from mft_stream.renderers.to_object import MftRecord

__all__ = [
    "open",
    "run_export",
    "MftParser",
    "EntriesIterator",
    "OutputFormat",
    "MftRecord",
    "MftStreamError",
    "ParserConfig",
    "ExportConfig",
]

logger = logging.getLogger(__name__)


def open(
    path_or_file_like: str | os.PathLike | object,
    config: ParserConfig | None = None,
) -> MftParser:
    """Open an MFT for iteration.

    Args:
        path_or_file_like: Path to an extracted $MFT, or a binary stream
            with ``read`` and ``seek`` (left open when done).
        config: Parser tuning; defaults to ``ParserConfig()``.

    Returns:
        A single-use ``MftParser``.

    Raises:
        InitializationError: If the source cannot be opened or is not
            an MFT.

    Examples::

        parser = mft_stream.open("evidence/$MFT")
        with parser.entries() as entries:
            for value in entries:
                if isinstance(value, mft_stream.MftStreamError):
                    continue
                print(value.entry_id, value.full_path)
    """
    return MftParser(path_or_file_like, config)


def run_export(config: ExportConfig | str | Path) -> list[str]:
    """Export every entry of the configured MFT to the output directory.

    Orchestration:
      1. ``load_config()`` when given a path.
      2. Open an ``MftParser`` on ``config.source.input_path``.
      3. ``export_entries()`` with the ``output`` section.

    Returns:
        Paths written, ``entries`` first.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the config file is empty.
        InitializationError: If the input cannot be opened.
        ExportError: If the output cannot be written.
    """
    if not isinstance(config, ExportConfig):
        logger.info("run_export() -- loading config from %s", config)
        config = load_config(config)

    parser = MftParser(config.source.input_path, config.parser)
    return export_entries(
        parser,
        config.output.output_dir,
        config.output.output_format,
        write_errors=config.output.write_errors,
    )
