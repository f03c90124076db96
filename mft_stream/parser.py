"""
Parser facade for mft-stream.

``MftParser`` opens one MFT and hands its table to exactly one
``EntriesIterator``.  After the hand-off the parser is spent: asking for
a second iterator raises ``AlreadyConsumedError`` and asking for table
metadata raises ``NotInitializedError``.  The iterator that was handed
out keeps working regardless.

Example::

    parser = MftParser("/evidence/$MFT")
    print(parser.number_of_entries())
    for value in parser.entries():
        if isinstance(value, MftStreamError):
            log(value)
        else:
            print(value.full_path)
"""

from __future__ import annotations

import logging
import os

from mft_stream.config import ParserConfig
from mft_stream.exceptions import AlreadyConsumedError, NotInitializedError
from mft_stream.iterator import EntriesIterator, OutputFormat
from mft_stream.table import MftTable

logger = logging.getLogger(__name__)


class MftParser:
    """Single-use entry point over one MFT.

    Args:
        path_or_file_like: Path to an extracted $MFT, or a binary
            stream with ``read`` and ``seek``.
        config: Parser tuning; defaults to ``ParserConfig()``.

    Raises:
        InitializationError: If the source cannot be opened or does not
            start with a readable MFT entry header.
    """

    def __init__(
        self,
        path_or_file_like: str | os.PathLike | object,
        config: ParserConfig | None = None,
    ) -> None:
        self._table: MftTable | None = MftTable.open(path_or_file_like, config)

    def number_of_entries(self) -> int:
        """Number of slots in the table (including empty ones).

        Raises:
            NotInitializedError: If the table was handed to an iterator.
        """
        if self._table is None:
            raise NotInitializedError(
                "The parser was consumed by an iterator; table metadata is gone"
            )
        return self._table.entry_count

    def entries(self) -> EntriesIterator:
        """Iterate entries as ``MftRecord`` objects."""
        return self._take(OutputFormat.OBJECT)

    def entries_json(self) -> EntriesIterator:
        """Iterate entries as JSON strings."""
        return self._take(OutputFormat.JSON)

    def entries_csv(self) -> EntriesIterator:
        """Iterate entries as CSV rows (bytes), header with the first row."""
        return self._take(OutputFormat.CSV)

    def __iter__(self) -> EntriesIterator:
        return self.entries()

    def _take(self, output_format: OutputFormat) -> EntriesIterator:
        table = self._table
        if table is None:
            raise AlreadyConsumedError(
                "This parser has already been iterated; open the MFT again"
            )
        self._table = None
        logger.info("Handing %r to a %s iterator", table, output_format.value)
        return EntriesIterator(table, output_format)

    def __repr__(self) -> str:
        state = "consumed" if self._table is None else repr(self._table)
        return f"MftParser({state})"
