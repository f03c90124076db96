"""
Custom exception hierarchy for mft-stream.

Two families live here:

- **Fatal** errors (``InitializationError``, ``AlreadyConsumedError``,
  ``NotInitializedError``, ``ConfigValidationError``, ``ExportError``)
  are raised the normal way.
- **Per-slot** errors (``DecodeError``, ``TruncatedEntryError``,
  ``SerializationError``) are *returned* by ``EntriesIterator`` as the
  value for the slot that failed, so a single damaged record never
  stops a scan.  Callers discriminate with
  ``isinstance(value, MftStreamError)``.
"""

from __future__ import annotations


class MftStreamError(Exception):
    """Base exception for all mft-stream errors."""


class InitializationError(MftStreamError):
    """Raised when the input cannot be opened or is not an MFT.

    For example: the path does not exist, the first entry header is
    shorter than expected, or it carries a foreign signature.
    """


class AlreadyConsumedError(MftStreamError):
    """Raised when a second iterator is requested from an ``MftParser``.

    A parser hands its table to exactly one iterator.
    """


class NotInitializedError(MftStreamError):
    """Raised when table metadata is requested after the hand-off."""


class DecodeError(MftStreamError):
    """Raised (and yielded) when a single MFT slot cannot be decoded.

    Attributes:
        entry_id: Index of the slot that failed, when known.
    """

    def __init__(self, message: str, entry_id: int | None = None) -> None:
        super().__init__(message)
        self.entry_id = entry_id


class TruncatedEntryError(DecodeError):
    """The byte source ended before the slot was complete.

    Distinct from a malformed slot: once this is seen no later slot can
    be read, so the iterator stops after yielding it.
    """


class SerializationError(MftStreamError):
    """Raised (and yielded) when a decoded entry cannot be rendered.

    Attributes:
        entry_id: Index of the entry that failed to render.
    """

    def __init__(self, message: str, entry_id: int | None = None) -> None:
        super().__init__(message)
        self.entry_id = entry_id


class PathResolutionError(MftStreamError):
    """Raised when a parent chain cannot be followed to the root.

    Renderers catch this and report it on the record instead of
    failing the record.

    Attributes:
        entry_id: The entry whose path was being resolved.
        partial_path: ``[Unknown]/...`` built from the names collected
            before the chain broke, or ``None`` if there were none.
    """

    def __init__(
        self,
        message: str,
        entry_id: int | None = None,
        partial_path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.entry_id = entry_id
        self.partial_path = partial_path


class ConfigValidationError(MftStreamError):
    """Raised when an export config file is empty or inconsistent."""


class ExportError(MftStreamError):
    """Raised when the exporter fails to write output files.

    For example, permission errors, disk full, or unsupported format.
    """
