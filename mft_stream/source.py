"""
Byte source adapter for mft-stream.

Unifies the two kinds of input the parser accepts:

- A filesystem path (``str`` or ``os.PathLike``): opened read-only with
  a buffered reader.  The size is known up front from ``fstat``.
- Any binary stream with ``read`` and ``seek`` (an open file, a
  ``BytesIO``, a stream over a disk image): used as-is, size unknown.

Only sources opened here are closed here; a caller-supplied stream is
left open for the caller to manage.
"""

from __future__ import annotations

import io
import logging
import os
from typing import BinaryIO

logger = logging.getLogger(__name__)


class ByteSource:
    """Seekable, readable bytes with a known or unknown total size.

    Attributes:
        size: Total size in bytes for path inputs, ``None`` for streams.
        name: Display name used in log messages.
    """

    def __init__(
        self,
        stream: BinaryIO,
        size: int | None,
        owns_stream: bool,
        name: str = "<stream>",
    ) -> None:
        self._stream = stream
        self.size = size
        self.name = name
        self._owns_stream = owns_stream
        self.closed = False

    @classmethod
    def open(cls, path_or_file_like: object, buffer_size: int = 4096) -> ByteSource:
        """Build a source from a path or a file-like object.

        Raises:
            TypeError: If the argument is neither a path nor a readable,
                seekable object.
            OSError: If the path cannot be opened.
        """
        if isinstance(path_or_file_like, (str, os.PathLike)):
            path = os.fspath(path_or_file_like)
            stream = open(path, "rb", buffering=buffer_size)
            size = os.fstat(stream.fileno()).st_size
            logger.debug("Opened %s (%d bytes)", path, size)
            return cls(stream, size=size, owns_stream=True, name=str(path))

        read = getattr(path_or_file_like, "read", None)
        seek = getattr(path_or_file_like, "seek", None)
        if callable(read) and callable(seek):
            name = getattr(path_or_file_like, "name", "<stream>")
            return cls(path_or_file_like, size=None, owns_stream=False, name=str(name))

        raise TypeError(
            "Expected a path or a file-like object with read() and seek(), "
            f"got {type(path_or_file_like).__name__}"
        )

    def read_at(self, offset: int, length: int) -> bytes:
        """Read up to *length* bytes starting at absolute *offset*.

        Fewer bytes are returned at the end of the data.  Stream
        objects may return short reads, so keep reading until the
        request is filled or the stream is drained.
        """
        self._stream.seek(offset, io.SEEK_SET)
        chunks: list[bytes] = []
        remaining = length
        while remaining > 0:
            chunk = self._stream.read(remaining)
            if not chunk:
                break
            chunks.append(bytes(chunk))
            remaining -= len(chunk)
        return b"".join(chunks)

    def stream_size(self) -> int:
        """Return the total size, measuring it for streams of unknown size."""
        if self.size is not None:
            return self.size
        position = self._stream.tell()
        self._stream.seek(0, io.SEEK_END)
        end = self._stream.tell()
        self._stream.seek(position, io.SEEK_SET)
        return end

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._owns_stream:
            self._stream.close()

    def __repr__(self) -> str:
        return f"ByteSource(name={self.name!r}, size={self.size!r})"
