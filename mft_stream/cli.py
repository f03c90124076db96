"""
``mft-dump``: stream the entries of an MFT to stdout.

Usage:
    mft-dump $MFT                   # JSON lines, one entry per line
    mft-dump $MFT -o csv > mft.csv  # CSV with a single header row
    mft-dump $MFT -o json -n 10     # JSON array of the first 10 entries
    mft-dump --export export.yaml   # bulk export per config

Slots that fail to decode are logged to stderr and counted; they do not
change the exit status.  Fatal errors (unreadable input, bad config)
exit with status 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import BinaryIO

import mft_stream
from mft_stream.config import ParserConfig
from mft_stream.exceptions import MftStreamError
from mft_stream.iterator import EntriesIterator
from mft_stream.parser import MftParser

log = logging.getLogger("mft_dump")


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="mft-dump",
        description="Dump the entries of an NTFS $MFT as JSON or CSV.",
    )
    p.add_argument("file", nargs="?", help="Path to an extracted $MFT file")
    p.add_argument("-o", dest="format", choices=["csv", "json", "jsonl"], default="jsonl")
    p.add_argument("-n", dest="max_records", type=int, default=0,
                   help="Stop after this many entries (0 = all)")
    p.add_argument("--entry-size", type=int, default=None,
                   help="Override the entry size read from the first header")
    p.add_argument("--export", metavar="CONFIG",
                   help="Run a bulk export described by a YAML config")
    p.add_argument("-v", action="count", default=0,
                   help="More logging (-v info, -vv debug)")
    ns = p.parse_args(argv)
    if not ns.file and not ns.export:
        p.error("either FILE or --export is required")
    return ns


def _open_iterator(parser: MftParser, output_format: str) -> EntriesIterator:
    if output_format == "csv":
        return parser.entries_csv()
    return parser.entries_json()


def stream_entries(
    parser: MftParser,
    output_format: str,
    out: BinaryIO,
    max_records: int = 0,
) -> tuple[int, int]:
    """Write entries to *out*; return ``(written, failed)`` counts."""
    written = 0
    failed = 0

    with _open_iterator(parser, output_format) as entries:
        if output_format == "json":
            out.write(b"[\n")
        for value in entries:
            if isinstance(value, MftStreamError):
                failed += 1
                log.warning("%s: %s", type(value).__name__, value)
                continue

            if output_format == "csv":
                out.write(value)
            elif output_format == "json":
                if written:
                    out.write(b",\n")
                out.write(value.encode("utf-8"))
            else:
                out.write(value.encode("utf-8") + b"\n")

            written += 1
            if max_records and written >= max_records:
                break
        if output_format == "json":
            out.write(b"\n]\n")

    out.flush()
    return written, failed


def main(argv: list[str] | None = None) -> int:
    ns = parse_args(argv)

    level = logging.WARNING
    if ns.v == 1:
        level = logging.INFO
    elif ns.v >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        if ns.export:
            for path in mft_stream.run_export(ns.export):
                print(path)
            return 0

        parser = MftParser(ns.file, ParserConfig(entry_size=ns.entry_size))
        written, failed = stream_entries(
            parser, ns.format, sys.stdout.buffer, max_records=ns.max_records
        )
    except BrokenPipeError:
        try:
            sys.stdout.close()
        except OSError:
            pass
        return 0
    except (MftStreamError, OSError, ValueError) as exc:
        log.error("%s", exc)
        return 1

    log.info("Wrote %d entries, %d slots failed", written, failed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
