"""Segmentation of source lines into header + body blocks."""

import pathlib
from collections.abc import Iterable
from dataclasses import dataclass, field

from linedoc.file_operations import read_lines
from linedoc.header_parser import parse_header
from linedoc.models import Block, Diagnostic


@dataclass
class FileScan:
    """Blocks found in one file and the headers that were rejected."""

    source_file: str
    blocks: list[Block] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def _trim_body(body: list[str]) -> tuple[str, ...]:
    while body and not body[-1].strip():
        body.pop()
    return tuple(body)


def scan_lines(
    lines: Iterable[tuple[int, str]],
    source_file: str,
    marker: str,
    labels: tuple[str, ...],
    contiguous: bool = False,
) -> FileScan:
    """Group numbered lines into Blocks.

    A line whose stripped text starts with marker opens a new block; the
    lines after it, up to the next such line, are its body. In contiguous
    mode a block is instead a run of marker lines: the first is the header,
    the rest are body lines with the marker stripped, and any other line
    ends the block.

    A header that fails to parse drops its whole block. The failure is
    recorded and scanning carries on with the next header.

    Args:
        lines: (line_number, text) pairs in file order
        source_file: Name recorded on each Block
        marker: Block header prefix (case-sensitive)
        labels: Label whitelist handed to the header parser
        contiguous: Use contiguous marker-run blocks

    Returns:
        FileScan with the blocks in file order
    """
    scan = FileScan(source_file)
    header = None  # (line_number, HeaderResult) of the open block
    body: list[str] = []

    def close_block():
        if header is None:
            return
        line_number, result = header
        if result.ok:
            scan.blocks.append(
                Block(source_file, line_number, result.spec, _trim_body(body))
            )
        else:
            scan.diagnostics.append(
                Diagnostic(result.error.kind, result.error.message, source_file, line_number)
            )

    for line_number, text in lines:
        stripped = text.strip()
        is_marker = stripped.startswith(marker)

        if contiguous:
            if is_marker and header is not None:
                body.append(stripped[len(marker) :])
                continue
            if not is_marker:
                close_block()
                header, body = None, []
                continue
        elif not is_marker:
            if header is not None:
                body.append(text)
            continue

        close_block()
        header = (line_number, parse_header(stripped[len(marker) :].lstrip(), labels))
        body = []

    close_block()
    return scan


def scan_file(
    file_path: pathlib.Path,
    marker: str,
    labels: tuple[str, ...],
    contiguous: bool = False,
) -> FileScan:
    """Scan one file. The file is read completely before any block is returned.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not valid UTF-8
    """
    return scan_lines(
        list(read_lines(file_path)), file_path.as_posix(), marker, labels, contiguous
    )
