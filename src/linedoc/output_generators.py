"""Aggregation of blocks into documents and Markdown rendering."""

import pathlib
from collections import defaultdict
from collections.abc import Iterable

from linedoc.constants import SOURCE_LINK_FORMAT
from linedoc.models import Block, Destination, Diagnostic, Document, ErrorKind
from linedoc.path_resolver import resolve_destination


class Aggregator:
    """Destination-keyed collection of blocks for a single run.

    Blocks may arrive from any file in any order; documents are only built
    once everything has been added.
    """

    def __init__(self, work_root: pathlib.Path):
        self.work_root = work_root
        self._blocks: dict[Destination, list[Block]] = defaultdict(list)

    def __len__(self) -> int:
        return len(self._blocks)

    def add(self, blocks: Iterable[Block]) -> None:
        for block in blocks:
            destination = resolve_destination(block.path_spec, self.work_root)
            self._blocks[destination].append(block)

    def build_documents(
        self,
    ) -> tuple[list[Document], list[tuple[Destination, Diagnostic]]]:
        """Sort and render every destination.

        A destination holding two blocks with the same order number is not
        rendered; a Diagnostic naming the clashing blocks is returned instead.

        Returns:
            Documents in destination order, and each rejected destination
            with the reason it was rejected
        """
        documents = []
        rejected = []
        for destination in sorted(self._blocks):
            blocks = sorted(
                self._blocks[destination],
                key=lambda b: (b.path_spec.order_number, b.source_file, b.source_line),
            )
            clash = find_duplicate_order(blocks)
            if clash is not None:
                first, second = clash
                diagnostic = Diagnostic(
                    ErrorKind.VALIDATION,
                    f"duplicate order number {first.path_spec.order_number} in "
                    f"{destination.relative_path} (also at "
                    f"{first.source_file}:{first.source_line}); document omitted",
                    second.source_file,
                    second.source_line,
                )
                rejected.append((destination, diagnostic))
                continue
            documents.append(Document(destination, tuple(blocks), render_document(blocks)))
        return documents, rejected


def find_duplicate_order(blocks: list[Block]) -> tuple[Block, Block] | None:
    """Return the first pair of blocks sharing an order number, if any.

    Args:
        blocks: Blocks sorted by order number
    """
    for previous, current in zip(blocks, blocks[1:]):
        if previous.path_spec.order_number == current.path_spec.order_number:
            return previous, current
    return None


def render_block(block: Block) -> list[str]:
    """Render a block as its source link, a blank line, then the body."""
    header = SOURCE_LINK_FORMAT.format(
        source_file=block.source_file, source_line=block.source_line
    )
    return [header, "", *block.body]


def render_document(blocks: Iterable[Block]) -> str:
    """Render sorted blocks, separated by blank lines, as one Markdown text."""
    lines: list[str] = []
    for block in blocks:
        if lines:
            lines.append("")
        lines.extend(render_block(block))
    return "\n".join(lines) + "\n"
