"""Mapping of parsed headers onto the output tree."""

import pathlib

from linedoc.constants import DOCUMENT_SUFFIX
from linedoc.models import Destination, PathSpec


def resolve_destination(spec: PathSpec, work_root: pathlib.Path) -> Destination:
    """Resolve a PathSpec to its Destination under work_root.

    Every segment but the last becomes a folder named "{label} {value}";
    the last becomes the document "{label} {value}.md". The result depends
    only on the segments, never on where the block was found.

    Args:
        spec: Parsed block header
        work_root: Root of the output tree

    Returns:
        The Destination for the block

    Examples:
        >>> spec = PathSpec((PathSegment("EPIC", "Get Lines"),), 0)
        >>> resolve_destination(spec, Path("docs")).relative_path
        PurePosixPath('EPIC Get Lines.md')
    """
    *folders, last = spec.segments
    return Destination(
        folders=tuple(segment.name for segment in folders),
        file_name=last.name + DOCUMENT_SUFFIX,
        root=work_root,
    )
