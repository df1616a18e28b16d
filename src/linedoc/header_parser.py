"""Block header parsing.

A header line, with the marker prefix already stripped, looks like::

    .**PERSON** Jan Pogompoel.**INVOICE** 001.**ITEM** line items [0]

Each ``.**LABEL** VALUE`` pair is one path segment and the trailing ``[N]``
is the block's order number inside its document.
"""

import re

from linedoc.constants import FORBIDDEN_VALUE_CHARS, FORBIDDEN_VALUES, MAX_ORDER_NUMBER
from linedoc.models import ErrorKind, HeaderResult, PathSegment, PathSpec

_ORDER_RE = re.compile(r"\[([0-9]+)\]$")
# The first segment may lose its leading dot to the marker strip.
_SEGMENT_RE = re.compile(r"(?:^|\.)\*\*([^*]+)\*\*")


def _split_segments(text: str) -> list[tuple[str, str]] | None:
    """Split the segment part of a header into (label, value) pairs.

    Returns None when text does not start with a segment marker.
    """
    matches = list(_SEGMENT_RE.finditer(text))
    if not matches or matches[0].start() != 0:
        return None

    pairs = []
    for current, following in zip(matches, matches[1:] + [None]):
        end = following.start() if following else len(text)
        pairs.append((current.group(1).strip(), text[current.end() : end].strip()))
    return pairs


def parse_header(text: str, labels: tuple[str, ...] | list[str]) -> HeaderResult:
    """Parse one stripped header line against the label whitelist.

    Args:
        text: Header text with the marker prefix removed
        labels: Allowed labels in order; also bounds the segment count

    Returns:
        HeaderResult holding either the PathSpec or the reason it was rejected

    Examples:
        >>> parse_header("**EPIC** Get Lines [0]", ("EPIC", "ITEM")).spec.order_number
        0
    """
    text = text.strip()

    order_match = _ORDER_RE.search(text)
    if order_match is None:
        return HeaderResult.failure(ErrorKind.PARSE, "missing trailing order number '[N]'")
    order_number = int(order_match.group(1))
    if order_number > MAX_ORDER_NUMBER:
        return HeaderResult.failure(
            ErrorKind.PARSE,
            f"order number {order_number} is outside 0..{MAX_ORDER_NUMBER}",
        )

    head = text[: order_match.start()]
    if head and not head[-1].isspace():
        return HeaderResult.failure(
            ErrorKind.PARSE, "order number must be separated from the path by a space"
        )
    head = head.strip()
    if not head:
        return HeaderResult.failure(ErrorKind.PARSE, "header has no path segments")

    pairs = _split_segments(head)
    if pairs is None:
        return HeaderResult.failure(
            ErrorKind.PARSE, f"expected '.**LABEL** value' segments, got {head!r}"
        )

    if len(pairs) > len(labels):
        return HeaderResult.failure(
            ErrorKind.VALIDATION,
            f"path has {len(pairs)} segments, at most {len(labels)} allowed",
        )

    segments = []
    for position, (label, value) in enumerate(pairs):
        if label not in labels:
            return HeaderResult.failure(ErrorKind.VALIDATION, f"unknown label {label!r}")
        if label != labels[position]:
            return HeaderResult.failure(
                ErrorKind.VALIDATION,
                f"label {label!r} at position {position + 1}, expected {labels[position]!r}",
            )
        if not value:
            return HeaderResult.failure(ErrorKind.PARSE, f"label {label!r} has no value")
        if value in FORBIDDEN_VALUES or any(c in value for c in FORBIDDEN_VALUE_CHARS):
            return HeaderResult.failure(
                ErrorKind.VALIDATION, f"value {value!r} of {label!r} is not a valid name"
            )
        segments.append(PathSegment(label, value))

    return HeaderResult.success(PathSpec(tuple(segments), order_number))
