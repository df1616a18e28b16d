"""linedoc: extract marked line blocks from source files into Markdown documents.

Engineers embed documentation as specially prefixed comment lines in their
sources; linedoc collects those blocks across a source tree and writes them
out as a folder hierarchy of Markdown files.
"""

from linedoc.cli import main
from linedoc.models import Block, Destination, PathSegment, PathSpec, RunConfig
from linedoc.pipeline import Driver, extract_documents

__version__ = "0.1.0"
__all__ = [
    "main",
    "Block",
    "Destination",
    "PathSegment",
    "PathSpec",
    "RunConfig",
    "Driver",
    "extract_documents",
]
