"""Data models for linedoc."""

import enum
import pathlib
from dataclasses import dataclass, field


class ErrorKind(enum.Enum):
    """Classes of recoverable failure."""

    PARSE = "parse"
    VALIDATION = "validation"
    IO = "io"


@dataclass(frozen=True)
class PathSegment:
    """One labeled step of a block's destination path."""

    label: str
    value: str

    @property
    def name(self) -> str:
        return f"{self.label} {self.value}"


@dataclass(frozen=True)
class PathSpec:
    """Parsed block header.

    Attributes:
        segments: Labeled path segments, in whitelist order
        order_number: Position of the block inside its document
    """

    segments: tuple[PathSegment, ...]
    order_number: int


@dataclass(frozen=True)
class HeaderError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class HeaderResult:
    """Outcome of parsing one header line: either a PathSpec or a HeaderError."""

    spec: PathSpec | None = None
    error: HeaderError | None = None

    @property
    def ok(self) -> bool:
        return self.spec is not None

    @classmethod
    def success(cls, spec: PathSpec) -> "HeaderResult":
        return cls(spec=spec)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "HeaderResult":
        return cls(error=HeaderError(kind, message))


@dataclass(frozen=True)
class Block:
    """A header line plus the body lines that follow it.

    Attributes:
        source_file: Path of the file the block was found in, as walked
        source_line: 1-based line number of the header
        path_spec: Parsed header
        body: Body lines without line terminators
    """

    source_file: str
    source_line: int
    path_spec: PathSpec
    body: tuple[str, ...] = ()


@dataclass(frozen=True, order=True)
class Destination:
    """Resolved output location: nested folders plus one Markdown file."""

    folders: tuple[str, ...]
    file_name: str
    root: pathlib.Path = field(compare=False)

    @property
    def path(self) -> pathlib.Path:
        return self.root.joinpath(*self.folders, self.file_name)

    @property
    def relative_path(self) -> pathlib.PurePosixPath:
        return pathlib.PurePosixPath(*self.folders, self.file_name)


@dataclass(frozen=True)
class Document:
    destination: Destination
    blocks: tuple[Block, ...]
    content: str


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem, reported and skipped."""

    kind: ErrorKind
    message: str
    source_file: str | None = None
    source_line: int | None = None

    def __str__(self) -> str:
        if self.source_file is None:
            return self.message
        if self.source_line is None:
            return f"{self.source_file}: {self.message}"
        return f"{self.source_file}:{self.source_line}: {self.message}"


@dataclass(frozen=True)
class RunConfig:
    """Settings for one extraction run.

    Attributes:
        scan_root: Directory to walk for source files
        work_root: Directory the Markdown tree is written into
        marker: Prefix marking a block header line
        labels: Label whitelist; its length is the maximum path depth
        extension: Case-sensitive file name suffix to scan
        contiguous: Blocks are runs of marker lines (marker stripped from body)
        clean: Remove work_root before writing
        keep: Leave documents no block produced this run in place
        exclude: Extra gitwildmatch patterns pruned from the walk
        use_gitignore: Merge the scan root's .gitignore into the exclusions
        jobs: Number of scanning threads
        verbose: Print per-file and per-block progress
    """

    scan_root: pathlib.Path
    work_root: pathlib.Path
    marker: str
    labels: tuple[str, ...]
    extension: str
    contiguous: bool = False
    clean: bool = False
    keep: bool = False
    exclude: tuple[str, ...] = ()
    use_gitignore: bool = False
    jobs: int = 1
    verbose: bool = False


@dataclass
class Report:
    """What a run produced and what it had to skip."""

    files_scanned: int = 0
    blocks_kept: int = 0
    blocks_dropped: int = 0
    written: list[Destination] = field(default_factory=list)
    omitted: list[Destination] = field(default_factory=list)
    removed: list[pathlib.Path] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
