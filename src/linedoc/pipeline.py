"""The extraction driver: walk, scan, aggregate, render, flush."""

import enum
import pathlib
import sys
from concurrent.futures import ThreadPoolExecutor

from tqdm import tqdm

from linedoc.block_scanner import FileScan, scan_file
from linedoc.errors import FatalIOError
from linedoc.file_operations import (
    collect_files,
    get_exclude_spec,
    prepare_work_root,
    remove_document,
    remove_stale_documents,
    write_document,
)
from linedoc.models import Destination, Diagnostic, ErrorKind, Report, RunConfig
from linedoc.output_generators import Aggregator


class DriverState(enum.Enum):
    IDLE = "idle"
    WALKING = "walking"
    SCANNING = "scanning"
    RESOLVING = "resolving"
    RENDERING = "rendering"
    FLUSHING = "flushing"
    DONE = "done"
    ABORTED = "aborted"


def warn(diagnostic: Diagnostic) -> None:
    print(f"Warning: {diagnostic}", file=sys.stderr)


class Driver:
    """Runs one extraction from a RunConfig and reports what happened.

    Parsing and resolving happen per file while scanning; rendering and
    flushing happen once, after the last file has been scanned.
    """

    def __init__(self, config: RunConfig):
        self.config = config
        self.state = DriverState.IDLE
        self.report = Report()

    def run(self) -> Report:
        """Execute the pipeline.

        Raises:
            FatalIOError: If the scan root cannot be read or the work root
                cannot be written; the driver ends in the ABORTED state
        """
        try:
            file_paths = self._walk()
            aggregator = Aggregator(self.config.work_root)
            self._scan(file_paths, aggregator)
            self._flush(self._render(aggregator))
        except FatalIOError:
            self.state = DriverState.ABORTED
            raise
        self.state = DriverState.DONE
        return self.report

    def _walk(self) -> list[pathlib.Path]:
        config = self.config
        self.state = DriverState.WALKING
        print(f"📂 Scanning directory: {config.scan_root}")

        exclude_spec = get_exclude_spec(config.scan_root, config.exclude, config.use_gitignore)
        file_paths = collect_files(
            config.scan_root,
            config.extension,
            exclude_spec,
            skip_dirs=[config.work_root],
            onerror=self._unreadable_dir,
        )
        prepare_work_root(config.work_root, config.clean)
        print(f"✓ Found {len(file_paths)} '{config.extension}' files to scan")
        return file_paths

    def _unreadable_dir(self, error: OSError) -> None:
        self._report_problem(
            Diagnostic(ErrorKind.IO, f"could not read directory: {error.strerror}", error.filename)
        )

    def _report_problem(self, diagnostic: Diagnostic) -> None:
        self.report.diagnostics.append(diagnostic)
        warn(diagnostic)

    def _discard(self, destination: Destination) -> None:
        """Make sure an omitted destination holds no document from an earlier run."""
        try:
            if remove_document(destination.path):
                self.report.removed.append(destination.path)
        except OSError as e:
            self._report_problem(
                Diagnostic(ErrorKind.IO, f"could not remove {destination.path}: {e}")
            )

    def _scan_one(self, file_path: pathlib.Path) -> FileScan:
        try:
            return scan_file(
                file_path, self.config.marker, self.config.labels, self.config.contiguous
            )
        except (OSError, UnicodeDecodeError) as e:
            scan = FileScan(file_path.as_posix())
            scan.diagnostics.append(
                Diagnostic(ErrorKind.IO, f"could not read file: {e}", scan.source_file)
            )
            return scan

    def _scan(self, file_paths: list[pathlib.Path], aggregator: Aggregator) -> None:
        self.state = DriverState.SCANNING
        report = self.report

        with ThreadPoolExecutor(max_workers=max(1, self.config.jobs)) as executor:
            # map() yields in submission order, keeping aggregation deterministic
            scans = executor.map(self._scan_one, file_paths)
            with tqdm(total=len(file_paths), desc="Scanning", unit="file") as pbar:
                for scan in scans:
                    report.files_scanned += 1
                    self.state = DriverState.RESOLVING
                    aggregator.add(scan.blocks)
                    self.state = DriverState.SCANNING
                    report.blocks_kept += len(scan.blocks)
                    for diagnostic in scan.diagnostics:
                        if diagnostic.kind is not ErrorKind.IO:
                            report.blocks_dropped += 1
                        self._report_problem(diagnostic)
                    if self.config.verbose:
                        print(f"  ✓ {scan.source_file} ({len(scan.blocks)} blocks)")
                    pbar.update(1)

    def _render(self, aggregator: Aggregator):
        self.state = DriverState.RENDERING
        documents, rejected = aggregator.build_documents()
        for destination, diagnostic in rejected:
            self.report.omitted.append(destination)
            self._report_problem(diagnostic)
            self._discard(destination)
        return documents

    def _flush(self, documents) -> None:
        config = self.config
        self.state = DriverState.FLUSHING

        print(f"📝 Writing {len(documents)} documents to {config.work_root}...")
        for document in documents:
            try:
                write_document(document.destination.path, document.content)
            except OSError as e:
                self.report.omitted.append(document.destination)
                self._report_problem(
                    Diagnostic(ErrorKind.IO, f"could not write {document.destination.path}: {e}")
                )
                self._discard(document.destination)
                continue
            self.report.written.append(document.destination)
            if config.verbose:
                print(f"  ✓ {document.destination.relative_path} ({len(document.blocks)} blocks)")

        if not config.keep:
            self._remove_stale()

    def _remove_stale(self) -> None:
        config = self.config
        try:
            removed = remove_stale_documents(
                config.work_root,
                config.labels,
                keep=[d.path for d in self.report.written],
                protect=[config.scan_root],
            )
        except OSError as e:
            self._report_problem(
                Diagnostic(ErrorKind.IO, f"could not remove stale documents: {e}")
            )
            return
        self.report.removed.extend(removed)
        if config.verbose:
            for path in removed:
                print(f"  ✗ removed {path.relative_to(config.work_root).as_posix()}")


def extract_documents(config: RunConfig) -> Report:
    """Run the whole pipeline for config and print a summary."""
    report = Driver(config).run()

    print(f"\n✅ Done! Scanned {report.files_scanned} files")
    print(f"🧩 Blocks: {report.blocks_kept} kept, {report.blocks_dropped} dropped")
    print(
        f"📄 Documents: {len(report.written)} written, {len(report.omitted)} omitted, "
        f"{len(report.removed)} stale removed"
    )
    return report
