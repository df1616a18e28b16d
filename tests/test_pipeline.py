import os

import pytest

from linedoc.errors import FatalIOError
from linedoc.models import ErrorKind
from linedoc import pipeline
from linedoc.pipeline import Driver, DriverState, extract_documents


def read_tree(root):
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def test_invoice_blocks_end_up_in_one_document(
    tmp_path, write_source, make_config, invoice_source
):
    source = write_source("invoice.rs", invoice_source)
    link = f"[SOURCE FILE:](file:///{source.as_posix()})"

    report = extract_documents(make_config())

    docs = tmp_path / "docs"
    assert list(read_tree(docs)) == ["PERSON Jan Pogompoel/INVOICE 001/ITEM line items.md"]
    text = (docs / "PERSON Jan Pogompoel" / "INVOICE 001" / "ITEM line items.md").read_text(
        encoding="utf-8"
    )
    assert text == (
        f"{link} LINE: 5\n\n# Borsel\nblou een\n"
        f"\n{link} LINE: 9\n\n# vlos\n20 meter\n"
        f"\n{link} LINE: 13\n\n# Seep\n"
        f"\n{link} LINE: 16\n\n# Mat\n"
    )
    assert report.files_scanned == 1
    assert report.blocks_kept == 4
    assert report.diagnostics == []


def test_blocks_from_different_files_share_a_destination(tmp_path, write_source, make_config):
    write_source("b/second.rs", ".**PERSON** Jan [1]\nlater\n")
    write_source("a/first.rs", ".**PERSON** Jan [0]\nearlier\n")

    extract_documents(make_config())

    text = (tmp_path / "docs" / "PERSON Jan.md").read_text(encoding="utf-8")
    assert text.index("earlier") < text.index("later")


def test_rerun_is_byte_identical(tmp_path, write_source, make_config, invoice_source):
    write_source("invoice.rs", invoice_source)
    write_source("nested/more.rs", ".**PERSON** Piet.**INVOICE** 9 [4]\nline\n")
    config = make_config()

    extract_documents(config)
    first = read_tree(tmp_path / "docs")
    extract_documents(config)

    assert read_tree(tmp_path / "docs") == first


def test_parallel_scan_matches_serial(tmp_path, write_source, make_config):
    for i in range(12):
        write_source(f"f{i:02}.rs", f".**PERSON** Jan [{i}]\nbody {i}\n")

    extract_documents(make_config(work_root=tmp_path / "serial"))
    extract_documents(make_config(work_root=tmp_path / "parallel", jobs=4))

    assert read_tree(tmp_path / "serial") == read_tree(tmp_path / "parallel")


def test_recoverable_errors_do_not_stop_the_run(tmp_path, write_source, make_config, capsys):
    write_source("good.rs", ".**PERSON** Jan [0]\nok\n.**PERSON** Jan [70000]\nlost\n")
    write_source("dup.rs", ".**PERSON** Piet [0]\none\n.**PERSON** Piet [0]\ntwo\n")
    write_source("label.rs", ".**PERSON** Jan.**ITEM** spoon [0]\nlost\n")
    bad = write_source("binary.rs", "")
    bad.write_bytes(b".**PERSON** Jan [5]\n\xff\n")

    report = extract_documents(make_config())

    assert read_tree(tmp_path / "docs").keys() == {"PERSON Jan.md"}
    text = (tmp_path / "docs" / "PERSON Jan.md").read_text(encoding="utf-8")
    assert "ok" in text and "lost" not in text
    assert [d.file_name for d in report.omitted] == ["PERSON Piet.md"]
    assert sorted(d.kind.value for d in report.diagnostics) == [
        "io",
        "parse",
        "validation",
        "validation",
    ]
    assert report.blocks_dropped == 2
    assert "Warning:" in capsys.readouterr().err


def test_previous_output_for_a_destination_is_replaced(tmp_path, write_source, make_config):
    stale = tmp_path / "docs" / "PERSON Jan.md"
    stale.parent.mkdir(parents=True)
    stale.write_text("old content that is much longer than the new one\n" * 10)
    write_source("a.rs", ".**PERSON** Jan [0]\nnew\n")

    extract_documents(make_config())

    assert "old content" not in stale.read_text(encoding="utf-8")


def test_clean_removes_documents_no_longer_produced(tmp_path, write_source, make_config):
    orphan = tmp_path / "docs" / "PERSON Gone.md"
    orphan.parent.mkdir(parents=True)
    orphan.write_text("x")
    write_source("a.rs", ".**PERSON** Jan [0]\nnew\n")

    extract_documents(make_config(clean=True))

    assert not orphan.exists()
    assert (tmp_path / "docs" / "PERSON Jan.md").exists()


def test_work_root_inside_scan_root_is_not_rescanned(tmp_path, write_source, make_config):
    write_source("a.md", ".**PERSON** Jan [0]\nbody\n")
    config = make_config(extension=".md", work_root=tmp_path / "src" / "docs")

    extract_documents(config)
    report = extract_documents(config)

    assert report.files_scanned == 1
    assert report.omitted == []


def test_driver_states(tmp_path, write_source, make_config):
    write_source("a.rs", ".**PERSON** Jan [0]\n")
    driver = Driver(make_config())
    assert driver.state is DriverState.IDLE

    driver.run()

    assert driver.state is DriverState.DONE


def test_missing_scan_root_aborts(tmp_path, make_config):
    driver = Driver(make_config(scan_root=tmp_path / "missing"))

    with pytest.raises(FatalIOError):
        driver.run()

    assert driver.state is DriverState.ABORTED
    assert not (tmp_path / "docs").exists()


def test_unwritable_work_root_aborts(tmp_path, write_source, make_config):
    write_source("a.rs", ".**PERSON** Jan [0]\n")
    (tmp_path / "blocker").write_text("")
    driver = Driver(make_config(work_root=tmp_path / "blocker" / "docs"))

    with pytest.raises(FatalIOError):
        driver.run()

    assert driver.state is DriverState.ABORTED


def test_unreadable_file_is_reported_as_io(tmp_path, write_source, make_config):
    bad = write_source("bad.rs", "")
    bad.write_bytes(b"\xff\xfe")

    report = extract_documents(make_config())

    assert [d.kind for d in report.diagnostics] == [ErrorKind.IO]
    assert report.written == []


def test_duplicate_order_removes_document_from_earlier_run(
    tmp_path, write_source, make_config
):
    source = ".**PERSON** Piet [0]\none\n.**PERSON** Piet [{}]\ntwo\n"
    write_source("piet.rs", source.format(1))
    extract_documents(make_config())
    document = tmp_path / "docs" / "PERSON Piet.md"
    assert document.exists()

    write_source("piet.rs", source.format(0))
    report = extract_documents(make_config())

    assert [d.file_name for d in report.omitted] == ["PERSON Piet.md"]
    assert not document.exists()
    assert report.removed == [document]


def test_documents_without_blocks_are_removed_on_rerun(
    tmp_path, write_source, make_config
):
    write_source("a.rs", ".**PERSON** Jan [0]\njan\n")
    write_source("b.rs", ".**PERSON** Gone.**INVOICE** 1 [0]\ngone\n")
    extract_documents(make_config())
    docs = tmp_path / "docs"
    (docs / "README.md").write_text("hand written\n")

    write_source("b.rs", "no blocks here\n")
    report = extract_documents(make_config())

    assert set(read_tree(docs)) == {"PERSON Jan.md", "README.md"}
    assert not (docs / "PERSON Gone").exists()
    assert report.removed == [docs / "PERSON Gone" / "INVOICE 1.md"]


def test_keep_leaves_stale_documents(tmp_path, write_source, make_config):
    write_source("a.rs", ".**PERSON** Jan [0]\njan\n.**PERSON** Gone [0]\ngone\n")
    extract_documents(make_config())

    write_source("a.rs", ".**PERSON** Jan [0]\njan\n")
    report = extract_documents(make_config(keep=True))

    assert (tmp_path / "docs" / "PERSON Gone.md").exists()
    assert report.removed == []


def test_failed_write_discards_the_earlier_document(
    tmp_path, write_source, make_config, monkeypatch
):
    write_source("a.rs", ".**PERSON** Jan [0]\nfirst\n")
    extract_documents(make_config())
    document = tmp_path / "docs" / "PERSON Jan.md"

    def failing_write(path, content):
        raise OSError(5, "Input/output error")

    monkeypatch.setattr(pipeline, "write_document", failing_write)
    write_source("a.rs", ".**PERSON** Jan [0]\nsecond\n")
    report = extract_documents(make_config())

    assert not document.exists()
    assert [d.file_name for d in report.omitted] == ["PERSON Jan.md"]
    assert [d.kind for d in report.diagnostics] == [ErrorKind.IO]


def test_unreadable_subdirectory_is_reported(
    tmp_path, write_source, make_config, monkeypatch
):
    write_source("a.rs", ".**PERSON** Jan [0]\njan\n")
    write_source("locked/b.rs", ".**PERSON** Piet [0]\npiet\n")
    real_scandir = os.scandir

    def scandir(path="."):
        if os.fspath(path).endswith("locked"):
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)
    report = extract_documents(make_config())

    assert [d.file_name for d in report.written] == ["PERSON Jan.md"]
    assert len(report.diagnostics) == 1
    diagnostic = report.diagnostics[0]
    assert diagnostic.kind is ErrorKind.IO
    assert diagnostic.source_file.endswith("locked")
