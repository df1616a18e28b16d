import pathlib

import pytest

from linedoc.models import RunConfig

LABELS = ("PERSON", "INVOICE", "ITEM")

INVOICE_SOURCE = """\
fn main() {
}

// invoice
.**PERSON** Jan Pogompoel.**INVOICE** 001.**ITEM** line items [0]
# Borsel
blou een

.**PERSON** Jan Pogompoel.**INVOICE** 001.**ITEM** line items [1]
# vlos
20 meter

.**PERSON** Jan Pogompoel.**INVOICE** 001.**ITEM** line items [2]
# Seep

.**PERSON** Jan Pogompoel.**INVOICE** 001.**ITEM** line items [3]
# Mat
"""


@pytest.fixture
def invoice_source():
    return INVOICE_SOURCE


@pytest.fixture
def write_source(tmp_path):
    """Write a file below tmp_path/src and return its path."""

    def _write(relative: str, text: str) -> pathlib.Path:
        path = tmp_path / "src" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides) -> RunConfig:
        settings = dict(
            scan_root=tmp_path / "src",
            work_root=tmp_path / "docs",
            marker=".",
            labels=LABELS,
            extension=".rs",
        )
        settings.update(overrides)
        return RunConfig(**settings)

    return _make
