"""
Adopted-level download from the NNDC NuDat 3 "classic" dataset page.

The page is HTML; the level scheme is its third ``<table>``, first row a
header. Each later row starts with the level energy (keV), then Jπ and the
half-life. Rows are written out as a tab-separated level listing that
:func:`spsplot.levels.parse_level_listing` reads, so downloaded and hand-made
listings go through the same parser.

Example:
    >>> from spsplot.nndc import download_levels
    >>> path = download_levels(6, 13)   # writes <LEVEL_DIR>/13C.txt
"""

from __future__ import annotations

import re
from html.parser import HTMLParser
from pathlib import Path

import requests

from .config import Config, get_logger
from .exceptions import LevelResourceUnreadableError
from .utils import fetch_text, nuclide_name, validate_nuclide_params

logger = get_logger("nndc")

__all__ = [
    "NUDAT_URL",
    "fetch_level_listing",
    "extract_level_rows",
    "rows_to_listing",
    "download_levels",
]

NUDAT_URL = "https://www.nndc.bnl.gov/nudat3/getdatasetClassic.jsp?nucleus={nucleus}&unc=nds"

# Level table position on the page and its cell order
LEVEL_TABLE_INDEX = 2
ENERGY_CELL, SPIN_PARITY_CELL, HALF_LIFE_CELL = 0, 1, 2

_WHITESPACE = re.compile(r"\s+")


class _TableRowCollector(HTMLParser):
    """Collect the ``<td>`` texts of every row inside one table (nested rows included)."""

    def __init__(self, table_index: int):
        super().__init__(convert_charrefs=True)
        self.table_index = table_index
        self.tables_seen = 0
        self.rows: list[list[str]] = []
        self._open_tables: list[int] = []
        self._row: list[str] | None = None
        self._cell: list[str] | None = None

    def _inside_target(self) -> bool:
        return self.table_index in self._open_tables

    def handle_starttag(self, tag, attrs):
        if tag == "table":
            self._open_tables.append(self.tables_seen)
            self.tables_seen += 1
        elif tag == "tr" and self._inside_target():
            self._row = []
        elif tag == "td" and self._row is not None:
            self._cell = []
        elif tag == "br" and self._cell is not None:
            self._cell.append(" ")

    def handle_endtag(self, tag):
        if tag == "td" and self._cell is not None and self._row is not None:
            self._row.append(_clean_cell("".join(self._cell)))
            self._cell = None
        elif tag == "tr" and self._row is not None:
            self.rows.append(self._row)
            self._row = None
        elif tag == "table" and self._open_tables:
            self._open_tables.pop()

    def handle_data(self, data):
        if self._cell is not None:
            self._cell.append(data)


def _clean_cell(text: str) -> str:
    return _WHITESPACE.sub(" ", text.replace("\xa0", " ")).strip()


def extract_level_rows(html: str, source: str = "<html>") -> list[list[str]]:
    """
    Pull the data rows of the level table out of a NuDat page.

    Returns:
        One list of cell texts per row, header row removed.

    Raises:
        LevelResourceUnreadableError: If the page has no level table.
    """
    collector = _TableRowCollector(LEVEL_TABLE_INDEX)
    collector.feed(html)
    collector.close()

    if collector.tables_seen <= LEVEL_TABLE_INDEX:
        raise LevelResourceUnreadableError(
            source, f"expected at least {LEVEL_TABLE_INDEX + 1} tables, found {collector.tables_seen}"
        )
    rows = [row for row in collector.rows[1:] if row]
    logger.debug(f"{source}: {len(rows)} rows in level table")
    return rows


def rows_to_listing(rows: list[list[str]], name: str) -> str:
    """
    Format table rows as a tab-separated level listing (energies in keV).

    Rows without an energy cell are dropped; anything else is left for the
    level parser to accept or skip.
    """
    lines = [
        f"# {name} adopted levels (NNDC NuDat 3)",
        "# E(level) keV\tJpi\tT1/2",
    ]
    for row in rows:
        energy = row[ENERGY_CELL] if len(row) > ENERGY_CELL else ""
        if not energy:
            continue
        spin_parity = row[SPIN_PARITY_CELL] if len(row) > SPIN_PARITY_CELL else ""
        half_life = row[HALF_LIFE_CELL] if len(row) > HALF_LIFE_CELL else ""
        lines.append("\t".join((energy, spin_parity, half_life)).rstrip("\t"))
    return "\n".join(lines) + "\n"


def fetch_level_listing(z: int, a: int) -> str:
    """
    Download the adopted levels of (Z, A) and return them as listing text.

    Raises:
        InvalidNuclideError: If Z or A are invalid.
        LevelResourceUnreadableError: On network failure or an unexpected page.
    """
    validate_nuclide_params(z, a)
    name = nuclide_name(z, a)
    url = NUDAT_URL.format(nucleus=name)
    try:
        html = fetch_text(url)
    except requests.RequestException as e:
        raise LevelResourceUnreadableError(url, str(e)) from e

    rows = extract_level_rows(html, source=url)
    if not rows:
        logger.warning(f"NuDat returned no levels for {name}")
    return rows_to_listing(rows, name)


def download_levels(z: int, a: int, output_dir: Path | str | None = None, force: bool = False) -> Path:
    """
    Fetch the levels of (Z, A) and save them as ``<output_dir>/<A><El>.txt``.

    Args:
        z: Proton number.
        a: Mass number.
        output_dir: Target directory (default: ``Config.LEVEL_DIR``).
        force: Overwrite an existing listing.

    Returns:
        Path to the listing file.
    """
    output_dir = Path(output_dir) if output_dir is not None else Config.LEVEL_DIR
    output_path = output_dir / f"{nuclide_name(z, a)}.txt"
    if output_path.exists() and not force:
        logger.info(f"Level listing already exists: {output_path}")
        return output_path

    listing = fetch_level_listing(z, a)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path.write_text(listing, encoding="utf-8")
    logger.info(f"Saved levels to {output_path}")
    return output_path
