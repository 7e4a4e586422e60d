"""Tests for the NuDat level downloader (network mocked)."""

import pytest
import requests
from pathlib import Path
from unittest.mock import MagicMock, patch

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spsplot import utils
from spsplot.exceptions import InvalidNuclideError, LevelResourceUnreadableError
from spsplot.levels import parse_level_listing
from spsplot.nndc import (
    NUDAT_URL,
    download_levels,
    extract_level_rows,
    fetch_level_listing,
    rows_to_listing,
)

PAGE = """\
<html><body>
<table><tr><td>navigation</td></tr></table>
<table><tr><td>dataset summary</td></tr></table>
<table>
  <tr><td>E(level)<br>(keV)</td><td>J&pi;(level)</td><td>T<sub>1/2</sub>(level)</td></tr>
  <tr><td>0.0</td><td>1/2-</td><td>STABLE</td></tr>
  <tr><td>3089.443&nbsp;20</td><td>1/2+</td><td>1.05 fs<br>7</td></tr>
  <tr><td>3684.507 19</td><td>3/2-</td><td></td></tr>
  <tr></tr>
  <tr><td><table><tr><td>6864 5</td><td>5/2+</td></tr></table></td></tr>
  <tr><td></td><td>comment row</td></tr>
</table>
<table><tr><td>999.9</td><td>gammas</td></tr></table>
</body></html>
"""


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    utils._rate_limiter.reset()
    yield
    utils._rate_limiter.reset()


def _response(text, status=200):
    response = MagicMock()
    response.text = text
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


class TestExtractRows:
    """HTML table extraction."""

    def test_rows_from_third_table(self):
        rows = extract_level_rows(PAGE)
        energies = [row[0] for row in rows]
        assert "0.0" in energies
        assert "999.9" not in energies
        assert "navigation" not in energies

    def test_header_removed(self):
        rows = extract_level_rows(PAGE)
        assert rows[0] == ["0.0", "1/2-", "STABLE"]

    def test_cell_whitespace_normalised(self):
        rows = extract_level_rows(PAGE)
        assert rows[1] == ["3089.443 20", "1/2+", "1.05 fs 7"]

    def test_nested_rows_collected(self):
        rows = extract_level_rows(PAGE)
        assert ["6864 5", "5/2+"] in rows

    def test_too_few_tables(self):
        with pytest.raises(LevelResourceUnreadableError, match="found 2"):
            extract_level_rows("<table></table><table></table>", source="page")


class TestListing:
    """Rows to parser-compatible listing text."""

    def test_header_lines(self):
        text = rows_to_listing([], "13C")
        assert text.splitlines() == [
            "# 13C adopted levels (NNDC NuDat 3)",
            "# E(level) keV\tJpi\tT1/2",
        ]

    def test_rows_without_energy_dropped(self):
        text = rows_to_listing([["", "comment row"], ["0.0", "1/2-"]], "13C")
        assert text.splitlines()[2:] == ["0.0\t1/2-"]

    def test_listing_parses(self):
        """The page's levels come back through the level parser."""
        text = rows_to_listing(extract_level_rows(PAGE), "13C")
        result = parse_level_listing(text)
        assert result.n_skipped == 0
        energies = [level.energy for level in result]
        assert energies == pytest.approx([0.0, 3.089443, 3.684507, 6.864])
        assert result.levels[1].half_life == "1.05 fs 7"
        assert result.levels[2].half_life is None


class TestFetch:
    """Network access through utils.fetch_text."""

    def test_fetch_url(self):
        with patch("spsplot.utils.requests.get", return_value=_response(PAGE)) as mock_get:
            text = fetch_level_listing(6, 13)
        assert mock_get.call_args[0][0] == NUDAT_URL.format(nucleus="13C")
        assert "3089.443 20" in text

    def test_network_error(self):
        error = requests.ConnectionError("unreachable")
        with patch("spsplot.utils.requests.get", side_effect=error):
            with pytest.raises(LevelResourceUnreadableError, match="unreachable"):
                fetch_level_listing(6, 13)

    def test_http_error(self):
        with patch("spsplot.utils.requests.get", return_value=_response("", status=404)):
            with pytest.raises(LevelResourceUnreadableError):
                fetch_level_listing(6, 13)

    def test_unexpected_page(self):
        with patch("spsplot.utils.requests.get", return_value=_response("<html>maintenance</html>")):
            with pytest.raises(LevelResourceUnreadableError):
                fetch_level_listing(6, 13)

    def test_invalid_nuclide(self):
        with pytest.raises(InvalidNuclideError):
            fetch_level_listing(7, 5)


class TestDownload:
    """Saving listings to disk."""

    def test_writes_file(self, tmp_path):
        with patch("spsplot.utils.requests.get", return_value=_response(PAGE)):
            path = download_levels(6, 13, output_dir=tmp_path / "levels")
        assert path == tmp_path / "levels" / "13C.txt"
        assert parse_level_listing(path.read_text()).n_levels == 4

    def test_existing_file_kept(self, tmp_path):
        existing = tmp_path / "13C.txt"
        existing.write_text("0.0\n")
        with patch("spsplot.utils.requests.get") as mock_get:
            path = download_levels(6, 13, output_dir=tmp_path)
        mock_get.assert_not_called()
        assert path.read_text() == "0.0\n"

    def test_force_overwrites(self, tmp_path):
        (tmp_path / "13C.txt").write_text("0.0\n")
        with patch("spsplot.utils.requests.get", return_value=_response(PAGE)):
            path = download_levels(6, 13, output_dir=tmp_path, force=True)
        assert "NuDat" in path.read_text()
