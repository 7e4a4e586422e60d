"""Tests for level listing parsing."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spsplot.exceptions import LevelResourceUnreadableError
from spsplot.levels import (
    Level,
    LevelLibrary,
    LevelParseResult,
    parse_energy_field,
    parse_level_listing,
    read_level_file,
)

LISTING = """\
# test listing
# E(level) keV      Jpi      T1/2
0.0                 1/2-     STABLE
3089.443 20         1/2+     1.05 fs 7
garbage             3/2-
3684.507 19         3/2-

~7500               (3/2+)
                    5/2+
6107 AP             (1/2,3/2)
"""


class TestEnergyField:
    """Decoding of single energy fields."""

    def test_plain_number(self):
        field = parse_energy_field("3089.443")
        assert field.value == pytest.approx(3089.443)
        assert field.uncertainty is None
        assert not field.approximate

    def test_compact_uncertainty(self):
        """Uncertainty digits apply to the last decimal places."""
        assert parse_energy_field("3089.443 20").uncertainty == pytest.approx(0.020)
        assert parse_energy_field("6864 5").uncertainty == pytest.approx(5.0)
        assert parse_energy_field("9499.8 20").uncertainty == pytest.approx(2.0)

    def test_exponent(self):
        field = parse_energy_field("1.2E3")
        assert field.value == pytest.approx(1200.0)

    def test_exponent_uncertainty(self):
        assert parse_energy_field("1.25E3 5").uncertainty == pytest.approx(50.0)

    @pytest.mark.parametrize("text", ["~7500", "≈7500", "(6100)", "6107 AP", "5000 SY"])
    def test_approximate_markers(self, text):
        field = parse_energy_field(text)
        assert field.approximate
        assert field.uncertainty is None

    def test_offset(self):
        field = parse_energy_field("1234.5+X")
        assert field.value == pytest.approx(1234.5)
        assert field.offset == "X"
        assert field.approximate

    @pytest.mark.parametrize("text", ["", "   ", "abc", "12..3", "-5"])
    def test_unreadable(self, text):
        with pytest.raises(ValueError):
            parse_energy_field(text)


class TestParseListing:
    """Best-effort parsing of whole listings."""

    @pytest.fixture
    def result(self):
        return parse_level_listing(LISTING, source="test")

    def test_counts(self, result):
        """Well-formed lines become levels, malformed ones are skipped."""
        assert result.n_levels == 5
        assert result.n_skipped == 2
        assert result.summary() == "5 levels parsed, 2 lines skipped"

    def test_order_preserved(self, result):
        energies = [level.energy for level in result]
        assert energies == pytest.approx([0.0, 3.089443, 3.684507, 7.5, 6.107])

    def test_units_converted_to_mev(self, result):
        level = result.levels[1]
        assert level.energy == pytest.approx(3.089443)
        assert level.uncertainty == pytest.approx(2.0e-5)

    def test_fields(self, result):
        level = result.levels[1]
        assert level.spin_parity == "1/2+"
        assert level.half_life == "1.05 fs 7"
        assert level.line_number == 4

    def test_missing_fields(self, result):
        level = result.levels[2]
        assert level.spin_parity == "3/2-"
        assert level.half_life is None

    def test_skipped_diagnostics(self, result):
        assert [s.line_number for s in result.skipped] == [5, 9]
        assert "garbage" in result.skipped[0].text

    def test_mev_unit(self):
        result = parse_level_listing("0.0\n3.089 1\n", energy_unit="MeV")
        assert result.levels[1].energy == pytest.approx(3.089)
        assert result.levels[1].uncertainty == pytest.approx(0.001)

    def test_bad_unit(self):
        with pytest.raises(ValueError):
            parse_level_listing("0.0\n", energy_unit="eV")

    def test_empty_listing(self):
        result = parse_level_listing("# only comments\n\n")
        assert len(result) == 0
        assert result.n_skipped == 0

    def test_tab_separated(self):
        result = parse_level_listing("3089.443 20\t\t1.05 fs\n")
        level = result.levels[0]
        assert level.spin_parity is None
        assert level.half_life == "1.05 fs"

    def test_single_space_separated(self):
        """Energies followed by a single space before Jπ are still read."""
        result = parse_level_listing("0.0 1/2-\n3089.443 20 1/2+ 1.05 fs 7\n~7500 (3/2+)\n")
        assert result.n_levels == 3
        assert result.n_skipped == 0
        ground, first, broad = result.levels
        assert ground.energy == 0.0
        assert ground.spin_parity == "1/2-"
        assert ground.uncertainty is None
        assert first.uncertainty == pytest.approx(2.0e-5)
        assert first.spin_parity == "1/2+"
        assert first.half_life == "1.05 fs 7"
        assert broad.energy == pytest.approx(7.5)
        assert broad.approximate
        assert broad.spin_parity == "(3/2+)"

    def test_single_space_qualifier(self):
        level = parse_level_listing("6107 AP (1/2,3/2)\n").levels[0]
        assert level.approximate
        assert level.uncertainty is None
        assert level.spin_parity == "(1/2,3/2)"

    def test_digit_glued_to_parity_is_not_uncertainty(self):
        """'2+' after the energy is Jπ, not uncertainty digits."""
        level = parse_level_listing("4439 2+\n").levels[0]
        assert level.energy == pytest.approx(4.439)
        assert level.uncertainty is None
        assert level.spin_parity == "2+"

    def test_energy_glued_to_text_skipped(self):
        result = parse_level_listing("3089keV 1/2+\n")
        assert result.n_skipped == 1
        assert "3089keV" in result.skipped[0].reason

    def test_label(self, result):
        assert result.levels[1].label == "3.089 MeV 1/2+"
        assert result.levels[3].label.startswith("~7.500 MeV")
        assert Level(energy=1.5, offset="X").label == "1.500+X MeV"


class TestLevelFiles:
    """Reading listings from disk."""

    def test_read_file(self, tmp_path):
        path = tmp_path / "13C.txt"
        path.write_text(LISTING, encoding="utf-8")
        result = read_level_file(path)
        assert result.n_levels == 5
        assert result.source == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(LevelResourceUnreadableError):
            read_level_file(tmp_path / "missing.txt")

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_bytes(b"\xff\xfe\xfa 100\n")
        with pytest.raises(LevelResourceUnreadableError):
            read_level_file(path)


class TestLevelLibrary:
    """Bundled per-nuclide listings."""

    def test_bundled_carbon13(self):
        result = LevelLibrary().load(6, 13)
        assert result.n_levels == 21
        assert result.n_skipped == 0
        assert result.levels[0].energy == 0.0
        assert result.levels[1].energy == pytest.approx(3.089443)

    def test_bundled_listings_are_ordered(self):
        library = LevelLibrary()
        for name, (z, a) in {"13C": (6, 13), "17O": (8, 17), "29Si": (14, 29)}.items():
            assert name in library.available()
            energies = [level.energy for level in library.load(z, a)]
            assert energies == sorted(energies), name

    def test_approximate_entry(self):
        last = LevelLibrary().load(14, 29).levels[-1]
        assert last.energy == pytest.approx(6.107)
        assert last.approximate
        assert last.uncertainty is None

    def test_custom_directory(self, tmp_path):
        (tmp_path / "13C.txt").write_text("0.0\n3089.443\n")
        library = LevelLibrary(tmp_path)
        assert library.path_for(6, 13) == tmp_path / "13C.txt"
        assert library.load(6, 13).n_levels == 2

    def test_load_missing(self, tmp_path):
        with pytest.raises(LevelResourceUnreadableError):
            LevelLibrary(tmp_path).load(6, 13)

    def test_load_or_empty(self, tmp_path):
        result = LevelLibrary(tmp_path).load_or_empty(6, 13)
        assert isinstance(result, LevelParseResult)
        assert len(result) == 0

    def test_available_missing_directory(self, tmp_path):
        assert LevelLibrary(tmp_path / "none").available() == []
