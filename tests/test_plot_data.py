"""Tests for plot data generation."""

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spsplot.focal_plane import SpectrometerConfig
from spsplot.kinematics import solve
from spsplot.levels import Level, LevelLibrary, parse_level_listing
from spsplot.mass_table import load_default_mass_table
from spsplot.plot_data import (
    LabelMode,
    PlotPoint,
    PointStatus,
    generate,
    points_to_dataframe,
    summarize,
)
from spsplot.reaction import build_reaction


@pytest.fixture(scope="module")
def table():
    return load_default_mass_table()


@pytest.fixture(scope="module")
def dp(table):
    return build_reaction(table, (6, 12), (1, 2), (1, 1))


@pytest.fixture(scope="module")
def carbon13_levels():
    return LevelLibrary().load(6, 13)


class TestGenerate:
    """One point per level, statuses made explicit."""

    def test_one_point_per_level(self, dp, carbon13_levels):
        points = generate(dp, 16.0, 35.0, SpectrometerConfig(), carbon13_levels)
        assert len(points) == carbon13_levels.n_levels
        assert all(isinstance(p, PlotPoint) for p in points)
        assert all(p.status is PointStatus.OK for p in points)

    def test_level_order_kept(self, dp, carbon13_levels):
        points = generate(dp, 16.0, 35.0, SpectrometerConfig(), carbon13_levels)
        assert [p.level for p in points] == list(carbon13_levels.levels)

    def test_higher_excitation_smaller_radius(self, dp, carbon13_levels):
        points = generate(dp, 16.0, 35.0, SpectrometerConfig(), carbon13_levels)
        rhos = [p.rho for p in points]
        ground, excited = rhos[0], rhos[1]
        assert excited < ground

    def test_matches_solver(self, dp):
        level = Level(energy=3.089443)
        config = SpectrometerConfig()
        point = generate(dp, 16.0, 35.0, config, [level])[0]
        result = solve(dp, 16.0, 35.0, 3.089443).result
        assert point.kinetic_energy == pytest.approx(result.kinetic_energy)
        assert point.rigidity == pytest.approx(result.rigidity)
        assert point.rho == pytest.approx(result.rigidity / config.field)
        assert point.position == pytest.approx(config.position_for_rho(point.rho))

    def test_forbidden_level_kept(self, dp):
        """Unreachable levels stay in the output with no numbers."""
        levels = [Level(energy=0.0), Level(energy=25.0)]
        points = generate(dp, 16.0, 35.0, SpectrometerConfig(), levels)
        assert len(points) == 2
        forbidden = points[1]
        assert forbidden.status is PointStatus.FORBIDDEN
        assert forbidden.rho is None
        assert forbidden.kinetic_energy is None
        assert not forbidden.in_acceptance
        assert forbidden.label == "E = 25.000 MeV"

    def test_ambiguous_level_gives_both_roots(self, table):
        """A double-valued level yields a forward and a backward point."""
        inverse = build_reaction(table, (1, 1), (6, 12), (6, 12))
        points = generate(inverse, 60.0, 3.0, SpectrometerConfig(), [Level(energy=0.0)])
        assert len(points) == 2
        assert [p.status for p in points] == [PointStatus.AMBIGUOUS] * 2
        assert [p.branch for p in points] == ["forward", "backward"]
        assert points[0].rho > points[1].rho

    def test_accepts_parse_result(self, dp):
        levels = parse_level_listing("0.0\nnot-a-number\n3089.443\n")
        points = generate(dp, 16.0, 35.0, SpectrometerConfig(), levels)
        assert len(points) == 2

    def test_empty_levels(self, dp):
        assert generate(dp, 16.0, 35.0, SpectrometerConfig(), []) == []

    def test_charge_state(self, dp):
        """Lower charge state means larger rigidity for the same momentum."""
        levels = [Level(energy=0.0)]
        alpha = build_reaction(load_default_mass_table(), (6, 12), (1, 2), (2, 4))
        q2 = generate(alpha, 16.0, 35.0, SpectrometerConfig(), levels)[0]
        q1 = generate(alpha, 16.0, 35.0, SpectrometerConfig(), levels, charge_state=1)[0]
        assert q1.rigidity == pytest.approx(2 * q2.rigidity)

    def test_neutral_ejectile_rejected(self, table):
        rxn = build_reaction(table, (6, 13), (1, 2), (0, 1))
        with pytest.raises(ValueError, match="charge state"):
            generate(rxn, 16.0, 35.0, SpectrometerConfig(), [Level(energy=0.0)])

    def test_acceptance_follows_config(self, dp):
        levels = [Level(energy=0.0)]
        point = generate(dp, 16.0, 35.0, SpectrometerConfig(), levels)[0]
        narrow = SpectrometerConfig(rho_min=point.rho + 1.0, rho_max=point.rho + 2.0)
        assert not generate(dp, 16.0, 35.0, narrow, levels)[0].in_acceptance


class TestLabels:
    """Label mode only changes the label text."""

    @pytest.fixture
    def level(self):
        return Level(energy=3.089443)

    def test_excitation(self, dp, level):
        point = generate(dp, 16.0, 35.0, SpectrometerConfig(), [level], LabelMode.EXCITATION)[0]
        assert point.label == "E = 3.089 MeV"

    def test_kinetic_energy(self, dp, level):
        point = generate(dp, 16.0, 35.0, SpectrometerConfig(), [level], "kinetic-energy")[0]
        assert point.label == f"T = {point.kinetic_energy:.3f} MeV"

    def test_position(self, dp, level):
        point = generate(dp, 16.0, 35.0, SpectrometerConfig(), [level], LabelMode.POSITION)[0]
        assert point.label == f"z = {point.position:.2f} cm"

    def test_numbers_independent_of_mode(self, dp, level):
        a = generate(dp, 16.0, 35.0, SpectrometerConfig(), [level], LabelMode.EXCITATION)[0]
        b = generate(dp, 16.0, 35.0, SpectrometerConfig(), [level], LabelMode.POSITION)[0]
        assert a.rho == b.rho

    def test_forbidden_label_without_value(self, dp):
        point = generate(dp, 16.0, 35.0, SpectrometerConfig(), [Level(energy=25.0)], "position")[0]
        assert point.label == "N/A"

    def test_unknown_mode(self, dp, level):
        with pytest.raises(ValueError):
            generate(dp, 16.0, 35.0, SpectrometerConfig(), [level], "momentum")


class TestTabulation:
    """DataFrame and summary helpers."""

    def test_dataframe(self, dp, carbon13_levels):
        points = generate(dp, 16.0, 35.0, SpectrometerConfig(), carbon13_levels)
        df = points_to_dataframe(points)
        assert len(df) == len(points)
        assert df["excitation_MeV"].iloc[1] == pytest.approx(3.089443)
        assert set(df["status"]) == {"ok"}

    def test_empty_dataframe_has_columns(self):
        df = points_to_dataframe([])
        assert "rho_cm" in df.columns
        assert len(df) == 0

    def test_summary(self, table):
        inverse = build_reaction(table, (1, 1), (6, 12), (6, 12))
        levels = [Level(energy=0.0), Level(energy=200.0)]
        points = generate(inverse, 60.0, 3.0, SpectrometerConfig(), levels)
        counts = summarize(points)
        assert counts["levels"] == 2
        assert counts["points"] == 3
        assert counts["ambiguous"] == 2
        assert counts["forbidden"] == 1
        assert counts["ok"] == 0
