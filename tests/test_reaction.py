"""Tests for the reaction model."""

import logging

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spsplot.config import MassConvention
from spsplot.exceptions import InvalidNuclideError, NuclideNotFoundError
from spsplot.mass_table import load_default_mass_table
from spsplot.reaction import Reaction, build_reaction


@pytest.fixture(scope="module")
def table():
    return load_default_mass_table()


class TestBuildReaction:
    """Resolving the four nuclides."""

    def test_residual_derived(self, table):
        """12C(d,p) leaves 13C."""
        rxn = build_reaction(table, (6, 12), (1, 2), (1, 1))
        assert isinstance(rxn, Reaction)
        assert (rxn.residual.z, rxn.residual.a) == (6, 13)

    def test_identifier(self, table):
        rxn = build_reaction(table, (6, 12), (1, 2), (1, 1))
        assert rxn.identifier == "12C(d,p)13C"
        assert str(rxn) == "12C(d,p)13C"

    def test_identifier_helium3(self, table):
        rxn = build_reaction(table, (6, 12), (2, 3), (1, 2))
        assert rxn.identifier == "12C(3He,d)13N"

    def test_missing_residual(self, table):
        """208Pb(d,p) needs 209Pb, which is not tabulated."""
        with pytest.raises(NuclideNotFoundError):
            build_reaction(table, (82, 208), (1, 2), (1, 1))

    def test_impossible_residual(self, table):
        """Emitting more nucleons than available is invalid."""
        with pytest.raises(InvalidNuclideError):
            build_reaction(table, (1, 1), (1, 1), (2, 4))

    def test_invalid_pair(self, table):
        with pytest.raises(InvalidNuclideError):
            build_reaction(table, (6, 12), (3, 2), (1, 1))

    def test_negative_beam(self, table):
        with pytest.raises(ValueError):
            build_reaction(table, (6, 12), (1, 2), (1, 1), beam_energy=-1.0)

    def test_below_threshold_warns(self, table, caplog):
        """A closed channel is allowed but logged."""
        with caplog.at_level(logging.WARNING, logger="spsplot"):
            build_reaction(table, (6, 13), (1, 1), (0, 1), beam_energy=1.0)
        assert "below the threshold" in caplog.text


class TestQValue:
    """Ground-state Q-values."""

    def test_carbon_dp(self, table):
        """12C(d,p)13C releases 2.722 MeV."""
        rxn = build_reaction(table, (6, 12), (1, 2), (1, 1))
        assert rxn.q_value == pytest.approx(2.72174, abs=1e-4)

    def test_independent_of_convention(self, table):
        """Atomic and nuclear masses give the same Q-value."""
        atomic = load_default_mass_table(MassConvention(nuclear=False))
        nuclear_q = build_reaction(table, (14, 28), (1, 2), (1, 1)).q_value
        atomic_q = build_reaction(atomic, (14, 28), (1, 2), (1, 1)).q_value
        assert nuclear_q == pytest.approx(atomic_q, abs=1e-9)

    def test_recomputed_from_masses(self, table):
        rxn = build_reaction(table, (8, 16), (1, 2), (1, 1))
        expected = (rxn.target.mass + rxn.projectile.mass) - (rxn.ejectile.mass + rxn.residual.mass)
        assert rxn.q_value == expected


class TestThreshold:
    """Relativistic threshold energy."""

    def test_exothermic_has_no_threshold(self, table):
        rxn = build_reaction(table, (6, 12), (1, 2), (1, 1))
        assert rxn.threshold_energy() == 0.0

    def test_endothermic(self, table):
        """13C(p,n)13N threshold is about -Q (m1 + m2) / m2."""
        rxn = build_reaction(table, (6, 13), (1, 1), (0, 1))
        assert rxn.q_value == pytest.approx(-3.0028, abs=1e-3)
        assert 3.2 < rxn.threshold_energy() < 3.3

    def test_excitation_raises_threshold(self, table):
        rxn = build_reaction(table, (6, 12), (1, 2), (1, 1))
        assert rxn.threshold_energy(5.0) > 0.0
        assert rxn.threshold_energy(6.0) > rxn.threshold_energy(5.0)
