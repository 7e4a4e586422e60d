"""
Two-body reaction model: target(projectile, ejectile)residual.

The residual is fixed by conservation of Z and A; all four nuclides must be in
the mass table before a :class:`Reaction` exists.

Example:
    >>> from spsplot import load_default_mass_table, build_reaction
    >>> table = load_default_mass_table()
    >>> rxn = build_reaction(table, (6, 12), (1, 2), (1, 1))
    >>> print(rxn.identifier, f"Q = {rxn.q_value:.3f} MeV")
    12C(d,p)13C Q = 2.722 MeV
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import get_logger
from .exceptions import InvalidNuclideError
from .mass_table import MassTable, Nuclide
from .utils import validate_nuclide_params

logger = get_logger("reaction")

__all__ = [
    "Reaction",
    "build_reaction",
]


@dataclass(frozen=True)
class Reaction:
    """Four resolved nuclides of a two-body reaction (target at rest)."""

    target: Nuclide
    projectile: Nuclide
    ejectile: Nuclide
    residual: Nuclide

    @property
    def identifier(self) -> str:
        """Reaction notation, e.g. '12C(d,p)13C'."""
        return (
            f"{self.target.name}({self.projectile.short_name},"
            f"{self.ejectile.short_name}){self.residual.name}"
        )

    @property
    def q_value(self) -> float:
        """
        Ground-state Q-value in MeV.

        Q = (m_target + m_projectile) - (m_ejectile + m_residual)
        """
        return (
            (self.target.mass + self.projectile.mass)
            - (self.ejectile.mass + self.residual.mass)
        )

    def threshold_energy(self, excitation_energy: float = 0.0) -> float:
        """
        Lowest beam kinetic energy (MeV) that can populate a residual state.

        Relativistic threshold for a target at rest:
        T_th = ((m3 + m4)² - (m1 + m2)²) / (2 m2), or 0 if the channel is open.
        """
        m1 = self.projectile.mass
        m2 = self.target.mass
        m3 = self.ejectile.mass
        m4 = self.residual.mass + excitation_energy
        threshold = ((m3 + m4) ** 2 - (m1 + m2) ** 2) / (2.0 * m2)
        return max(0.0, threshold)

    def __str__(self) -> str:
        return self.identifier


def build_reaction(
    mass_table: MassTable,
    target: tuple[int, int],
    projectile: tuple[int, int],
    ejectile: tuple[int, int],
    beam_energy: float | None = None,
) -> Reaction:
    """
    Resolve the four nuclides of a reaction from (Z, A) pairs.

    Args:
        mass_table: Table used for all four lookups.
        target: (Z, A) of the target nucleus.
        projectile: (Z, A) of the beam particle.
        ejectile: (Z, A) of the detected light product.
        beam_energy: Optional beam kinetic energy in MeV; when given it is
            checked against the ground-state threshold and a warning is logged
            if the reaction is closed.

    Returns:
        A fully resolved :class:`Reaction`.

    Raises:
        InvalidNuclideError: If a (Z, A) pair is invalid or the residual would
            have Z < 0 or A < 1.
        NuclideNotFoundError: If any of the four nuclides is not tabulated.
        ValueError: If beam_energy is negative.
    """
    for z, a in (target, projectile, ejectile):
        validate_nuclide_params(z, a)

    resid_z = target[0] + projectile[0] - ejectile[0]
    resid_a = target[1] + projectile[1] - ejectile[1]
    if resid_z < 0 or resid_a < 1 or resid_z > resid_a:
        raise InvalidNuclideError(
            f"No residual nucleus: Z={resid_z}, A={resid_a} after emitting "
            f"Z={ejectile[0]}, A={ejectile[1]}",
            z=resid_z,
            a=resid_a,
        )

    reaction = Reaction(
        target=mass_table.lookup(*target),
        projectile=mass_table.lookup(*projectile),
        ejectile=mass_table.lookup(*ejectile),
        residual=mass_table.lookup(resid_z, resid_a),
    )
    logger.info(f"Reaction {reaction.identifier}: Q = {reaction.q_value:.4f} MeV")

    if beam_energy is not None:
        if beam_energy < 0:
            raise ValueError(f"beam_energy must be non-negative, got {beam_energy}")
        threshold = reaction.threshold_energy()
        if beam_energy < threshold:
            logger.warning(
                f"{reaction.identifier}: beam energy {beam_energy:.3f} MeV is below "
                f"the threshold {threshold:.3f} MeV"
            )

    return reaction
