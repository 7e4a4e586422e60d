"""
Relativistic two-body kinematics for a target at rest.

For projectile 1 on target 2 producing ejectile 3 at lab angle θ and residual 4
(ground-state mass plus excitation energy), energy and momentum conservation
give a quadratic in the ejectile momentum p3:

    (E² - p1² cos²θ) p3² - 2 K p1 cosθ p3 + (E² m3² - K²) = 0

with E the total lab energy, s the invariant mass squared and
K = (s + m3² - m4²) / 2. Roots must also satisfy K + p1 p3 cosθ > 0 (the
unsquared equation). Depending on how many physical roots survive the result
is :class:`Unique`, :class:`TwoRoots` or :class:`Forbidden`.

Units: MeV, MeV/c, MeV/c²; angles in degrees at the API, radians inside;
rigidity in kG·cm.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from .config import Config, get_logger
from .reaction import Reaction

logger = get_logger("kinematics")

__all__ = [
    "KinematicsResult",
    "Unique",
    "TwoRoots",
    "Forbidden",
    "KinematicsSolution",
    "solve",
    "max_excitation_energy",
    "momentum_to_rigidity",
    "rigidity_to_momentum",
]


def momentum_to_rigidity(momentum: float, charge_state: int) -> float:
    """Magnetic rigidity Bρ in kG·cm for a momentum in MeV/c."""
    if charge_state <= 0:
        raise ValueError(f"charge_state must be positive, got {charge_state}")
    return momentum / (charge_state * Config.QBRHO_TO_P)


def rigidity_to_momentum(rigidity: float, charge_state: int) -> float:
    """Momentum in MeV/c for a magnetic rigidity Bρ in kG·cm."""
    if charge_state <= 0:
        raise ValueError(f"charge_state must be positive, got {charge_state}")
    return rigidity * charge_state * Config.QBRHO_TO_P


def _kinetic_energy(momentum: float, mass: float) -> float:
    # p² / (E + m) avoids cancellation for slow particles
    return momentum * momentum / (math.hypot(momentum, mass) + mass)


@dataclass(frozen=True)
class KinematicsResult:
    """
    Ejectile (and recoiling residual) for one physical root.

    Attributes:
        excitation_energy: Residual excitation energy in MeV.
        lab_angle: Ejectile lab angle in degrees.
        kinetic_energy: Ejectile lab kinetic energy in MeV.
        momentum: Ejectile lab momentum in MeV/c.
        mass: Ejectile rest mass in MeV/c².
        charge_state: Ejectile charge state used for the rigidity.
        residual_kinetic_energy: Residual lab kinetic energy in MeV.
        residual_angle: Residual lab angle in degrees (opposite side of the beam).
    """

    excitation_energy: float
    lab_angle: float
    kinetic_energy: float
    momentum: float
    mass: float
    charge_state: int
    residual_kinetic_energy: float
    residual_angle: float

    @property
    def total_energy(self) -> float:
        return self.kinetic_energy + self.mass

    @property
    def rigidity(self) -> float:
        """Magnetic rigidity Bρ in kG·cm."""
        return momentum_to_rigidity(self.momentum, self.charge_state)


@dataclass(frozen=True)
class Unique:
    """Exactly one physical ejectile momentum at this angle."""

    result: KinematicsResult

    @property
    def results(self) -> tuple[KinematicsResult, ...]:
        return (self.result,)


@dataclass(frozen=True)
class TwoRoots:
    """
    Kinematically double-valued: two ejectile momenta reach the same lab angle.

    ``forward`` is the high-momentum root (forward emission in the centre of
    mass), ``backward`` the low-momentum one. Both are observable.
    """

    forward: KinematicsResult
    backward: KinematicsResult

    @property
    def results(self) -> tuple[KinematicsResult, ...]:
        return (self.forward, self.backward)


@dataclass(frozen=True)
class Forbidden:
    """The ejectile cannot reach this angle for this excitation energy."""

    excitation_energy: float
    reason: str

    @property
    def results(self) -> tuple[KinematicsResult, ...]:
        return ()


KinematicsSolution = Union[Unique, TwoRoots, Forbidden]


def _validate_inputs(beam_energy: float, lab_angle: float, excitation_energy: float) -> None:
    if beam_energy < 0:
        raise ValueError(f"beam_energy must be non-negative, got {beam_energy}")
    if not 0.0 <= lab_angle <= 180.0:
        raise ValueError(f"lab_angle must be within [0, 180] degrees, got {lab_angle}")
    if excitation_energy < 0:
        raise ValueError(f"excitation_energy must be non-negative, got {excitation_energy}")


def _invariants(reaction: Reaction, beam_energy: float) -> tuple[float, float, float]:
    """Total lab energy, projectile momentum and s for the entrance channel."""
    m1 = reaction.projectile.mass
    m2 = reaction.target.mass
    e1 = beam_energy + m1
    p1 = math.sqrt(beam_energy * (beam_energy + 2.0 * m1))
    s = m1 * m1 + m2 * m2 + 2.0 * m2 * e1
    return e1 + m2, p1, s


def solve(
    reaction: Reaction,
    beam_energy: float,
    lab_angle: float,
    excitation_energy: float = 0.0,
    charge_state: int | None = None,
) -> KinematicsSolution:
    """
    Solve for the ejectile at a lab angle.

    Args:
        reaction: The resolved reaction.
        beam_energy: Projectile lab kinetic energy in MeV.
        lab_angle: Ejectile lab angle in degrees, 0 to 180.
        excitation_energy: Residual excitation energy in MeV.
        charge_state: Ejectile charge state; defaults to fully stripped (Z).

    Returns:
        :class:`Unique`, :class:`TwoRoots` or :class:`Forbidden`.

    Raises:
        ValueError: For negative energies, an angle outside [0, 180] or a
            negative charge state.
    """
    _validate_inputs(beam_energy, lab_angle, excitation_energy)
    if charge_state is None:
        charge_state = reaction.ejectile.z
    if charge_state < 0:
        raise ValueError(f"charge_state must be non-negative, got {charge_state}")

    m3 = reaction.ejectile.mass
    m4 = reaction.residual.mass + excitation_energy
    e_tot, p1, s = _invariants(reaction, beam_energy)

    if math.sqrt(s) < m3 + m4:
        logger.debug(
            f"{reaction.identifier} Ex={excitation_energy:.4f}: below threshold"
        )
        return Forbidden(excitation_energy, "below reaction threshold")

    theta = math.radians(lab_angle)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)

    k = 0.5 * (s + m3 * m3 - m4 * m4)
    a = e_tot * e_tot - (p1 * cos_t) ** 2
    discriminant = k * k - m3 * m3 * a
    if discriminant < 0:
        logger.debug(
            f"{reaction.identifier} Ex={excitation_energy:.4f}: "
            f"angle {lab_angle} deg beyond kinematic limit"
        )
        return Forbidden(excitation_energy, f"no solution at {lab_angle:g} deg")

    root = e_tot * math.sqrt(discriminant)
    candidates = {(k * p1 * cos_t + root) / a, (k * p1 * cos_t - root) / a}
    momenta = sorted(
        (p for p in candidates if p > 0.0 and k + p1 * p * cos_t > 0.0),
        reverse=True,
    )

    if not momenta:
        return Forbidden(excitation_energy, f"no physical root at {lab_angle:g} deg")

    results = []
    for p3 in momenta:
        t3 = _kinetic_energy(p3, m3)
        e4 = e_tot - (t3 + m3)
        recoil_x = p1 - p3 * cos_t
        recoil_y = p3 * sin_t
        results.append(
            KinematicsResult(
                excitation_energy=excitation_energy,
                lab_angle=lab_angle,
                kinetic_energy=t3,
                momentum=p3,
                mass=m3,
                charge_state=charge_state,
                residual_kinetic_energy=e4 - m4,
                residual_angle=math.degrees(math.atan2(recoil_y, recoil_x)),
            )
        )

    if len(results) == 2:
        logger.debug(
            f"{reaction.identifier} Ex={excitation_energy:.4f}: double-valued, "
            f"T3 = {results[0].kinetic_energy:.4f} / {results[1].kinetic_energy:.4f} MeV"
        )
        return TwoRoots(forward=results[0], backward=results[1])
    return Unique(results[0])


def max_excitation_energy(reaction: Reaction, beam_energy: float, lab_angle: float) -> float:
    """
    Largest residual excitation energy (MeV) that still reaches ``lab_angle``.

    Forward of 90° the limit is where the two roots merge (discriminant zero);
    at and behind 90° it is where the ejectile momentum falls to zero. A
    negative value means even the ground state is forbidden.
    """
    _validate_inputs(beam_energy, lab_angle, 0.0)
    m3 = reaction.ejectile.mass
    e_tot, p1, s = _invariants(reaction, beam_energy)

    cos_t = math.cos(math.radians(lab_angle))
    if cos_t > 0:
        k_min = m3 * math.sqrt(e_tot * e_tot - (p1 * cos_t) ** 2)
    else:
        k_min = m3 * e_tot

    m4_squared = s + m3 * m3 - 2.0 * k_min
    m4_max = math.sqrt(max(m4_squared, 0.0))
    # the invariant-mass threshold bounds the limit as well
    m4_max = min(m4_max, math.sqrt(s) - m3)
    return m4_max - reaction.residual.mass
