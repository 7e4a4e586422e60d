"""
Plot data generation: one point per residual level on the focal plane.

Every level yields at least one :class:`PlotPoint`. Levels the ejectile cannot
reach are kept with status ``forbidden``; double-valued levels yield two
``ambiguous`` points (``branch`` "forward" and "backward") so that a renderer
can show both.

Example:
    >>> from spsplot import load_default_mass_table, build_reaction, LevelLibrary
    >>> from spsplot.focal_plane import SpectrometerConfig
    >>> from spsplot.plot_data import generate, points_to_dataframe
    >>> rxn = build_reaction(load_default_mass_table(), (6, 12), (1, 2), (1, 1))
    >>> levels = LevelLibrary().load(6, 13)
    >>> points = generate(rxn, 16.0, 35.0, SpectrometerConfig(), levels)
    >>> print(points_to_dataframe(points)[["excitation_MeV", "rho_cm"]])
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

import pandas as pd

from .config import get_logger
from .focal_plane import SpectrometerConfig, map_to_focal_plane
from .kinematics import Forbidden, KinematicsResult, TwoRoots, solve
from .levels import Level, LevelParseResult
from .reaction import Reaction

logger = get_logger("plot_data")

__all__ = [
    "LabelMode",
    "PointStatus",
    "PlotPoint",
    "generate",
    "points_to_dataframe",
    "summarize",
]


class LabelMode(str, Enum):
    """Which scalar is rendered as a point's label."""

    EXCITATION = "excitation"
    KINETIC_ENERGY = "kinetic-energy"
    POSITION = "position"


class PointStatus(str, Enum):
    OK = "ok"
    AMBIGUOUS = "ambiguous"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class PlotPoint:
    """
    One renderable point.

    Numeric fields are None for forbidden levels. ``branch`` is "forward" or
    "backward" for ambiguous points and None otherwise.
    """

    level: Level
    status: PointStatus
    label: str
    kinetic_energy: float | None = None
    rigidity: float | None = None
    rho: float | None = None
    position: float | None = None
    in_acceptance: bool = False
    branch: str | None = None

    @property
    def excitation_energy(self) -> float:
        return self.level.energy


def _label(mode: LabelMode, level: Level, kinetic_energy: float | None, position: float | None) -> str:
    if mode is LabelMode.EXCITATION:
        return f"E = {level.energy:.3f} MeV"
    if mode is LabelMode.KINETIC_ENERGY:
        return "N/A" if kinetic_energy is None else f"T = {kinetic_energy:.3f} MeV"
    return "N/A" if position is None else f"z = {position:.2f} cm"


def _point(
    level: Level,
    result: KinematicsResult,
    status: PointStatus,
    config: SpectrometerConfig,
    label_mode: LabelMode,
    branch: str | None = None,
) -> PlotPoint:
    hit = map_to_focal_plane(result, result.charge_state, config)
    return PlotPoint(
        level=level,
        status=status,
        label=_label(label_mode, level, result.kinetic_energy, hit.position),
        kinetic_energy=result.kinetic_energy,
        rigidity=hit.rigidity,
        rho=hit.rho,
        position=hit.position,
        in_acceptance=hit.in_acceptance,
        branch=branch,
    )


def generate(
    reaction: Reaction,
    beam_energy: float,
    lab_angle: float,
    config: SpectrometerConfig,
    levels: LevelParseResult | Iterable[Level],
    label_mode: LabelMode | str = LabelMode.EXCITATION,
    charge_state: int | None = None,
) -> list[PlotPoint]:
    """
    Compute focal-plane points for every level of the residual.

    Args:
        reaction: The resolved reaction.
        beam_energy: Beam kinetic energy in MeV.
        lab_angle: Spectrometer angle in degrees.
        config: Spectrometer settings.
        levels: Residual levels, in the order they should be reported.
        label_mode: Scalar used as label text.
        charge_state: Ejectile charge state (default: fully stripped).

    Returns:
        Points in level order; a double-valued level contributes its forward
        point followed by its backward point.

    Raises:
        ValueError: For invalid beam energy, angle or label mode, or a neutral
            ejectile (no magnetic rigidity).
    """
    label_mode = LabelMode(label_mode)
    if charge_state is None:
        charge_state = reaction.ejectile.z
    if charge_state <= 0:
        raise ValueError(
            f"Ejectile {reaction.ejectile.name} with charge state {charge_state} "
            "cannot be analysed magnetically"
        )

    points: list[PlotPoint] = []
    for level in levels:
        solution = solve(reaction, beam_energy, lab_angle, level.energy, charge_state)

        if isinstance(solution, Forbidden):
            logger.debug(f"{reaction.identifier} Ex={level.energy:.3f}: {solution.reason}")
            points.append(
                PlotPoint(
                    level=level,
                    status=PointStatus.FORBIDDEN,
                    label=_label(label_mode, level, None, None),
                )
            )
        elif isinstance(solution, TwoRoots):
            points.append(
                _point(level, solution.forward, PointStatus.AMBIGUOUS, config, label_mode, "forward")
            )
            points.append(
                _point(level, solution.backward, PointStatus.AMBIGUOUS, config, label_mode, "backward")
            )
        else:
            points.append(_point(level, solution.result, PointStatus.OK, config, label_mode))

    if not points:
        logger.warning(f"{reaction.identifier}: no levels to plot")
    else:
        logger.info(
            f"{reaction.identifier} at {beam_energy:g} MeV, {lab_angle:g} deg: "
            f"{len(points)} points"
        )
    return points


def points_to_dataframe(points: Sequence[PlotPoint]) -> pd.DataFrame:
    """Tabulate points, one row each, in generation order."""
    rows = [
        {
            "excitation_MeV": p.excitation_energy,
            "spin_parity": p.level.spin_parity,
            "status": p.status.value,
            "branch": p.branch,
            "kinetic_energy_MeV": p.kinetic_energy,
            "rigidity_kG_cm": p.rigidity,
            "rho_cm": p.rho,
            "position_cm": p.position,
            "in_acceptance": p.in_acceptance,
            "label": p.label,
        }
        for p in points
    ]
    columns = [
        "excitation_MeV", "spin_parity", "status", "branch", "kinetic_energy_MeV",
        "rigidity_kG_cm", "rho_cm", "position_cm", "in_acceptance", "label",
    ]
    return pd.DataFrame(rows, columns=columns)


def summarize(points: Sequence[PlotPoint]) -> dict[str, int]:
    """
    Count points by outcome.

    ``levels`` counts each level once, even when it produced two points.
    """
    return {
        "levels": sum(1 for p in points if p.branch != "backward"),
        "points": len(points),
        "ok": sum(1 for p in points if p.status is PointStatus.OK),
        "ambiguous": sum(1 for p in points if p.status is PointStatus.AMBIGUOUS),
        "forbidden": sum(1 for p in points if p.status is PointStatus.FORBIDDEN),
        "in_acceptance": sum(1 for p in points if p.in_acceptance),
    }
