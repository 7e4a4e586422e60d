"""
Focal-plane mapping for a magnetic spectrograph.

First-order optics only: an ejectile of rigidity Bρ bends on an orbit of radius
ρ = Bρ / B, and its focal-plane position is linear in the deviation of that
radius from the reference orbit::

    z = z_ref + D * M * (ρ - ρ0)

Defaults describe the Super-Enge Split-Pole Spectrograph (SE-SPS).
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from .config import get_logger
from .exceptions import ConfigurationError
from .kinematics import KinematicsResult, momentum_to_rigidity, rigidity_to_momentum

logger = get_logger("focal_plane")

__all__ = [
    "SpectrometerConfig",
    "FocalPlaneHit",
    "map_to_focal_plane",
    "field_for_radius",
]


@dataclass(frozen=True)
class SpectrometerConfig:
    """
    Spectrometer settings.

    Attributes:
        field: Dipole field in kG.
        reference_radius: Reference orbit radius ρ0 in cm.
        dispersion: Dispersion D (dimensionless).
        magnification: Horizontal magnification M (dimensionless).
        reference_z: Focal-plane position of the reference orbit in cm.
        rho_min: Smallest orbit radius reaching the detector, in cm.
        rho_max: Largest orbit radius reaching the detector, in cm.
    """

    field: float = 8.7
    reference_radius: float = 78.0
    dispersion: float = 1.96
    magnification: float = 0.39
    reference_z: float = 0.0
    rho_min: float = 69.0
    rho_max: float = 87.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(
                    f"{f.name} must be a number, got {type(value).__name__}"
                )
            if not math.isfinite(value):
                raise ConfigurationError(f"{f.name} must be finite, got {value}")
        if self.field <= 0:
            raise ConfigurationError(f"field must be positive, got {self.field} kG")
        if self.reference_radius <= 0:
            raise ConfigurationError(
                f"reference_radius must be positive, got {self.reference_radius} cm"
            )
        if self.rho_min >= self.rho_max:
            raise ConfigurationError(
                f"rho_min ({self.rho_min}) must be smaller than rho_max ({self.rho_max})"
            )

    def position_for_rho(self, rho: float) -> float:
        """Focal-plane position (cm) of an orbit of radius ``rho`` (cm)."""
        return self.reference_z + self.dispersion * self.magnification * (rho - self.reference_radius)

    def in_acceptance(self, rho: float) -> bool:
        return self.rho_min <= rho <= self.rho_max

    def with_field(self, field: float) -> "SpectrometerConfig":
        """Copy of this configuration with a different field."""
        values = self.to_dict()
        values["field"] = field
        return SpectrometerConfig(**values)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpectrometerConfig":
        """
        Build a configuration from a dict; missing keys take defaults.

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown spectrometer settings: {unknown}")
        return cls(**data)

    def save(self, path: Path | str) -> Path:
        """Write the configuration as JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2) + "\n")
        logger.info(f"Saved spectrometer configuration to {path}")
        return path

    @classmethod
    def load(cls, path: Path | str) -> "SpectrometerConfig":
        """
        Read a configuration written by :meth:`save`.

        Raises:
            ConfigurationError: If the file is missing, not JSON, or invalid.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except OSError as e:
            raise ConfigurationError(f"Cannot read spectrometer configuration {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path} must contain a JSON object")
        return cls.from_dict(data)


@dataclass(frozen=True)
class FocalPlaneHit:
    """Where an ejectile lands: rigidity (kG·cm), orbit radius and position (cm)."""

    rigidity: float
    rho: float
    position: float
    in_acceptance: bool


def map_to_focal_plane(
    result: KinematicsResult,
    charge_state: int,
    config: SpectrometerConfig,
) -> FocalPlaneHit:
    """
    Map one kinematics root to the focal plane.

    Args:
        result: Ejectile kinematics from :func:`spsplot.kinematics.solve`.
        charge_state: Charge state of the ejectile in the spectrometer.
        config: Spectrometer settings.

    Raises:
        ValueError: If charge_state is not positive.
    """
    rigidity = momentum_to_rigidity(result.momentum, charge_state)
    rho = rigidity / config.field
    return FocalPlaneHit(
        rigidity=rigidity,
        rho=rho,
        position=config.position_for_rho(rho),
        in_acceptance=config.in_acceptance(rho),
    )


def field_for_radius(result: KinematicsResult, charge_state: int, radius: float) -> float:
    """
    Field (kG) that puts this ejectile on an orbit of ``radius`` cm.

    Example:
        >>> field = field_for_radius(result, 1, config.reference_radius)
        >>> centred = config.with_field(field)
    """
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius}")
    rigidity = momentum_to_rigidity(result.momentum, charge_state)
    field = rigidity / radius
    logger.debug(
        f"B = {field:.4f} kG for rho = {radius} cm "
        f"(p = {rigidity_to_momentum(field * radius, charge_state):.4f} MeV/c)"
    )
    return field
