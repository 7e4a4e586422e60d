"""
Configuration management for spsplot.

Settings can be customized via environment variables before importing spsplot.

Environment Variables
---------------------
SPSPLOT_DATA_DIR : str
    Directory for bundled data files (default: <package>/data).
SPSPLOT_MASS_FILE : str
    Mass table CSV (default: DATA_DIR/ame2020_masses.csv).
SPSPLOT_LEVEL_DIR : str
    Directory holding one level listing per nuclide (default: DATA_DIR/levels).
SPSPLOT_DOWNLOAD_TIMEOUT : int
    HTTP timeout in seconds (default: 60).
SPSPLOT_REQUEST_DELAY : float
    Minimum delay between HTTP requests to the same host (default: 1.0).
SPSPLOT_LOG_LEVEL : str
    Logging level: DEBUG, INFO, WARNING, ERROR (default: INFO).

Examples
--------
Configure via shell environment::

    export SPSPLOT_LEVEL_DIR=/data/levels
    export SPSPLOT_LOG_LEVEL=DEBUG
    spsplot focal-plane 12C d p --beam 16 --angle 35
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "Config",
    "MassConvention",
    "setup_logging",
    "get_logger",
]

_PACKAGE_DIR = Path(__file__).parent
_DEFAULT_DATA_DIR = _PACKAGE_DIR / "data"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config:
    """
    Configuration settings for spsplot.

    Paths and network settings can be customized via environment variables.
    Physical constants use CODATA 2018 values, the same ones AME2020 is
    evaluated against.

    Attributes:
        DATA_DIR: Directory for bundled data files.
        MASS_FILE: CSV mass table loaded by the default mass table.
        LEVEL_DIR: Directory of per-nuclide level listings (``13C.txt`` ...).
        DOWNLOAD_TIMEOUT: HTTP timeout for downloads (seconds).
        REQUEST_DELAY: Minimum delay between HTTP requests to one host (seconds).
        LOG_LEVEL: Logging verbosity (DEBUG, INFO, WARNING, ERROR).

    Physical Constants:
        AMU_TO_MEV: Atomic mass unit in MeV/c².
        ELECTRON_MASS_MEV: Electron rest mass in MeV/c².
        SPEED_OF_LIGHT: m/s.
        QBRHO_TO_P: Momentum (MeV/c) per unit charge per kG·cm of rigidity.
    """

    DATA_DIR: Path = Path(os.environ.get("SPSPLOT_DATA_DIR", str(_DEFAULT_DATA_DIR)))

    MASS_FILE: Path = Path(
        os.environ.get("SPSPLOT_MASS_FILE", str(DATA_DIR / "ame2020_masses.csv"))
    )
    LEVEL_DIR: Path = Path(os.environ.get("SPSPLOT_LEVEL_DIR", str(DATA_DIR / "levels")))

    # Network settings (validated: must be positive)
    _timeout_env = os.environ.get("SPSPLOT_DOWNLOAD_TIMEOUT", "60")
    DOWNLOAD_TIMEOUT: int = max(1, int(_timeout_env)) if _timeout_env.isdigit() else 60

    _delay_env = os.environ.get("SPSPLOT_REQUEST_DELAY", "1.0")
    try:
        REQUEST_DELAY: float = max(0.0, float(_delay_env))
    except ValueError:
        REQUEST_DELAY: float = 1.0

    # Logging (validated: must be valid level)
    _log_level_env = os.environ.get("SPSPLOT_LOG_LEVEL", "INFO").upper()
    LOG_LEVEL: str = _log_level_env if _log_level_env in _LOG_LEVELS else "INFO"

    # Physical constants (CODATA 2018)
    AMU_TO_MEV: float = 931.49410242       # MeV/c² per atomic mass unit
    AMU_TO_KEV: float = 931494.10242       # keV/c² per atomic mass unit
    ELECTRON_MASS_MEV: float = 0.51099895  # MeV/c²
    SPEED_OF_LIGHT: float = 299792458.0    # m/s
    QBRHO_TO_P: float = 1.0e-9 * SPEED_OF_LIGHT  # MeV/c per (e * kG * cm)

    # Valid ranges for nuclide parameters
    Z_MIN: int = 0
    Z_MAX: int = 140
    A_MIN: int = 1
    A_MAX: int = 350

    # Short names used in reaction notation, e.g. 12C(d,p)13C
    LIGHT_PARTICLES: dict[tuple[int, int], str] = {
        (0, 1): "n",
        (1, 1): "p",
        (1, 2): "d",
        (1, 3): "t",
        (2, 4): "a",
    }

    # Element symbols (Z -> symbol mapping)
    ELEMENT_SYMBOLS: dict[int, str] = {
        0: 'n', 1: 'H', 2: 'He', 3: 'Li', 4: 'Be', 5: 'B', 6: 'C', 7: 'N', 8: 'O',
        9: 'F', 10: 'Ne', 11: 'Na', 12: 'Mg', 13: 'Al', 14: 'Si', 15: 'P', 16: 'S',
        17: 'Cl', 18: 'Ar', 19: 'K', 20: 'Ca', 21: 'Sc', 22: 'Ti', 23: 'V', 24: 'Cr',
        25: 'Mn', 26: 'Fe', 27: 'Co', 28: 'Ni', 29: 'Cu', 30: 'Zn', 31: 'Ga', 32: 'Ge',
        33: 'As', 34: 'Se', 35: 'Br', 36: 'Kr', 37: 'Rb', 38: 'Sr', 39: 'Y', 40: 'Zr',
        41: 'Nb', 42: 'Mo', 43: 'Tc', 44: 'Ru', 45: 'Rh', 46: 'Pd', 47: 'Ag', 48: 'Cd',
        49: 'In', 50: 'Sn', 51: 'Sb', 52: 'Te', 53: 'I', 54: 'Xe', 55: 'Cs', 56: 'Ba',
        57: 'La', 58: 'Ce', 59: 'Pr', 60: 'Nd', 61: 'Pm', 62: 'Sm', 63: 'Eu', 64: 'Gd',
        65: 'Tb', 66: 'Dy', 67: 'Ho', 68: 'Er', 69: 'Tm', 70: 'Yb', 71: 'Lu', 72: 'Hf',
        73: 'Ta', 74: 'W', 75: 'Re', 76: 'Os', 77: 'Ir', 78: 'Pt', 79: 'Au', 80: 'Hg',
        81: 'Tl', 82: 'Pb', 83: 'Bi', 84: 'Po', 85: 'At', 86: 'Rn', 87: 'Fr', 88: 'Ra',
        89: 'Ac', 90: 'Th', 91: 'Pa', 92: 'U', 93: 'Np', 94: 'Pu', 95: 'Am', 96: 'Cm',
        97: 'Bk', 98: 'Cf', 99: 'Es', 100: 'Fm', 101: 'Md', 102: 'No', 103: 'Lr',
        104: 'Rf', 105: 'Db', 106: 'Sg', 107: 'Bh', 108: 'Hs', 109: 'Mt', 110: 'Ds',
        111: 'Rg', 112: 'Cn', 113: 'Nh', 114: 'Fl', 115: 'Mc', 116: 'Lv', 117: 'Ts',
        118: 'Og',
    }

    @classmethod
    def get_element_symbol(cls, z: int) -> str:
        """Get element symbol from atomic number Z."""
        return cls.ELEMENT_SYMBOLS.get(z, f"E{z}")

    @classmethod
    def get_atomic_number(cls, symbol: str) -> int | None:
        """Get atomic number Z from an element symbol (case-insensitive)."""
        wanted = symbol.strip().lower()
        for z, sym in cls.ELEMENT_SYMBOLS.items():
            if z > 0 and sym.lower() == wanted:
                return z
        return None

    @classmethod
    def reload(cls) -> None:
        """
        Reload configuration from environment variables.

        Call this method after changing environment variables to update
        the configuration at runtime. Mass tables that were already loaded
        are not affected.

        Example:
            >>> import os
            >>> os.environ["SPSPLOT_LOG_LEVEL"] = "DEBUG"
            >>> Config.reload()
        """
        cls.DATA_DIR = Path(os.environ.get("SPSPLOT_DATA_DIR", str(_DEFAULT_DATA_DIR)))
        cls.MASS_FILE = Path(
            os.environ.get("SPSPLOT_MASS_FILE", str(cls.DATA_DIR / "ame2020_masses.csv"))
        )
        cls.LEVEL_DIR = Path(
            os.environ.get("SPSPLOT_LEVEL_DIR", str(cls.DATA_DIR / "levels"))
        )

        timeout_env = os.environ.get("SPSPLOT_DOWNLOAD_TIMEOUT", "60")
        cls.DOWNLOAD_TIMEOUT = max(1, int(timeout_env)) if timeout_env.isdigit() else 60

        try:
            cls.REQUEST_DELAY = max(0.0, float(os.environ.get("SPSPLOT_REQUEST_DELAY", "1.0")))
        except ValueError:
            cls.REQUEST_DELAY = 1.0

        log_env = os.environ.get("SPSPLOT_LOG_LEVEL", "INFO").upper()
        cls.LOG_LEVEL = log_env if log_env in _LOG_LEVELS else "INFO"


@dataclass(frozen=True)
class MassConvention:
    """
    Unit and zero-reference convention for nuclide rest masses.

    AME2020 tabulates atomic mass excesses in keV. A rest mass in MeV/c² is
    ``A * amu_MeV + excess / 1000``; with ``nuclear=True`` the mass of Z
    electrons is removed (electron binding energies are neglected).

    The convention is handed to the mass table once, so every nuclide in a
    reaction shares it and the Q-value cancellation is exact.
    """

    amu_MeV: float = Config.AMU_TO_MEV
    electron_mass_MeV: float = Config.ELECTRON_MASS_MEV
    nuclear: bool = True

    def rest_mass(self, z: int, a: int, mass_excess_keV: float) -> float:
        """Rest mass in MeV/c² from a tabulated atomic mass excess."""
        mass = a * self.amu_MeV + mass_excess_keV / 1000.0
        if self.nuclear:
            mass -= z * self.electron_mass_MeV
        return mass


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Set up logging for spsplot.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). If None, uses
            SPSPLOT_LOG_LEVEL environment variable or INFO.

    Returns:
        The root spsplot logger.
    """
    if level is None:
        level = Config.LOG_LEVEL

    logger = logging.getLogger("spsplot")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Only add handler if none exist (avoid duplicates)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a spsplot submodule.

    Args:
        name: Module name (e.g., "kinematics", "levels").

    Returns:
        Logger instance for the module.
    """
    return logging.getLogger(f"spsplot.{name}")
