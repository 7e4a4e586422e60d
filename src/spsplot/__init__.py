"""
spsplot - Focal-plane planning for split-pole magnetic spectrographs.

Predicts where the excited states of a residual nucleus land on the focal
plane of a split-pole spectrograph (such as the Super-Enge SPS) for a two-body
reaction at a given beam energy, angle and field:

- **Mass table**: AME2020 rest masses, nuclear or atomic convention
- **Levels**: best-effort parsing of NuDat-style level listings, NNDC download
- **Kinematics**: relativistic two-body solver with double-valued and forbidden outcomes
- **Focal plane**: rigidity, orbit radius and first-order focal-plane position

Quick Start:
    >>> from spsplot import load_default_mass_table, build_reaction, solve
    >>> table = load_default_mass_table()
    >>> rxn = build_reaction(table, (6, 12), (1, 2), (1, 1))   # 12C(d,p)13C
    >>> solution = solve(rxn, beam_energy=10.0, lab_angle=35.0)
    >>> print(f"T_p = {solution.result.kinetic_energy:.3f} MeV")

References:
    AME2020: Wang et al., Chinese Physics C 45, 030003 (2021)
        DOI: 10.1088/1674-1137/abddb0

    Level data: NNDC NuDat 3, https://www.nndc.bnl.gov/nudat3/
"""

from .config import Config, MassConvention, setup_logging
from .ame2020 import AME2020Parser, download_ame2020
from .mass_table import Nuclide, MassTable, load_default_mass_table
from .levels import (
    Level,
    SkippedLine,
    LevelParseResult,
    parse_energy_field,
    parse_level_listing,
    read_level_file,
    LevelLibrary,
)
from .reaction import Reaction, build_reaction
from .kinematics import (
    KinematicsResult,
    Unique,
    TwoRoots,
    Forbidden,
    solve,
    max_excitation_energy,
    momentum_to_rigidity,
    rigidity_to_momentum,
)
from .focal_plane import SpectrometerConfig, FocalPlaneHit, map_to_focal_plane, field_for_radius
from .plot_data import LabelMode, PointStatus, PlotPoint, generate, points_to_dataframe, summarize
from .plotting import plot_focal_plane
from .exceptions import (
    SpsPlotError,
    NuclideNotFoundError,
    InvalidNuclideError,
    DataFileNotFoundError,
    MassTableCorruptError,
    LevelResourceUnreadableError,
    ConfigurationError,
)

__version__ = "0.1.0"
__author__ = "spsplot Contributors"

__all__ = [
    # Configuration
    "Config",
    "MassConvention",
    "setup_logging",
    # Masses
    "AME2020Parser",
    "download_ame2020",
    "Nuclide",
    "MassTable",
    "load_default_mass_table",
    # Levels
    "Level",
    "SkippedLine",
    "LevelParseResult",
    "parse_energy_field",
    "parse_level_listing",
    "read_level_file",
    "LevelLibrary",
    # Reactions and kinematics
    "Reaction",
    "build_reaction",
    "KinematicsResult",
    "Unique",
    "TwoRoots",
    "Forbidden",
    "solve",
    "max_excitation_energy",
    "momentum_to_rigidity",
    "rigidity_to_momentum",
    # Focal plane
    "SpectrometerConfig",
    "FocalPlaneHit",
    "map_to_focal_plane",
    "field_for_radius",
    "LabelMode",
    "PointStatus",
    "PlotPoint",
    "generate",
    "points_to_dataframe",
    "summarize",
    # Plotting
    "plot_focal_plane",
    # Exceptions
    "SpsPlotError",
    "NuclideNotFoundError",
    "InvalidNuclideError",
    "DataFileNotFoundError",
    "MassTableCorruptError",
    "LevelResourceUnreadableError",
    "ConfigurationError",
]
