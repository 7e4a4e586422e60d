"""
AME2020 (Atomic Mass Evaluation 2020) parser.

Reads the official fixed-width mass table so a complete mass table can replace
the bundled subset. Reference: Wang et al., Chinese Physics C 45, 030003 (2021)
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from .config import Config, get_logger
from .exceptions import DataFileNotFoundError
from .utils import download_with_mirrors

logger = get_logger("ame2020")

__all__ = [
    "AME2020Parser",
    "download_ame2020",
]

AME2020_MIRRORS = [
    "https://www.anl.gov/sites/www/files/2021-03/mass.mas20.txt",
    "https://www.anl.gov/sites/www/files/2021-04/mass_1.mas20.txt",
    "https://www-nds.iaea.org/amdc/ame2020/mass_1.mas20.txt",
]

# Columns kept in the mass table CSV
MASS_COLUMNS = ["Z", "N", "A", "Element", "Mass_excess_keV", "Mass_excess_unc_keV"]


def download_ame2020(output_path: Path | None = None) -> Path:
    """Download the AME2020 mass table from ANL or mirrors."""
    if output_path is None:
        output_path = Config.DATA_DIR / "mass.mas20.txt"

    def validate_ame_markers(content: str) -> tuple[bool, str]:
        if "Mass Excess" in content[:5000] or "mass" in content[:5000].lower():
            return (True, "")
        return (False, "Content doesn't appear to be AME2020 data")

    validators = [
        lambda c: (len(c) >= 1000, f"File too small ({len(c)} bytes)"),
        lambda c: ("<html" not in c[:500].lower(), "Received HTML instead of data"),
        validate_ame_markers,
    ]

    return download_with_mirrors(
        mirrors=AME2020_MIRRORS,
        output_path=output_path,
        validators=validators,
        data_name="AME2020",
    )


class AME2020Parser:
    """
    Parser for AME2020 mass.mas20.txt format.

    The file uses fixed-width columns; the first 36 lines are header comments.
    Values ending in '#' are estimated rather than measured. They are kept and
    flagged in ``Mass_excess_keV_estimated``.

    Columns (from AME2020 documentation):
        NZ: N-Z (neutron excess)
        N: Neutron number
        Z: Proton number
        A: Mass number
        El: Element symbol
        O: Origin flag
        Mass_excess: Mass excess in keV
        Mass_excess_unc: Uncertainty in mass excess
        Binding_energy: Binding energy per nucleon in keV
        Binding_energy_unc: Uncertainty in binding energy
        Atomic_mass: Atomic mass in micro-u
        Atomic_mass_unc: Uncertainty in atomic mass
    """

    # Column specifications: (start, end) positions (0-indexed)
    # Based on AME2020 format: a1,i3,i5,i5,i5,1x,a3,a4,1x,f14.6,f12.6,f13.5,1x,f10.5,1x,a2,f13.5,f11.5,1x,i3,1x,f13.6,f12.6
    COLSPECS = [
        (0, 1),    # cc (continuation character)
        (1, 4),    # NZ
        (4, 9),    # N
        (9, 14),   # Z
        (14, 19),  # A
        (20, 23),  # El (element)
        (23, 27),  # O (origin)
        (28, 42),  # Mass excess (keV)
        (42, 54),  # Mass excess uncertainty
        (54, 67),  # Binding energy/A (keV)
        (68, 78),  # Binding energy/A uncertainty
        (106, 109),  # Atomic mass integer part
        (110, 123),  # Atomic mass decimal (micro-u)
        (123, 135),  # Atomic mass uncertainty
    ]

    COLUMN_NAMES = [
        "cc", "NZ", "N", "Z", "A", "Element", "Origin",
        "Mass_excess_keV", "Mass_excess_unc_keV",
        "Binding_energy_per_A_keV", "Binding_energy_per_A_unc_keV",
        "Atomic_mass_int", "Atomic_mass_micro_u", "Atomic_mass_unc_micro_u",
    ]

    HEADER_LINES = 36

    def __init__(self, filepath: Path | str):
        self.filepath = Path(filepath)
        self._df: pd.DataFrame | None = None

    def parse(self) -> pd.DataFrame:
        """Parse the AME2020 file and return a cleaned DataFrame."""
        if self._df is not None:
            return self._df

        if not self.filepath.exists():
            raise DataFileNotFoundError(
                str(self.filepath),
                "Run `python scripts/download_nuclear_data.py` to download AME2020."
            )

        df = pd.read_fwf(
            self.filepath,
            colspecs=self.COLSPECS,
            names=self.COLUMN_NAMES,
            skiprows=self.HEADER_LINES,
            dtype=str,
        )

        df = self._clean_dataframe(df)
        logger.info(f"Parsed {len(df)} nuclides from {self.filepath}")
        self._df = df
        return df

    def _clean_dataframe(self, df: pd.DataFrame) -> pd.DataFrame:
        """Clean and convert columns to appropriate types."""
        df = df.dropna(subset=["Z", "N", "A"])

        for col in df.columns:
            if df[col].dtype == object:
                df[col] = df[col].str.strip()

        for col in ["NZ", "N", "Z", "A"]:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype("Int64")

        numeric_cols = [
            "Mass_excess_keV", "Mass_excess_unc_keV",
            "Binding_energy_per_A_keV", "Binding_energy_per_A_unc_keV",
            "Atomic_mass_micro_u", "Atomic_mass_unc_micro_u",
        ]

        for col in numeric_cols:
            estimated_col = f"{col}_estimated"
            df[estimated_col] = df[col].str.contains("#", na=False)
            df[col] = df[col].str.replace("#", "", regex=False)
            df[col] = pd.to_numeric(df[col], errors="coerce")

        df["Atomic_mass_int"] = pd.to_numeric(df["Atomic_mass_int"], errors="coerce")
        df["Atomic_mass_micro_u"] = (
            df["Atomic_mass_int"] * 1e6 + df["Atomic_mass_micro_u"]
        )

        df = df.drop(columns=["cc", "Atomic_mass_int"], errors="ignore")
        df = df.dropna(subset=["Z", "Mass_excess_keV"])

        return df.reset_index(drop=True)

    def to_mass_frame(self) -> pd.DataFrame:
        """Columns needed by :class:`spsplot.mass_table.MassTable`."""
        return self.parse()[MASS_COLUMNS].copy()

    def to_csv(self, output_path: Path | str) -> None:
        """Export the mass columns to a CSV readable by ``MassTable.from_csv``."""
        df = self.to_mass_frame()
        df.to_csv(output_path, index=False)
        logger.info(f"Exported {len(df)} nuclides to {output_path}")
