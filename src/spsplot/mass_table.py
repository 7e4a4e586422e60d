"""
Nuclide mass table.

Immutable lookup from (Z, A) to a :class:`Nuclide` with its rest mass, built
once from an AME2020 mass-excess dataset. Construction is the only write path.

Example:
    >>> from spsplot.mass_table import load_default_mass_table
    >>> table = load_default_mass_table()
    >>> c13 = table.lookup(6, 13)
    >>> print(f"{c13.name}: {c13.mass:.4f} MeV/c²")
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping

import pandas as pd

from .ame2020 import MASS_COLUMNS, AME2020Parser
from .config import Config, MassConvention, get_logger
from .exceptions import DataFileNotFoundError, MassTableCorruptError, NuclideNotFoundError
from .utils import nuclide_name, particle_name, validate_nuclide_params

logger = get_logger("mass_table")

__all__ = [
    "Nuclide",
    "MassTable",
    "load_default_mass_table",
]


@dataclass(frozen=True)
class Nuclide:
    """A nuclide and its ground-state rest mass (MeV/c²)."""

    z: int
    a: int
    symbol: str
    mass_excess_keV: float
    mass: float
    mass_excess_unc_keV: float | None = None

    @property
    def n(self) -> int:
        return self.a - self.z

    @property
    def name(self) -> str:
        """Name like '13C'."""
        return nuclide_name(self.z, self.a)

    @property
    def short_name(self) -> str:
        """Name used inside reaction notation: 'p', 'd', 'a', '13C'."""
        return particle_name(self.z, self.a)

    def __str__(self) -> str:
        return self.name


class MassTable:
    """
    Read-only (Z, A) -> :class:`Nuclide` mapping.

    Every nuclide in a table shares one :class:`MassConvention`, so mass
    differences (Q-values) cancel exactly regardless of the convention chosen.

    Attributes:
        convention: The mass convention applied to every entry.
        source: Where the data came from (file path or description).
    """

    def __init__(
        self,
        nuclides: Mapping[tuple[int, int], Nuclide],
        convention: MassConvention,
        source: str = "<memory>",
    ):
        self._nuclides = MappingProxyType(dict(nuclides))
        self.convention = convention
        self.source = source

    def __repr__(self) -> str:
        return f"MassTable(source={self.source}, nuclides={len(self)})"

    def __len__(self) -> int:
        return len(self._nuclides)

    def __contains__(self, key: object) -> bool:
        return key in self._nuclides

    def __iter__(self) -> Iterator[Nuclide]:
        return iter(self._nuclides.values())

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        convention: MassConvention | None = None,
        source: str = "<dataframe>",
    ) -> "MassTable":
        """
        Build a table from a DataFrame with AME-style columns.

        Required columns: Z, A, Mass_excess_keV. Optional: N, Element,
        Mass_excess_unc_keV. Rows without a mass excess are dropped.

        Raises:
            MassTableCorruptError: If columns are missing, a (Z, A) key is
                duplicated, or A != Z + N.
        """
        if convention is None:
            convention = MassConvention()

        missing = {"Z", "A", "Mass_excess_keV"} - set(df.columns)
        if missing:
            raise MassTableCorruptError(source, f"Missing required columns: {sorted(missing)}")

        df = df.copy()
        before = len(df)
        df = df.dropna(subset=["Z", "A", "Mass_excess_keV"])
        if len(df) < before:
            logger.warning(f"Dropped {before - len(df)} rows without mass data from {source}")

        df["Z"] = df["Z"].astype(int)
        df["A"] = df["A"].astype(int)

        if "N" in df.columns:
            bad = df[df["A"] != df["Z"] + df["N"].astype(int)]
            if len(bad):
                raise MassTableCorruptError(
                    source, f"Data integrity check failed: A != Z + N for {len(bad)} rows"
                )

        duplicated = df.duplicated(subset=["Z", "A"], keep=False)
        if duplicated.any():
            keys = sorted({(int(z), int(a)) for z, a in df.loc[duplicated, ["Z", "A"]].values})
            raise MassTableCorruptError(source, f"Duplicate (Z, A) keys: {keys[:5]}")

        has_unc = "Mass_excess_unc_keV" in df.columns
        nuclides: dict[tuple[int, int], Nuclide] = {}
        for row in df.itertuples(index=False):
            z, a = int(row.Z), int(row.A)
            excess = float(row.Mass_excess_keV)
            unc = None
            if has_unc and pd.notna(row.Mass_excess_unc_keV):
                unc = float(row.Mass_excess_unc_keV)
            nuclides[(z, a)] = Nuclide(
                z=z,
                a=a,
                symbol=Config.get_element_symbol(z),
                mass_excess_keV=excess,
                mass=convention.rest_mass(z, a, excess),
                mass_excess_unc_keV=unc,
            )

        logger.info(f"Loaded {len(nuclides)} nuclides from {source}")
        return cls(nuclides, convention, source)

    @classmethod
    def from_csv(cls, path: Path | str, convention: MassConvention | None = None) -> "MassTable":
        """Build a table from a CSV such as the bundled ``ame2020_masses.csv``."""
        path = Path(path)
        if not path.exists():
            raise DataFileNotFoundError(
                str(path),
                "Set SPSPLOT_MASS_FILE or run `python scripts/download_nuclear_data.py`."
            )
        try:
            df = pd.read_csv(path)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise MassTableCorruptError(str(path), f"Cannot parse CSV: {e}") from e
        return cls.from_dataframe(df, convention, source=str(path))

    @classmethod
    def from_ame2020(cls, path: Path | str, convention: MassConvention | None = None) -> "MassTable":
        """Build a table from the official AME2020 ``mass.mas20.txt`` file."""
        parser = AME2020Parser(path)
        return cls.from_dataframe(parser.to_mass_frame(), convention, source=str(path))

    def lookup(self, z: int, a: int) -> Nuclide:
        """
        Get a nuclide by proton and mass number.

        Raises:
            InvalidNuclideError: If Z or A are invalid.
            NuclideNotFoundError: If the table has no entry for (Z, A).
        """
        validate_nuclide_params(z, a)
        nuclide = self._nuclides.get((z, a))
        if nuclide is None:
            suggestions = sorted(key for key in self._nuclides if key[0] == z)
            raise NuclideNotFoundError(z, a, suggestions)
        return nuclide

    def get_or_none(self, z: int, a: int) -> Nuclide | None:
        """Get a nuclide, returning None if it is not tabulated."""
        return self._nuclides.get((z, a))

    def isotopes(self, z: int) -> list[Nuclide]:
        """All tabulated isotopes of an element, sorted by A."""
        return sorted((n for n in self._nuclides.values() if n.z == z), key=lambda n: n.a)

    def to_dataframe(self) -> pd.DataFrame:
        """Table contents as a DataFrame (mass column in MeV/c²)."""
        rows = [
            {
                "Z": n.z,
                "N": n.n,
                "A": n.a,
                "Element": n.symbol,
                "Mass_excess_keV": n.mass_excess_keV,
                "Mass_excess_unc_keV": n.mass_excess_unc_keV,
                "mass_MeV": n.mass,
            }
            for n in self._nuclides.values()
        ]
        columns = MASS_COLUMNS + ["mass_MeV"]
        return pd.DataFrame(rows, columns=columns).sort_values(["Z", "A"]).reset_index(drop=True)


@lru_cache(maxsize=8)
def _load_cached(path: str, convention: MassConvention) -> MassTable:
    return MassTable.from_csv(path, convention)


def load_default_mass_table(convention: MassConvention | None = None) -> MassTable:
    """
    Load the mass table at ``Config.MASS_FILE``, memoized per convention.

    The table is read once per process and shared afterwards; it is immutable
    so sharing is safe.
    """
    if convention is None:
        convention = MassConvention()
    return _load_cached(str(Config.MASS_FILE), convention)
