"""
Excited-state level listings.

A level listing is line-oriented text, one level per line, as exported from
NuDat ("adopted levels") or written by :mod:`spsplot.nndc`::

    # 13C adopted levels
    # E(level) keV      Jpi      T1/2
    0.0                 1/2-     STABLE
    3089.443 20         1/2+     1.05 fs 7
    ~7500               (3/2+)

Fields are separated by a tab or by two or more spaces. The energy field may
carry compact uncertainty digits (``3089.443 20`` is 3089.443 ± 0.020 keV),
an ENSDF qualifier (``AP``, ``SY``, ``LT``...), an approximate marker
(``~``, ``≈``, parentheses) or an unknown offset (``1234.5+X``).

Parsing is best-effort: a line whose energy cannot be read is skipped and
recorded in :attr:`LevelParseResult.skipped`; only an unreadable resource is
an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, NamedTuple

from .config import Config, get_logger
from .exceptions import LevelResourceUnreadableError
from .utils import nuclide_name

logger = get_logger("levels")

__all__ = [
    "Level",
    "SkippedLine",
    "LevelParseResult",
    "EnergyField",
    "parse_energy_field",
    "parse_level_listing",
    "read_level_file",
    "LevelLibrary",
]

ENERGY_UNITS = {"keV": 1.0e-3, "MeV": 1.0}

# ENSDF uncertainty qualifiers that replace the digits
_QUALIFIERS = ("AP", "CA", "SY", "LT", "GT", "LE", "GE", "?")

# Matches the energy token at the start of a line; the text after it is
# left for the Jπ and half-life columns.
_ENERGY_PATTERN = re.compile(
    r"""^
    (?P<prefix>[~≈])?\s*
    (?P<open>\()?\s*
    (?P<mantissa>\d+(?:\.\d*)?|\.\d+)
    (?:[eE](?P<exp>[+-]?\d+))?
    (?:\s*\+\s*(?P<offset>[A-Za-z]\w*))?
    \s*(?P<close>\))?
    (?:\s+(?P<unc>\d+|AP|CA|SY|LT|GT|LE|GE|\?)(?=\s|$))?
    (?=\s|$)""",
    re.VERBOSE,
)

_FIELD_SEPARATOR = re.compile(r"\t|\s{2,}")


class EnergyField(NamedTuple):
    """Decoded energy field, in the listing's own unit."""

    value: float
    uncertainty: float | None
    approximate: bool
    offset: str | None


@dataclass(frozen=True)
class Level:
    """
    One excited state of a residual nucleus.

    Attributes:
        energy: Excitation energy in MeV.
        uncertainty: Uncertainty in MeV, None when not given.
        spin_parity: Jπ string for display, e.g. '1/2+' or '(3/2-)'.
        half_life: Half-life text as tabulated.
        approximate: True for '~' values, qualifiers, tentative or offset levels.
        offset: Unknown offset label for levels like '1234.5+X'.
        line_number: Line in the source listing (1-based).
    """

    energy: float
    uncertainty: float | None = None
    spin_parity: str | None = None
    half_life: str | None = None
    approximate: bool = False
    offset: str | None = None
    line_number: int | None = None

    @property
    def label(self) -> str:
        text = f"{self.energy:.3f} MeV"
        if self.offset:
            text = f"{self.energy:.3f}+{self.offset} MeV"
        if self.approximate and not self.offset:
            text = "~" + text
        if self.spin_parity:
            text += f" {self.spin_parity}"
        return text


@dataclass(frozen=True)
class SkippedLine:
    """A listing line that could not be turned into a level."""

    line_number: int
    text: str
    reason: str


@dataclass(frozen=True)
class LevelParseResult:
    """
    Levels parsed from one listing plus diagnostics for skipped lines.

    Levels keep input order. Both sequences are tuples so a result can be
    handed to another thread as a whole.
    """

    source: str
    levels: tuple[Level, ...] = ()
    skipped: tuple[SkippedLine, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.levels)

    def __iter__(self) -> Iterator[Level]:
        return iter(self.levels)

    @property
    def n_levels(self) -> int:
        return len(self.levels)

    @property
    def n_skipped(self) -> int:
        return len(self.skipped)

    def summary(self) -> str:
        return f"{self.n_levels} levels parsed, {self.n_skipped} lines skipped"

    @classmethod
    def empty(cls, source: str) -> "LevelParseResult":
        return cls(source=source)


def parse_energy_field(text: str) -> EnergyField:
    """
    Decode a level-energy field.

    Example:
        >>> parse_energy_field("3089.443 20")
        EnergyField(value=3089.443, uncertainty=0.02, approximate=False, offset=None)
        >>> parse_energy_field("~7500").approximate
        True

    Raises:
        ValueError: If the field is blank or not a number.
    """
    stripped = text.strip()
    if not stripped:
        raise ValueError("blank energy field")

    match = _ENERGY_PATTERN.fullmatch(stripped)
    if match is None:
        raise ValueError(f"unreadable energy field '{stripped}'")
    return _decode_energy(match)


def _decode_energy(match: re.Match) -> EnergyField:
    mantissa = match.group("mantissa")
    exponent = int(match.group("exp") or 0)
    value = float(mantissa) * 10.0 ** exponent

    unc_text = match.group("unc")
    uncertainty = None
    if unc_text is not None and unc_text not in _QUALIFIERS:
        decimals = len(mantissa.split(".")[1]) if "." in mantissa else 0
        uncertainty = int(unc_text) * 10.0 ** (exponent - decimals)

    offset = match.group("offset")
    approximate = bool(
        match.group("prefix")
        or match.group("open")
        or match.group("close")
        or unc_text in _QUALIFIERS
        or offset
    )
    return EnergyField(value, uncertainty, approximate, offset)


def parse_level_listing(
    text: str,
    source: str = "<string>",
    energy_unit: str = "keV",
) -> LevelParseResult:
    """
    Parse a level listing into levels, skipping malformed lines.

    Comment lines (``#``) and blank lines are ignored and not counted as
    skipped.

    Args:
        text: Listing contents.
        source: Name used in diagnostics and log messages.
        energy_unit: Unit of the energy column, "keV" (NuDat) or "MeV".

    Returns:
        A :class:`LevelParseResult`; never raises for bad lines.
    """
    if energy_unit not in ENERGY_UNITS:
        raise ValueError(f"energy_unit must be one of {list(ENERGY_UNITS)}, got '{energy_unit}'")
    scale = ENERGY_UNITS[energy_unit]

    levels: list[Level] = []
    skipped: list[SkippedLine] = []

    for line_number, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        match = _ENERGY_PATTERN.match(line)
        if match is None:
            reason = f"unreadable energy field '{line.split(None, 1)[0]}'"
            logger.debug(f"{source}:{line_number}: skipped ({reason})")
            skipped.append(SkippedLine(line_number, raw, reason))
            continue
        energy = _decode_energy(match)

        # Column layout (tab or 2+ spaces) keeps empty columns; otherwise the
        # first word is Jπ and the rest the half-life.
        rest = line[match.end():]
        if _FIELD_SEPARATOR.match(rest):
            fields = _FIELD_SEPARATOR.split(rest)[1:]
        else:
            fields = rest.split(None, 1)

        spin_parity = fields[0].strip() if fields and fields[0].strip() else None
        half_life = " ".join(f.strip() for f in fields[1:] if f.strip()) or None

        levels.append(
            Level(
                energy=energy.value * scale,
                uncertainty=None if energy.uncertainty is None else energy.uncertainty * scale,
                spin_parity=spin_parity,
                half_life=half_life,
                approximate=energy.approximate,
                offset=energy.offset,
                line_number=line_number,
            )
        )

    result = LevelParseResult(source=source, levels=tuple(levels), skipped=tuple(skipped))
    if skipped:
        logger.info(f"{source}: {result.summary()}")
    else:
        logger.debug(f"{source}: {result.summary()}")
    return result


def read_level_file(path: Path | str, energy_unit: str = "keV") -> LevelParseResult:
    """
    Read and parse a level listing file.

    Raises:
        LevelResourceUnreadableError: If the file is missing or unreadable.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise LevelResourceUnreadableError(str(path), str(e)) from e
    return parse_level_listing(text, source=str(path), energy_unit=energy_unit)


class LevelLibrary:
    """
    Directory of level listings, one file per nuclide named like ``13C.txt``.

    Example:
        >>> library = LevelLibrary()
        >>> levels = library.load(6, 13)
        >>> print(levels.summary())
    """

    def __init__(self, directory: Path | str | None = None, energy_unit: str = "keV"):
        self.directory = Path(directory) if directory is not None else Config.LEVEL_DIR
        self.energy_unit = energy_unit

    def __repr__(self) -> str:
        return f"LevelLibrary(directory={self.directory})"

    def path_for(self, z: int, a: int) -> Path:
        return self.directory / f"{nuclide_name(z, a)}.txt"

    def available(self) -> list[str]:
        """Names of nuclides with a listing in this library."""
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.txt"))

    def load(self, z: int, a: int) -> LevelParseResult:
        """
        Load the listing for (Z, A).

        Raises:
            LevelResourceUnreadableError: If there is no readable listing.
        """
        return read_level_file(self.path_for(z, a), energy_unit=self.energy_unit)

    def load_or_empty(self, z: int, a: int) -> LevelParseResult:
        """Load the listing for (Z, A), or an empty result if it cannot be read."""
        try:
            return self.load(z, a)
        except LevelResourceUnreadableError as e:
            logger.warning(f"No levels for {nuclide_name(z, a)}: {e}")
            return LevelParseResult.empty(str(self.path_for(z, a)))
