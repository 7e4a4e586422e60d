"""
Custom exceptions for the spsplot package.

Only conditions that stop a computation are exceptions. Skipped level lines
and kinematically forbidden or double-valued solutions are ordinary results.
"""

__all__ = [
    "SpsPlotError",
    "NuclideNotFoundError",
    "InvalidNuclideError",
    "DataFileNotFoundError",
    "MassTableCorruptError",
    "LevelResourceUnreadableError",
    "ConfigurationError",
]


class SpsPlotError(Exception):
    """Base exception for all spsplot errors."""
    pass


class NuclideNotFoundError(SpsPlotError):
    """
    Raised when a requested nuclide is not in the mass table.

    Attributes:
        z: Proton number that was requested.
        a: Mass number that was requested.
        suggestions: List of (Z, A) pairs with the same Z that do exist.
    """

    def __init__(self, z: int, a: int, suggestions: list[tuple[int, int]] | None = None):
        self.z = z
        self.a = a
        self.suggestions = suggestions or []

        message = f"No mass data for nuclide with Z={z}, A={a}"
        if self.suggestions:
            suggestion_str = ", ".join(f"A={s[1]}" for s in self.suggestions[:5])
            message += f". Available A values for Z={z}: {suggestion_str}"

        super().__init__(message)


class InvalidNuclideError(SpsPlotError):
    """
    Raised when nuclide parameters are physically invalid.

    Examples of invalid parameters:
    - Negative Z or A < 1
    - A residual that does not conserve Z and A
    - A nuclide name that cannot be parsed
    """

    def __init__(self, message: str, z: int | None = None, a: int | None = None):
        self.z = z
        self.a = a
        super().__init__(message)


class DataFileNotFoundError(SpsPlotError):
    """Raised when a required data file (mass table CSV, AME2020 text) is missing."""

    def __init__(self, filepath: str, suggestion: str | None = None):
        self.filepath = filepath
        self.suggestion = suggestion
        message = f"Data file not found: {filepath}"
        if suggestion:
            message += f"\n{suggestion}"
        super().__init__(message)


class MassTableCorruptError(SpsPlotError):
    """
    Raised when the mass dataset exists but cannot be used.

    This can happen if:
    - Required columns are missing
    - The same (Z, A) key appears more than once
    - A != Z + N for some row
    """

    def __init__(self, path: str, reason: str | None = None):
        self.path = path
        self.reason = reason
        message = f"Mass table at {path} is corrupted or invalid"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class LevelResourceUnreadableError(SpsPlotError):
    """
    Raised when a level listing cannot be read at all.

    Fatal for that nuclide's level set only; the reaction stays usable.
    """

    def __init__(self, source: str, reason: str | None = None):
        self.source = source
        self.reason = reason
        message = f"Cannot read level listing {source}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ConfigurationError(SpsPlotError, ValueError):
    """Raised when spectrometer settings are invalid."""
    pass
