"""
Shared utilities for spsplot.

Network helpers used by the AME2020 and NNDC downloaders, plus nuclide
name handling shared by the reaction model and the CLI.
"""

from __future__ import annotations

import math
import re
import time
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

import requests

from .config import Config, get_logger
from .exceptions import InvalidNuclideError

logger = get_logger("utils")

_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
                  "AppleWebKit/537.36 (KHTML, like Gecko) "
                  "Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,text/plain,*/*",
    "Accept-Language": "en-US,en;q=0.9",
}

# "12C", "C12", "C-12", "c 12"
_MASS_FIRST = re.compile(r"^\s*(\d+)\s*-?\s*([A-Za-z]{1,2})\s*$")
_SYMBOL_FIRST = re.compile(r"^\s*([A-Za-z]{1,2})\s*-?\s*(\d+)\s*$")

_ALIASES = {
    "n": (0, 1),
    "p": (1, 1),
    "d": (1, 2),
    "t": (1, 3),
    "a": (2, 4),
    "alpha": (2, 4),
}


class RateLimiter:
    """Enforce a minimum delay between requests to the same host."""

    def __init__(self, delay: float | None = None):
        self._delay = Config.REQUEST_DELAY if delay is None else delay
        self._last_request_time: dict[str, float] = {}

    def wait(self, url: str) -> None:
        domain = urlparse(url).netloc
        if domain in self._last_request_time:
            elapsed = time.time() - self._last_request_time[domain]
            if elapsed < self._delay:
                time.sleep(self._delay - elapsed)

    def record(self, url: str) -> None:
        self._last_request_time[urlparse(url).netloc] = time.time()

    def reset(self) -> None:
        self._last_request_time.clear()


_rate_limiter = RateLimiter()


def fetch_text(url: str, headers: dict[str, str] | None = None) -> str:
    """
    GET a URL and return its body as text, honouring the shared rate limit.

    Raises:
        requests.RequestException: On connection errors or HTTP error status.
    """
    _rate_limiter.wait(url)
    logger.info(f"Fetching {url}...")
    response = requests.get(
        url, timeout=Config.DOWNLOAD_TIMEOUT, headers=headers or _DEFAULT_HEADERS
    )
    _rate_limiter.record(url)
    response.raise_for_status()
    return response.text


def download_with_mirrors(
    mirrors: list[str],
    output_path: Path,
    validators: list[Callable[[str], tuple[bool, str]]] | None = None,
    headers: dict[str, str] | None = None,
    data_name: str = "data",
) -> Path:
    """
    Download a file from a list of mirror URLs with fallback.

    This function tries each mirror in order until one succeeds. It includes:
    - Rate limiting between requests to the same domain
    - Content validation to ensure the download is valid
    - Detailed logging for debugging download issues

    Args:
        mirrors: List of URLs to try in order.
        output_path: Where to save the downloaded file.
        validators: List of validation functions. Each takes content string
            and returns (is_valid, error_message). All must pass.
        headers: Optional HTTP headers to include in requests.
        data_name: Name of the data for logging (e.g., "AME2020").

    Returns:
        Path to the downloaded file.

    Raises:
        RuntimeError: If download fails from all mirrors.
    """
    if output_path.exists():
        logger.info(f"{data_name} file already exists: {output_path}")
        return output_path

    if validators is None:
        validators = [
            lambda c: (len(c) >= 1000, f"File too small ({len(c)} bytes)"),
            lambda c: ("<html" not in c[:500].lower(), "Received HTML instead of data"),
        ]

    last_error: Exception | None = None

    for url in mirrors:
        try:
            content = fetch_text(url, headers=headers)
        except requests.RequestException as e:
            logger.warning(f"Failed to download from {url}: {e}")
            last_error = e
            continue

        all_valid = True
        for validator in validators:
            is_valid, error_msg = validator(content)
            if not is_valid:
                logger.warning(f"Validation failed: {error_msg}")
                all_valid = False
                break

        if not all_valid:
            continue

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content)
        logger.info(f"Saved {data_name} to {output_path} ({len(content):,} bytes)")
        return output_path

    raise RuntimeError(
        f"Could not download {data_name} from any mirror. Last error: {last_error}\n"
        "Please download manually from https://www.anl.gov/phy/atomic-mass-data-resources\n"
        f"and save to {output_path}"
    )


def validate_nuclide_params(z: int | None, a: int | None) -> None:
    """
    Validate nuclide parameters (Z, A).

    Args:
        z: Proton number (can be None to skip validation).
        a: Mass number (can be None to skip validation).

    Raises:
        InvalidNuclideError: If any parameter is invalid.
    """
    if z is not None:
        if isinstance(z, bool) or not isinstance(z, int):
            raise InvalidNuclideError(f"Z must be an integer, got {type(z).__name__}")
        if z < Config.Z_MIN or z > Config.Z_MAX:
            raise InvalidNuclideError(
                f"Z={z} is out of valid range [{Config.Z_MIN}, {Config.Z_MAX}]",
                z=z
            )

    if a is not None:
        if isinstance(a, bool) or not isinstance(a, int):
            raise InvalidNuclideError(f"A must be an integer, got {type(a).__name__}")
        if a < Config.A_MIN or a > Config.A_MAX:
            raise InvalidNuclideError(
                f"A={a} is out of valid range [{Config.A_MIN}, {Config.A_MAX}]",
                a=a
            )

    if z is not None and a is not None and z > a:
        raise InvalidNuclideError(f"Z={z} cannot exceed A={a}", z=z, a=a)


def nuclide_name(z: int, a: int) -> str:
    """
    Format a nuclide the way level listings are named, e.g. '13C'.

    Example:
        >>> nuclide_name(6, 13)
        '13C'
        >>> nuclide_name(0, 1)
        '1n'
    """
    return f"{a}{Config.get_element_symbol(z)}"


def particle_name(z: int, a: int) -> str:
    """Short name used inside reaction notation: 'p', 'd', 'a', '3He', ..."""
    return Config.LIGHT_PARTICLES.get((z, a), nuclide_name(z, a))


def parse_nuclide(text: str) -> tuple[int, int]:
    """
    Parse a nuclide name into (Z, A).

    Accepts '12C', 'C12', 'C-12', the light-particle aliases
    n, p, d, t, a/alpha, and an explicit 'Z,A' pair.

    Example:
        >>> parse_nuclide("12C")
        (6, 12)
        >>> parse_nuclide("d")
        (1, 2)
        >>> parse_nuclide("3He")
        (2, 3)

    Raises:
        InvalidNuclideError: If the text is not a recognisable nuclide.
    """
    cleaned = text.strip()
    if cleaned.lower() in _ALIASES:
        return _ALIASES[cleaned.lower()]

    if "," in cleaned:
        parts = cleaned.split(",")
        if len(parts) == 2:
            try:
                z, a = int(parts[0]), int(parts[1])
            except ValueError:
                raise InvalidNuclideError(f"Cannot parse nuclide '{text}'") from None
            validate_nuclide_params(z, a)
            return z, a

    match = _MASS_FIRST.match(cleaned)
    if match:
        a_str, symbol = match.groups()
    else:
        match = _SYMBOL_FIRST.match(cleaned)
        if match is None:
            raise InvalidNuclideError(f"Cannot parse nuclide '{text}'")
        symbol, a_str = match.groups()

    z = Config.get_atomic_number(symbol)
    if z is None:
        raise InvalidNuclideError(f"Unknown element symbol '{symbol}' in '{text}'")
    a = int(a_str)
    validate_nuclide_params(z, a)
    return z, a


def format_value(value: float | None, precision: int = 3, unit: str = "") -> str:
    """
    Format a numeric value with optional unit.

    Example:
        >>> format_value(123.456, precision=2, unit='MeV')
        '123.46 MeV'
        >>> format_value(None)
        'N/A'
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    if unit:
        return f"{value:.{precision}f} {unit}"
    return f"{value:.{precision}f}"
