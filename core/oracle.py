"""Heliocentric positions of the Earth and the Earth-Moon barycenter.

Every oracle returns rectangular coordinates in astronomical units, referred
to the mean ecliptic and equinox of J2000 with the Sun at the origin. Time is
the Julian Date on the TT scale (TDB is taken as equal to TT). Inputs may be
scalars or 1-D arrays; the result then has shape ``(3,)`` or ``(n, 3)``.
"""

from __future__ import annotations

import json
import logging
import os
import warnings
from pathlib import Path
from threading import Lock
from typing import List, Optional, Protocol

import erfa
import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

from .ephemeris import resolve_ephemeris_source

__all__ = [
    "EphemerisError",
    "EphemerisOracle",
    "ErfaEphemeris",
    "SpiceEphemeris",
    "load_ephemeris",
    "unload_ephemeris",
    "make_ephemeris",
    "default_ephemeris",
]

LOGGER = logging.getLogger(__name__)

AU_KM = 149597870.700
EARTH_MOON_MASS_RATIO = 81.30056907  # DE440 EMRAT.

_LOADED_FILES: Optional[List[str]] = None
_LOAD_LOCK = Lock()

_DEFAULT: Optional["EphemerisOracle"] = None
_DEFAULT_LOCK = Lock()


class EphemerisError(RuntimeError):
    """Raised when ephemeris loading or computation fails."""


class EphemerisOracle(Protocol):
    name: str

    def heliocentric_earth(self, jd) -> np.ndarray: ...

    def heliocentric_earth_moon_barycenter(self, jd) -> np.ndarray: ...


def _equator_to_ecliptic_matrix() -> np.ndarray:
    eps = erfa.obl06(erfa.DJ00, 0.0)
    cos_e, sin_e = np.cos(eps), np.sin(eps)
    return np.array(
        [
            [1.0, 0.0, 0.0],
            [0.0, cos_e, sin_e],
            [0.0, -sin_e, cos_e],
        ]
    )


class ErfaEphemeris:
    """Analytic oracle built from ERFA's Earth (EPV00) and Moon (MOON98) series.

    No data files are required. EPV00 is nominally valid for 1900-2100 and
    degrades gracefully outside that span; its out-of-range warning is
    silenced.
    """

    name = "erfa"

    def __init__(self) -> None:
        self._rotation = _equator_to_ecliptic_matrix()

    def _split(self, jd) -> tuple[np.ndarray, np.ndarray]:
        jd = np.asarray(jd, dtype=float)
        return np.full_like(jd, erfa.DJM0), jd - erfa.DJM0

    def _earth_equatorial(self, date1, date2) -> np.ndarray:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", erfa.ErfaWarning)
            pvh, _ = erfa.epv00(date1, date2)
        return np.asarray(pvh["p"], dtype=float)

    def heliocentric_earth(self, jd) -> np.ndarray:
        date1, date2 = self._split(jd)
        return self._earth_equatorial(date1, date2) @ self._rotation.T

    def heliocentric_earth_moon_barycenter(self, jd) -> np.ndarray:
        date1, date2 = self._split(jd)
        earth = self._earth_equatorial(date1, date2)
        moon = np.asarray(erfa.moon98(date1, date2)["p"], dtype=float)
        barycenter = earth + moon / (1.0 + EARTH_MOON_MASS_RATIO)
        return barycenter @ self._rotation.T


def load_ephemeris(bsp_dir: str) -> List[str]:
    """Load all SPK kernels from *bsp_dir* using :mod:`spiceypy`.

    Parameters
    ----------
    bsp_dir:
        Directory containing one or more ``.bsp`` files.

    Returns
    -------
    list[str]
        Sorted list of loaded kernel file names.

    Raises
    ------
    EphemerisError
        If the directory is missing or contains no ``.bsp`` files.
    """

    global _LOADED_FILES

    if _LOADED_FILES is not None:
        return _LOADED_FILES

    path = Path(bsp_dir).expanduser()
    if not path.is_dir():
        raise EphemerisError(f"Ephemeris directory not found: {path}")

    with _LOAD_LOCK:
        if _LOADED_FILES is not None:
            return _LOADED_FILES

        bsp_files = sorted(
            file for file in path.iterdir() if file.is_file() and file.suffix.lower() == ".bsp"
        )
        if not bsp_files:
            raise EphemerisError(f"No .bsp ephemeris files found in directory: {path}")

        loaded: List[str] = []
        for bsp_file in bsp_files:
            try:
                spice.furnsh(str(bsp_file))
            except SpiceyError as exc:
                spice.kclear()
                raise EphemerisError(
                    f"Failed to load ephemeris file '{bsp_file}': {exc}"
                ) from exc
            loaded.append(bsp_file.name)

        _LOADED_FILES = loaded
        LOGGER.info(json.dumps({"event": "ephemeris_loaded", "files": loaded}))
        return loaded


def unload_ephemeris() -> None:
    """Forget every loaded kernel so a different directory can be loaded."""

    global _LOADED_FILES
    with _LOAD_LOCK:
        spice.kclear()
        _LOADED_FILES = None


class SpiceEphemeris:
    """Oracle backed by JPL DE kernels read through CSPICE."""

    name = "spice"

    def __init__(self, bsp_dir: str) -> None:
        self.files = load_ephemeris(bsp_dir)

    def _position(self, target: str, jd) -> np.ndarray:
        jd = np.asarray(jd, dtype=float)
        et = (np.atleast_1d(jd) - erfa.DJ00) * erfa.DAYSEC
        try:
            positions, _ = spice.spkpos(target, et, "ECLIPJ2000", "NONE", "SUN")
        except SpiceyError as exc:
            raise EphemerisError(f"SPICE lookup for {target} failed: {exc}") from exc
        positions = np.asarray(positions, dtype=float).reshape(-1, 3) / AU_KM
        return positions[0] if jd.ndim == 0 else positions

    def heliocentric_earth(self, jd) -> np.ndarray:
        return self._position("EARTH", jd)

    def heliocentric_earth_moon_barycenter(self, jd) -> np.ndarray:
        return self._position("EARTH BARYCENTER", jd)


def make_ephemeris(backend: Optional[str] = None) -> EphemerisOracle:
    """Build the oracle named by *backend* or the ``SYZYGY_EPHEMERIS`` variable."""

    backend = (backend or os.environ.get("SYZYGY_EPHEMERIS", "erfa")).lower()
    if backend == "erfa":
        return ErfaEphemeris()
    if backend == "spice":
        return SpiceEphemeris(str(resolve_ephemeris_source()))
    raise ValueError(f"Unsupported ephemeris backend: {backend}")


def default_ephemeris() -> EphemerisOracle:
    """Return the process-wide oracle, building it on first use."""

    global _DEFAULT

    if _DEFAULT is not None:
        return _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = make_ephemeris()
        return _DEFAULT
