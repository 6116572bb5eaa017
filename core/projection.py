"""Ecliptic projection of heliocentric positions and the Earth-Moon phase."""

from __future__ import annotations

import math

import numpy as np

__all__ = [
    "DegenerateProjectionError",
    "ecliptic_longitude",
    "magnitude",
    "longitude_separation",
    "phase",
]


class DegenerateProjectionError(ArithmeticError):
    """Raised when a position has no defined ecliptic longitude."""


def ecliptic_longitude(position) -> np.ndarray:
    """Return ``atan(y / x)`` for each row of *position*.

    This is the principal-branch arctangent, so the result only fixes the
    longitude modulo pi. A vanishing ``x`` yields the limit ``copysign(pi/2, y)``.
    """

    position = np.asarray(position, dtype=float)
    x = position[..., 0]
    y = position[..., 1]
    on_axis = x == 0.0
    if np.any(on_axis & (y == 0.0)):
        raise DegenerateProjectionError("Position lies on the ecliptic pole axis")
    with np.errstate(divide="ignore"):
        return np.where(on_axis, np.copysign(math.pi / 2.0, y), np.arctan(y / x))


def magnitude(position) -> np.ndarray:
    position = np.asarray(position, dtype=float)
    return np.sqrt(np.sum(position * position, axis=-1))


def longitude_separation(earth_longitude, moon_longitude) -> np.ndarray:
    """Difference of two ``atan(y/x)`` longitudes, reduced into ``[-pi/2, pi/2)``.

    Both inputs are only defined modulo pi, so two nearly aligned bodies that
    straddle the branch cut at ``x = 0`` would otherwise differ by about pi.
    """

    difference = np.asarray(earth_longitude) - np.asarray(moon_longitude)
    return np.mod(difference + math.pi / 2.0, math.pi) - math.pi / 2.0


def phase(earth_position, moon_position) -> np.ndarray:
    """Normalised Earth/barycenter longitude separation for each sample.

    Non-finite inputs give non-finite phases; callers reject the samples they use.
    """

    separation = longitude_separation(
        ecliptic_longitude(earth_position), ecliptic_longitude(moon_position)
    )
    return np.abs(separation) * (1.0 / math.pi) * 0.5
