"""
Habitability Computation.

Converts an observed angular separation into a physical orbital distance and
classifies that distance against a luminosity-scaled habitable zone.

Both functions are pure: no store access, same inputs give the same answer.
"""

import math
from typing import Dict, Optional

from exoatlas.core.errors import MissingInputError, InvalidInputError
from exoatlas.models.observation import HabitabilityClass

LIGHT_YEARS_PER_PARSEC = 3.26156

# Habitable-zone edges for a 1 L☉ star, scaled by sqrt(L)
HZ_INNER_BASE_AU = 0.99
HZ_OUTER_BASE_AU = 1.70

AU_DECIMALS = 4


def _require_positive(field: str, value: Optional[float]) -> float:
    if value is None:
        raise MissingInputError(field)
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError(field, value)
    return value


def resolve_orbital_distance(distance_ly: Optional[float], angular_separation_arcsec: Optional[float]) -> float:
    """
    Orbital distance in AU from stellar distance and angular separation.

    At a distance of d parsecs, one arcsecond subtends one AU, so the
    separation in AU is parsecs × arcseconds. Returns full precision; use
    round_au() only when persisting.
    """
    distance_ly = _require_positive("distance_ly", distance_ly)
    angular_separation_arcsec = _require_positive("angular_separation_arcsec", angular_separation_arcsec)

    distance_parsecs = distance_ly / LIGHT_YEARS_PER_PARSEC
    return distance_parsecs * angular_separation_arcsec


def habitable_zone_bounds(luminosity: Optional[float]) -> Dict[str, float]:
    """Inner and outer habitable-zone edges in AU."""
    luminosity = _require_positive("luminosity", luminosity)
    sqrt_lum = math.sqrt(luminosity)
    return {
        "inner_au": HZ_INNER_BASE_AU * sqrt_lum,
        "outer_au": HZ_OUTER_BASE_AU * sqrt_lum,
    }


def classify_habitability(luminosity: Optional[float], orbital_distance_au: Optional[float]) -> HabitabilityClass:
    """Classify an orbit as inside, hotter than, or colder than the habitable zone."""
    orbital_distance_au = _require_positive("orbital_distance_au", orbital_distance_au)
    bounds = habitable_zone_bounds(luminosity)

    if orbital_distance_au < bounds["inner_au"]:
        return HabitabilityClass.TOO_HOT
    elif orbital_distance_au > bounds["outer_au"]:
        return HabitabilityClass.TOO_COLD
    return HabitabilityClass.INSIDE_HZ


def round_au(orbital_distance_au: float) -> float:
    return round(orbital_distance_au, AU_DECIMALS)
