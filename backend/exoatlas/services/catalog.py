"""
Catalog Service.

Researcher writes for stars and planets. Each function is a single unit of
work run through ``CatalogStore.atomic``: a planet and its first observation
commit together or not at all.
"""

from typing import Any, Dict, Optional
import logging

from exoatlas.core.errors import MissingInputError
from exoatlas.models.planet import Planet
from exoatlas.models.star import Star
from exoatlas.services.catalog_store import CatalogStore
from exoatlas.services.evaluator import EvaluationResult, HabitabilityEvaluator

logger = logging.getLogger(__name__)


def create_star(store: CatalogStore, **fields: Any) -> Star:
    star = store.atomic(lambda s: s.add_star(**fields))
    logger.info(f"Created star {star.star_id} ({star.star_name})")
    return star


def update_star(store: CatalogStore, star_id: int, **fields: Any) -> Star:
    """
    Update a star in place.

    Existing observations are left as recorded; the next recompute of each
    planet reads the new luminosity and distance.
    """
    star = store.atomic(lambda s: s.update_star(star_id, **fields))
    logger.info(f"Updated star {star_id}")
    return star


def create_planet(
    evaluator: HabitabilityEvaluator,
    researcher_id: Optional[int],
    star_id: int,
    planet_name: str,
    planet_type: str,
    angular_separation_arcsec: Optional[float] = None,
    orbital_distance_au: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Create a planet and its first observation.

    With an angular separation the orbital distance is resolved from the
    star's distance; with an orbital distance the value is used as-is.
    """
    if angular_separation_arcsec is None and orbital_distance_au is None:
        raise MissingInputError("angular_separation_arcsec")

    def work(store: CatalogStore) -> Dict[str, Any]:
        store.get_star(star_id)
        planet = store.add_planet(
            star_id=star_id,
            planet_name=planet_name,
            planet_type=planet_type,
            angular_separation_arcsec=angular_separation_arcsec,
        )
        if angular_separation_arcsec is not None:
            result = evaluator.recompute(planet.planet_id, researcher_id)
        else:
            result = evaluator.evaluate_direct(planet.planet_id, orbital_distance_au, researcher_id)
        return {"planet": planet, "observation": result}

    created = evaluator.store.atomic(work)
    logger.info(f"Created planet {created['planet'].planet_id} ({planet_name}) around star {star_id}")
    return created


def update_planet(
    evaluator: HabitabilityEvaluator,
    researcher_id: Optional[int],
    planet_id: int,
    planet_name: str,
    planet_type: str,
    orbital_distance_au: float,
) -> Dict[str, Any]:
    """Rename/retype a planet and reconcile today's observation from a direct orbital distance."""
    def work(store: CatalogStore) -> Dict[str, Any]:
        planet = store.update_planet(planet_id, planet_name=planet_name, planet_type=planet_type)
        result = evaluator.evaluate_direct(planet_id, orbital_distance_au, researcher_id)
        return {"planet": planet, "observation": result}

    return evaluator.store.atomic(work)


def recompute_planet(
    evaluator: HabitabilityEvaluator,
    researcher_id: Optional[int],
    planet_id: int,
    angular_separation_arcsec: Optional[float] = None,
) -> EvaluationResult:
    return evaluator.store.atomic(
        lambda s: evaluator.recompute(planet_id, researcher_id, angular_separation_arcsec)
    )
