"""
Habitability Evaluator.

Resolves a planet's orbital distance, classifies it against its star's
habitable zone, and reconciles the result into the one-row-per-day
observation history.

Two entry points:
- ``recompute``: angular-separation mode. Distance is derived from the
  planet's angular separation and its star's distance.
- ``evaluate_direct``: orbital-distance mode. The caller supplies AU and the
  resolver step is skipped.

Star luminosity and distance are re-read from the store on every call.
"""

from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional
import logging

from exoatlas.models.observation import HabitabilityClass
from exoatlas.services.catalog_store import CatalogStore
from exoatlas.services.habitability import (
    classify_habitability,
    resolve_orbital_distance,
    round_au,
)

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.utcnow().date()


@dataclass
class EvaluationResult:
    planet_id: int
    observation_id: int
    observation_date: date
    orbital_distance_au: float
    habitability_classification: HabitabilityClass
    angular_separation_used: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class HabitabilityEvaluator:
    def __init__(self, store: CatalogStore, today: Callable[[], date] = utc_today):
        self.store = store
        self.today = today

    def recompute(
        self,
        planet_id: int,
        researcher_id: Optional[int],
        angular_separation_arcsec: Optional[float] = None,
    ) -> EvaluationResult:
        """
        Evaluate from angular separation.

        A supplied separation replaces the planet's stored one before the
        evaluation; otherwise the stored value is used.
        """
        if angular_separation_arcsec is not None:
            self.store.update_planet(planet_id, angular_separation_arcsec=angular_separation_arcsec)

        inputs = self.store.get_evaluation_inputs(planet_id)
        orbital_distance_au = resolve_orbital_distance(inputs.distance_ly, inputs.angular_separation_arcsec)
        return self._reconcile(
            planet_id,
            orbital_distance_au,
            inputs.luminosity,
            inputs.angular_separation_arcsec,
            researcher_id,
        )

    def evaluate_direct(
        self,
        planet_id: int,
        orbital_distance_au: Optional[float],
        researcher_id: Optional[int],
    ) -> EvaluationResult:
        """Evaluate from an orbital distance already expressed in AU."""
        inputs = self.store.get_evaluation_inputs(planet_id)
        return self._reconcile(planet_id, orbital_distance_au, inputs.luminosity, None, researcher_id)

    def _reconcile(
        self,
        planet_id: int,
        orbital_distance_au: Optional[float],
        luminosity: Optional[float],
        angular_separation_used: Optional[float],
        researcher_id: Optional[int],
    ) -> EvaluationResult:
        # Classify before rounding so values near a boundary land on the right side
        classification = classify_habitability(luminosity, orbital_distance_au)
        observation_date = self.today()

        observation = self.store.upsert_observation(
            planet_id=planet_id,
            observation_date=observation_date,
            orbital_distance_au=round_au(orbital_distance_au),
            classification=classification,
            angular_separation_used=angular_separation_used,
            user_id=researcher_id,
        )
        logger.info(
            f"Planet {planet_id}: {observation.orbital_distance_au} AU -> {classification.value} "
            f"(observation {observation.observation_id}, {observation_date})"
        )

        return EvaluationResult(
            planet_id=planet_id,
            observation_id=observation.observation_id,
            observation_date=observation.observation_date,
            orbital_distance_au=observation.orbital_distance_au,
            habitability_classification=HabitabilityClass(observation.habitability_classification),
            angular_separation_used=observation.angular_separation_as,
        )
