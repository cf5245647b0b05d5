"""
Catalog Store.

Thin data-access layer over a SQLAlchemy session. The habitability evaluator
and the catalog service only talk to the database through this class, which
also translates driver errors into the catalog error taxonomy:

- IntegrityError          -> ConflictError
- OperationalError, InterfaceError, invalidated connections
                          -> StoreUnavailableError (retried by ``atomic``)
- any other DBAPIError    -> StoreError (not retried)
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar
import logging
import time

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from exoatlas.core.config import settings
from exoatlas.core.errors import ConflictError, NotFoundError, StoreError, StoreUnavailableError
from exoatlas.models.observation import Observation, HabitabilityClass
from exoatlas.models.planet import Planet
from exoatlas.models.star import Star

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class EvaluationInputs:
    """Everything the evaluator needs for one planet, read fresh from the store."""
    planet_id: int
    angular_separation_arcsec: Optional[float]
    distance_ly: Optional[float]
    luminosity: Optional[float]


@contextmanager
def translate_store_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError as e:
        raise ConflictError("A duplicate record was detected.", constraint=str(e.orig)) from e
    except (OperationalError, InterfaceError) as e:
        raise StoreUnavailableError(f"Store operation failed: {e.orig}") from e
    except DBAPIError as e:
        if e.connection_invalidated:
            raise StoreUnavailableError(f"Store connection lost: {e.orig}") from e
        raise StoreError(f"Store rejected the operation: {e.orig}") from e


class CatalogStore:
    def __init__(self, db: Session):
        self.db = db

    # ── Transactions ──

    def atomic(self, work: Callable[["CatalogStore"], T]) -> T:
        """
        Run ``work`` as one unit and commit it.

        Any failure rolls the whole unit back. StoreUnavailableError is retried
        with exponential backoff; everything else propagates immediately.
        """
        attempts = max(1, settings.STORE_RETRY_ATTEMPTS)
        for attempt in range(attempts):
            try:
                result = work(self)
                with translate_store_errors():
                    self.db.commit()
                return result
            except StoreUnavailableError as e:
                self.db.rollback()
                if attempt == attempts - 1:
                    logger.error(f"Store unavailable after {attempts} attempts: {e}")
                    raise
                delay = settings.STORE_RETRY_BACKOFF_SECONDS * (2 ** attempt)
                logger.warning(f"Store attempt {attempt + 1} failed, retrying in {delay:.2f}s")
                time.sleep(delay)
            except Exception:
                self.db.rollback()
                raise

    # ── Stars ──

    def list_stars(self) -> List[Star]:
        with translate_store_errors():
            return self.db.query(Star).order_by(Star.star_name).all()

    def get_star(self, star_id: int) -> Star:
        with translate_store_errors():
            star = self.db.query(Star).filter(Star.star_id == star_id).first()
        if star is None:
            raise NotFoundError("star", star_id)
        return star

    def add_star(self, **fields: Any) -> Star:
        star = Star(**fields)
        with translate_store_errors():
            self.db.add(star)
            self.db.flush()
        return star

    def update_star(self, star_id: int, **fields: Any) -> Star:
        star = self.get_star(star_id)
        for key, value in fields.items():
            setattr(star, key, value)
        with translate_store_errors():
            self.db.flush()
        return star

    # ── Planets ──

    def list_planets(self, star_id: int) -> List[Planet]:
        with translate_store_errors():
            return self.db.query(Planet).filter(Planet.star_id == star_id).order_by(Planet.planet_id).all()

    def get_planet(self, planet_id: int) -> Planet:
        with translate_store_errors():
            planet = self.db.query(Planet).filter(Planet.planet_id == planet_id).first()
        if planet is None:
            raise NotFoundError("planet", planet_id)
        return planet

    def add_planet(self, **fields: Any) -> Planet:
        planet = Planet(**fields)
        try:
            with translate_store_errors():
                self.db.add(planet)
                self.db.flush()
        except ConflictError as e:
            raise ConflictError(
                f"Planet named '{fields.get('planet_name')}' already exists in this star system.",
                star_id=fields.get("star_id"),
                planet_name=fields.get("planet_name"),
            ) from e
        return planet

    def update_planet(self, planet_id: int, **fields: Any) -> Planet:
        planet = self.get_planet(planet_id)
        for key, value in fields.items():
            setattr(planet, key, value)
        try:
            with translate_store_errors():
                self.db.flush()
        except ConflictError as e:
            raise ConflictError(
                f"Planet named '{fields.get('planet_name')}' already exists in this star system.",
                star_id=planet.star_id,
                planet_name=fields.get("planet_name"),
            ) from e
        return planet

    def get_evaluation_inputs(self, planet_id: int) -> EvaluationInputs:
        with translate_store_errors():
            row = (
                self.db.query(
                    Planet.planet_id,
                    Planet.angular_separation_arcsec,
                    Star.distance_ly,
                    Star.luminosity,
                )
                .join(Star, Planet.star_id == Star.star_id)
                .filter(Planet.planet_id == planet_id)
                .first()
            )
        if row is None:
            raise NotFoundError("planet", planet_id)
        return EvaluationInputs(
            planet_id=row.planet_id,
            angular_separation_arcsec=row.angular_separation_arcsec,
            distance_ly=row.distance_ly,
            luminosity=row.luminosity,
        )

    # ── Observations ──

    def list_observations(self, planet_id: int) -> List[Observation]:
        self.get_planet(planet_id)
        with translate_store_errors():
            return (
                self.db.query(Observation)
                .filter(Observation.planet_id == planet_id)
                .order_by(Observation.observation_date.desc(), Observation.observation_id.desc())
                .all()
            )

    def upsert_observation(
        self,
        planet_id: int,
        observation_date: date,
        orbital_distance_au: float,
        classification: HabitabilityClass,
        angular_separation_used: Optional[float],
        user_id: Optional[int],
    ) -> Observation:
        """
        Insert today's observation or overwrite its value fields in one statement.

        The conflict target is the (planet_id, observation_date) unique
        constraint, so concurrent callers for the same key never produce two
        rows. The existing row keeps its researcher attribution.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise StoreError(f"Conflict-aware upsert is not supported on '{dialect}'", dialect=dialect)

        stmt = insert(Observation.__table__).values(
            planet_id=planet_id,
            observation_date=observation_date,
            orbital_distance_au=orbital_distance_au,
            habitability_classification=classification.value,
            user_id=user_id,
            angular_separation_as=angular_separation_used,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["planet_id", "observation_date"],
            set_={
                "orbital_distance_au": stmt.excluded.orbital_distance_au,
                "habitability_classification": stmt.excluded.habitability_classification,
                "angular_separation_as": stmt.excluded.angular_separation_as,
            },
        )

        with translate_store_errors():
            self.db.execute(stmt)
            return (
                self.db.query(Observation)
                .populate_existing()
                .filter(
                    Observation.planet_id == planet_id,
                    Observation.observation_date == observation_date,
                )
                .one()
            )

    # ── Stats ──

    def catalog_counts(self) -> Dict[str, Any]:
        with translate_store_errors():
            stars = self.db.query(func.count(Star.star_id)).scalar() or 0
            planets = self.db.query(func.count(Planet.planet_id)).scalar() or 0
            observations = self.db.query(func.count(Observation.observation_id)).scalar() or 0

            latest = self.db.query(
                Observation.planet_id,
                func.max(Observation.observation_date).label("max_date"),
            ).group_by(Observation.planet_id).subquery()

            rows = (
                self.db.query(Observation.habitability_classification, func.count(Observation.observation_id))
                .join(
                    latest,
                    (Observation.planet_id == latest.c.planet_id) &
                    (Observation.observation_date == latest.c.max_date)
                )
                .group_by(Observation.habitability_classification)
                .all()
            )

        breakdown = {cls.value: 0 for cls in HabitabilityClass}
        for classification, count in rows:
            breakdown[classification] = count
        return {
            "stars": stars,
            "planets": planets,
            "observations": observations,
            "latest_classification": breakdown,
        }
