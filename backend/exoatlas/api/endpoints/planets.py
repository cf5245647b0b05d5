from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from exoatlas.db.session import get_db
from exoatlas.models.observation import HabitabilityClass
from exoatlas.models.user import User
from exoatlas.services import catalog
from exoatlas.services.catalog_store import CatalogStore
from exoatlas.services.evaluator import HabitabilityEvaluator
from exoatlas.api.endpoints.auth import require_researcher
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from datetime import date

router = APIRouter()


class PlanetIn(BaseModel):
    """
    New planet. Exactly one of angular_separation_arcsec (resolved against
    the star's distance) or orbital_distance_au (used as-is) must be given.
    """
    star_id: int
    planet_name: str = Field(min_length=1)
    planet_type: str = Field(min_length=1)
    angular_separation_arcsec: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    orbital_distance_au: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def one_distance_mode(self):
        if (self.angular_separation_arcsec is None) == (self.orbital_distance_au is None):
            raise ValueError("Provide exactly one of angular_separation_arcsec or orbital_distance_au")
        return self

class PlanetUpdate(BaseModel):
    planet_name: str = Field(min_length=1)
    planet_type: str = Field(min_length=1)
    orbital_distance_au: float = Field(gt=0, allow_inf_nan=False)

class RecomputeRequest(BaseModel):
    angular_separation_arcsec: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)

class PlanetOut(BaseModel):
    planet_id: int
    star_id: int
    planet_name: str
    planet_type: str
    angular_separation_arcsec: Optional[float] = None
    discovery_method: Optional[str] = None
    discovery_date: Optional[date] = None

    class Config:
        from_attributes = True

class ObservationOut(BaseModel):
    observation_id: int
    planet_id: int
    observation_date: date
    orbital_distance_au: float
    habitability_classification: HabitabilityClass
    user_id: Optional[int] = None
    angular_separation_as: Optional[float] = None

    class Config:
        from_attributes = True

class EvaluationOut(BaseModel):
    planet_id: int
    observation_id: int
    observation_date: date
    orbital_distance_au: float
    habitability_classification: HabitabilityClass
    angular_separation_used: Optional[float] = None

    class Config:
        from_attributes = True

class PlanetWithObservationOut(BaseModel):
    planet: PlanetOut
    observation: EvaluationOut


def get_evaluator(db: Session = Depends(get_db)) -> HabitabilityEvaluator:
    return HabitabilityEvaluator(CatalogStore(db))


@router.get("/{planet_id}", response_model=PlanetOut)
def read_planet(planet_id: int, db: Session = Depends(get_db)):
    return CatalogStore(db).get_planet(planet_id)


@router.get("/{planet_id}/observations", response_model=List[ObservationOut])
def read_observations(planet_id: int, db: Session = Depends(get_db)):
    """Observation history, newest first."""
    return CatalogStore(db).list_observations(planet_id)


@router.post("/", response_model=PlanetWithObservationOut, status_code=status.HTTP_201_CREATED)
def create_planet(
    req: PlanetIn,
    evaluator: HabitabilityEvaluator = Depends(get_evaluator),
    user: User = Depends(require_researcher),
):
    """Create a planet together with its first observation."""
    return catalog.create_planet(evaluator, user.user_id, **req.model_dump())


@router.put("/{planet_id}", response_model=PlanetWithObservationOut)
def update_planet(
    planet_id: int,
    req: PlanetUpdate,
    evaluator: HabitabilityEvaluator = Depends(get_evaluator),
    user: User = Depends(require_researcher),
):
    return catalog.update_planet(evaluator, user.user_id, planet_id, **req.model_dump())


@router.post("/{planet_id}/calculate", response_model=EvaluationOut, status_code=status.HTTP_201_CREATED)
def calculate_habitability(
    planet_id: int,
    req: Optional[RecomputeRequest] = None,
    evaluator: HabitabilityEvaluator = Depends(get_evaluator),
    user: User = Depends(require_researcher),
):
    """
    Recompute habitability from angular separation.

    Inserts today's observation or updates it in place if one already exists.
    """
    angular_separation = req.angular_separation_arcsec if req else None
    return catalog.recompute_planet(evaluator, user.user_id, planet_id, angular_separation)
