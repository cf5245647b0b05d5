from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from exoatlas.db.session import get_db
from exoatlas.models.user import User
from exoatlas.services import catalog
from exoatlas.services.catalog_store import CatalogStore
from exoatlas.api.endpoints.auth import require_researcher
from exoatlas.api.endpoints.planets import PlanetOut
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

router = APIRouter()


class StarIn(BaseModel):
    star_name: str = Field(min_length=1)
    distance_ly: float = Field(gt=0, allow_inf_nan=False)
    luminosity: float = Field(gt=0, allow_inf_nan=False)
    spectral_type: Optional[str] = None

class StarUpdate(StarIn):
    spectral_type: str = Field(min_length=1)

class StarOut(BaseModel):
    star_id: int
    star_name: str
    distance_ly: float
    luminosity: float
    spectral_type: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class StarDetailOut(BaseModel):
    star: StarOut
    planets: List[PlanetOut]


@router.get("/", response_model=List[StarOut])
def read_stars(db: Session = Depends(get_db)):
    return CatalogStore(db).list_stars()


@router.get("/{star_id}", response_model=StarDetailOut)
def read_star(star_id: int, db: Session = Depends(get_db)):
    """Star with its planets, ordered by planet id."""
    store = CatalogStore(db)
    star = store.get_star(star_id)
    return {"star": star, "planets": store.list_planets(star_id)}


@router.post("/", response_model=StarOut, status_code=status.HTTP_201_CREATED)
def create_star(
    req: StarIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_researcher),
):
    return catalog.create_star(CatalogStore(db), **req.model_dump())


@router.put("/{star_id}", response_model=StarOut)
def update_star(
    star_id: int,
    req: StarUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_researcher),
):
    """Replace a star's fields. Planets pick up the new values on their next recompute."""
    return catalog.update_star(CatalogStore(db), star_id, **req.model_dump())
