from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from exoatlas.db.session import get_db
from exoatlas.services.catalog_store import CatalogStore

router = APIRouter()


@router.get("/overview")
def get_overview_stats(db: Session = Depends(get_db)):
    """
    Catalog totals plus the habitability breakdown of each planet's
    most recent observation.
    """
    return CatalogStore(db).catalog_counts()
