"""
Seed a local catalog with a researcher account and a few nearby systems.

Usage:
    python scripts/seed_catalog.py
"""
import sys
import os
sys.path.append(os.getcwd())

import logging

from exoatlas.api.endpoints.auth import hash_password
from exoatlas.core.errors import ConflictError
from exoatlas.db.session import SessionLocal, engine, create_tables
from exoatlas.models.user import User, UserRole
from exoatlas.services import catalog
from exoatlas.services.catalog_store import CatalogStore
from exoatlas.services.evaluator import HabitabilityEvaluator

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("seed_catalog")

SYSTEMS = [
    {
        "star": {"star_name": "Tau Ceti", "distance_ly": 11.9, "luminosity": 0.52, "spectral_type": "G8V"},
        "planets": [
            {"planet_name": "Tau Ceti e", "planet_type": "Super-Earth", "orbital_distance_au": 0.538},
            {"planet_name": "Tau Ceti f", "planet_type": "Super-Earth", "orbital_distance_au": 1.334},
        ],
    },
    {
        "star": {"star_name": "Epsilon Eridani", "distance_ly": 10.5, "luminosity": 0.34, "spectral_type": "K2V"},
        "planets": [
            {"planet_name": "Epsilon Eridani b", "planet_type": "Gas Giant", "angular_separation_arcsec": 1.08},
        ],
    },
]


def seed():
    create_tables(engine)
    db = SessionLocal()
    try:
        researcher = db.query(User).filter(User.username == "seed-researcher").first()
        if researcher is None:
            researcher = User(
                username="seed-researcher",
                password_hash=hash_password(os.getenv("SEED_PASSWORD", "change-me")),
                role=UserRole.RESEARCHER.value,
            )
            db.add(researcher)
            db.commit()

        store = CatalogStore(db)
        evaluator = HabitabilityEvaluator(store)
        for system in SYSTEMS:
            star = catalog.create_star(store, **system["star"])
            for planet in system["planets"]:
                try:
                    created = catalog.create_planet(evaluator, researcher.user_id, star.star_id, **planet)
                    obs = created["observation"]
                    logger.info(f"{planet['planet_name']}: {obs.orbital_distance_au} AU, {obs.habitability_classification.value}")
                except ConflictError as e:
                    logger.warning(f"Skipping {planet['planet_name']}: {e}")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
