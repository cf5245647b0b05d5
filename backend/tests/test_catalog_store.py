"""
Store-level tests against a real SQLite database: the conflict-aware
observation upsert, error translation and the atomic unit of work.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
import threading

import pytest
from sqlalchemy.exc import DBAPIError, DataError, OperationalError

from exoatlas.core.errors import ConflictError, NotFoundError, StoreError, StoreUnavailableError
from exoatlas.models import Observation, Planet
from exoatlas.models.observation import HabitabilityClass
from exoatlas.services import catalog
from exoatlas.services.catalog_store import CatalogStore, translate_store_errors
from exoatlas.services.evaluator import HabitabilityEvaluator

TODAY = date(2026, 10, 17)


@pytest.fixture
def store(db_session):
    return CatalogStore(db_session)


@pytest.fixture
def planet(store, researcher):
    def work(s):
        star = s.add_star(star_name="Sol B", distance_ly=10.0, luminosity=1.0, spectral_type="G2V")
        return s.add_planet(star_id=star.star_id, planet_name="b", planet_type="Rocky", angular_separation_arcsec=0.1)
    return store.atomic(work)


def _count(db, planet_id, day=TODAY):
    return db.query(Observation).filter(
        Observation.planet_id == planet_id, Observation.observation_date == day
    ).count()


class TestUpsertObservation:
    def test_inserts_when_absent(self, store, planet, researcher, db_session):
        obs = store.upsert_observation(planet.planet_id, TODAY, 0.3066, HabitabilityClass.TOO_HOT, 0.1, researcher.user_id)
        db_session.commit()
        assert obs.observation_id is not None
        assert obs.habitability_classification == "Too Hot"
        assert _count(db_session, planet.planet_id) == 1

    def test_same_day_overwrites_in_place(self, store, planet, researcher, db_session):
        first = store.upsert_observation(planet.planet_id, TODAY, 0.3066, HabitabilityClass.TOO_HOT, 0.1, researcher.user_id)
        db_session.commit()

        second = store.upsert_observation(planet.planet_id, TODAY, 1.2, HabitabilityClass.INSIDE_HZ, None, None)
        db_session.commit()

        assert _count(db_session, planet.planet_id) == 1
        assert second.observation_id == first.observation_id
        assert second.habitability_classification == "Inside HZ"
        assert second.orbital_distance_au == 1.2
        assert second.angular_separation_as is None
        assert second.user_id == researcher.user_id

    def test_new_day_adds_row(self, store, planet, researcher, db_session):
        store.upsert_observation(planet.planet_id, TODAY, 0.3, HabitabilityClass.TOO_HOT, 0.1, researcher.user_id)
        store.upsert_observation(planet.planet_id, TODAY + timedelta(days=1), 0.3, HabitabilityClass.TOO_HOT, 0.1, researcher.user_id)
        db_session.commit()
        assert len(store.list_observations(planet.planet_id)) == 2
        # Newest first
        assert store.list_observations(planet.planet_id)[0].observation_date == TODAY + timedelta(days=1)

    def test_concurrent_reconciles_leave_one_row(self, session_factory, planet, researcher):
        barrier = threading.Barrier(2)

        def reconcile(distance):
            db = session_factory()
            try:
                store = CatalogStore(db)
                barrier.wait()
                evaluator = HabitabilityEvaluator(store, today=lambda: TODAY)
                return store.atomic(lambda s: evaluator.evaluate_direct(planet.planet_id, distance, researcher.user_id))
            finally:
                db.close()

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(reconcile, [0.5, 1.2]))

        assert {r.observation_id for r in results} == {results[0].observation_id}

        db = session_factory()
        try:
            rows = db.query(Observation).filter(Observation.planet_id == planet.planet_id).all()
            assert len(rows) == 1
            assert rows[0].orbital_distance_au in (0.5, 1.2)
        finally:
            db.close()


class TestStoreErrors:
    def test_unknown_star(self, store):
        with pytest.raises(NotFoundError) as exc:
            store.get_star(404)
        assert exc.value.key == 404
        assert exc.value.to_dict()["entity"] == "star"

    def test_unknown_planet_inputs(self, store):
        with pytest.raises(NotFoundError):
            store.get_evaluation_inputs(404)

    def test_observations_for_unknown_planet(self, store):
        with pytest.raises(NotFoundError):
            store.list_observations(404)

    def test_duplicate_planet_name_is_conflict(self, store, planet, db_session):
        with pytest.raises(ConflictError) as exc:
            store.atomic(lambda s: s.add_planet(star_id=planet.star_id, planet_name="b", planet_type="Gas Giant"))
        assert exc.value.context["planet_name"] == "b"
        assert db_session.query(Planet).count() == 1

    def test_transient_failure_is_retried(self, store):
        calls = []

        def flaky(s):
            calls.append(1)
            if len(calls) < 2:
                raise StoreUnavailableError("connection reset")
            return "ok"

        assert store.atomic(flaky) == "ok"
        assert len(calls) == 2

    def test_retries_exhausted(self, store, monkeypatch):
        monkeypatch.setattr("exoatlas.services.catalog_store.settings.STORE_RETRY_ATTEMPTS", 2)

        def down(s):
            raise StoreUnavailableError("connection refused")

        with pytest.raises(StoreUnavailableError):
            store.atomic(down)

    def test_operational_error_translated(self, store, monkeypatch):
        def boom(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

        monkeypatch.setattr(store.db, "query", boom)
        with pytest.raises(StoreUnavailableError):
            store.get_star(1)

    def test_data_error_is_not_retried(self, store):
        calls = []

        def bad_data(s):
            calls.append(1)
            with translate_store_errors():
                raise DataError("INSERT", {}, Exception("numeric field overflow"))

        with pytest.raises(StoreError) as exc:
            store.atomic(bad_data)
        assert not isinstance(exc.value, StoreUnavailableError)
        assert len(calls) == 1

    def test_invalidated_connection_is_transient(self):
        with pytest.raises(StoreUnavailableError):
            with translate_store_errors():
                raise DBAPIError("SELECT 1", {}, Exception("connection reset"), connection_invalidated=True)

    def test_unsupported_dialect_is_not_retried(self, store, planet, researcher, monkeypatch):
        monkeypatch.setattr("exoatlas.services.catalog_store._UPSERT_DIALECTS", {})
        calls = []

        def reconcile(s):
            calls.append(1)
            return s.upsert_observation(planet.planet_id, TODAY, 1.0, HabitabilityClass.INSIDE_HZ, None, researcher.user_id)

        with pytest.raises(StoreError) as exc:
            store.atomic(reconcile)
        assert exc.value.context["dialect"] == "sqlite"
        assert len(calls) == 1


class TestCreatePlanetUnit:
    def test_planet_and_first_observation_commit_together(self, store, researcher, db_session):
        star = catalog.create_star(store, star_name="Kepler-X", distance_ly=10.0, luminosity=4.0)
        evaluator = HabitabilityEvaluator(store, today=lambda: TODAY)

        created = catalog.create_planet(
            evaluator, researcher.user_id, star.star_id, "Kepler-X b", "Rocky", angular_separation_arcsec=1.0,
        )

        obs = created["observation"]
        assert obs.planet_id == created["planet"].planet_id
        assert obs.orbital_distance_au == pytest.approx(3.0660)
        assert obs.habitability_classification is HabitabilityClass.INSIDE_HZ
        assert _count(db_session, obs.planet_id) == 1

    def test_failed_evaluation_rolls_back_planet(self, store, researcher, db_session, monkeypatch):
        star = catalog.create_star(store, star_name="Kepler-Y", distance_ly=10.0, luminosity=4.0)
        evaluator = HabitabilityEvaluator(store, today=lambda: TODAY)

        def fail(*args, **kwargs):
            raise StoreUnavailableError("write failed")

        monkeypatch.setattr(store, "upsert_observation", fail)
        monkeypatch.setattr("exoatlas.services.catalog_store.settings.STORE_RETRY_ATTEMPTS", 1)

        with pytest.raises(StoreUnavailableError):
            catalog.create_planet(evaluator, researcher.user_id, star.star_id, "Kepler-Y b", "Rocky", orbital_distance_au=1.0)

        assert db_session.query(Planet).filter(Planet.planet_name == "Kepler-Y b").count() == 0
        assert db_session.query(Observation).count() == 0

    def test_unknown_star(self, store, researcher):
        evaluator = HabitabilityEvaluator(store)
        with pytest.raises(NotFoundError):
            catalog.create_planet(evaluator, researcher.user_id, 404, "ghost", "Rocky", orbital_distance_au=1.0)
