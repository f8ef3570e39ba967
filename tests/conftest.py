import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from bimdb.config import Settings, get_settings
from bimdb.db import get_db
from bimdb.main import app
from bimdb.models import Base
from bimdb.schemas import VehicleFields
from bimdb.services import vehicles as vehicles_service


@pytest.fixture()
def engine(tmp_path):
    db_path = tmp_path / "test.db"
    engine = create_engine(
        f"sqlite+pysqlite:///{db_path}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def SessionLocal(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(SessionLocal):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def settings(tmp_path):
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    return Settings(static_path=str(static_dir))


@pytest.fixture()
def client(SessionLocal, settings):
    def override_get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_vehicle(db_session):
    def _make_vehicle(company="ACME", vehicle_number="101", **overrides):
        values = {
            "company": company,
            "vehicle_number": vehicle_number,
            "type_code": "T1",
            "vehicle_class": "Tram",
        }
        values.update(overrides)
        return vehicles_service.create_vehicle(db_session, VehicleFields(**values))

    return _make_vehicle


def vehicle_form(**overrides) -> dict[str, str]:
    form = {
        "company": "ACME",
        "veh-number": "101",
        "type-code": "T1",
        "veh-class": "Tram",
        "other-data": "{}",
    }
    form.update(overrides)
    return form
