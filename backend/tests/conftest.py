from __future__ import annotations

import datetime as dt
import tempfile
from pathlib import Path
from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from berichtsheft import models
from berichtsheft.config import settings
from berichtsheft.database import get_db
from berichtsheft.main import app
from berichtsheft.services import seed_training_professions


@pytest.fixture(scope="session")
def temp_db_path() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "test.db"
        yield path


@pytest.fixture(scope="session")
def engine(temp_db_path: Path):
    url = f"sqlite:///{temp_db_path}"
    engine = create_engine(url, connect_args={"check_same_thread": False}, future=True)
    models.Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionTesting = sessionmaker(bind=connection, autoflush=False, autocommit=False, future=True)
    session = SessionTesting()
    seed_training_professions(session)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture(scope="function")
def client(session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(client: TestClient) -> Dict[str, str]:
    resp = client.post("/auth/register", json={"email": "azubi@example.com", "password": "geheim123"})
    assert resp.status_code == 201
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture()
def training_start() -> dt.date:
    return dt.date(2024, 9, 2)


@pytest.fixture()
def configured_user(client: TestClient, auth_headers: Dict[str, str], training_start: dt.date) -> Dict[str, str]:
    professions = client.get("/training-professions", params={"search": "Anwendungsentwicklung"}).json()["professions"]
    payload = {
        "name": "Lena",
        "surname": "Vogel",
        "training_profession_id": professions[0]["id"],
        "training_class": "FIA24",
        "training_start_date": training_start.isoformat(),
        "department": "Entwicklung",
    }
    resp = client.put("/user/settings", json=payload, headers=auth_headers)
    assert resp.status_code == 200
    return auth_headers


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "password_rounds", 4)
