import os

# Settings are read at import time; point them at SQLite before booking_api loads
os.environ.setdefault("database_url", "sqlite://")
os.environ.setdefault("log_format", "text")

from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event, func
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from booking_api.core.i18n import Messages
from booking_api.db import database
from booking_api.db.models import Base, Order, Service, Transfer
from booking_api.services.storage import get_storage


class CountingSession(Session):
    """Session that records how many times it was released."""
    closed = 0

    def close(self):
        type(self).closed += 1
        super().close()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    CountingSession.closed = 0
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=CountingSession)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def messages():
    return Messages("pt-BR")


@pytest.fixture
def storage():
    """Backup storage double; uploads always succeed."""
    mock = MagicMock()
    mock.save_json.return_value = {"success": True, "path": "reservations/web/1.json"}
    return mock


@pytest.fixture
def counts(session_factory):
    """Row counts read through a fresh session."""
    def _counts():
        session = session_factory()
        try:
            return {
                "orders": session.query(func.count(Order.id)).scalar(),
                "services": session.query(func.count(Service.id)).scalar(),
                "transfers": session.query(func.count(Transfer.id)).scalar(),
            }
        finally:
            session.close()
    return _counts


@pytest.fixture
def client(session_factory, storage, monkeypatch):
    """TestClient using the real get_db on the test engine."""
    from booking_api.main import app

    monkeypatch.setattr(database, "SessionLocal", session_factory)
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Payload factories
# ---------------------------------------------------------------------------

def _period(days_ahead=30, nights=5):
    start = date.today() + timedelta(days=days_ahead)
    return {"start": start.isoformat(), "end": (start + timedelta(days=nights)).isoformat()}


@pytest.fixture
def make_pax():
    def _make(first="Maria", last="Silva", main=False, **overrides):
        pax = {
            "main": main,
            "firstName": first,
            "lastName": last,
            "email": f"{first.lower()}@example.com",
            "document": {"type": "CPF", "number": "12345678900"},
            "birthdate": "1985-04-12",
            "gender": "F",
            "ageGroup": "adult",
        }
        pax.update(overrides)
        return pax
    return _make


@pytest.fixture
def make_room():
    def _make(identifier="ROOM-1", **overrides):
        room = {
            "identifier": identifier,
            "period": _period(),
            "supplier": {"id": 10, "name": "Hotel Atlantico"},
            "pax": {"adult": 2},
            "assigned": ["PAX1", "PAX2"],
            "room": {
                "category": {"code": "STD", "value": "Standard"},
                "capacity": {"code": "DBL", "value": "Duplo"},
            },
            "board": {"code": "1"},
            "price": 1200.0,
        }
        room.update(overrides)
        return room
    return _make


@pytest.fixture
def make_stopover():
    def _make(departure="2030-03-10T09:00:00", arrival="2030-03-10T10:30:00", **overrides):
        stopover = {
            "perimeter_id": 3,
            "origin": {"name": "GRU Airport", "city": "Guarulhos", "iata": "GRU"},
            "destination": {"name": "Hotel Atlantico", "city": "Sao Paulo"},
            "estimated": {"departure": departure, "arrival": arrival},
            "driver": {"name": "Joao", "phone": "+55 11 99999-0000"},
            "vehicle": {"name": "Van", "capacity": 8},
            "assigned": ["PAX1"],
            "mode": "private",
        }
        stopover.update(overrides)
        return stopover
    return _make


@pytest.fixture
def make_transfer(make_stopover):
    def _make(identifier="TRF-1", stopovers=None, **overrides):
        transfer = {
            "identifier": identifier,
            "period": _period(),
            "supplier": {"id": 20, "name": "Transfer Co"},
            "price": 150.0,
            "stopover": [make_stopover()] if stopovers is None else stopovers,
        }
        transfer.update(overrides)
        return transfer
    return _make


@pytest.fixture
def make_booking(make_pax, make_room):
    """Valid create block; ``service`` defaults to one room."""
    def _make(identifier="RES-1001", service=None, pax=None, **overrides):
        booking = {
            "identifier": identifier,
            "type": "sale",
            "language": "pt-br",
            "currency": "BRL",
            "status": "pending",
            "period": _period(),
            "channel": {"name": "web"},
            "attendant": {"id": 7, "firstName": "Ana", "lastName": "Souza"},
            "user": {"id": 3, "firstName": "Carlos", "lastName": "Lima"},
            "customer": {"id": 99, "firstName": "Maria", "lastName": "Silva"},
            "total": {"service": {"price": 1200.0, "discount": 0}, "total": 1200.0},
            "pax": pax if pax is not None else {
                "PAX1": make_pax(main=True),
                "PAX2": make_pax(first="Pedro"),
            },
            "service": service if service is not None else {"room": [make_room()]},
        }
        booking.update(overrides)
        return booking
    return _make
