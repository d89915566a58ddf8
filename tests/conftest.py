"""Общие фикстуры: отдельная sqlite-база на каждый тест."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# до импорта app: никакого Postgres и файловых логов в тестах
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = ""
os.environ["AUTH_JWT_SECRET"] = "test-secret"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import init_db
from app.models.user import Profile, OwnerAccount, Role
from app.services.actors import resolve_actor


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


def add_profile(db, user_id, role, **fields):
    p = Profile(id=user_id, email=f"{user_id}@trucky.test", role=role, **fields)
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def customer(db):
    add_profile(db, "cust-1", Role.CUSTOMER, full_name="Asha", phone="9000000001")
    return resolve_actor(db, "cust-1")


@pytest.fixture
def other_customer(db):
    add_profile(db, "cust-2", Role.CUSTOMER, full_name="Ravi", phone="9000000002")
    return resolve_actor(db, "cust-2")


@pytest.fixture
def driver(db):
    add_profile(
        db, "drv-1", Role.DRIVER, full_name="Rajesh", phone="9000000011",
        driving_license="MH1420110023456", vehicle_number="MH12AB1234", vehicle_capacity=10,
    )
    return resolve_actor(db, "drv-1")


@pytest.fixture
def driver2(db):
    add_profile(
        db, "drv-2", Role.DRIVER, full_name="Sanjay", phone="9000000012",
        driving_license="KA0120150000001", vehicle_number="KA01CD5678", vehicle_capacity=16,
    )
    return resolve_actor(db, "drv-2")


@pytest.fixture
def owner(db):
    db.add(OwnerAccount(id="own-1", owner_name="Kiran", company_name="Kiran Logistics", total_trucks=3))
    db.commit()
    return resolve_actor(db, "own-1")
