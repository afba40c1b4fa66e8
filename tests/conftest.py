"""Shared test fixtures for the FleetGate test suite.

Tests run against an in-memory SQLite database shared through a single
connection. Tables are created before and dropped after every test, so
each test starts from an empty schema.
"""

import os

# Use the in-memory database and plain-text logs before any package imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FORMAT"] = "text"

import pytest

from fleetgate.core.config import Settings
from fleetgate.database import Base, SessionLocal, engine, init_db
from fleetgate.models import Account, Device, DeviceGroup, DeviceListEntry, GroupList, User
from fleetgate.services import DeviceAuthorizationService


@pytest.fixture(autouse=True)
def _schema():
    """Create every table before the test and drop them afterwards."""
    init_db(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


def make_settings(**overrides) -> Settings:
    return Settings(database_url="sqlite://", log_format="text", **overrides)


@pytest.fixture()
def service(db):
    """Resolver with default policy: preferred device off, default authorization on."""
    return DeviceAuthorizationService(db, make_settings())


def _write_group_list(db, user: User, *group_ids: str) -> None:
    for sequence, group_id in enumerate(group_ids):
        db.add(GroupList(account_id=user.account_id, user_id=user.user_id, group_id=group_id, sequence=sequence))
    db.commit()


@pytest.fixture()
def assign_groups(db):
    """Write GroupList rows directly, bypassing set_device_groups()."""
    return lambda user, *group_ids: _write_group_list(db, user, *group_ids)


@pytest.fixture()
def fleet(db):
    """Account "acme" with four devices, three groups and four users.

    Devices:
        dev1, dev2 -- active, reporting GPS
        dev3       -- active, never reported GPS
        dev4       -- inactive
    Groups:
        fleet1 -- dev1, dev2
        fleet2 -- dev3, dev4
        spare  -- empty
    Users:
        admin, bob (fleet1), carol (no groups), dave (fleet2, prefers dev1)

    The account's default_device_authorization is False so users without
    groups see nothing unless a test changes it.
    """
    account = Account(account_id="acme", description="Acme Logistics", default_device_authorization=False)
    db.add(account)
    db.add_all([
        Device(account_id="acme", device_id="dev1", unique_id="imei-1", description="Truck 1", short_name="T1",
               last_gps_timestamp=1700000000),
        Device(account_id="acme", device_id="dev2", unique_id="imei-2", description="Truck 2", short_name="T2",
               last_gps_timestamp=1700000000),
        Device(account_id="acme", device_id="dev3", unique_id="imei-3", description="Van 3", short_name="V3",
               last_gps_timestamp=0),
        Device(account_id="acme", device_id="dev4", unique_id="imei-4", description="Van 4", short_name="V4",
               is_active=False, last_gps_timestamp=1700000000),
    ])
    db.add_all([
        DeviceGroup(account_id="acme", group_id="fleet1", description="North Fleet"),
        DeviceGroup(account_id="acme", group_id="fleet2", description="South Fleet"),
        DeviceGroup(account_id="acme", group_id="spare", description=""),
    ])
    db.flush()
    db.add_all([
        DeviceListEntry(account_id="acme", group_id="fleet1", device_id="dev1"),
        DeviceListEntry(account_id="acme", group_id="fleet1", device_id="dev2"),
        DeviceListEntry(account_id="acme", group_id="fleet2", device_id="dev3"),
        DeviceListEntry(account_id="acme", group_id="fleet2", device_id="dev4"),
    ])
    users = {
        "admin": User(account_id="acme", user_id="admin", description="Administrator"),
        "bob": User(account_id="acme", user_id="bob", description="Bob"),
        "carol": User(account_id="acme", user_id="carol", description="Carol"),
        "dave": User(account_id="acme", user_id="dave", description="Dave", preferred_device_id="dev1"),
    }
    db.add_all(users.values())
    db.commit()

    _write_group_list(db, users["bob"], "fleet1")
    _write_group_list(db, users["dave"], "fleet2")

    return {"account": account, **users}
