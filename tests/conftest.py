"""Shared pytest fixtures for taxiledger tests."""

import os
import tempfile
from datetime import date, datetime
from decimal import Decimal

import pytest

from taxiledger.database.factories import create_sqlite_database
from taxiledger.domain.entities import CabType, ShiftType
from taxiledger.domain.fleet import FleetService
from taxiledger.domain.lease import LeasePlanService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def fleet_service(temp_db):
    """Create a FleetService with a temporary database."""
    return FleetService(temp_db)


@pytest.fixture
def fleet(temp_db, fleet_service):
    """Two owners with one cab each and a non-owner driver.

    Cab 101 (both shifts) belongs to owner O100, cab 202 to owner O200.
    """
    alice = fleet_service.register_driver("O100", "Alice", "Owner", is_owner=True)
    bob = fleet_service.register_driver("O200", "Bob", "Owner", is_owner=True)
    dan = fleet_service.register_driver("D300", "Dan", "Driver")

    cab_101 = fleet_service.register_cab("101", alice, date(2024, 1, 1))
    cab_202 = fleet_service.register_cab("202", bob, date(2024, 1, 1))

    return {
        "alice": alice,
        "bob": bob,
        "dan": dan,
        "cab_101": cab_101,
        "cab_202": cab_202,
        "day_101": temp_db.get_cab_shift_by_cab_number("101", ShiftType.DAY).id,
        "night_101": temp_db.get_cab_shift_by_cab_number("101", ShiftType.NIGHT).id,
        "day_202": temp_db.get_cab_shift_by_cab_number("202", ShiftType.DAY).id,
        "night_202": temp_db.get_cab_shift_by_cab_number("202", ShiftType.NIGHT).id,
    }


@pytest.fixture
def lease_plan(temp_db):
    """Active lease plan from 2024: sedan DAY 60.00, NIGHT 70.00, both 0.25 per mile."""
    service = LeasePlanService(temp_db)
    plan_id = service.create_plan("Standard 2024", date(2024, 1, 1))
    service.add_weekly_rates(plan_id, CabType.SEDAN, False, ShiftType.DAY, Decimal("60.00"), Decimal("0.25"))
    service.add_weekly_rates(plan_id, CabType.SEDAN, False, ShiftType.NIGHT, Decimal("70.00"), Decimal("0.25"))
    return plan_id


@pytest.fixture
def drive(fleet_service):
    """Record a completed driven shift starting at 06:00 on the given day."""

    def _drive(driver_number, cab_number, shift_type, day, miles=None, **kwargs):
        return fleet_service.record_driven_shift(
            driver_number=driver_number,
            cab_number=cab_number,
            shift_type=shift_type,
            logon_time=datetime(day.year, day.month, day.day, 6, 0),
            logoff_time=datetime(day.year, day.month, day.day, 17, 0),
            total_distance=Decimal(miles) if miles is not None else None,
            **kwargs,
        )

    return _drive


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
