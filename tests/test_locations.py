"""Последняя точка водителя: upsert, устаревшие отчёты, карта."""

import datetime as dt

import pytest

from app.errors import Conflict, StaleReport, ValidationFailed
from app.models.location import DriverLocation
from app.services import locations
from app.utils.timeutil import utcnow


def ago(**kw):
    return utcnow() - dt.timedelta(**kw)


class TestReport:
    def test_report_then_latest(self, db, driver):
        locations.report_location(db, driver.id, 18.52, 73.85)
        loc = locations.latest(db, driver.id)
        assert (loc.latitude, loc.longitude) == (18.52, 73.85)

    def test_one_row_per_driver(self, db, driver):
        locations.report_location(db, driver.id, 18.0, 73.0, ago(seconds=60))
        locations.report_location(db, driver.id, 18.1, 73.1, ago(seconds=30))
        assert db.query(DriverLocation).filter_by(driver_id=driver.id).count() == 1
        assert locations.latest(db, driver.id).latitude == 18.1

    def test_older_report_rejected(self, db, driver):
        locations.report_location(db, driver.id, 19.0, 72.8, ago(seconds=10))
        with pytest.raises(StaleReport):
            locations.report_location(db, driver.id, 18.0, 73.0, ago(seconds=40))
        loc = locations.latest(db, driver.id)
        assert (loc.latitude, loc.longitude) == (19.0, 72.8)

    def test_stale_report_is_a_conflict(self):
        assert issubclass(StaleReport, Conflict)

    def test_same_timestamp_overwrites(self, db, driver):
        ts = ago(seconds=5)
        locations.report_location(db, driver.id, 18.0, 73.0, ts)
        locations.report_location(db, driver.id, 18.5, 73.5, ts)
        assert locations.latest(db, driver.id).latitude == 18.5

    def test_aware_timestamp_is_normalized(self, db, driver):
        ts = dt.datetime.now(dt.timezone(dt.timedelta(hours=5, minutes=30))) - dt.timedelta(seconds=1)
        loc = locations.report_location(db, driver.id, 18.0, 73.0, ts)
        assert loc.updated_at.tzinfo is None
        assert abs((utcnow() - loc.updated_at).total_seconds()) < 60

    def test_future_timestamp_rejected(self, db, driver):
        with pytest.raises(ValidationFailed):
            locations.report_location(db, driver.id, 18.0, 73.0, utcnow() + dt.timedelta(hours=1))
        assert locations.latest(db, driver.id) is None

    @pytest.mark.parametrize("lat,lon", [(91, 0), (-91, 0), (0, 181), (0, -180.5), ("north", 0), (None, 0)])
    def test_bad_coordinates(self, db, driver, lat, lon):
        with pytest.raises(ValidationFailed):
            locations.report_location(db, driver.id, lat, lon)

    def test_numeric_strings_accepted(self, db, driver):
        loc = locations.report_location(db, driver.id, "18.52", "73.85")
        assert loc.latitude == 18.52

    def test_missing_driver(self, db):
        with pytest.raises(ValidationFailed):
            locations.report_location(db, "", 18.0, 73.0)


class TestRead:
    def test_latest_unknown_driver(self, db):
        assert locations.latest(db, "ghost") is None

    def test_list_recent_newest_first(self, db, driver, driver2):
        locations.report_location(db, driver.id, 18.0, 73.0, ago(minutes=2))
        locations.report_location(db, driver2.id, 12.9, 77.6, ago(seconds=5))
        assert [l.driver_id for l in locations.list_recent(db)] == [driver2.id, driver.id]
        assert len(locations.list_recent(db, limit=1)) == 1

    def test_fleet_map_includes_driver_contacts(self, db, driver):
        locations.report_location(db, driver.id, 18.0, 73.0, ago(minutes=10))
        locations.report_location(db, "unknown-driver", 12.0, 77.0, ago(seconds=1))

        items = {i["driver_id"]: i for i in locations.fleet_map(db)}
        assert items[driver.id]["driver"] == {"full_name": "Rajesh", "phone": "9000000011"}
        assert items[driver.id]["stale"] is True
        assert items["unknown-driver"]["driver"] == {"full_name": None, "phone": None}
        assert items["unknown-driver"]["stale"] is False

    def test_is_stale(self):
        now = utcnow()
        fresh = DriverLocation(driver_id="d", latitude=0, longitude=0, updated_at=now - dt.timedelta(seconds=30))
        old = DriverLocation(driver_id="d", latitude=0, longitude=0, updated_at=now - dt.timedelta(minutes=6))
        assert not locations.is_stale(fresh, now=now)
        assert locations.is_stale(old, now=now)
        assert not locations.is_stale(old, now=now, max_age=dt.timedelta(hours=1))
