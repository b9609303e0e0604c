"""Tests for business-hours editing, slot preview/day/calendar endpoints and health."""
from datetime import date, timedelta

from app.config import settings
from app.models.generated import Appointments
from app.redis_client import get_redis
from app.main import app


def next_weekday(weekday, start=None):
    d = (start or date.today()) + timedelta(days=1)
    while d.weekday() != weekday:
        d += timedelta(days=1)
    return d


VALID = {
    "start_time": "09:00",
    "end_time": "12:00",
    "lunch_start": "12:00",
    "lunch_end": "13:00",
    "consultation_duration": 60,
    "interval_between": 0,
    "enable_lunch_break": False,
    "allow_weekends": False,
    "available_days": ["monday", "wednesday"],
}


class TestBusinessHours:

    def test_defaults_before_first_save(self, client):
        r = client.get("/business-hours/")
        assert r.status_code == 200
        assert r.json()["start_time"] == "08:00"
        assert r.json()["available_days"] == ["monday", "tuesday", "wednesday", "thursday", "friday"]

    def test_admin_saves_policy(self, client, admin_headers):
        r = client.put("/business-hours/", json=VALID, headers=admin_headers)
        assert r.status_code == 200

        assert client.get("/business-hours/").json() == VALID

    def test_invalid_policy_reports_field(self, client, admin_headers):
        r = client.put(
            "/business-hours/",
            json={**VALID, "end_time": "08:00"},
            headers=admin_headers,
        )
        assert r.status_code == 422
        assert r.json()["field"] == "end_time"

    def test_invalid_lunch_when_enabled(self, client, admin_headers):
        r = client.put(
            "/business-hours/",
            json={**VALID, "enable_lunch_break": True, "lunch_start": "13:00", "lunch_end": "12:00"},
            headers=admin_headers,
        )
        assert r.status_code == 422
        assert r.json()["field"] == "lunch_end"

    def test_requires_admin(self, client, make_user):
        _, headers = make_user()
        assert client.put("/business-hours/", json=VALID, headers=headers).status_code == 403
        assert client.put("/business-hours/", json=VALID).status_code == 401


class TestSlotsPreview:

    def test_default_policy(self, client):
        r = client.post("/slots/preview", json={})
        assert r.json()["total_slots"] == 12
        assert r.json()["slots"][5] == "13:00"

    def test_posted_policy(self, client):
        r = client.post("/slots/preview", json=VALID)
        assert r.json() == {"slots": ["09:00", "10:00", "11:00"], "total_slots": 3}

    def test_malformed_time_yields_no_slots(self, client):
        r = client.post("/slots/preview", json={**VALID, "start_time": "9am"})
        assert r.status_code == 200
        assert r.json() == {"slots": [], "total_slots": 0}


class TestSlotsDay:

    def test_day_with_booking(self, client, db, make_user):
        user, _ = make_user()
        monday = next_weekday(0)
        db.add(Appointments(user_id=user.id, date=monday.isoformat(), time="08:45"))
        db.add(Appointments(user_id=user.id, date=monday.isoformat(), time="09:30", status="CANCELLED"))
        db.commit()

        r = client.get("/slots/day", params={"date": monday.isoformat()})

        assert r.status_code == 200
        data = r.json()
        assert data["is_bookable_day"] is True
        assert data["consultation_duration"] == 30
        availability = {s["time"]: s["is_available"] for s in data["slots"]}
        assert availability["08:00"] is True
        assert availability["08:45"] is False
        assert availability["09:30"] is True

    def test_closed_day(self, client):
        saturday = next_weekday(5)
        r = client.get("/slots/day", params={"date": saturday.isoformat()})
        assert r.json()["is_bookable_day"] is False
        assert r.json()["slots"] == []

    def test_past_date(self, client):
        yesterday = date.today() - timedelta(days=1)
        assert client.get("/slots/day", params={"date": yesterday.isoformat()}).status_code == 400

    def test_beyond_horizon(self, client):
        far = date.today() + timedelta(days=settings.booking_horizon_days + 1)
        assert client.get("/slots/day", params={"date": far.isoformat()}).status_code == 400


class TestSlotsCalendar:

    def test_week(self, client):
        monday = next_weekday(0)
        sunday = monday + timedelta(days=6)

        r = client.get("/slots/calendar", params={"start_date": monday.isoformat(), "end_date": sunday.isoformat()})

        days = r.json()["days"]
        assert len(days) == 7
        assert [d["has_slots"] for d in days] == [True] * 5 + [False] * 2
        assert days[0]["open_slots_count"] == 12

    def test_range_is_clamped(self, client):
        today = date.today()
        r = client.get(
            "/slots/calendar",
            params={
                "start_date": (today - timedelta(days=10)).isoformat(),
                "end_date": (today + timedelta(days=1000)).isoformat(),
            },
        )
        data = r.json()
        assert data["start_date"] == today.isoformat()
        assert data["end_date"] == (today + timedelta(days=settings.booking_horizon_days)).isoformat()
        assert data["horizon_days"] == settings.booking_horizon_days


class TestHealth:

    def test_ok(self, client):
        assert client.get("/health").json() == {"status": "ok", "redis": True}

    def test_redis_down(self, client, broken_redis):
        app.dependency_overrides[get_redis] = lambda: broken_redis
        assert client.get("/health").json() == {"status": "ok", "redis": False}
