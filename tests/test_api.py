import json
import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from api.dependencies import get_db, get_extractor, get_wizard_sessions
from api.config import get_settings
from api.main import create_app
from database.exceptions import DuplicateError, IntegrityError, NotFoundError
from llm.prompts import ExtractTarget
from llm.scorecard_extractor import ExtractionResult, extract_course_data
from models import (
    Bag,
    Course,
    Event,
    EventParticipantStatus,
    EventStatus,
    Hole,
    HoleScore,
    Profile,
    Round,
    Series,
    SeriesParticipant,
    SeriesParticipantStatus,
    TeeSet,
)
from wizard.sessions import WizardSessionStore

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def db():
    manager = MagicMock()
    manager.courses = AsyncMock()
    manager.series = AsyncMock()
    manager.events = AsyncMock()
    manager.equipment = AsyncMock()
    manager.profiles = AsyncMock()
    manager.rounds = AsyncMock()
    return manager


@pytest.fixture
def extractor():
    return MagicMock(return_value=ExtractionResult(success=True, data={"name": "Pebble Creek"}))


@pytest.fixture
def sessions():
    return WizardSessionStore(redirect_delay=0)


@pytest.fixture
def client(db, extractor, sessions):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_extractor] = lambda: extractor
    app.dependency_overrides[get_wizard_sessions] = lambda: sessions
    return TestClient(app)


def test_health_without_database(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "degraded", "database": False}


# ================================================================
# Courses
# ================================================================

def test_list_courses(client, db):
    db.courses.list_courses.return_value = [
        Course(id="c1", name="Pebble Creek", city="Austin", state="TX", is_active=False)
    ]
    response = client.get("/api/courses?active_only=true&limit=5")
    assert response.status_code == 200
    assert response.json() == [{
        "id": "c1", "name": "Pebble Creek", "location": "Austin, TX",
        "par": 72, "holes": 18, "is_active": False,
    }]
    db.courses.list_courses.assert_awaited_once_with(active_only=True, limit=5, offset=0)


def test_get_course_detail(client, db):
    tee = TeeSet(name="Blue", color="Blue")
    db.courses.fetch_course.return_value = Course(id="c1", name="Pebble Creek")
    db.courses.fetch_tee_sets.return_value = [tee]
    db.courses.fetch_holes.return_value = [Hole(id="h1", number=1, distances={tee.id: 400})]

    body = client.get("/api/courses/c1").json()
    assert body["course"]["name"] == "Pebble Creek"
    assert body["tee_sets"][0]["id"] == tee.id
    assert body["holes"][0]["distances"] == {tee.id: 400}


def test_get_missing_course(client, db):
    db.courses.fetch_course.return_value = None
    assert client.get("/api/courses/c1").status_code == 404


def test_create_course_accepts_camel_case(client, db):
    db.courses.create_course.return_value = Course(id="c1", name="Pebble Creek")
    response = client.post("/api/courses", json={
        "name": "Pebble Creek", "location": "Austin, TX",
        "phoneNumber": "555-0100", "amenities": "Range, Bar",
    })
    assert response.status_code == 201
    course = db.courses.create_course.call_args.args[0]
    assert course.phone_number == "555-0100"
    assert course.amenities == ["Range", "Bar"]


def test_create_course_requires_name(client, db):
    assert client.post("/api/courses", json={"location": "Austin"}).status_code == 422
    db.courses.create_course.assert_not_awaited()


def test_repository_errors_map_to_status(client, db):
    db.courses.update_course.side_effect = NotFoundError("Course c1 not found")
    response = client.put("/api/courses/c1", json={"name": "X"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Course c1 not found"

    db.courses.create_course.side_effect = DuplicateError("Course already exists")
    assert client.post("/api/courses", json={"name": "X"}).status_code == 409


def test_set_course_active(client, db):
    db.courses.set_course_active.return_value = Course(id="c1", name="X", is_active=False)
    response = client.patch("/api/courses/c1/active", json={"isActive": False})
    assert response.status_code == 200
    db.courses.set_course_active.assert_awaited_once_with("c1", False)


def test_delete_course(client, db):
    db.courses.delete_course.return_value = True
    assert client.delete("/api/courses/c1").status_code == 204
    db.courses.delete_course.return_value = False
    assert client.delete("/api/courses/c1").status_code == 404


def test_replace_holes_saves_holes_and_distances_together(client, db):
    db.courses.fetch_course.return_value = Course(id="c1", name="X")
    db.courses.save_scorecard.return_value = [Hole(id="h1", number=1, distances={"t1": 400})]

    response = client.put("/api/courses/c1/holes", json=[
        {"number": 1, "par": 4, "distances": {"t1": 400}},
        {"holeNumber": 2, "par": 3, "handicapIndex": 18},
    ])

    assert response.status_code == 200
    course_id, holes = db.courses.save_scorecard.await_args.args
    assert course_id == "c1"
    assert [(h.number, h.distances) for h in holes] == [(1, {"t1": 400}), (2, {})]
    db.courses.save_holes.assert_not_awaited()
    db.courses.save_distances.assert_not_awaited()


def test_replace_holes_with_foreign_tee_set_writes_nothing(client, db):
    db.courses.fetch_course.return_value = Course(id="c1", name="X")
    db.courses.save_scorecard.side_effect = IntegrityError(
        "Tee set t9 does not belong to course c1"
    )

    response = client.put("/api/courses/c1/holes", json=[
        {"number": 1, "distances": {"t9": 400}},
    ])

    assert response.status_code == 400
    db.courses.save_holes.assert_not_awaited()


def test_replace_holes_rejects_duplicate_numbers(client, db):
    db.courses.fetch_course.return_value = Course(id="c1", name="X")
    response = client.put("/api/courses/c1/holes", json=[{"number": 1}, {"number": 1}])
    assert response.status_code == 422
    db.courses.save_scorecard.assert_not_awaited()


# ================================================================
# Scorecard extraction
# ================================================================

def test_extract_scorecard(client, extractor):
    response = client.post(
        "/api/scorecard",
        files={"file": ("card.png", PNG, "image/png")},
        data={"extractType": "scorecard", "teeColors": json.dumps(["Blue", "White"])},
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    extractor.assert_called_once_with(PNG, "image/png", ExtractTarget.SCORECARD, ["Blue", "White"])


def test_extract_defaults_to_all(client, extractor):
    client.post("/api/scorecard", files={"file": ("card.jpg", PNG, "image/jpeg")})
    assert extractor.call_args.args[2] == ExtractTarget.ALL
    assert extractor.call_args.args[3] is None


def test_extract_rejects_non_image(client, extractor):
    response = client.post(
        "/api/scorecard", files={"file": ("card.pdf", b"%PDF", "application/pdf")}
    )
    assert response.status_code == 400
    extractor.assert_not_called()


def test_extract_requires_file(client, extractor):
    response = client.post("/api/scorecard", data={"extractType": "all"})
    assert response.status_code == 400
    assert response.json()["detail"] == "No file provided in form data"


def test_extract_unknown_type(client, extractor):
    response = client.post(
        "/api/scorecard",
        files={"file": ("card.png", PNG, "image/png")},
        data={"extractType": "everything"},
    )
    assert response.status_code == 400
    extractor.assert_not_called()


def test_extract_failure_status(client, extractor):
    extractor.return_value = ExtractionResult(success=False, error="unreadable", status_code=422)
    response = client.post("/api/scorecard", files={"file": ("card.png", PNG, "image/png")})
    assert response.status_code == 422
    assert response.json() == {"success": False, "error": "unreadable"}


# ================================================================
# Wizard sessions
# ================================================================

def test_wizard_happy_path(client, db, store):
    db.courses = store

    state = client.post("/api/wizard").json()
    sid = state["session_id"]
    assert state["active_step"] == 0
    assert state["step_title"] == "Basic Course Information"

    client.patch(f"/api/wizard/{sid}/course", json={"name": "Pebble Creek", "location": "Austin, TX"})
    state = client.post(f"/api/wizard/{sid}/submit").json()
    assert state["active_step"] == 1
    assert state["course_id"] in store.courses
    assert [n["message"] for n in state["notifications"]] == ["Course saved successfully"]
    assert client.get(f"/api/wizard/{sid}").json()["notifications"] == []

    client.put(f"/api/wizard/{sid}/tees", json=[{"name": "Blue", "color": "Blue", "slope": 135}])
    state = client.post(f"/api/wizard/{sid}/submit").json()
    assert state["active_step"] == 2
    assert len(state["holes"]) == 18
    assert state["totals"]["par"] == 72

    state = client.post(f"/api/wizard/{sid}/submit").json()
    assert state["success"] is True
    assert state["redirect_to"] == "/admin/courses"
    assert state["redirect_delay"] == 0


def test_wizard_blank_name_reports_error(client, db, store):
    db.courses = store
    sid = client.post("/api/wizard").json()["session_id"]
    state = client.post(f"/api/wizard/{sid}/submit").json()
    assert state["error"] == "Course name is required"
    assert state["field_errors"] == {"name": "Course name is required"}
    assert store.calls == []


def test_wizard_invalid_field(client, db, store):
    db.courses = store
    sid = client.post("/api/wizard").json()["session_id"]
    response = client.patch(f"/api/wizard/{sid}/course", json={"holes": 0})
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "holes"


def test_wizard_edit_mode_missing_course(client, db, store, sessions):
    db.courses = store
    response = client.post("/api/wizard", json={"course_id": "nope", "initial_step": 1})
    assert response.status_code == 404
    assert len(sessions) == 0


def test_wizard_unknown_session(client):
    assert client.get("/api/wizard/missing").status_code == 404
    assert client.post("/api/wizard/missing/submit").status_code == 404


def test_wizard_extract_fills_active_step(client, db, store, extractor):
    db.courses = store
    sid = client.post("/api/wizard").json()["session_id"]
    extractor.return_value = ExtractionResult(
        success=True, data={"name": "Pebble Creek", "location": "Austin, TX", "website": None},
    )

    response = client.post(
        f"/api/wizard/{sid}/extract", files={"file": ("card.png", PNG, "image/png")}
    )

    assert response.status_code == 200
    assert extractor.call_args.args[2] == ExtractTarget.COURSE_INFO
    form = response.json()["state"]["form"]
    assert (form["name"], form["city"], form["state"]) == ("Pebble Creek", "Austin", "TX")


def test_wizard_extract_failure_leaves_form(client, db, store, extractor):
    db.courses = store
    sid = client.post("/api/wizard").json()["session_id"]
    client.patch(f"/api/wizard/{sid}/course", json={"name": "Typed By Hand"})
    extractor.return_value = ExtractionResult(
        success=False, error="Error calling the vision model", status_code=502
    )

    response = client.post(
        f"/api/wizard/{sid}/extract", files={"file": ("card.png", PNG, "image/png")}
    )

    assert response.status_code == 502
    body = response.json()
    assert body["extraction"]["success"] is False
    assert body["state"]["form"]["name"] == "Typed By Hand"


def test_wizard_end_session(client, db, store):
    db.courses = store
    sid = client.post("/api/wizard").json()["session_id"]
    assert client.delete(f"/api/wizard/{sid}").status_code == 204
    assert client.delete(f"/api/wizard/{sid}").status_code == 404


def test_wizard_tee_with_malformed_id_is_rejected(client, db, store):
    db.courses = store
    sid = client.post("/api/wizard").json()["session_id"]
    response = client.put(f"/api/wizard/{sid}/tees", json=[{"id": "abc", "name": "Blue"}])
    assert response.status_code == 422
    assert client.get(f"/api/wizard/{sid}").json()["tee_sets"] == []


def test_wizard_session_ends_after_scorecard_saved(client, db, store, sessions):
    db.courses = store
    sid = client.post("/api/wizard").json()["session_id"]
    client.patch(f"/api/wizard/{sid}/course", json={"name": "Pebble Creek", "location": "Austin, TX"})
    client.post(f"/api/wizard/{sid}/submit")
    client.post(f"/api/wizard/{sid}/submit")
    assert len(sessions) == 1

    state = client.post(f"/api/wizard/{sid}/submit").json()

    assert state["success"] is True
    assert len(sessions) == 0
    assert client.get(f"/api/wizard/{sid}").status_code == 404


# ================================================================
# Series, events, profiles
# ================================================================

def test_series_update_rejects_reversed_dates(client, db):
    db.series.get_series.return_value = Series(
        id="s1", name="Summer", start_date=date(2026, 6, 1), end_date=date(2026, 8, 31)
    )
    response = client.put("/api/series/s1", json={"end_date": "2026-05-01"})
    assert response.status_code == 422
    db.series.update_series.assert_not_awaited()


def test_event_on_inactive_course(client, db):
    db.events.create_event.side_effect = IntegrityError("Course c1 is inactive")
    response = client.post("/api/events", json={
        "name": "Club Championship", "event_date": "2026-07-04", "course_id": "c1",
    })
    assert response.status_code == 400


def test_full_event_registration(client, db):
    db.events.register_participant.side_effect = IntegrityError("Event e1 is full (2 participants)")
    response = client.post("/api/events/e1/participants", json={"user_id": "u1"})
    assert response.status_code == 400
    assert "full" in response.json()["detail"]


def test_event_participant_update_is_scoped_to_event(client, db):
    db.events.update_participant.side_effect = NotFoundError(
        "Participant p1 not found in event e1"
    )
    response = client.patch("/api/events/e1/participants/p1", json={"status": "confirmed"})
    assert response.status_code == 404
    args, kwargs = db.events.update_participant.await_args
    assert args == ("e1", "p1")
    assert kwargs["status"] == EventParticipantStatus.CONFIRMED


def test_series_participant_update_is_scoped_to_series(client, db):
    db.series.update_participant_status.side_effect = NotFoundError(
        "Participant p1 not found in series s1"
    )
    response = client.patch("/api/series/s1/participants/p1", json={"status": "active"})
    assert response.status_code == 404
    db.series.update_participant_status.assert_awaited_once_with(
        "s1", "p1", SeriesParticipantStatus.ACTIVE
    )


def test_missing_profile(client, db):
    db.profiles.get_profile.return_value = None
    assert client.get("/api/profiles/u1").status_code == 404


def test_create_bag_passes_clubs(client, db):
    db.equipment.save_bag.return_value = Bag(id="b1", user_id="u1", name="Weekend")
    response = client.post("/api/profiles/u1/bags", json={"name": "Weekend", "club_ids": ["k1"]})
    assert response.status_code == 201
    bag = db.equipment.save_bag.call_args.args[0]
    assert (bag.user_id, bag.club_ids) == ("u1", ["k1"])


def test_start_event(client, db):
    db.events.start_event.return_value = Event(
        id="e1", name="Club Championship", event_date=date(2026, 7, 4),
        course_id="c1", status=EventStatus.IN_PROGRESS,
    )
    response = client.post("/api/events/e1/start")
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    db.events.start_event.assert_awaited_once_with("e1")


def test_start_event_twice_is_rejected(client, db):
    db.events.start_event.side_effect = IntegrityError(
        "Event e1 cannot be started from status in_progress"
    )
    assert client.post("/api/events/e1/start").status_code == 400


def test_event_rounds(client, db):
    db.events.get_event.return_value = Event(
        id="e1", name="Club Championship", event_date=date(2026, 7, 4), course_id="c1",
    )
    db.rounds.list_rounds.return_value = [
        Round(id="r1", user_id="u1", event_id="e1", course_id="c1", tee_set_id="t1")
    ]
    response = client.get("/api/events/e1/rounds")
    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == ["r1"]
    db.rounds.list_rounds.assert_awaited_once_with(event_id="e1", limit=100, offset=0)


def test_user_invitations(client, db):
    db.profiles.get_profile.return_value = Profile(id="u1", username="ace")
    db.series.list_user_invitations.return_value = [(
        SeriesParticipant(id="p1", series_id="s1", user_id="u1"),
        Series(id="s1", name="Summer", start_date=date(2026, 6, 1), end_date=date(2026, 8, 31)),
    )]
    response = client.get("/api/profiles/u1/invitations")
    assert response.status_code == 200
    [invitation] = response.json()
    assert invitation["participant"]["status"] == "invited"
    assert invitation["series"]["name"] == "Summer"
    db.series.list_user_invitations.assert_awaited_once_with("u1")


def test_invitations_for_missing_profile(client, db):
    db.profiles.get_profile.return_value = None
    assert client.get("/api/profiles/u1/invitations").status_code == 404
    db.series.list_user_invitations.assert_not_awaited()


# ================================================================
# Rounds
# ================================================================

def test_create_round_accepts_course_tee_id(client, db):
    db.rounds.create_round.side_effect = lambda r: r.model_copy(update={"id": "r1"})
    response = client.post("/api/rounds", json={
        "user_id": "u1", "course_id": "c1", "course_tee_id": "t1",
        "round_date": "2026-05-02",
        "scores": [{"hole_number": 1, "strokes": 5, "putts": 2}],
    })
    assert response.status_code == 201
    round_ = db.rounds.create_round.await_args.args[0]
    assert (round_.tee_set_id, round_.round_date) == ("t1", date(2026, 5, 2))
    assert [s.strokes for s in round_.scores] == [5]


def test_create_round_rejects_more_putts_than_strokes(client, db):
    response = client.post("/api/rounds", json={
        "user_id": "u1", "course_id": "c1", "tee_set_id": "t1",
        "scores": [{"hole_number": 1, "strokes": 3, "putts": 4}],
    })
    assert response.status_code == 422
    db.rounds.create_round.assert_not_awaited()


def test_round_for_event_not_in_progress(client, db):
    db.rounds.create_round.side_effect = IntegrityError("Event e1 is not in progress (upcoming)")
    response = client.post("/api/rounds", json={
        "user_id": "u1", "course_id": "c1", "tee_set_id": "t1", "event_id": "e1",
    })
    assert response.status_code == 400


def test_missing_round(client, db):
    db.rounds.get_round.return_value = None
    assert client.get("/api/rounds/r1").status_code == 404
    assert client.get("/api/rounds/r1/scores").status_code == 404


def test_scoring_a_hole_twice_conflicts(client, db):
    db.rounds.add_score.side_effect = DuplicateError("Hole 1 is already scored in round r1")
    response = client.post("/api/rounds/r1/scores", json={"hole_number": 1, "strokes": 4})
    assert response.status_code == 409


def test_update_score(client, db):
    db.rounds.update_score.return_value = HoleScore(
        id="s1", round_id="r1", hole_number=1, strokes=4, putts=1,
    )
    response = client.put("/api/rounds/r1/scores/s1", json={"strokes": 4, "putts": 1})
    assert response.status_code == 200
    db.rounds.update_score.assert_awaited_once_with("r1", "s1", strokes=4, putts=1)


def test_update_score_rejects_more_putts_than_strokes(client, db):
    response = client.put("/api/rounds/r1/scores/s1", json={"strokes": 2, "putts": 3})
    assert response.status_code == 422
    db.rounds.update_score.assert_not_awaited()


def test_remove_missing_score(client, db):
    db.rounds.remove_score.return_value = False
    assert client.delete("/api/rounds/r1/scores/s1").status_code == 404


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://admin.example.com, https://staging.example.com")
    monkeypatch.setenv("SCHEMA_CACHE_RETRIES", "5")
    monkeypatch.setenv("DB_STATEMENT_CACHE_SIZE", "0")
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()
    assert settings.cors_origins == ["https://admin.example.com", "https://staging.example.com"]
    assert settings.schema_cache_retries == 5
    assert settings.statement_cache_size == 0


def test_extractor_uses_configured_key_and_model(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "key-from-env")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    get_settings.cache_clear()
    try:
        extractor = get_extractor(get_settings())
    finally:
        get_settings.cache_clear()
    assert extractor.func is extract_course_data
    assert extractor.keywords == {"api_key": "key-from-env", "model": "gemini-test"}
