from sqlalchemy import func, select

from classgrid.api.routes import timetable as timetable_routes
from classgrid.models.timetable import ScheduleStatus, TimetableEntry
from classgrid.services import generation

CLASS_URL = "/api/timetable/classes/Grade%2010A"
MONDAY_P1 = {"day": "Monday", "period": "Period 1"}


def _add_teacher(client, name, subjects):
    response = client.post("/api/teachers", json={"name": name, "subjects": subjects})
    assert response.status_code == 201
    return response.json()


def _assign(client, snapshot, slot, subject):
    response = client.post(
        "/api/timetable/grid/assign",
        json={"snapshot": snapshot, "slot": slot, "subject": subject},
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_assign_resolves_teacher_from_directory(client):
    _add_teacher(client, "Mrs. A", ["Mathematics"])

    body = _assign(client, {"className": "Grade 10A"}, MONDAY_P1, "Mathematics")

    assert body["snapshot"]["className"] == "Grade 10A"
    assert body["snapshot"]["timetable"] == {"Monday-Period 1": "Mathematics"}
    assert body["snapshot"]["teacherAssignments"] == {"Monday-Period 1": "Mrs. A"}
    assert body["teacherLoad"] == [{"teacherName": "Mrs. A", "totalPeriods": 1, "overloaded": False}]


def test_assign_with_request_roster_and_unmatched_subject(client):
    response = client.post(
        "/api/timetable/grid/assign",
        json={
            "slot": MONDAY_P1,
            "subject": "Art",
            "roster": [{"name": "Mrs. A", "subjects": ["Mathematics"]}],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["snapshot"]["timetable"] == {"Monday-Period 1": "Art"}
    assert body["snapshot"]["teacherAssignments"] == {}
    assert body["teacherLoad"] == []


def test_assign_on_break_slot_returns_400(client):
    response = client.post(
        "/api/timetable/grid/assign",
        json={"slot": {"day": "Monday", "period": "Long Break"}, "subject": "Mathematics"},
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"slot": "Monday-Long Break"}


def test_clear_and_override_endpoints(client):
    _add_teacher(client, "Mrs. A", ["Mathematics"])
    _add_teacher(client, "Dr. C", ["Mathematics"])
    snapshot = _assign(client, {}, MONDAY_P1, "Mathematics")["snapshot"]

    overridden = client.post(
        "/api/timetable/grid/override",
        json={"snapshot": snapshot, "slot": MONDAY_P1, "teacher": "Dr. C"},
    ).json()["snapshot"]
    assert overridden["teacherAssignments"] == {"Monday-Period 1": "Dr. C"}
    assert overridden["teacherOverrides"] == ["Monday-Period 1"]

    reassigned = _assign(client, overridden, MONDAY_P1, "Mathematics")["snapshot"]
    assert reassigned["teacherAssignments"] == {"Monday-Period 1": "Mrs. A"}
    assert reassigned["teacherOverrides"] == []

    restored = client.post(
        "/api/timetable/grid/override/clear",
        json={"snapshot": overridden, "slot": MONDAY_P1},
    ).json()["snapshot"]
    assert restored["teacherAssignments"] == {"Monday-Period 1": "Mrs. A"}
    assert restored["teacherOverrides"] == []

    cleared = client.post(
        "/api/timetable/grid/clear",
        json={"snapshot": restored, "slot": MONDAY_P1},
    ).json()["snapshot"]
    assert cleared["timetable"] == {}
    assert cleared["teacherAssignments"] == {}


def test_override_on_empty_slot_returns_400(client):
    response = client.post(
        "/api/timetable/grid/override",
        json={"slot": MONDAY_P1, "teacher": "Dr. C"},
    )

    assert response.status_code == 400


def test_grid_summary_endpoint(client):
    response = client.post(
        "/api/timetable/grid/load",
        json={
            "timetable": {"Monday-Period 1": "Mathematics", "Monday-Period 2": "Mathematics"},
            "teacherAssignments": {"Monday-Period 1": "Mrs. A", "Monday-Period 2": "Mrs. A"},
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "teacherLoad": [{"teacherName": "Mrs. A", "totalPeriods": 2, "overloaded": False}],
        "filledSlots": 2,
        "assignableSlots": 40,
        "isComplete": False,
    }


def test_snapshot_with_break_label_returns_400(client):
    response = client.post("/api/timetable/grid/load", json={"timetable": {"Monday-Short Break": "Mathematics"}})

    assert response.status_code == 400


def test_publish_empty_grid_then_load(client):
    response = client.post(f"{CLASS_URL}/publish", json={"snapshot": {}})

    assert response.status_code == 200
    assert response.json()["message"] == "Timetable Published!"
    assert response.json()["entryCount"] == 0

    loaded = client.get(CLASS_URL).json()
    assert loaded["snapshot"]["timetable"] == {}
    assert loaded["status"] == "Published"
    assert loaded["isPublished"] is True

    exists = client.get(f"{CLASS_URL}/exists").json()
    assert exists == {"className": "Grade 10A", "exists": False}


def test_draft_then_publish_keeps_single_copy(client, session_factory):
    _add_teacher(client, "Mrs. A", ["Mathematics"])
    snapshot = _assign(client, {}, MONDAY_P1, "Mathematics")["snapshot"]
    snapshot = _assign(client, snapshot, {"day": "Tuesday", "period": "Period 3"}, "Mathematics")["snapshot"]

    draft = client.put(f"{CLASS_URL}/draft", json={"snapshot": snapshot, "actor": "coordinator"})
    assert draft.status_code == 200
    assert draft.json()["message"] == "Timetable saved successfully!"
    assert draft.json()["status"] == "Draft"
    assert draft.json()["isPublished"] is False

    published = client.post(f"{CLASS_URL}/publish", json={"snapshot": snapshot})
    assert published.json()["status"] == "Published"

    with session_factory() as db:
        count = db.execute(
            select(func.count(TimetableEntry.id)).where(TimetableEntry.class_name == "Grade 10A")
        ).scalar_one()
    assert count == 2

    loaded = client.get(CLASS_URL).json()
    assert loaded["status"] == "Published"
    assert loaded["snapshot"]["timetable"] == snapshot["timetable"]
    assert loaded["snapshot"]["teacherAssignments"] == {
        "Monday-Period 1": "Mrs. A",
        "Tuesday-Period 3": "Mrs. A",
    }
    assert loaded["subjects"] == ["Mathematics"]
    assert client.get(f"{CLASS_URL}/exists").json()["exists"] is True


def test_publish_notifies_class(client):
    client.post(f"{CLASS_URL}/publish", json={"snapshot": {"timetable": {"Monday-Period 1": "Art"}}})

    response = client.get("/api/notifications", params={"className": "Grade 10A"})

    assert response.status_code == 200
    notifications = response.json()
    assert len(notifications) == 1
    assert notifications[0]["title"] == "Timetable Published"
    assert notifications[0]["message"] == "Timetable for Grade 10A is now live."
    assert client.get("/api/notifications", params={"className": "Grade 10B"}).json() == []


def test_publish_succeeds_when_notification_fails(client, monkeypatch):
    def broken_notify(*args, **kwargs):
        raise RuntimeError("notification store offline")

    monkeypatch.setattr(timetable_routes, "notify_timetable_published", broken_notify)

    response = client.post(f"{CLASS_URL}/publish", json={"snapshot": {"timetable": {"Monday-Period 1": "Art"}}})

    assert response.status_code == 200
    assert response.json()["isPublished"] is True
    assert client.get(CLASS_URL).json()["status"] == "Published"
    assert client.get("/api/notifications", params={"className": "Grade 10A"}).json() == []


def test_blank_class_name_is_rejected(client):
    response = client.put("/api/timetable/classes/%20/draft", json={"snapshot": {}})

    assert response.status_code == 400


def test_clashes_report_teacher_booked_elsewhere(client):
    _add_teacher(client, "Mrs. A", ["Mathematics"])
    other = _assign(client, {}, MONDAY_P1, "Mathematics")["snapshot"]
    client.post("/api/timetable/classes/Grade%2010B/publish", json={"snapshot": other})

    response = client.post(f"{CLASS_URL}/clashes", json=other)

    assert response.status_code == 200
    assert response.json() == [
        {
            "slot": "Monday-Period 1",
            "teacherName": "Mrs. A",
            "otherClassName": "Grade 10B",
            "otherSubject": "Mathematics",
        }
    ]
    assert client.post("/api/timetable/classes/Grade%2010B/clashes", json=other).json() == []


def test_generate_returns_seeded_snapshot(client, monkeypatch):
    _add_teacher(client, "Mrs. A", ["Mathematics"])
    answer = {
        "subjects": ["Mathematics"],
        "timetable": [{"slot": "Monday-Period 1", "subject": "Mathematics"}],
        "teacherAssignments": [{"slot": "Monday-Period 1", "teacher": "Mrs. A"}],
        "suggestions": [],
        "teacherLoad": [{"teacherName": "Mrs. A", "totalPeriods": 1}],
    }

    class Answer:
        status_code = 200
        text = ""

        def json(self):
            return answer

    monkeypatch.setattr(generation, "post_generation_request", lambda *args, **kwargs: Answer())

    response = client.post(
        "/api/timetable/generate",
        json={"className": "Grade 10A", "subjectPeriodTargets": [{"name": "Mathematics", "periods": 1}]},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["snapshot"]["timetable"] == {"Monday-Period 1": "Mathematics"}
    assert body["snapshot"]["teacherAssignments"] == {"Monday-Period 1": "Mrs. A"}
    assert body["reportedTeacherLoad"] == [{"teacherName": "Mrs. A", "totalPeriods": 1, "overloaded": False}]
    assert client.get(f"{CLASS_URL}/exists").json()["exists"] is False


def test_generate_with_malformed_answer_returns_502(client, monkeypatch):
    class Answer:
        status_code = 200
        text = ""

        def json(self):
            return {"timetable": []}

    monkeypatch.setattr(generation, "post_generation_request", lambda *args, **kwargs: Answer())

    response = client.post("/api/timetable/generate", json={"className": "Grade 10A"})

    assert response.status_code == 502
    assert "unexpected shape" in response.json()["message"]


def test_published_view_and_teacher_week(client):
    teacher = _add_teacher(client, "Mrs. A", ["Mathematics"])
    snapshot = _assign(client, {}, MONDAY_P1, "Mathematics")["snapshot"]

    client.put(f"{CLASS_URL}/draft", json={"snapshot": snapshot})
    assert client.get(f"{CLASS_URL}/published").json()["snapshot"]["timetable"] == {}
    assert client.get(f"/api/timetable/teachers/{teacher['id']}").json()["classes"] == {}

    client.post(f"{CLASS_URL}/publish", json={"snapshot": snapshot})
    client.post("/api/timetable/classes/Grade%209B/publish", json={"snapshot": snapshot})

    published = client.get(f"{CLASS_URL}/published").json()
    assert published["status"] == "Published"
    assert published["snapshot"]["teacherAssignments"] == {"Monday-Period 1": "Mrs. A"}

    week = client.get(f"/api/timetable/teachers/{teacher['id']}")
    assert week.status_code == 200
    assert week.json() == {
        "teacherId": teacher["id"],
        "teacherName": "Mrs. A",
        "classes": {
            "Grade 10A": {"Monday-Period 1": "Mathematics"},
            "Grade 9B": {"Monday-Period 1": "Mathematics"},
        },
        "totalPeriods": 2,
        "overloaded": False,
    }


def test_teacher_week_for_unknown_teacher_returns_404(client):
    assert client.get("/api/timetable/teachers/4242").status_code == 404


def test_load_skips_stored_row_without_subject(client, session_factory):
    teacher = _add_teacher(client, "Mrs. A", ["Mathematics"])
    with session_factory() as db:
        db.add(TimetableEntry(
            class_name="Grade 10A", day="Monday", period_index=0, start_time="09:00", end_time="09:45",
            subject="", teacher_id=teacher["id"], status=ScheduleStatus.draft,
        ))
        db.commit()

    response = client.get(CLASS_URL)

    assert response.status_code == 200
    assert response.json()["snapshot"]["timetable"] == {}
    assert response.json()["snapshot"]["teacherAssignments"] == {}
