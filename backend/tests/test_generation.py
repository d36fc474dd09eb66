import copy
import json

import pytest
import requests

from classgrid.core.config import Settings
from classgrid.core.exceptions import ConfigurationError, GenerationError
from classgrid.schemas.generator import SubjectPeriodTarget
from classgrid.services import generation
from classgrid.services.generation import GenerationBridge, get_generation_bridge
from classgrid.services.period_calendar import SlotKey

VALID_RESPONSE = {
    "className": "Grade 10A",
    "subjects": ["Mathematics", "English"],
    "timetable": [
        {"slot": "Monday-Period 1", "subject": "Mathematics"},
        {"slot": "Monday-Period 2", "subject": "English"},
        {"slot": "Tuesday-Period 4", "subject": "Mathematics"},
    ],
    "teacherAssignments": [
        {"slot": "Monday-Period 1", "teacher": "Mrs. A"},
        {"slot": "Monday-Period 2", "teacher": "Mr. B"},
        {"slot": "Tuesday-Period 4", "teacher": "Mrs. A"},
    ],
    "suggestions": ["Spread Mathematics across more mornings."],
    "teacherLoad": [
        {"teacherName": "Mrs. A", "totalPeriods": 2},
        {"teacherName": "Mr. B", "totalPeriods": 1},
    ],
}


class FakeResponse:
    def __init__(self, payload=None, *, status_code=200, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


@pytest.fixture()
def bridge(calendar):
    return GenerationBridge(calendar, endpoint="http://generator.test/timetables", api_key="secret")


def _response(**changes):
    body = copy.deepcopy(VALID_RESPONSE)
    body.update(changes)
    return body


def test_valid_response_seeds_grid_and_teachers(bridge, roster):
    schedule = bridge.parse_response("Grade 10A", _response(), roster)

    assert schedule.store.grid == {
        SlotKey("Monday", "Period 1"): "Mathematics",
        SlotKey("Monday", "Period 2"): "English",
        SlotKey("Tuesday", "Period 4"): "Mathematics",
    }
    assert schedule.store.teacher_at(SlotKey("Monday", "Period 2")) == "Mr. B"
    assert schedule.subjects == ["Mathematics", "English"]
    assert schedule.suggestions == ["Spread Mathematics across more mornings."]
    assert [(item.teacher_name, item.total_periods) for item in schedule.reported_teacher_load] == [
        ("Mrs. A", 2),
        ("Mr. B", 1),
    ]


@pytest.mark.parametrize("missing", ["subjects", "timetable", "teacherAssignments", "suggestions", "teacherLoad"])
def test_response_missing_a_field_is_rejected(bridge, roster, missing):
    body = _response()
    del body[missing]

    with pytest.raises(GenerationError) as excinfo:
        bridge.parse_response("Grade 10A", body, roster)

    assert excinfo.value.status_code == 502
    assert excinfo.value.details["errors"]


def test_response_with_wrong_types_is_rejected(bridge, roster):
    with pytest.raises(GenerationError):
        bridge.parse_response("Grade 10A", _response(timetable={"Monday-Period 1": "Mathematics"}), roster)
    with pytest.raises(GenerationError):
        bridge.parse_response("Grade 10A", ["not", "an", "object"], roster)


@pytest.mark.parametrize(
    "timetable",
    [
        [{"slot": "Monday-Short Break", "subject": "Mathematics"}],
        [{"slot": "Funday-Period 1", "subject": "Mathematics"}],
        [{"slot": "Monday Period 1", "subject": "Mathematics"}],
        [
            {"slot": "Monday-Period 1", "subject": "Mathematics"},
            {"slot": "Monday-Period 1", "subject": "English"},
        ],
        [
            {"slot": "Monday-Period 1", "subject": "Mathematics"},
            {"slot": "Monday-Period 2", "subject": "   "},
        ],
    ],
)
def test_response_with_bad_slots_is_rejected(bridge, roster, timetable):
    with pytest.raises(GenerationError):
        bridge.parse_response("Grade 10A", _response(timetable=timetable, teacherAssignments=[]), roster)


def test_teacher_on_slot_without_subject_is_rejected(bridge, roster):
    body = _response(teacherAssignments=[{"slot": "Friday-Period 8", "teacher": "Mrs. A"}])

    with pytest.raises(GenerationError) as excinfo:
        bridge.parse_response("Grade 10A", body, roster)

    assert excinfo.value.details == {"slot": "Friday-Period 8"}


def test_request_body_describes_class_roster_and_calendar(bridge, roster):
    payload = bridge.build_request(
        "Grade 10A",
        roster,
        [SubjectPeriodTarget(name="Art", periods=2), SubjectPeriodTarget(name="Mathematics", periods=6)],
        "No English on Fridays",
    )
    body = payload.model_dump(by_alias=True)

    assert body["className"] == "Grade 10A"
    assert body["subjects"] == ["Art", "Mathematics", "English", "Literature", "Basic Science"]
    assert body["freeformRules"] == "No English on Fridays"
    assert body["days"] == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    assert "Short Break" not in body["periods"]
    assert len(body["periods"]) == 8


def test_generate_posts_request_and_parses_answer(bridge, roster, monkeypatch):
    captured = {}

    def fake_post(url, body, headers, timeout):
        captured.update(url=url, body=body, headers=headers, timeout=timeout)
        return FakeResponse(_response())

    monkeypatch.setattr(generation, "post_generation_request", fake_post)

    schedule = bridge.generate("Grade 10A", roster, [])

    assert captured["url"] == "http://generator.test/timetables"
    assert captured["headers"]["Authorization"] == "Bearer secret"
    assert captured["body"]["className"] == "Grade 10A"
    assert len(schedule.store) == 3


def test_fenced_json_body_is_accepted(bridge, roster, monkeypatch):
    fenced = "```json\n" + json.dumps(_response()) + "\n```"
    monkeypatch.setattr(
        generation,
        "post_generation_request",
        lambda *args, **kwargs: FakeResponse(None, text=fenced),
    )

    schedule = bridge.generate("Grade 10A", roster, [])

    assert schedule.store.subject_at(SlotKey("Monday", "Period 1")) == "Mathematics"


def test_non_json_body_is_rejected(bridge, roster, monkeypatch):
    monkeypatch.setattr(
        generation,
        "post_generation_request",
        lambda *args, **kwargs: FakeResponse(None, text="Sorry, I cannot help with that."),
    )

    with pytest.raises(GenerationError):
        bridge.generate("Grade 10A", roster, [])


def test_unreachable_service_raises_generation_error(bridge, roster, monkeypatch):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(generation, "post_generation_request", refuse)

    with pytest.raises(GenerationError) as excinfo:
        bridge.generate("Grade 10A", roster, [])

    assert "unreachable" in excinfo.value.message


def test_http_error_status_raises_generation_error(bridge, roster, monkeypatch):
    monkeypatch.setattr(
        generation,
        "post_generation_request",
        lambda *args, **kwargs: FakeResponse({"error": "quota"}, status_code=503),
    )

    with pytest.raises(GenerationError) as excinfo:
        bridge.generate("Grade 10A", roster, [])

    assert excinfo.value.details == {"status_code": 503}


def test_bridge_requires_configured_url(calendar):
    with pytest.raises(ConfigurationError):
        get_generation_bridge(Settings(generation_service_url=None), calendar)


def test_blank_teacher_rejects_whole_response(bridge, roster):
    body = _response(teacherAssignments=[
        {"slot": "Monday-Period 1", "teacher": "Mrs. A"},
        {"slot": "Monday-Period 2", "teacher": "  "},
    ])

    with pytest.raises(GenerationError) as excinfo:
        bridge.parse_response("Grade 10A", body, roster)

    assert excinfo.value.details["errors"]
