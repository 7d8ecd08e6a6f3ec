"""
Test the scheduling API with self-contained test data.
"""
from fastapi.testclient import TestClient
from main import app


client = TestClient(app)


# Test data fixtures
def get_snapshot():
    """Return a grade 3 group with one interventionist, a lunch block and one session."""
    return {
        "groups": [
            {
                "id": "g1",
                "name": "Reading Group A",
                "grade": 3,
                "interventionist_id": "i1",
                "current_position": {"step": 1, "substep": "1.2"}
            }
        ],
        "interventionists": [
            {
                "id": "i1",
                "name": "Ms. Rivera",
                "availability": [
                    {"days": ["monday", "wednesday", "friday"], "start_time": "08:00", "end_time": "12:00"}
                ]
            }
        ],
        "grade_level_constraints": [
            {
                "id": "c1",
                "grade": 3,
                "label": "Lunch",
                "type": "lunch",
                "schedule": {
                    "days": ["monday", "tuesday", "wednesday", "thursday", "friday"],
                    "start_time": "11:30",
                    "end_time": "12:00"
                }
            }
        ],
        "sessions": [
            {"id": "s1", "group_id": "g1", "date": "2024-01-08", "time": "09:00"}
        ],
        "calendar_events": [],
        "cycles": [
            {"id": "cy1", "name": "Cycle 3", "start_date": "2024-01-01", "end_date": "2024-01-31"}
        ]
    }


def get_cycle_request(preferred_time="10:00"):
    """Return a Monday cycle request for January 2024."""
    request = get_snapshot()
    request["group_id"] = "g1"
    request["options"] = {
        "cycle_id": "cy1",
        "preferred_days": ["monday"],
        "preferred_time": preferred_time,
        "session_duration": 30
    }
    return request


def test_root_endpoint():
    """Test root endpoint is accessible."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "status" in data
    assert data["status"] == "healthy"


def test_health_endpoint():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_suggestions_endpoint():
    """Test /api/v1/schedule/suggestions ranks slots and selects one per day."""
    request = get_snapshot()
    request["group_id"] = "g1"
    request["options"] = {"sessions_per_week": 3, "reference_date": "2024-01-07"}

    response = client.post("/api/v1/schedule/suggestions", json=request)

    assert response.status_code == 200
    data = response.json()
    assert data["group_id"] == "g1"
    assert len(data["suggestions"]) == 195
    assert data["suggestions"][0]["conflicts"] == []
    assert [(s["day"], s["start_time"]) for s in data["selected"]] == [
        ("monday", "08:00"), ("wednesday", "08:00"), ("friday", "08:00")
    ]

    monday_nine = next(
        s for s in data["suggestions"] if s["day"] == "monday" and s["start_time"] == "09:00"
    )
    assert [c["type"] for c in monday_nine["conflicts"]] == ["existing_session"]
    assert monday_nine["date"] == "2024-01-08"


def test_cycle_endpoint_skips_holiday():
    """Test /api/v1/schedule/cycle drops non-student days."""
    request = get_cycle_request()
    request["calendar_events"] = [
        {"id": "e1", "date": "2024-01-15", "type": "holiday", "title": "MLK Day"}
    ]

    response = client.post("/api/v1/schedule/cycle", json=request)

    assert response.status_code == 200
    data = response.json()
    assert data["cycle_id"] == "cy1"
    assert data["skipped_dates"] == ["2024-01-15"]
    assert [d["date"] for d in data["dates"]] == ["2024-01-01", "2024-01-08", "2024-01-22", "2024-01-29"]
    assert data["total_sessions"] == 4


def test_cycle_endpoint_unknown_cycle():
    request = get_cycle_request()
    request["options"]["cycle_id"] = "missing"

    response = client.post("/api/v1/schedule/cycle", json=request)

    assert response.status_code == 404
    data = response.json()
    assert "Cycle" in data["errors"]
    assert "missing" in data["errors"]["Cycle"][0]


def test_cycle_endpoint_unknown_group():
    request = get_cycle_request()
    request["group_id"] = "nobody"

    response = client.post("/api/v1/schedule/cycle", json=request)

    assert response.status_code == 404
    assert "Group" in response.json()["errors"]


def test_batch_endpoint_balances_shared_interventionist():
    request = get_snapshot()
    request["groups"].append({"id": "g2", "name": "Reading Group B", "grade": 3, "interventionist_id": "i1"})
    request["group_ids"] = ["g1", "g2"]
    request["cycle_id"] = "cy1"
    request["options"] = {"preferred_days": ["monday"], "preferred_time": "10:00"}
    request["balance_workload"] = True

    response = client.post("/api/v1/schedule/cycle/batch", json=request)

    assert response.status_code == 200
    results = response.json()["results"]
    assert {d["time"] for d in results["g1"]["dates"]} == {"10:00"}
    assert {d["time"] for d in results["g2"]["dates"]} == {"08:00"}


def test_conflicts_endpoint_reports_every_conflict():
    """Test /api/v1/schedule/conflicts lists all four conflict types."""
    request = get_snapshot()
    request["sessions"].append({"id": "s2", "group_id": "g1", "date": "2024-01-09", "time": "11:30"})
    request["calendar_events"] = [
        {"id": "e1", "date": "2024-01-09", "type": "pd_day", "title": "Teacher Workday"}
    ]
    request.update({"group_id": "g1", "date": "2024-01-09", "start_time": "11:30", "end_time": "12:00"})

    response = client.post("/api/v1/schedule/conflicts", json=request)

    assert response.status_code == 200
    data = response.json()
    assert [c["type"] for c in data["conflicts"]] == [
        "existing_session", "interventionist_unavailable", "grade_constraint", "non_student_day"
    ]
    assert data["blocking"] is True


def test_conflicts_endpoint_clear_slot():
    request = get_snapshot()
    request.update({"group_id": "g1", "date": "2024-01-08", "start_time": "08:00", "end_time": "08:30"})

    response = client.post("/api/v1/schedule/conflicts", json=request)

    assert response.status_code == 200
    assert response.json() == {"conflicts": [], "blocking": False}


def test_cycle_commit_endpoint():
    """Preview then commit: the date with an existing session is not booked."""
    preview = client.post("/api/v1/schedule/cycle", json=get_cycle_request("09:00")).json()

    request = get_snapshot()
    request["group_id"] = "g1"
    request["schedule"] = preview
    response = client.post("/api/v1/schedule/cycle/commit", json=request)

    assert response.status_code == 200
    data = response.json()
    assert len(data["created"]) == 4
    assert data["created"][0]["curriculum_position"] == {"step": 1, "substep": "1.2"}
    assert [u["date"] for u in data["unavailable"]] == ["2024-01-08"]


def test_weekly_commit_endpoint():
    request = get_snapshot()
    request["calendar_events"] = [
        {"id": "e1", "date": "2024-01-15", "type": "holiday", "title": "MLK Day"}
    ]
    request["group_id"] = "g1"
    request["slots"] = [{"day": "monday", "start_time": "08:00", "end_time": "08:30"}]
    request["weeks"] = 3
    request["reference_date"] = "2024-01-07"

    response = client.post("/api/v1/schedule/weekly/commit", json=request)

    assert response.status_code == 200
    data = response.json()
    assert [s["date"] for s in data["created"]] == ["2024-01-08", "2024-01-22"]
    assert data["unavailable"][0]["reason"] == "non_student_day: MLK Day"


def test_workload_endpoint():
    request = get_snapshot()
    request["sessions"].append({"id": "s2", "group_id": "g1", "date": "2024-01-10", "time": "13:00"})
    request.update({"interventionist_id": "i1", "start_date": "2024-01-08", "end_date": "2024-01-12"})

    response = client.post("/api/v1/schedule/workload", json=request)

    assert response.status_code == 200
    data = response.json()
    assert data["total_sessions"] == 2
    assert data["sessions_by_day"]["monday"] == 1
    assert data["sessions_by_day"]["wednesday"] == 1
    # JSON object keys are strings
    assert data["sessions_by_hour"] == {"9": 1, "13": 1}
    assert data["average_per_day"] == 0.4


def test_calendar_expand_endpoint():
    request = {
        "events": [
            {"id": "e1", "date": "2024-01-15", "type": "holiday", "title": "MLK Day"},
            {"id": "e2", "date": "2024-01-18", "end_date": "2024-01-19", "type": "institute_day",
             "title": "Conferences", "affects_grades": [4, 5]}
        ],
        "grade": 3,
        "start_date": "2024-01-14",
        "end_date": "2024-01-20"
    }

    response = client.post("/api/v1/calendar/expand", json=request)

    assert response.status_code == 200
    data = response.json()
    assert sorted(data["events_by_date"]) == ["2024-01-15", "2024-01-18", "2024-01-19"]
    assert data["non_student_days"] == ["2024-01-15"]


def test_calendar_expand_rejects_inverted_range():
    """An inverted range is reported in the same error format as other validation errors."""
    request = {"events": [], "start_date": "2024-01-20", "end_date": "2024-01-14"}
    response = client.post("/api/v1/calendar/expand", json=request)

    assert response.status_code == 422
    messages = [m for ms in response.json()["errors"].values() for m in ms]
    assert any("must not be before start date" in m for m in messages)


def test_time_options_endpoint():
    response = client.get("/api/v1/calendar/time-options", params={"start_hour": 12, "end_hour": 13, "step": 30})

    assert response.status_code == 200
    assert response.json()["options"] == [
        {"value": "12:00", "label": "12:00 PM"},
        {"value": "12:30", "label": "12:30 PM"},
        {"value": "13:00", "label": "1:00 PM"},
    ]


def test_validation_error_format():
    """Test that validation errors return human-friendly format."""
    response = client.post("/api/v1/schedule/suggestions", json={"groups": []})

    assert response.status_code == 422
    data = response.json()
    assert "errors" in data
    assert isinstance(data["errors"], dict)
    assert "Group Id" in data["errors"]

    for field, messages in data["errors"].items():
        assert isinstance(messages, list)
        assert len(messages) > 0
        assert isinstance(messages[0], str)


def test_time_format_validation():
    """Times must be zero-padded HH:MM."""
    request = get_snapshot()
    request["interventionists"][0]["availability"][0]["start_time"] = "8:00"
    request["group_id"] = "g1"

    response = client.post("/api/v1/schedule/suggestions", json=request)

    assert response.status_code == 422
    messages = [m for ms in response.json()["errors"].values() for m in ms]
    assert any("HH:MM" in m for m in messages)


def test_time_block_order_validation():
    request = get_snapshot()
    request["interventionists"][0]["availability"][0]["start_time"] = "13:00"
    request["group_id"] = "g1"

    response = client.post("/api/v1/schedule/suggestions", json=request)
    assert response.status_code == 422


def test_sessions_per_week_bounds():
    request = get_snapshot()
    request["group_id"] = "g1"
    request["options"] = {"sessions_per_week": 6}

    response = client.post("/api/v1/schedule/suggestions", json=request)
    assert response.status_code == 422
    assert response.json()["errors"]["Options -> Sessions Per Week"] == [
        "Options -> Sessions Per Week must be at most 5."
    ]


def test_weekly_commit_rejects_inverted_slot():
    """A slot ending before it starts is a 422, not a server error."""
    request = get_snapshot()
    request["group_id"] = "g1"
    request["slots"] = [{"day": "monday", "start_time": "08:30", "end_time": "08:00"}]
    request["reference_date"] = "2024-01-07"

    response = client.post("/api/v1/schedule/weekly/commit", json=request)

    assert response.status_code == 422
    assert "errors" in response.json()


def test_weekly_commit_respects_interventionist_availability():
    """Tuesday is outside the interventionist's Mon/Wed/Fri availability."""
    request = get_snapshot()
    request["group_id"] = "g1"
    request["slots"] = [{"day": "tuesday", "start_time": "14:00", "end_time": "14:30"}]
    request["weeks"] = 2
    request["reference_date"] = "2024-01-07"

    response = client.post("/api/v1/schedule/weekly/commit", json=request)

    assert response.status_code == 200
    data = response.json()
    assert data["created"] == []
    assert [(u["date"], u["reason"]) for u in data["unavailable"]] == [
        ("2024-01-09", "interventionist_unavailable"),
        ("2024-01-16", "interventionist_unavailable"),
    ]


def test_cycle_commit_rejects_schedule_for_other_group():
    preview = client.post("/api/v1/schedule/cycle", json=get_cycle_request()).json()

    request = get_snapshot()
    request["groups"].append({"id": "g2", "name": "Reading Group B", "grade": 3, "interventionist_id": "i1"})
    request["group_id"] = "g2"
    request["schedule"] = preview
    response = client.post("/api/v1/schedule/cycle/commit", json=request)

    assert response.status_code == 422
    messages = [m for ms in response.json()["errors"].values() for m in ms]
    assert any("generated for group g1" in m for m in messages)


def test_cycle_preferred_time_past_midnight():
    request = get_cycle_request("23:45")

    response = client.post("/api/v1/schedule/cycle", json=request)
    assert response.status_code == 422


def test_optimal_times_endpoint():
    """Test /api/v1/schedule/optimal-times scores slots, busy start times last among equals."""
    request = get_snapshot()
    request["group_id"] = "g1"
    request["options"] = {"preferred_days": ["wednesday"], "reference_date": "2024-01-07"}
    request["limit"] = 100

    response = client.post("/api/v1/schedule/optimal-times", json=request)

    assert response.status_code == 200
    data = response.json()
    assert data["group_id"] == "g1"
    assert data["suggestions"][0]["start_time"] == "08:00"
    assert data["suggestions"][0]["score"] == 0
    scores = [s["score"] for s in data["suggestions"]]
    assert scores == sorted(scores)
    # 09:00 already has a session, so it pays the popularity penalty
    wednesday_nine = next(s for s in data["suggestions"] if s["start_time"] == "09:00")
    assert wednesday_nine["score"] == 2
