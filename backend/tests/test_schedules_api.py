def assignment_payload(assignment_id, start, end, *, faculty="F1", room="C1", subject="S1", day="Monday"):
    return {
        "id": assignment_id,
        "facultyId": faculty,
        "subjectId": subject,
        "classroomId": room,
        "day": day,
        "startTime": start,
        "endTime": end,
    }


def test_current_schedule_starts_empty(client):
    response = client.get("/api/schedules/current")
    assert response.status_code == 200
    assert response.json() == {"state": "Empty", "current": None}

    assert client.get("/api/schedules/saved").json() == []


def test_time_slot_grid(client):
    slots = client.get("/api/schedules/timeslots").json()
    assert len(slots) == 50
    assert slots[0] == {"id": "Monday-0800", "day": "Monday", "startTime": "08:00", "endTime": "09:00"}


def test_conflicting_schedule_cannot_be_published_until_fixed(client):
    first = client.post("/api/schedules/assignments", json=assignment_payload("A", "09:00", "11:00"))
    assert first.status_code == 201
    assert first.json()["name"] == "New Schedule"

    second = client.post(
        "/api/schedules/assignments",
        json=assignment_payload("B", "10:00", "12:00", room="C2"),
    )
    schedule = second.json()
    assert [conflict["kind"] for conflict in schedule["conflicts"]] == ["FacultyDoubleBooking"]
    assert schedule["stats"]["totalConflicts"] == 1

    blocked = client.post(f"/api/schedules/{schedule['id']}/publish")
    assert blocked.status_code == 409
    assert blocked.json()["kind"] == "ConflictsPresent"
    assert client.get("/api/schedules/current").json()["state"] == "Draft"

    removed = client.delete("/api/schedules/assignments/B")
    assert removed.status_code == 200
    assert removed.json()["current"]["conflicts"] == []

    published = client.post(f"/api/schedules/{schedule['id']}/publish")
    assert published.status_code == 200
    assert published.json()["isPublished"] is True
    assert client.get("/api/schedules/current").json()["state"] == "Published"

    locked = client.post("/api/schedules/assignments", json=assignment_payload("C", "13:00", "14:00"))
    assert locked.status_code == 409
    assert locked.json()["kind"] == "SchedulePublished"

    reopened = client.post(f"/api/schedules/{schedule['id']}/unpublish")
    assert reopened.status_code == 200
    assert reopened.json()["isPublished"] is False


def test_invalid_assignment_is_rejected(client):
    bad_time = client.post("/api/schedules/assignments", json=assignment_payload("A", "25:00", "26:00"))
    assert bad_time.status_code == 422
    assert bad_time.json()["kind"] == "ValidationError"

    inverted = client.post("/api/schedules/assignments", json=assignment_payload("A", "11:00", "09:00"))
    assert inverted.status_code == 422
    assert inverted.json()["kind"] == "ValidationError"

    assert client.get("/api/schedules/current").json()["state"] == "Empty"


def test_duplicate_assignment_id_is_rejected(client):
    client.post("/api/schedules/assignments", json=assignment_payload("A", "09:00", "10:00"))
    duplicate = client.post("/api/schedules/assignments", json=assignment_payload("A", "13:00", "14:00"))
    assert duplicate.status_code == 422
    assert duplicate.json()["details"] == {"assignment_id": "A"}


def test_update_assignment(client):
    client.post("/api/schedules/assignments", json=assignment_payload("A", "09:00", "10:00"))

    updated = client.patch("/api/schedules/assignments/A", json={"endTime": "10:30", "day": "Tuesday"})
    assert updated.status_code == 200
    [assignment] = updated.json()["assignments"]
    assert (assignment["day"], assignment["startTime"], assignment["endTime"]) == ("Tuesday", "09:00", "10:30")

    missing = client.patch("/api/schedules/assignments/Z", json={"endTime": "10:30"})
    assert missing.status_code == 404
    assert missing.json()["kind"] == "NotFound"

    renamed = client.patch("/api/schedules/assignments/A", json={"id": "B"})
    assert renamed.status_code == 422

    inverted = client.patch("/api/schedules/assignments/A", json={"endTime": "08:00"})
    assert inverted.status_code == 422
    assert inverted.json()["kind"] == "ValidationError"


def test_removing_unknown_assignment_is_a_no_op(client):
    response = client.delete("/api/schedules/assignments/missing")
    assert response.status_code == 200
    assert response.json() == {"state": "Empty", "current": None}


def test_save_list_and_load(client):
    client.post("/api/schedules/assignments", json=assignment_payload("A", "09:00", "10:00"))
    saved = client.post("/api/schedules/save", json={"name": "Autumn", "description": "First draft"})
    assert saved.status_code == 201
    saved_id = saved.json()["id"]

    listing = client.get("/api/schedules/saved").json()
    assert [(item["id"], item["name"]) for item in listing] == [(saved_id, "Autumn")]

    generated = client.post("/api/schedules/generate")
    assert generated.status_code == 200
    assert generated.json()["name"] == "Generated Schedule"
    assert len(generated.json()["assignments"]) == 3

    loaded = client.post(f"/api/schedules/{saved_id}/load")
    assert loaded.status_code == 200
    assert loaded.json()["description"] == "First draft"
    assert client.get("/api/schedules/current").json()["current"]["id"] == saved_id

    missing = client.post("/api/schedules/nope/load")
    assert missing.status_code == 404
    assert missing.json()["kind"] == "NotFound"


def test_save_requires_a_current_schedule_and_name(client):
    nothing = client.post("/api/schedules/save", json={"name": "Empty"})
    assert nothing.status_code == 404

    client.post("/api/schedules/assignments", json=assignment_payload("A", "09:00", "10:00"))
    unnamed = client.post("/api/schedules/save", json={"name": ""})
    assert unnamed.status_code == 422
    assert unnamed.json()["kind"] == "ValidationError"


def test_publish_requires_the_current_schedule(client):
    client.post("/api/schedules/assignments", json=assignment_payload("A", "09:00", "10:00"))
    response = client.post("/api/schedules/someone-else/publish")
    assert response.status_code == 400
    assert response.json()["kind"] == "InvalidTarget"


def test_detect_conflicts_endpoint(client):
    response = client.post(
        "/api/schedules/conflicts/detect",
        json={
            "assignments": [
                assignment_payload("A", "09:00", "11:00", faculty="F1", room="C1"),
                assignment_payload("B", "10:00", "12:00", faculty="F2", room="C1"),
                assignment_payload("C", "11:00", "12:00", faculty="F1", room="C3"),
            ]
        },
    )
    assert response.status_code == 200
    report = response.json()
    assert report["total"] == 1
    assert report["conflicts"][0]["id"] == "room-A-B"
    assert report["conflicts"][0]["kind"] == "ClassroomDoubleBooking"
    # Detection does not touch the engine.
    assert client.get("/api/schedules/current").json()["state"] == "Empty"


def test_stats_endpoint(client):
    response = client.post(
        "/api/schedules/stats",
        json={"assignments": [assignment_payload("A", "09:00", "13:00"), assignment_payload("B", "12:00", "13:00")]},
    )
    assert response.status_code == 200
    stats = response.json()
    assert stats["totalAssignments"] == 2
    assert stats["totalConflicts"] == 2
    assert stats["facultyUtilization"] == {"F1": 12.5}
    assert stats["roomUtilization"] == {"C1": 10.0}
    assert stats["unassignedHoursComputed"] is False


def test_reference_and_constraints(client):
    reference = {
        "faculties": [{"id": "F1", "name": "Dr. Smith", "email": "smith@university.edu", "maxHoursPerWeek": 20}],
        "subjects": [{"id": "S1", "name": "Algorithms", "sessionsPerWeek": 2, "sessionDuration": 120}],
        "classrooms": [{"id": "C1", "name": "Room 101"}, {"id": "C2", "name": "Lab 1"}],
    }
    stored = client.put("/api/reference", json=reference)
    assert stored.status_code == 200
    assert [item["id"] for item in client.get("/api/reference").json()["classrooms"]] == ["C1", "C2"]

    created = client.post("/api/schedules/assignments", json=assignment_payload("A", "09:00", "11:00"))
    assignment = created.json()["assignments"][0]
    assert (assignment["facultyName"], assignment["classroomName"]) == ("Dr. Smith", "Room 101")
    stats = created.json()["stats"]
    assert stats["facultyUtilization"] == {"F1": 10.0}
    assert stats["unassignedHours"] == 2.0
    assert stats["unassignedHoursComputed"] is True

    constraints = client.put(
        "/api/constraints",
        json={"constraints": [{"id": "labs-only", "type": "RoomRestriction", "subjectId": "S1",
                               "allowedClassroomIds": ["C2"]}]},
    )
    assert constraints.status_code == 200
    assert client.get("/api/constraints").json()["constraints"][0]["id"] == "labs-only"

    violations = client.get("/api/constraints/violations").json()
    assert [(item["constraintId"], item["assignmentIds"]) for item in violations] == [("labs-only", ["A"])]


def test_reference_payload_is_validated(client):
    duplicate = client.put(
        "/api/reference",
        json={"classrooms": [{"id": "C1", "name": "Room 101"}, {"id": "C1", "name": "Room 102"}]},
    )
    assert duplicate.status_code == 422
    assert duplicate.json()["kind"] == "ValidationError"

    unknown = client.put("/api/constraints", json={"constraints": [{"id": "x", "type": "Unheard"}]})
    assert unknown.status_code == 422
