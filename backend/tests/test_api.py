from factories import FIRST_A, make_classes, make_study_plans, make_teachers

BASE = "/api/schedules/principal-1"


def school_payload(**overrides):
    payload = {
        "classes": [item.model_dump() for item in make_classes()],
        "teachers": [item.model_dump(by_alias=True) for item in make_teachers()],
        "schoolLevel": "Intermediate",
    }
    payload.update(overrides)
    return payload


def save_plans(client):
    response = client.put(
        f"{BASE}/study-plans",
        json={level: plan.model_dump() for level, plan in make_study_plans().items()},
    )
    assert response.status_code == 200
    return response.json()


def generate(client):
    save_plans(client)
    response = client.post(f"{BASE}/generate", json=school_payload())
    assert response.status_code == 200
    return response.json()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    assert "database" in ready.json()


def test_fresh_schedule_state(client):
    response = client.get(BASE)

    assert response.status_code == 200
    payload = response.json()
    assert payload["schedule"] == {}
    assert set(payload["statuses"].values()) == {"pending"}
    assert payload["has_unpublished_changes"] is False
    assert payload["history_depth"] == 0


def test_generate_uses_saved_study_plans(client):
    run = generate(client)

    assert run["failed_day"] is None
    assert set(run["statuses"].values()) == {"done"}

    state = client.get(BASE).json()
    assert [len(state["schedule"][day]) for day in ("Sunday", "Monday", "Tuesday")] == [2, 2, 1]
    assert state["conflicts"] == []
    assert state["has_unpublished_changes"] is True


def test_generate_without_study_plans_fails(client):
    response = client.post(f"{BASE}/generate", json=school_payload())

    assert response.status_code == 400
    assert "study plan" in response.json()["message"]


def test_generate_rejects_out_of_range_start_day(client):
    save_plans(client)

    response = client.post(f"{BASE}/generate", json=school_payload(startIndex=7))

    assert response.status_code == 400
    assert response.json()["details"] == {"start_index": 7}


def test_publish_move_undo_flow(client):
    generate(client)

    student = client.post(f"{BASE}/publish/student")
    assert student.status_code == 200
    assert student.json()["has_unpublished_changes"] is True

    staff = client.post(f"{BASE}/publish/staff")
    assert staff.status_code == 200
    assert staff.json()["has_unpublished_changes"] is False

    moved = client.post(
        f"{BASE}/moves",
        json={"source": f"Sunday|1|{FIRST_A}", "target": f"Sunday|2|{FIRST_A}"},
    )
    assert moved.status_code == 200
    assert moved.json()["action"] == "move"

    state = client.get(BASE).json()
    assert state["has_unpublished_changes"] is True
    assert FIRST_A in state["schedule"]["Sunday"][1]["assignments"]

    undone = client.post(f"{BASE}/undo")
    assert undone.status_code == 200
    assert undone.json()["undone"] is True
    state = client.get(BASE).json()
    assert FIRST_A in state["schedule"]["Sunday"][0]["assignments"]


def test_publish_before_generation_is_refused(client):
    response = client.post(f"{BASE}/publish/staff")

    assert response.status_code == 409


def test_move_with_malformed_cell_is_rejected(client):
    response = client.post(f"{BASE}/moves", json={"source": "Sunday-1", "target": f"Sunday|2|{FIRST_A}"})

    assert response.status_code == 422


def test_add_lesson(client):
    generate(client)
    body = school_payload(cell=f"Sunday|2|{FIRST_A}", subject="English")
    body.pop("schoolLevel")

    response = client.post(f"{BASE}/lessons", json=body)

    assert response.status_code == 201
    assert response.json()["action"] == "add"


def test_add_lesson_without_teacher(client):
    generate(client)
    teachers = [item.model_dump(by_alias=True) for item in make_teachers() if item.name != "Sara"]
    body = school_payload(cell=f"Sunday|2|{FIRST_A}", subject="English", teachers=teachers)
    body.pop("schoolLevel")

    response = client.post(f"{BASE}/lessons", json=body)

    assert response.status_code == 422
    assert response.json()["details"]["class_key"] == FIRST_A


def test_teacher_timetable(client):
    generate(client)

    response = client.get(f"{BASE}/teachers/Omar")

    assert response.status_code == 200
    lessons = [lesson for day in response.json().values() for lesson in day]
    # Omar covers Arabic (2) and Science (2) for one class.
    assert len(lessons) == 4


def test_reset_then_restore(client):
    generate(client)
    assert client.post(f"{BASE}/publish/staff").status_code == 200

    restored = client.post(f"{BASE}/restore")
    assert restored.status_code == 200
    assert set(restored.json()["statuses"].values()) == {"done"}

    assert client.delete(BASE).status_code == 204
    assert client.get(BASE).json()["schedule"] == {}

    missing = client.post(f"{BASE}/restore")
    assert missing.status_code == 400


def test_study_plan_editing(client):
    save_plans(client)
    grade = "First%20Intermediate"

    updated = client.put(f"{BASE}/study-plans/Intermediate/{grade}/Arabic", json={"count": 4})
    assert updated.status_code == 200
    assert updated.json()["grades"]["First Intermediate"]["total"] == 7

    added = client.put(f"{BASE}/study-plans/Intermediate/{grade}/Art", json={"count": 1})
    assert added.json()["grades"]["First Intermediate"]["total"] == 8

    removed = client.delete(f"{BASE}/study-plans/Intermediate/{grade}/English")
    assert removed.json()["grades"]["First Intermediate"]["total"] == 7

    dropped = client.delete(f"{BASE}/study-plans/Intermediate/{grade}")
    assert list(dropped.json()["grades"]) == ["Second Intermediate"]

    stored = client.get(f"{BASE}/study-plans").json()
    assert list(stored["Intermediate"]["grades"]) == ["Second Intermediate"]

    missing = client.delete(f"{BASE}/study-plans/Primary/{grade}")
    assert missing.status_code == 400


def test_study_plan_count_must_be_in_range(client):
    save_plans(client)

    response = client.put(f"{BASE}/study-plans/Intermediate/First%20Intermediate/Arabic", json={"count": -1})

    assert response.status_code == 422
