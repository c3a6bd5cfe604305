
def register_user(client, payload):
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    return response.json()


def login_user(client, email, password, role):
    response = client.post(
        "/api/auth/login",
        json={"email": email, "password": password, "role": role},
    )
    assert response.status_code == 200
    return response.json()["access_token"]


def _account(client, name, role):
    email = f"{name.lower().replace(' ', '.')}@example.com"
    user = register_user(client, {"name": name, "email": email, "password": "password123", "role": role})
    token = login_user(client, email, "password123", role)
    return user, {"Authorization": f"Bearer {token}"}


def _exam(**overrides):
    payload = {
        "title": "Midterm",
        "date": "2026-06-01",
        "start_time": "09:00",
        "end_time": "11:00",
        "room_name": "Hall A",
        "class_code": "CS101",
    }
    payload.update(overrides)
    return payload


def test_exam_crud_and_permissions(client):
    _, admin = _account(client, "Admin User", "admin")
    _, student = _account(client, "Student User", "student")

    forbidden = client.post("/api/exams/", json=_exam(), headers=student)
    assert forbidden.status_code == 403

    created = client.post("/api/exams/", json=_exam(), headers=admin)
    assert created.status_code == 201
    exam = created.json()
    assert exam["day"] == "Monday"
    assert exam["room"]["name"] == "Hall A"
    assert exam["class_code"]["code"] == "CS101"

    fetched = client.get(f"/api/exams/{exam['id']}", headers=admin)
    assert fetched.status_code == 200
    assert fetched.json()["start_time"] == "09:00:00"

    listed = client.get("/api/exams/", params={"search": "cs1"}, headers=admin)
    assert [item["id"] for item in listed.json()] == [exam["id"]]

    updated = client.put(f"/api/exams/{exam['id']}", json={"title": "Final"}, headers=admin)
    assert updated.status_code == 200
    assert updated.json()["title"] == "Final"

    deleted = client.delete(f"/api/exams/{exam['id']}", headers=admin)
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}

    missing = client.get(f"/api/exams/{exam['id']}", headers=admin)
    assert missing.status_code == 404
    assert missing.json()["message"] == f"Exam with id {exam['id']} not found"


def test_room_clash_is_rejected_with_readable_message(client):
    _, admin = _account(client, "Admin User", "admin")
    assert client.post("/api/exams/", json=_exam(), headers=admin).status_code == 201

    response = client.post(
        "/api/exams/",
        json=_exam(class_code="MA201", start_time="10:00", end_time="12:00"),
        headers=admin,
    )

    assert response.status_code == 409
    body = response.json()
    assert body["message"] == (
        'Exam scheduling conflict detected: Room "Hall A" is already booked on 2026-06-01 from 09:00 to 11:00'
    )
    [clash] = body["details"]["clashes"]
    assert clash["kind"] == "room"
    assert clash["conflicting_exam"]["class_code"] == "CS101"

    codes = client.get("/api/class-codes/", headers=admin).json()
    assert [item["code"] for item in codes] == ["CS101"]


def test_back_to_back_exam_in_same_room_is_allowed(client):
    _, admin = _account(client, "Admin User", "admin")
    assert client.post("/api/exams/", json=_exam(), headers=admin).status_code == 201

    response = client.post(
        "/api/exams/",
        json=_exam(class_code="MA201", start_time="11:00", end_time="12:00"),
        headers=admin,
    )
    assert response.status_code == 201


def test_teacher_and_student_clashes_across_rooms(client):
    _, admin = _account(client, "Admin User", "admin")
    teacher, _ = _account(client, "Ada Teacher", "teacher")
    student, _ = _account(client, "Kim Student", "student")

    for code in ("CS101", "MA201"):
        response = client.post(
            "/api/class-codes/",
            json={"code": code, "teacher_id": teacher["id"], "student_ids": [student["id"]]},
            headers=admin,
        )
        assert response.status_code == 201
        assert response.json()["teacher"]["name"] == "Ada Teacher"

    assert client.post("/api/exams/", json=_exam(), headers=admin).status_code == 201
    response = client.post(
        "/api/exams/",
        json=_exam(room_name="Hall B", class_code="MA201", start_time="10:30", end_time="12:30"),
        headers=admin,
    )

    assert response.status_code == 409
    kinds = [clash["kind"] for clash in response.json()["details"]["clashes"]]
    assert kinds == ["teacher", "student"]
    assert 'Teacher "Ada Teacher" is already assigned' in response.json()["message"]


def test_update_excludes_exam_from_its_own_check(client):
    _, admin = _account(client, "Admin User", "admin")
    exam = client.post("/api/exams/", json=_exam(), headers=admin).json()

    response = client.put(
        f"/api/exams/{exam['id']}",
        json={"start_time": "09:30", "end_time": "11:30"},
        headers=admin,
    )
    assert response.status_code == 200
    assert response.json()["end_time"] == "11:30:00"

    invalid = client.put(f"/api/exams/{exam['id']}", json={"end_time": "08:00"}, headers=admin)
    assert invalid.status_code == 422
    assert invalid.json()["message"] == "end_time must be after start_time"


def test_create_validates_payload(client):
    _, admin = _account(client, "Admin User", "admin")

    reversed_times = client.post("/api/exams/", json=_exam(start_time="11:00", end_time="10:00"), headers=admin)
    assert reversed_times.status_code == 422

    no_room = client.post("/api/exams/", json=_exam(room_name="  "), headers=admin)
    assert no_room.status_code == 422

    bad_day = client.post("/api/exams/", json=_exam(day="Funday"), headers=admin)
    assert bad_day.status_code == 422

    unknown_room = client.post("/api/exams/", json=_exam(room_name=None, room_id=999), headers=admin)
    assert unknown_room.status_code == 404


def test_check_endpoint_previews_without_saving(client):
    _, admin = _account(client, "Admin User", "admin")
    exam = client.post("/api/exams/", json=_exam(), headers=admin).json()

    preview = client.post(
        "/api/exams/check",
        json={
            "date": "2026-06-01",
            "start_time": "10:00",
            "end_time": "12:00",
            "room_id": exam["room_id"],
            "class_code_id": exam["class_code_id"],
        },
        headers=admin,
    )
    assert preview.status_code == 200
    body = preview.json()
    assert body["has_clash"] is True
    assert body["clashes"][0]["kind"] == "room"
    assert body["message"].startswith("Exam scheduling conflict detected: ")

    assert len(client.get("/api/exams/", headers=admin).json()) == 1


def test_delete_all_exams(client):
    _, admin = _account(client, "Admin User", "admin")
    client.post("/api/exams/", json=_exam(), headers=admin)
    client.post("/api/exams/", json=_exam(date="2026-06-02"), headers=admin)

    response = client.delete("/api/exams/", headers=admin)
    assert response.status_code == 200
    assert response.json() == {"success": True, "deleted_count": 2}
    assert client.get("/api/exams/", headers=admin).json() == []


def test_rooms_and_class_codes_admin_routes(client):
    _, admin = _account(client, "Admin User", "admin")
    _, student = _account(client, "Student User", "student")

    created = client.post("/api/rooms/", json={"name": "Lab 1", "capacity": 30}, headers=admin)
    assert created.status_code == 201
    assert client.post("/api/rooms/", json={"name": "Lab 1"}, headers=admin).status_code == 409
    assert client.post("/api/rooms/", json={"name": "Lab 2"}, headers=student).status_code == 403
    assert [room["name"] for room in client.get("/api/rooms/", headers=student).json()] == ["Lab 1"]

    missing_teacher = client.post("/api/class-codes/", json={"code": "CS101", "teacher_id": 999}, headers=admin)
    assert missing_teacher.status_code == 404

    class_code = client.post("/api/class-codes/", json={"code": "CS101"}, headers=admin).json()
    assert class_code["teacher"] is None
    assert class_code["students"] == []

    updated = client.put(f"/api/class-codes/{class_code['id']}", json={"student_ids": [1]}, headers=admin)
    assert updated.status_code == 404
