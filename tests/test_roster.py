import pytest
from httpx import AsyncClient


async def _save(client, headers, class_id, marks):
    records = [
        {"student_id": str(sid), "session_date": day, "status": status, "class_id": str(class_id)}
        for sid, day, status in marks
    ]
    response = await client.post(
        "/api/v1/attendance/save-attendance",
        json={"class_id": str(class_id), "records": records},
        headers=headers,
    )
    assert response.status_code == 200


@pytest.fixture()
async def classroom(seed):
    teacher_id = await seed.teacher(full_name="Maria Lopez")
    class_id = await seed.school_class(name="Spanish A1", teacher_id=teacher_id)
    zoe = await seed.student(full_name="Zoe")
    adam = await seed.student(full_name="Adam")
    await seed.enroll(class_id, [zoe, adam])
    return teacher_id, class_id, zoe, adam


@pytest.mark.asyncio
async def test_sessions_grouped_most_recent_first(client: AsyncClient, classroom, headers_for) -> None:
    teacher_id, class_id, zoe, adam = classroom
    headers = headers_for(teacher_id)
    await _save(client, headers, class_id, [(zoe, "2024-05-01", "present"), (adam, "2024-05-01", "absent")])
    await _save(client, headers, class_id, [(zoe, "2024-05-08", "late"), (adam, "2024-05-08", "late")])

    response = await client.get("/api/v1/roster/attendance-sessions", params={"class_id": str(class_id)}, headers=headers)
    assert response.status_code == 200
    assert response.json()["sessions"] == [
        {"date": "2024-05-08", "present": 0, "absent": 0, "late": 2},
        {"date": "2024-05-01", "present": 1, "absent": 1, "late": 0},
    ]


@pytest.mark.asyncio
async def test_session_detail_sorted_by_name(client: AsyncClient, classroom, headers_for, admin_headers) -> None:
    teacher_id, class_id, zoe, adam = classroom
    await _save(client, headers_for(teacher_id), class_id, [(zoe, "2024-05-01", "present"), (adam, "2024-05-01", "late")])

    response = await client.get(
        "/api/v1/roster/attendance-session-detail",
        params={"class_id": str(class_id), "date": "2024-05-01"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["class_id"] == str(class_id)
    assert body["session_date"] == "2024-05-01"
    assert [(s["name"], s["status"]) for s in body["students"]] == [("Adam", "late"), ("Zoe", "present")]


@pytest.mark.asyncio
async def test_class_roster(client: AsyncClient, classroom, seed, admin_headers) -> None:
    teacher_id, class_id, zoe, adam = classroom
    dropped = await seed.student(full_name="Dropped")
    await seed.enroll(class_id, [dropped], status="inactive")

    response = await client.get("/api/v1/roster/class-roster", params={"class_id": str(class_id)}, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["class"]["name"] == "Spanish A1"
    assert [s["name"] for s in body["students"]] == ["Adam", "Zoe"]
    assert body["teacher"]["id"] == str(teacher_id)
    assert body["teacher"]["name"] == "Maria Lopez"


@pytest.mark.asyncio
async def test_roster_without_teacher(client: AsyncClient, seed, admin_headers) -> None:
    class_id = await seed.school_class()
    response = await client.get("/api/v1/roster/class-roster", params={"class_id": str(class_id)}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["teacher"] is None
    assert response.json()["students"] == []


@pytest.mark.asyncio
async def test_teacher_reads_only_own_class(client: AsyncClient, classroom, seed, headers_for) -> None:
    _, class_id, _, _ = classroom
    other_teacher = await seed.teacher(full_name="Other")

    response = await client.get(
        "/api/v1/roster/class-roster", params={"class_id": str(class_id)}, headers=headers_for(other_teacher)
    )
    assert response.status_code == 403
    response = await client.get(
        "/api/v1/roster/attendance-sessions", params={"class_id": str(class_id)}, headers=headers_for(other_teacher)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_student_cannot_read_roster(client: AsyncClient, classroom, headers_for) -> None:
    _, class_id, zoe, _ = classroom
    response = await client.get("/api/v1/roster/class-roster", params={"class_id": str(class_id)}, headers=headers_for(zoe))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_my_classes_for_teacher(client: AsyncClient, classroom, seed, headers_for) -> None:
    teacher_id, _, _, _ = classroom
    await seed.school_class(name="Spanish B1", teacher_id=teacher_id)
    await seed.school_class(name="Not mine")

    response = await client.get("/api/v1/roster/my-classes", headers=headers_for(teacher_id))
    assert response.status_code == 200
    assert [c["name"] for c in response.json()["classes"]] == ["Spanish A1", "Spanish B1"]


@pytest.mark.asyncio
async def test_my_class_for_student(client: AsyncClient, classroom, seed, headers_for) -> None:
    _, class_id, zoe, _ = classroom
    response = await client.get("/api/v1/roster/my-class", headers=headers_for(zoe))
    assert response.status_code == 200
    assert response.json()["class"]["id"] == str(class_id)
    assert response.json()["teacher_name"] == "Maria Lopez"

    waiting = await seed.student(full_name="Waiting")
    response = await client.get("/api/v1/roster/my-class", headers=headers_for(waiting))
    assert response.json() == {"class": None, "teacher_name": None}


@pytest.mark.asyncio
async def test_admin_dashboard(client: AsyncClient, classroom, seed, admin_headers) -> None:
    await seed.student(full_name="W1", language="French", level="B1")
    await seed.student(full_name="W2", language="French", level="B1")
    await seed.student(full_name="W3", language="German", level="A1")
    await seed.school_class(name="Closed", status="Inactive")

    response = await client.get("/api/v1/roster/dashboard", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["stats"] == {"total_students": 5, "waiting": 3, "active_classes": 1, "teachers": 1}
    assert body["waiting_pool"] == [
        {"name": "French B1", "count": 2, "max": 10},
        {"name": "German A1", "count": 1, "max": 10},
    ]
    assert body["admin"]["full_name"] == "Ada Admin"
