import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_class_defaults(client: AsyncClient, admin_headers) -> None:
    response = await client.post(
        "/api/v1/classes",
        json={"name": "Spanish A2 Evenings", "language": "Spanish", "level": "A2", "schedule": "Mon/Wed 18:00"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["max_students"] == 10
    assert data["current_students"] == 0
    assert data["status"] == "Active"
    assert data["teacher_id"] is None


@pytest.mark.asyncio
async def test_create_class_coerces_numeric_capacity(client: AsyncClient, admin_headers) -> None:
    response = await client.post(
        "/api/v1/classes",
        json={"name": "French B1", "language": "French", "level": "B1", "max_students": "12"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["max_students"] == 12


@pytest.mark.asyncio
async def test_create_class_rejects_blank_name(client: AsyncClient, admin_headers) -> None:
    response = await client.post(
        "/api/v1/classes",
        json={"name": "   ", "language": "French", "level": "B1"},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_classes_ordered_by_name_with_status_filter(client: AsyncClient, admin_headers, seed) -> None:
    await seed.school_class(name="Zulu")
    await seed.school_class(name="Alpha")
    await seed.school_class(name="Mike", status="Inactive")

    response = await client.get("/api/v1/classes", headers=admin_headers)
    assert [c["name"] for c in response.json()] == ["Alpha", "Mike", "Zulu"]

    response = await client.get("/api/v1/classes", params={"status": "Active"}, headers=admin_headers)
    assert [c["name"] for c in response.json()] == ["Alpha", "Zulu"]


@pytest.mark.asyncio
async def test_get_class_not_found(client: AsyncClient, admin_headers) -> None:
    response = await client.get("/api/v1/classes/00000000-0000-0000-0000-000000000001", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_cannot_shrink_below_active_count(client: AsyncClient, admin_headers, seed) -> None:
    class_id = await seed.school_class(max_students=5)
    students = [await seed.student(full_name=f"S{i}") for i in range(3)]
    await seed.enroll(class_id, students)

    response = await client.put(f"/api/v1/classes/{class_id}", json={"max_students": 2}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.put(
        f"/api/v1/classes/{class_id}",
        json={"max_students": 3, "schedule": "Sat 10:00"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["max_students"] == 3
    assert response.json()["schedule"] == "Sat 10:00"


@pytest.mark.asyncio
async def test_delete_blocked_while_students_active(client: AsyncClient, admin_headers, seed) -> None:
    class_id = await seed.school_class()
    student_id = await seed.student()
    await seed.enroll(class_id, [student_id])

    response = await client.delete(f"/api/v1/classes/{class_id}", headers=admin_headers)
    assert response.status_code == 400

    await client.post(
        "/api/v1/enrollments/unassign-student",
        json={"class_id": str(class_id), "student_id": str(student_id)},
        headers=admin_headers,
    )
    response = await client.delete(f"/api/v1/classes/{class_id}", headers=admin_headers)
    assert response.status_code == 204
    response = await client.get(f"/api/v1/classes/{class_id}", headers=admin_headers)
    assert response.status_code == 404
