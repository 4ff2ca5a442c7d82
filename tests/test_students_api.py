import pytest
from httpx import AsyncClient

from app.auth.security import verify_password
from app.db.store import DocumentStore

from conftest import create_student, student_payload


@pytest.mark.asyncio
async def test_create_student_bills_active_terms(client: AsyncClient, seeded_store: DocumentStore) -> None:
    data = await create_student(client, studentType="Boarder", gradeCategory="OLevel", grade="Form 4")

    assert data["success"] is True
    assert data["studentNumber"] == "MHS2025001"
    assert data["totalBalance"] == 320
    student = await seeded_store.get(f"students/{data['studentId']}")
    assert student["financials"] == {"balance": 320, "terms": {"2025_Term1": {"fee": 320, "paid": 0}}}
    assert student["createdAt"] == student["updatedAt"]


@pytest.mark.asyncio
async def test_create_student_adds_login_and_notifications(client: AsyncClient, seeded_store: DocumentStore) -> None:
    data = await create_student(client)
    user = await seeded_store.get(f"users/{data['studentId']}")

    assert user["username"] == "MHS2025001"
    assert user["role"] == "student"
    assert "password" not in user
    assert verify_password("student123", user["passwordHash"])

    welcome = await seeded_store.find("notifications", "userId", data["studentId"])
    assert len(welcome) == 1
    admin = await seeded_store.find("notifications", "userId", "admin-001")
    assert [n["title"] for n in admin.values()] == ["New Student Added"]


@pytest.mark.asyncio
async def test_duplicate_student_number_rejected(client: AsyncClient, seeded_store: DocumentStore) -> None:
    await create_student(client)
    response = await client.post("/api/v1/students", json=student_payload(name="Other"))
    assert response.status_code == 409
    assert response.json()["success"] is False
    assert len(await seeded_store.get("students")) == 1


@pytest.mark.asyncio
async def test_create_student_without_configuration(client: AsyncClient, store: DocumentStore) -> None:
    response = await client.post("/api/v1/students", json=student_payload())
    assert response.status_code == 400
    assert response.json()["error"] == "School configuration not found"
    assert await store.get("students") is None


@pytest.mark.asyncio
async def test_create_student_validation(client: AsyncClient, seeded_store: DocumentStore) -> None:
    response = await client.post(
        "/api/v1/students", json=student_payload(studentType="Weekly", gradeCategory="Primary")
    )
    assert response.status_code == 400
    fields = {d["field"] for d in response.json()["details"]}
    assert fields == {"studentType", "gradeCategory"}


@pytest.mark.asyncio
async def test_list_and_get_students(client: AsyncClient, seeded_store: DocumentStore) -> None:
    first = await create_student(client, surname="Zulu")
    await create_student(client, studentNumber="MHS2025002", surname="Banda")

    listing = await client.get("/api/v1/students")
    assert [s["surname"] for s in listing.json()["students"]] == ["Banda", "Zulu"]

    single = await client.get(f"/api/v1/students/{first['studentId']}")
    assert single.status_code == 200
    assert single.json()["student"]["surname"] == "Zulu"

    missing = await client.get("/api/v1/students/MHS-NOPE")
    assert missing.status_code == 400
    assert missing.json() == {"success": False, "error": "Student not found"}


@pytest.mark.asyncio
async def test_update_student_profile_leaves_ledger(client: AsyncClient, seeded_store: DocumentStore) -> None:
    created = await create_student(client)
    response = await client.put(
        f"/api/v1/students/{created['studentId']}",
        json={
            "name": "Tariro",
            "surname": "Ncube",
            "guardianPhoneNumber": "+263772000000",
            "grade": "Form 3",
            "studentType": "Boarder",
            "adminId": "admin-001",
        },
    )

    assert response.status_code == 200, response.text
    student = response.json()["student"]
    assert student["surname"] == "Ncube"
    assert student["studentType"] == "Boarder"
    assert student["financials"]["terms"]["2025_Term1"] == {"fee": 200, "paid": 0}
    assert student["financials"]["balance"] == 200


@pytest.mark.asyncio
async def test_delete_student_cascades(client: AsyncClient, seeded_store: DocumentStore) -> None:
    keep = await create_student(client, studentNumber="KEEP1")
    gone = await create_student(client)
    for student in (keep, gone):
        await client.post(
            "/api/v1/payments/cash",
            json={
                "studentId": student["studentId"],
                "amount": 20,
                "termKey": "2025_Term1",
                "bursarId": "bursar-1",
                "bursarUsername": "bursar.jane",
            },
        )

    response = await client.request(
        "DELETE", f"/api/v1/students/{gone['studentId']}", json={"adminId": "admin-001"}
    )

    assert response.status_code == 200, response.text
    assert response.json()["transactionsRemoved"] == 1
    assert await seeded_store.get(f"students/{gone['studentId']}") is None
    assert await seeded_store.get(f"users/{gone['studentId']}") is None
    assert await seeded_store.find("transactions", "studentId", gone["studentId"]) == {}
    assert await seeded_store.find("notifications", "userId", gone["studentId"]) == {}
    assert len(await seeded_store.find("transactions", "studentId", keep["studentId"])) == 1
    admin_titles = [n["title"] for n in (await seeded_store.find("notifications", "userId", "admin-001")).values()]
    assert "Student Deleted" in admin_titles


@pytest.mark.asyncio
async def test_delete_unknown_student(client: AsyncClient, seeded_store: DocumentStore) -> None:
    response = await client.request("DELETE", "/api/v1/students/MHS-NOPE", json={"adminId": "admin-001"})
    assert response.status_code == 400
