import copy

import pytest
from httpx import AsyncClient

from app.api.v1.fee_structure.schemas import FeeStructureUpdate
from app.api.v1.fee_structure.service import update_fee_structure
from app.api.v1.students import service as students_service
from app.api.v1.students.schemas import StudentCreate
from app.api.v1.terms import service as terms_service
from app.api.v1.terms.schemas import TermChangeRequest
from app.core.exceptions import PreconditionFailed
from app.db.store import DocumentStore

from conftest import TEST_FEES, create_student, student_payload


@pytest.mark.asyncio
async def test_read_fee_structure(client: AsyncClient, seeded_store: DocumentStore) -> None:
    response = await client.get("/api/v1/fee-structure")
    assert response.status_code == 200
    data = response.json()
    assert data["fees"]["boarder"]["aLevelArts"] == 310
    assert data["currencyCode"] == 840


@pytest.mark.asyncio
async def test_schedule_update_rebills_matching_students(client: AsyncClient, seeded_store: DocumentStore) -> None:
    sciences = await create_student(
        client, studentNumber="A1", gradeCategory="ALevel", grade="Lower 6 Sciences"
    )
    arts = await create_student(client, studentNumber="A2", gradeCategory="ALevel", grade="Lower 6 Arts")
    pay = await client.post(
        "/api/v1/payments/cash",
        json={
            "studentId": sciences["studentId"],
            "amount": 100,
            "termKey": "2025_Term1",
            "bursarId": "bursar-1",
            "bursarUsername": "bursar.jane",
        },
    )
    assert pay.status_code == 200

    fees = copy.deepcopy(TEST_FEES)
    fees["dayScholar"]["aLevelSciences"] = 275
    response = await client.put("/api/v1/fee-structure", json={"fees": fees, "adminId": "admin-001"})

    assert response.status_code == 200, response.text
    assert response.json()["studentsUpdated"] == 1
    student = await seeded_store.get(f"students/{sciences['studentId']}")
    assert student["financials"]["terms"]["2025_Term1"] == {"fee": 275, "paid": 100}
    assert student["financials"]["balance"] == 175
    untouched = await seeded_store.get(f"students/{arts['studentId']}")
    assert untouched["financials"]["terms"]["2025_Term1"] == {"fee": 210, "paid": 0}
    assert (await seeded_store.get("config/fees/dayScholar/aLevelSciences")) == 275


@pytest.mark.asyncio
async def test_schedule_update_requires_every_rate(client: AsyncClient, seeded_store: DocumentStore) -> None:
    fees = copy.deepcopy(TEST_FEES)
    del fees["boarder"]["zjc"]
    fees["dayScholar"]["oLevel"] = -5

    response = await client.put("/api/v1/fee-structure", json={"fees": fees, "adminId": "admin-001"})

    assert response.status_code == 400
    fields = {d["field"] for d in response.json()["details"]}
    assert fields == {"fees.boarder.zjc", "fees.dayScholar.oLevel"}
    assert (await seeded_store.get("config/fees")) == TEST_FEES


def replace_schedule_after_read(monkeypatch, module, session_factory, zjc_day_fee: int) -> None:
    """Make `module.load_fee_schedule` commit a new schedule from another session right after reading."""
    original = module.load_fee_schedule

    async def read_then_replace(store: DocumentStore):
        schedule = await original(store)
        fees = copy.deepcopy(TEST_FEES)
        fees["dayScholar"]["zjc"] = zjc_day_fee
        async with session_factory() as session:
            await update_fee_structure(
                DocumentStore(session),
                FeeStructureUpdate.model_validate({"fees": fees, "adminId": "admin-001"}),
            )
        return schedule

    monkeypatch.setattr(module, "load_fee_schedule", read_then_replace)


@pytest.mark.asyncio
async def test_create_student_rejects_schedule_changed_while_billing(
    seeded_store: DocumentStore, session_factory, monkeypatch
) -> None:
    replace_schedule_after_read(monkeypatch, students_service, session_factory, 999)

    with pytest.raises(PreconditionFailed):
        await students_service.create_student(seeded_store, StudentCreate.model_validate(student_payload()))

    assert await seeded_store.get("students") is None
    assert await seeded_store.get("users") is None
    assert await seeded_store.get("config/fees/dayScholar/zjc") == 999

    monkeypatch.undo()
    created = await students_service.create_student(seeded_store, StudentCreate.model_validate(student_payload()))
    terms = await seeded_store.get(f"students/{created.student_id}/financials/terms")
    assert terms == {"2025_Term1": {"fee": 999, "paid": 0}}


@pytest.mark.asyncio
async def test_activate_term_rejects_schedule_changed_while_billing(
    client: AsyncClient, seeded_store: DocumentStore, session_factory, monkeypatch
) -> None:
    student_id = (await create_student(client))["studentId"]
    replace_schedule_after_read(monkeypatch, terms_service, session_factory, 999)
    request = TermChangeRequest(term_key="2025_Term2", admin_id="admin-001")

    with pytest.raises(PreconditionFailed):
        await terms_service.activate_term(seeded_store, request)

    assert await seeded_store.get("config/activeTerms") == ["2025_Term1"]
    terms = await seeded_store.get(f"students/{student_id}/financials/terms")
    assert terms == {"2025_Term1": {"fee": 999, "paid": 0}}

    monkeypatch.undo()
    await terms_service.activate_term(seeded_store, request)
    terms = await seeded_store.get(f"students/{student_id}/financials/terms")
    assert terms["2025_Term2"] == {"fee": 999, "paid": 0}
