import re

import pytest
from httpx import AsyncClient

from app.db.session import get_db
from app.db.store import DocumentStore
from app.main import app

from conftest import FailingSession, create_student


def cash(student_id: str, amount=50, term_key: str = "2025_Term1"):
    return {
        "studentId": student_id,
        "amount": amount,
        "termKey": term_key,
        "bursarId": "bursar-1",
        "bursarUsername": "bursar.jane",
    }


def adjustment(student_id: str, amount, adjustment_type: str, term_key: str = "2025_Term1"):
    return {
        "studentId": student_id,
        "adjustmentAmount": amount,
        "termKey": term_key,
        "reason": "Sibling discount",
        "adjustmentType": adjustment_type,
        "bursarId": "bursar-1",
        "bursarUsername": "bursar.jane",
    }


@pytest.mark.asyncio
async def test_cash_payment_then_credit_adjustment(client: AsyncClient, seeded_store: DocumentStore) -> None:
    student_id = (await create_student(client))["studentId"]

    paid = await client.post("/api/v1/payments/cash", json=cash(student_id, 50))
    assert paid.status_code == 200, paid.text
    body = paid.json()
    assert body["newBalance"] == 150
    assert re.fullmatch(r"RCT-\d{6}-[A-Z0-9]{6}", body["receiptNumber"])

    student = await seeded_store.get(f"students/{student_id}")
    assert student["financials"]["terms"]["2025_Term1"] == {"fee": 200, "paid": 50}
    assert student["financials"]["balance"] == 150
    transactions = await seeded_store.find("transactions", "studentId", student_id)
    assert len(transactions) == 1
    tx = transactions[body["transactionId"]]
    assert (tx["type"], tx["status"], tx["amount"]) == ("cash", "completed", 50)

    credited = await client.post("/api/v1/payments/adjustments", json=adjustment(student_id, 30, "credit"))
    assert credited.status_code == 200, credited.text
    assert credited.json()["newBalance"] == 120
    student = await seeded_store.get(f"students/{student_id}")
    assert student["financials"]["terms"]["2025_Term1"] == {"fee": 200, "paid": 80}
    assert student["financials"]["balance"] == 120


@pytest.mark.asyncio
async def test_cash_payment_records_bursar_activity(client: AsyncClient, seeded_store: DocumentStore) -> None:
    student_id = (await create_student(client))["studentId"]
    body = (await client.post("/api/v1/payments/cash", json=cash(student_id, 75.5))).json()

    activity = await seeded_store.find("bursar_activity", "transactionId", body["transactionId"])
    assert len(activity) == 1
    record = next(iter(activity.values()))
    assert record["receiptNumber"] == body["receiptNumber"]
    assert record["amount"] == 75.5
    assert body["newBalance"] == 124.5


@pytest.mark.asyncio
async def test_debit_adjustment_raises_fee(client: AsyncClient, seeded_store: DocumentStore) -> None:
    student_id = (await create_student(client))["studentId"]

    response = await client.post("/api/v1/payments/adjustments", json=adjustment(student_id, 25, "debit"))

    assert response.json()["newBalance"] == 225
    terms = await seeded_store.get(f"students/{student_id}/financials/terms")
    assert terms["2025_Term1"] == {"fee": 225, "paid": 0}
    tx = await seeded_store.get(f"transactions/{response.json()['transactionId']}")
    assert tx["adjustmentType"] == "debit"
    assert tx["reason"] == "Sibling discount"


@pytest.mark.asyncio
async def test_payment_for_unknown_term_or_student(client: AsyncClient, seeded_store: DocumentStore) -> None:
    student_id = (await create_student(client))["studentId"]

    bad_term = await client.post("/api/v1/payments/cash", json=cash(student_id, 10, "2030_Term9"))
    assert bad_term.status_code == 400
    assert bad_term.json()["error"] == "Invalid term key"

    bad_student = await client.post("/api/v1/payments/cash", json=cash("MHS-NOPE", 10))
    assert bad_student.status_code == 400
    assert bad_student.json()["error"] == "Student not found"

    assert await seeded_store.get("transactions") is None


@pytest.mark.asyncio
async def test_non_positive_amounts_are_rejected(client: AsyncClient, seeded_store: DocumentStore) -> None:
    student_id = (await create_student(client))["studentId"]

    zero = await client.post("/api/v1/payments/cash", json=cash(student_id, 0))
    negative = await client.post("/api/v1/payments/adjustments", json=adjustment(student_id, -5, "credit"))

    assert zero.status_code == 400
    assert zero.json()["details"][0]["field"] == "amount"
    assert negative.status_code == 400
    assert await seeded_store.get(f"students/{student_id}/financials/balance") == 200


@pytest.mark.asyncio
async def test_list_transactions(client: AsyncClient, seeded_store: DocumentStore) -> None:
    first = (await create_student(client))["studentId"]
    second = (await create_student(client, studentNumber="MHS2025002"))["studentId"]
    await client.post("/api/v1/payments/cash", json=cash(first, 10))
    await client.post("/api/v1/payments/cash", json=cash(second, 20))
    await client.post("/api/v1/payments/adjustments", json=adjustment(first, 5, "debit"))

    everything = await client.get("/api/v1/payments/transactions")
    assert len(everything.json()["transactions"]) == 3

    mine = await client.get("/api/v1/payments/transactions", params={"studentId": first})
    rows = mine.json()["transactions"]
    assert {r["type"] for r in rows} == {"cash", "adjustment"}
    assert rows[0]["createdAt"] >= rows[1]["createdAt"]


@pytest.mark.asyncio
async def test_store_failure_returns_opaque_error(
    client: AsyncClient, seeded_store: DocumentStore, session_factory
) -> None:
    student_id = (await create_student(client))["studentId"]

    async def failing_db():
        async with session_factory() as session:
            yield FailingSession(session, fail_on_write=2)

    app.dependency_overrides[get_db] = failing_db
    response = await client.post("/api/v1/payments/cash", json=cash(student_id, 50))

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to save changes"}
    assert await seeded_store.get(f"students/{student_id}/financials/balance") == 200
    assert await seeded_store.find("transactions", "studentId", student_id) == {}
    assert await seeded_store.get("bursar_activity") is None
