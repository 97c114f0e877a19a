"""
Tests for Transactions API endpoints
"""
import pytest
from decimal import Decimal

from conftest import register_and_login

URL = "/api/v1/transactions/"


def _create(client, **overrides):
    payload = {
        "kind": "expense",
        "amount": "12000",
        "category": "식비",
        "description": "점심",
        "occurred_on": "2026-10-05",
    }
    payload.update(overrides)
    return client.post(URL, json=payload)


def test_requires_authentication(client):
    response = client.get(URL)

    assert response.status_code == 401
    assert response.json()["message"] == "Требуется авторизация"


def test_create_and_list(authenticated_client):
    response = _create(authenticated_client, kind="income", amount=3200000, category="급여")

    assert response.status_code == 201
    created = response.json()
    assert created["kind"] == "income"
    assert Decimal(created["amount"]) == Decimal("3200000")
    assert created["occurred_on"] == "2026-10-05"

    listed = authenticated_client.get(URL).json()
    assert [tx["id"] for tx in listed] == [created["id"]]


def test_create_rejects_invalid_fields(authenticated_client):
    response = _create(authenticated_client, amount=0)
    assert response.status_code == 400
    assert response.json()["field"] == "amount"

    response = _create(authenticated_client, kind="transfer")
    assert response.status_code == 400
    assert response.json()["field"] == "kind"

    response = _create(authenticated_client, occurred_on="yesterday")
    assert response.status_code == 400
    assert response.json()["field"] == "occurred_on"

    # не помещается в Numeric(20, 2): 400, а не ошибка хранилища
    response = _create(authenticated_client, kind="income", amount=10**30)
    assert response.status_code == 400
    assert response.json() == {"message": "Слишком большая сумма", "field": "amount"}

    assert authenticated_client.get(URL).json() == []


def test_amounts_are_returned_with_two_decimals(authenticated_client):
    created = _create(authenticated_client, amount=12000).json()
    assert created["amount"] == "12000.00"

    updated = authenticated_client.patch(f"{URL}{created['id']}", json={"amount": 0.5}).json()
    assert updated["amount"] == "0.50"


def test_list_filter_and_bad_query(authenticated_client):
    _create(authenticated_client, kind="income", category="급여")
    _create(authenticated_client, kind="expense")

    incomes = authenticated_client.get(URL, params={"kind": "income"}).json()
    assert [tx["kind"] for tx in incomes] == ["income"]

    response = authenticated_client.get(URL, params={"limit": "many"})
    assert response.status_code == 400
    assert response.json()["field"] == "limit"


def test_get_update_delete(authenticated_client):
    tx_id = _create(authenticated_client).json()["id"]

    assert authenticated_client.get(f"{URL}{tx_id}").json()["category"] == "식비"

    response = authenticated_client.patch(f"{URL}{tx_id}", json={"amount": "15000.50"})
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["amount"]) == Decimal("15000.50")
    assert body["description"] == "점심"

    response = authenticated_client.delete(f"{URL}{tx_id}")
    assert response.status_code == 200
    assert response.json() == {"status": "deleted"}

    assert authenticated_client.get(f"{URL}{tx_id}").status_code == 404


def test_update_rejects_non_positive_amount(authenticated_client):
    tx_id = _create(authenticated_client).json()["id"]

    response = authenticated_client.patch(f"{URL}{tx_id}", json={"amount": -5})

    assert response.status_code == 400
    assert response.json()["field"] == "amount"
    assert Decimal(authenticated_client.get(f"{URL}{tx_id}").json()["amount"]) == Decimal("12000")


def test_malformed_id_is_bad_request(authenticated_client):
    response = authenticated_client.delete(f"{URL}not-a-uuid")

    assert response.status_code == 400
    assert response.json()["field"] == "transaction_id"


def test_other_users_transaction_is_forbidden(client):
    register_and_login(client, "first@example.com")
    tx_id = _create(client).json()["id"]
    client.post("/api/v1/auth/logout")

    register_and_login(client, "second@example.com")
    assert client.delete(f"{URL}{tx_id}").status_code == 403
    assert client.patch(f"{URL}{tx_id}", json={"amount": 1}).status_code == 403
    assert client.get(URL).json() == []

    client.post("/api/v1/auth/logout")
    client.post("/api/v1/auth/login", json={"email": "first@example.com", "password": "password123"})
    assert client.get(f"{URL}{tx_id}").status_code == 200


@pytest.mark.usefixtures("use_incremental_strategy")
def test_incremental_strategy_keeps_summary_in_step(authenticated_client):
    salary_id = _create(authenticated_client, kind="income", amount="3200000", category="급여").json()["id"]
    rent_id = _create(authenticated_client, kind="expense", amount="1800000", category="월세").json()["id"]

    authenticated_client.patch(f"{URL}{rent_id}", json={"amount": "1700000"})
    authenticated_client.delete(f"{URL}{salary_id}")

    summary = authenticated_client.get("/api/v1/summary/").json()
    assert summary["strategy"] == "incremental"
    assert Decimal(summary["income"]) == 0
    assert Decimal(summary["expense"]) == Decimal("1700000")
    assert Decimal(summary["balance"]) == Decimal("-1700000")

    assert authenticated_client.get("/api/v1/summary/consistency").json()["consistent"] is True
