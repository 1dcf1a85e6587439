"""Integration tests for the finance API endpoints"""

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from nivi_budget.api.dependencies import get_identity_client, get_snapshot_writer
from nivi_budget.domain.exceptions import IdentityServiceError
from nivi_budget.infrastructure.database.models import FinanceDocument
from nivi_budget.infrastructure.database.snapshots import SnapshotWriter


def category(document: dict, category_id: str) -> dict:
    return next(c for c in document["categories"] if c["id"] == category_id)


def subcategory(document: dict, category_id: str, name: str) -> dict:
    return next(s for s in category(document, category_id)["subcategories"] if s["name"] == name)


def add_income(client: TestClient, headers: dict, amount: float = 10000) -> dict:
    response = client.post(
        "/v1/finance/income",
        json={"amount": amount, "description": "Salary", "source": "Employer"},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, auth_headers):
    """Test Prometheus metrics endpoint"""
    add_income(client, auth_headers)
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "nivi_finance_mutations_total" in response.text


def test_requires_bearer_token(client: TestClient):
    assert client.get("/v1/finance").status_code in (401, 403)
    response = client.get("/v1/finance", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


def test_identity_outage_returns_503(client: TestClient, auth_headers):
    failing = MagicMock()
    failing.resolve_user.side_effect = IdentityServiceError("down")
    client.app.dependency_overrides[get_identity_client] = lambda: failing

    response = client.get("/v1/finance", headers=auth_headers)

    assert response.status_code == 503


def test_get_creates_default_document(client: TestClient, auth_headers, db: Session):
    """Test first access seeds four categories at zero allocation"""
    response = client.get("/v1/finance", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["income"] == 0
    assert [c["id"] for c in data["categories"]] == ["needs", "wants", "goals", "unwanted"]
    assert all(c["totalAllocated"] == 0 for c in data["categories"])
    assert subcategory(data, "needs", "Bank EMI")["allocatedPercentage"] == 30
    assert db.get(FinanceDocument, "alice") is not None
    assert "X-Request-ID" in response.headers


def test_add_income_allocates_and_saves(client: TestClient, auth_headers, db: Session):
    """Test income 10000 gives needs 6000 and Bank EMI 1800, then persists"""
    data = add_income(client, auth_headers)

    assert data["income"] == 10000
    assert category(data, "needs")["totalAllocated"] == 6000
    assert subcategory(data, "needs", "Bank EMI")["allocatedAmount"] == 1800
    assert len(data["incomeTransactions"]) == 1

    db.expire_all()
    stored = db.get(FinanceDocument, "alice").payload
    assert stored["income"] == 10000
    assert category(stored, "needs")["totalAllocated"] == 6000


def test_invalid_income_rejected(client: TestClient, auth_headers):
    response = client.post("/v1/finance/income", json={"amount": 0}, headers=auth_headers)
    assert response.status_code == 422


def test_income_edit_and_delete(client: TestClient, auth_headers):
    data = add_income(client, auth_headers)
    income_id = data["incomeTransactions"][0]["id"]

    response = client.patch(
        f"/v1/finance/income/{income_id}",
        json={"amount": 20000, "description": "Raise"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert category(response.json(), "wants")["totalAllocated"] == 4000

    response = client.delete(f"/v1/finance/income/{income_id}", headers=auth_headers)
    data = response.json()
    assert data["income"] == 0
    assert subcategory(data, "needs", "Bank EMI")["allocatedPercentage"] == 30


def test_expense_lifecycle(client: TestClient, auth_headers):
    data = add_income(client, auth_headers)
    vehicle = subcategory(data, "wants", "Vehicle (Gas/Repair)")

    response = client.post(
        f"/v1/finance/subcategories/{vehicle['id']}/expenses",
        json={"amount": 200, "description": "Fuel"},
        headers=auth_headers,
    )
    data = response.json()
    assert subcategory(data, "wants", "Vehicle (Gas/Repair)")["spentAmount"] == 200
    assert subcategory(data, "wants", "Vehicle (Gas/Repair)")["balance"] == 300
    assert category(data, "wants")["totalSpent"] == 200
    expense_id = data["transactions"][0]["id"]

    response = client.patch(
        f"/v1/finance/transactions/{expense_id}",
        json={"amount": 150, "description": "Fuel top-up"},
        headers=auth_headers,
    )
    assert subcategory(response.json(), "wants", "Vehicle (Gas/Repair)")["spentAmount"] == 150

    response = client.patch(f"/v1/finance/transactions/{expense_id}", json={"amount": 120}, headers=auth_headers)
    assert response.json()["transactions"][0]["description"] == "Fuel top-up"

    response = client.delete(f"/v1/finance/transactions/{expense_id}", headers=auth_headers)
    data = response.json()
    assert data["transactions"] == []
    assert category(data, "wants")["totalSpent"] == 0


def test_subcategory_management(client: TestClient, auth_headers):
    data = add_income(client, auth_headers)
    base = "/v1/finance/categories/unwanted/subcategories"

    data = client.post(base, json={"name": "Gaming", "percentage": 20}, headers=auth_headers).json()
    unwanted = category(data, "unwanted")
    assert sum(s["allocatedPercentage"] for s in unwanted["subcategories"]) == pytest.approx(100)
    gaming = subcategory(data, "unwanted", "Gaming")
    assert gaming["allocatedAmount"] == pytest.approx(100)

    data = client.put(
        f"{base}/{gaming['id']}/allocation", json={"amount": 250}, headers=auth_headers
    ).json()
    assert subcategory(data, "unwanted", "Gaming")["allocatedPercentage"] == pytest.approx(50)

    data = client.patch(f"{base}/{gaming['id']}", json={"name": "Games"}, headers=auth_headers).json()
    assert subcategory(data, "unwanted", "Games")["id"] == gaming["id"]

    for sub in category(data, "unwanted")["subcategories"]:
        data = client.delete(f"{base}/{sub['id']}", headers=auth_headers).json()

    remaining = category(data, "unwanted")["subcategories"]
    assert [s["name"] for s in remaining] == ["General"]
    assert remaining[0]["allocatedPercentage"] == 100


def test_allocation_above_category_total_rejected(client: TestClient, auth_headers):
    data = add_income(client, auth_headers)
    parties = subcategory(data, "unwanted", "Parties")

    response = client.put(
        f"/v1/finance/categories/unwanted/subcategories/{parties['id']}/allocation",
        json={"amount": 10_000},
        headers=auth_headers,
    )

    assert response.status_code == 422


def test_transfer_between_categories(client: TestClient, auth_headers):
    add_income(client, auth_headers)

    response = client.post(
        "/v1/finance/transfers",
        json={"fromCategoryId": "needs", "toCategoryId": "goals", "amount": 500},
        headers=auth_headers,
    )

    data = response.json()
    assert category(data, "needs")["totalAllocated"] == 5500
    assert category(data, "goals")["totalAllocated"] == 2000

    response = client.post(
        "/v1/finance/transfers",
        json={"fromCategoryId": "unwanted", "toCategoryId": "goals", "amount": 9999},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_unknown_ids_return_unchanged_state(client: TestClient, auth_headers):
    before = add_income(client, auth_headers)

    response = client.delete("/v1/finance/transactions/does-not-exist", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == before


def test_put_replaces_whole_document(client: TestClient, auth_headers, db: Session):
    document = add_income(client, auth_headers)
    document["emis"] = [
        {
            "id": "emi-1",
            "name": "Car",
            "amount": 500,
            "tenureLeft": 3,
            "totalTenure": 6,
            "paidCount": 3,
            "isActive": True,
        }
    ]

    response = client.put("/v1/finance", json=document, headers=auth_headers)

    assert response.status_code == 200
    assert client.get("/v1/finance", headers=auth_headers).json()["emis"][0]["id"] == "emi-1"
    db.expire_all()
    assert db.get(FinanceDocument, "alice").payload["emis"][0]["paidCount"] == 3


def test_put_rejects_broken_document(client: TestClient, auth_headers):
    document = add_income(client, auth_headers)
    document["categories"][0]["id"] = "luxuries"

    response = client.put("/v1/finance", json=document, headers=auth_headers)

    assert response.status_code == 422


def test_put_rejects_duplicate_categories_and_bad_shares(client: TestClient, auth_headers):
    document = add_income(client, auth_headers)
    duplicated = dict(document, categories=document["categories"][:1] * 2)

    assert client.put("/v1/finance", json=duplicated, headers=auth_headers).status_code == 422

    for sub in document["categories"][0]["subcategories"]:
        sub["allocatedPercentage"] = 90

    assert client.put("/v1/finance", json=document, headers=auth_headers).status_code == 422
    live = client.get("/v1/finance", headers=auth_headers).json()
    assert len(live["categories"]) == 4
    assert subcategory(live, "needs", "Bank EMI")["allocatedPercentage"] == 30


def test_put_rejects_income_without_matching_transactions(client: TestClient, auth_headers):
    document = client.get("/v1/finance", headers=auth_headers).json()
    document["income"] = 5000

    response = client.put("/v1/finance", json=document, headers=auth_headers)

    assert response.status_code == 422
    data = add_income(client, auth_headers, 1000)
    assert data["income"] == 1000
    assert category(data, "needs")["totalAllocated"] == 600


def test_users_are_isolated(client: TestClient, auth_headers):
    add_income(client, auth_headers)

    response = client.get("/v1/finance", headers={"Authorization": "Bearer token-bob"})

    assert response.json()["income"] == 0


def test_save_failure_keeps_in_memory_state(client: TestClient, auth_headers, db: Session):
    """Test a failed background save is swallowed and the session carries on"""
    session = MagicMock()
    session.get.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
    client.app.dependency_overrides[get_snapshot_writer] = lambda: SnapshotWriter(lambda: session)

    add_income(client, auth_headers)
    response = client.get("/v1/finance", headers=auth_headers)

    assert response.json()["income"] == 10000
    db.expire_all()
    assert db.get(FinanceDocument, "alice").payload["income"] == 0
