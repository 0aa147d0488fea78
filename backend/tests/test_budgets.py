"""Budget endpoint and validation tests."""

import pytest
from freezegun import freeze_time

from errors import ValidationError
from services import budgets_service


@freeze_time("2026-03-15")
def test_current_month():
    assert budgets_service.current_month() == "2026-03"


@pytest.mark.parametrize(
    "amount,expected",
    [
        (100, "100.00"),
        ("250.5", "250.50"),
        (0, "0.00"),
        (19.999, "20.00"),
    ],
)
def test_validate_amount_accepts(amount, expected):
    assert str(budgets_service.validate_amount(amount)) == expected


@pytest.mark.parametrize(
    "amount", [-1, "abc", True, float("nan"), float("inf"), "1e12", [], {}]
)
def test_validate_amount_rejects(amount):
    with pytest.raises(ValidationError) as exc_info:
        budgets_service.validate_amount(amount)
    assert exc_info.value.message == "Amount must be a valid positive number"


@pytest.mark.parametrize("month", ["2026-13", "2026-1", "26-01", "2026/01", 202601])
def test_validate_month_rejects(month):
    with pytest.raises(ValidationError):
        budgets_service.validate_month(month)


def test_budgets_require_authentication(client):
    response = client.get("/api/budgets")
    assert response.status_code == 401


def test_create_and_list_budgets(auth_client):
    for category, amount in [("Groceries", 400), ("Dining", "150.25")]:
        response = auth_client.post(
            "/api/budgets", json={"category": category, "amount": amount}
        )
        assert response.status_code == 200
        assert response.json["message"] == "Budget saved successfully"
        assert response.json["budget"]["category"] == category

    response = auth_client.get("/api/budgets")

    assert response.status_code == 200
    budgets = response.json["budgets"]
    assert [b["category"] for b in budgets] == ["Dining", "Groceries"]
    assert budgets[0]["amount"] == 150.25
    assert all(b["month"] == budgets_service.current_month() for b in budgets)


def test_saving_same_category_and_month_updates_amount(auth_client):
    payload = {"category": "Rent", "amount": 1200, "month": "2026-09"}
    first = auth_client.post("/api/budgets", json=payload).json["budget"]
    second = auth_client.post("/api/budgets", json={**payload, "amount": 1300}).json["budget"]

    assert first["id"] == second["id"]
    assert second["amount"] == 1300.0

    budgets = auth_client.get("/api/budgets?month=2026-09").json["budgets"]
    assert len(budgets) == 1


def test_budgets_are_per_month(auth_client):
    auth_client.post("/api/budgets", json={"category": "Rent", "amount": 1, "month": "2026-08"})
    auth_client.post("/api/budgets", json={"category": "Rent", "amount": 2, "month": "2026-09"})

    august = auth_client.get("/api/budgets?month=2026-08").json["budgets"]
    september = auth_client.get("/api/budgets?month=2026-09").json["budgets"]
    assert august[0]["amount"] == 1.0
    assert september[0]["amount"] == 2.0


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"amount": 10}, "Category and amount are required"),
        ({"category": "Food"}, "Category and amount are required"),
        ({"category": "Food", "amount": -5}, "Amount must be a valid positive number"),
        ({"category": "Food", "amount": "lots"}, "Amount must be a valid positive number"),
    ],
)
def test_create_budget_validation(auth_client, payload, message):
    response = auth_client.post("/api/budgets", json=payload)

    assert response.status_code == 400
    assert response.json["error"] == message


def test_invalid_month_query_is_rejected(auth_client):
    response = auth_client.get("/api/budgets?month=October")
    assert response.status_code == 400
    assert response.json["field"] == "month"


def test_json_array_body_rejected(auth_client):
    response = auth_client.post("/api/budgets", json=["Food", 10])

    assert response.status_code == 400
    assert response.json["error"] == "Request body must be a JSON object"


def test_delete_budget(auth_client):
    budget = auth_client.post(
        "/api/budgets", json={"category": "Travel", "amount": 500}
    ).json["budget"]

    response = auth_client.delete(f"/api/budgets/{budget['id']}")
    assert response.status_code == 200
    assert response.json["message"] == "Budget deleted successfully"
    deleted = response.json["budget"]
    assert (deleted["id"], deleted["category"], deleted["amount"]) == (
        budget["id"],
        "Travel",
        500.0,
    )

    response = auth_client.delete(f"/api/budgets/{budget['id']}")
    assert response.status_code == 404
    assert response.json["error"] == "Budget not found"


def test_cannot_delete_another_users_budget(app, auth_client):
    budget = auth_client.post(
        "/api/budgets", json={"category": "Travel", "amount": 500}
    ).json["budget"]

    other = app.test_client()
    other.post(
        "/api/auth/register",
        json={"username": "intruder", "email": "intruder@test.com", "password": "testpass123"},
    )

    response = other.delete(f"/api/budgets/{budget['id']}")
    assert response.status_code == 404
    assert len(auth_client.get("/api/budgets").json["budgets"]) == 1
