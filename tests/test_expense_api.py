from __future__ import annotations

import pytest

from conftest import expense_payload


def add(client, **overrides):
    return client.post("/api/expense/addExpense", json=expense_payload(**overrides))


def test_expense_routes_require_session(client):
    assert client.get("/api/expense/getExpenses").status_code == 401
    assert client.post("/api/expense/addExpense", json=expense_payload()).status_code == 401
    assert client.put("/api/expense/updateExpense/1", json=expense_payload()).status_code == 401
    assert client.delete("/api/expense/deleteExpense/1").status_code == 401


def test_add_expense_returns_created_record(alice):
    response = add(alice, vehicleNumber="mh 12 ab 1234", remarks="  loading  ", paymentTo="Ravi")
    assert response.status_code == 201

    body = response.json()
    assert body["message"] == "Expense added successfully"
    expense = body["expense"]
    assert expense["_id"] > 0
    assert expense["branch"] == "Mumbai"
    assert expense["expenseType"] == "Labour"
    assert expense["modeOfPayment"] == "Cash"
    assert expense["amount"] == 500
    assert expense["vehicleNumber"] == "MH 12 AB 1234"
    assert expense["remarks"] == "loading"
    assert expense["paymentTo"] == "Ravi"
    assert expense["date"].startswith("2024-01-05")
    assert "createdAt" in expense and "updatedAt" in expense


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"amount": -1}, "Amount"),
        ({"expenseType": "Food"}, "Expense type"),
        ({"modeOfPayment": "Bitcoin"}, "Mode of payment"),
        ({"branch": ""}, "Branch"),
        ({"remarks": "x" * 501}, "Remarks"),
    ],
)
def test_invalid_expense_is_rejected_and_not_stored(alice, overrides, field):
    response = add(alice, **overrides)
    assert response.status_code == 400
    assert response.json()["message"].startswith(field)
    assert alice.get("/api/expense/getExpenses").json() == {"expenses": []}


def test_validation_errors_are_aggregated(alice):
    response = alice.post(
        "/api/expense/addExpense",
        json={"branch": "Mumbai", "amount": -5, "expenseType": "Food"},
    )
    assert response.status_code == 400
    message = response.json()["message"]
    assert "Amount" in message
    assert "Expense type" in message
    assert "Mode of payment is required" in message


def test_list_is_scoped_to_owner_and_newest_first(alice, bob):
    add(alice, date="2024-03-01T00:00:00", amount=1)
    add(bob, date="2024-03-02T00:00:00", amount=2)
    add(alice, date="2024-03-10T00:00:00", amount=3)
    add(bob, date="2024-02-01T00:00:00", amount=4)
    add(alice, date="2024-01-15T00:00:00", amount=5)

    alice_expenses = alice.get("/api/expense/getExpenses").json()["expenses"]
    bob_expenses = bob.get("/api/expense/getExpenses").json()["expenses"]

    assert [e["amount"] for e in alice_expenses] == [3, 1, 5]
    assert [e["amount"] for e in bob_expenses] == [2, 4]
    assert len({e["userId"] for e in alice_expenses}) == 1
    dates = [e["date"] for e in alice_expenses]
    assert dates == sorted(dates, reverse=True)


def test_update_round_trip(alice):
    created = add(alice, paymentTo="Ravi", vehicleNumber="mh01", remarks="old").json()["expense"]

    response = alice.put(
        f"/api/expense/updateExpense/{created['_id']}",
        json={
            "date": "2024-02-10T00:00:00",
            "branch": "Delhi",
            "expenseType": "Staff Welfare",
            "amount": 120.75,
            "modeOfPayment": "Card",
            "vehicleNumber": "dl5c",
        },
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Expense updated successfully"

    listed = alice.get("/api/expense/getExpenses").json()["expenses"]
    assert len(listed) == 1
    expense = listed[0]
    assert expense["_id"] == created["_id"]
    assert expense["date"].startswith("2024-02-10")
    assert expense["branch"] == "Delhi"
    assert expense["expenseType"] == "Staff Welfare"
    assert expense["amount"] == 120.75
    assert expense["modeOfPayment"] == "Card"
    assert expense["vehicleNumber"] == "DL5C"
    assert expense["paymentTo"] is None
    assert expense["remarks"] is None


def test_update_validates_like_create(alice):
    created = add(alice).json()["expense"]
    response = alice.put(f"/api/expense/updateExpense/{created['_id']}", json=expense_payload(amount=-3))
    assert response.status_code == 400
    assert alice.get("/api/expense/getExpenses").json()["expenses"][0]["amount"] == 500


def test_non_owner_update_looks_like_missing_record(alice, bob):
    created = add(alice).json()["expense"]

    foreign = bob.put(f"/api/expense/updateExpense/{created['_id']}", json=expense_payload(amount=1))
    missing = bob.put(f"/api/expense/updateExpense/{created['_id'] + 999}", json=expense_payload(amount=1))

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json() == {"message": "Expense not found or unauthorized"}
    assert alice.get("/api/expense/getExpenses").json()["expenses"][0]["amount"] == 500


def test_delete_scenario_between_two_users(alice, bob):
    created = add(
        alice,
        date="2024-01-05T00:00:00",
        branch="Mumbai",
        expenseType="Labour",
        amount=500,
        modeOfPayment="Cash",
    ).json()["expense"]

    denied = bob.delete(f"/api/expense/deleteExpense/{created['_id']}")
    missing = bob.delete(f"/api/expense/deleteExpense/{created['_id'] + 999}")
    assert denied.status_code == missing.status_code == 404
    assert denied.json() == missing.json() == {"message": "Expense not found or unauthorized"}

    deleted = alice.delete(f"/api/expense/deleteExpense/{created['_id']}")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Expense deleted successfully"}

    remaining = alice.get("/api/expense/getExpenses").json()["expenses"]
    assert all(e["_id"] != created["_id"] for e in remaining)


def test_non_numeric_id_is_a_validation_error(alice):
    response = alice.delete("/api/expense/deleteExpense/abc")
    assert response.status_code == 400
    assert "message" in response.json()


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/expense/nope")
    assert response.status_code == 404
    assert response.json() == {"message": "Route not found", "path": "/api/expense/nope"}


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "Expense Tracker API is running!"
    health = client.get("/health").json()
    assert health == {"status": "OK", "database": "Connected"}


@pytest.mark.parametrize("literal", ["Infinity", "-Infinity", "NaN"])
def test_non_finite_amount_is_rejected(alice, literal):
    body = (
        '{"date": "2024-01-05T00:00:00", "branch": "Mumbai", "expenseType": "Labour", '
        f'"amount": {literal}, "modeOfPayment": "Cash"}}'
    )
    response = alice.post(
        "/api/expense/addExpense",
        content=body,
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("Amount")
    assert alice.get("/api/expense/getExpenses").json() == {"expenses": []}


def test_update_without_date_keeps_stored_date(alice):
    created = add(alice, date="2024-05-01T00:00:00").json()["expense"]
    payload = expense_payload(amount=42)
    del payload["date"]

    response = alice.put(f"/api/expense/updateExpense/{created['_id']}", json=payload)
    assert response.status_code == 200
    assert response.json()["expense"]["date"].startswith("2024-05-01")
    assert response.json()["expense"]["amount"] == 42
