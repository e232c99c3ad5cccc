"""HTTP surface tests for coin, plan, subscription and admin routes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def member(store, current_user):
    """Signed-in regular user."""
    user = store.add_user(coins=30)
    current_user.user_id = user["id"]
    return user


@pytest.fixture
def admin(store, current_user):
    """Signed-in administrator."""
    user = store.add_user(coins=100, role="admin")
    current_user.user_id = user["id"]
    return user


def test_get_coins_returns_summary(client: TestClient, member) -> None:
    response = client.get("/coins")

    assert response.status_code == 200
    payload = response.json()
    assert payload["user_id"] == member["id"]
    assert payload["coins"] == 30
    assert payload["cap"] == 40
    assert payload["plan"] is None
    assert payload["days_until_reset"] == 30


def test_check_reset_applies_due_grant(client: TestClient, store, clock, current_user) -> None:
    user = store.add_user(coins=2, last_coin_reset=clock.days_ago(40))
    current_user.user_id = user["id"]

    response = client.post("/coins/check-reset")

    assert response.status_code == 200
    assert response.json()["coins"] == 20


def test_check_reset_reconciles_once(
    client: TestClient, store, clock, current_user, monkeypatch
) -> None:
    """An explicit reset check runs a single balance operation."""
    user = store.add_user(coins=2, last_coin_reset=clock.days_ago(40))
    current_user.user_id = user["id"]
    operations = []
    apply_operation = store.apply_operation

    def counting(user_id, operation, rules, now):
        operations.append(operation.kind)
        return apply_operation(user_id, operation, rules, now)

    monkeypatch.setattr(store, "apply_operation", counting)

    response = client.post("/coins/check-reset")

    assert response.status_code == 200
    assert response.json()["coins"] == 20
    assert response.json()["days_until_reset"] == 30
    assert operations == ["reconcile"]


def test_spend_coins(client: TestClient, member) -> None:
    response = client.post("/coins/spend", json={"amount": 7, "reason": "Extend job posting"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "coins_remaining": 23,
        "reason": "Extend job posting",
    }


def test_spend_insufficient_returns_structured_error(client: TestClient, store, member) -> None:
    response = client.post("/coins/spend", json={"amount": 31})

    assert response.status_code == 400
    payload = response.json()
    assert payload["code"] == "INSUFFICIENT_COINS"
    assert payload["coins_needed"] == 31
    assert payload["coins_available"] == 30
    assert store.get_account(member["id"])["coins"] == 30


@pytest.mark.parametrize("amount", [0, -2])
def test_spend_rejects_non_positive_amount(client: TestClient, member, amount: int) -> None:
    response = client.post("/coins/spend", json={"amount": amount})

    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_INPUT"


def test_unknown_user_returns_404(client: TestClient, current_user) -> None:
    current_user.user_id = "ghost"

    response = client.get("/coins")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_list_plans(client: TestClient) -> None:
    response = client.get("/plans")

    assert response.status_code == 200
    plans = response.json()["plans"]
    assert [plan["id"] for plan in plans] == ["freelancer", "professional", "expert", "elite"]
    assert plans[-1]["has_unlimited_coin_cap"] is True


def test_my_subscription_history(client: TestClient, ledger, member) -> None:
    ledger.change_subscription(member["id"], "professional")

    response = client.get("/subscriptions/me")

    assert response.status_code == 200
    payload = response.json()
    assert payload["active"]["plan_type"] == "professional"
    assert len(payload["history"]) == 1


def test_admin_routes_forbidden_for_members(client: TestClient, member) -> None:
    response = client.patch(f"/admin/coins/users/{member['id']}/add", json={"amount": 5})

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_admin_adjustments(client: TestClient, store, admin) -> None:
    user = store.add_user(coins=10)
    base = f"/admin/coins/users/{user['id']}"

    assert client.patch(f"{base}/add", json={"amount": 50}).json()["coins"] == 40
    assert client.patch(f"{base}/remove", json={"amount": 45}).json()["coins"] == 0
    assert client.patch(f"{base}/set", json={"amount": 12}).json()["coins"] == 12


def test_admin_set_is_clamped_to_plan_cap(client: TestClient, store, catalog, admin) -> None:
    user = store.add_user(coins=10)
    store.add_subscription(user["id"], catalog.get("freelancer"))

    response = client.patch(f"/admin/coins/users/{user['id']}/set", json={"amount": 9999})

    assert response.status_code == 200
    assert response.json() == {"user_id": user["id"], "coins": 100}


def test_admin_set_rejects_negative(client: TestClient, store, admin) -> None:
    user = store.add_user(coins=10)

    response = client.patch(f"/admin/coins/users/{user['id']}/set", json={"amount": -1})

    assert response.status_code == 422


def test_admin_change_subscription(client: TestClient, store, admin) -> None:
    user = store.add_user(coins=30)

    response = client.post(
        f"/admin/coins/users/{user['id']}/subscription",
        json={"plan_type": "freelancer"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["subscription"]["plan_type"] == "freelancer"
    assert payload["coins"] == 130


def test_admin_change_subscription_unknown_plan(client: TestClient, store, admin) -> None:
    user = store.add_user(coins=30)

    response = client.post(
        f"/admin/coins/users/{user['id']}/subscription",
        json={"plan_type": "platinum"},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "UNKNOWN_PLAN"
    assert store.list_subscriptions(user["id"]) == []


def test_admin_remove_subscription_with_none(client: TestClient, store, ledger, admin) -> None:
    user = store.add_user(coins=30)
    ledger.change_subscription(user["id"], "expert")

    response = client.post(
        f"/admin/coins/users/{user['id']}/subscription",
        json={"plan_type": "none"},
    )

    assert response.status_code == 200
    assert len(response.json()["canceled"]) == 1
    assert store.get_active_subscription(user["id"]) is None
    assert store.get_account(user["id"])["coins"] == 1030


def test_admin_apply_caps(client: TestClient, store, admin) -> None:
    store.add_user(coins=75)
    store.add_user(coins=12)

    response = client.post("/admin/coins/apply-caps")

    assert response.status_code == 200
    assert response.json() == {"adjusted": 1}


def test_admin_list_users(client: TestClient, store, catalog, admin) -> None:
    user = store.add_user(coins=5)
    store.add_subscription(user["id"], catalog.get("professional"))

    response = client.get("/admin/coins/users")

    assert response.status_code == 200
    rows = {row["id"]: row for row in response.json()["users"]}
    assert rows[user["id"]]["cap"] == 400
    assert rows[admin["id"]]["cap"] is None
