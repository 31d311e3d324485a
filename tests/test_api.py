from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from budgetwise.db.store import MemoryStore
from budgetwise.main import app
from budgetwise.routers.budgets import get_store

client = TestClient(app)

example_body = {
    "transactions": [
        {"amount": 100, "type": "income", "date": "2024-01-15", "category": "Salary"},
        {"amount": 40, "type": "expense", "date": "2024-01-20", "category": "Food"},
        {"amount": 60, "type": "expense", "date": "2024-02-05", "category": "Food"},
    ],
    "categories": [],
}


@pytest.fixture
def store() -> Generator[MemoryStore, None, None]:
    memory = MemoryStore()
    app.dependency_overrides[get_store] = lambda: memory
    yield memory
    app.dependency_overrides.pop(get_store, None)


def test_root_and_health() -> None:
    assert client.get("/").json()["message"].startswith("Welcome to")
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_lifetime_endpoint() -> None:
    response = client.post("/api/analytics/lifetime", json=example_body)
    assert response.status_code == 200
    data = response.json()
    assert data["total_income"] == 100
    assert data["total_expense"] == 100
    assert data["avg_monthly_expense"] == 50
    assert data["monthly"]["2024-02"] == {"income": 0, "expense": 60}


def test_monthly_and_categories_endpoints() -> None:
    monthly = client.post("/api/analytics/monthly", json=example_body).json()
    assert monthly == [
        {"month": "2024-01", "income": 100, "expense": 40, "savings": 60},
        {"month": "2024-02", "income": 0, "expense": 60, "savings": -60},
    ]
    categories = client.post("/api/analytics/categories", json=example_body).json()
    assert categories["categories"][0] == {"category": "Food", "total": 100, "percent": 100, "avg_monthly": 50}


def test_category_ids_resolve_to_names() -> None:
    body = {
        "transactions": [{"amount": 12, "type": "expense", "date": "2024-01-02", "category": "c1"}],
        "categories": [{"_id": "c1", "name": "Groceries", "type": "expense"}],
    }
    trends = client.post("/api/analytics/category-trends", json=body).json()
    assert trends == [{"category": "Groceries", "months": ["2024-01"], "values": [12], "pct_change": None}]


def test_malformed_category_fields_do_not_fail_requests() -> None:
    body = {
        "transactions": [{"amount": 12, "type": "expense", "date": "2024-01-02", "category": "c1"}],
        "categories": [{"_id": "c1", "name": "Food", "active": "maybe"}],
    }
    response = client.post("/api/analytics/lifetime", json=body)
    assert response.status_code == 200
    assert response.json()["total_expense"] == 12


def test_insights_endpoint_with_no_transactions() -> None:
    response = client.post("/api/analytics/insights", json={})
    assert response.json() == {
        "spending_growth_pct": 0,
        "savings_ratio": None,
        "biggest_category": None,
        "biggest_category_amount": None,
        "yoy_change_pct": 0,
    }


def test_top_transactions_endpoint() -> None:
    body = {
        "transactions": [
            {"amount": 500, "type": "income"},
            {"amount": 50, "type": "expense"},
            {"amount": 75, "type": "expense"},
        ]
    }
    top = client.post("/api/analytics/top-transactions", json=body).json()
    assert [t["amount"] for t in top] == [75, 50]
    limited = client.post("/api/analytics/top-transactions?limit=1", json=body).json()
    assert len(limited) == 1
    assert client.post("/api/analytics/top-transactions?limit=0", json=body).status_code == 422


def test_summary_endpoint() -> None:
    response = client.post("/api/analytics/summary", json=example_body)
    assert response.status_code == 200
    data = response.json()
    assert set(data) >= {"lifetime", "categories", "monthly", "category_trends", "insights", "forecast", "alerts", "tips"}
    assert data["forecast"]["by_category"] == {"Food": 50}


def test_forecast_alerts_and_tips_endpoints() -> None:
    assert client.post("/api/analytics/forecast", json={}).json()["message"] == "Not enough data for forecast"
    assert client.post("/api/analytics/alerts?method=mad", json=example_body).json() == {"alerts": []}
    assert client.post("/api/analytics/alerts?method=other", json=example_body).status_code == 422
    tips = client.post("/api/analytics/tips", json=example_body).json()
    assert tips["analysis"]["total_expense"] == 100
    assert tips["tips"]


def test_budget_endpoints(store: MemoryStore) -> None:
    response = client.put("/api/budgets/2024-05/Food", json={"amount": 300})
    assert response.status_code == 200
    assert response.json()["budgets"] == {"Food": 300}

    assert client.get("/api/budgets/2024-05").json()["budgets"] == {"Food": 300}
    assert client.get("/api/budgets/05-2024").status_code == 400
    assert client.put("/api/budgets/2024-05/Food", json={"amount": -5}).status_code == 422

    progress = client.post(
        "/api/budgets/2024-05/progress",
        json={"transactions": [{"amount": 150, "type": "expense", "date": "2024-05-02", "category": "Food"}]},
    ).json()
    food = next(row for row in progress["categories"] if row["category_id"] == "Food")
    assert food["percent"] == 50
    assert food["remaining"] == 150


def test_goal_endpoints(store: MemoryStore) -> None:
    created = client.post("/api/goals/", json={"name": "Holiday", "target": 1000, "saved": 100})
    assert created.status_code == 201
    goal = created.json()
    assert goal["progress"] == 10

    goals = client.get("/api/goals/").json()
    assert [g["id"] for g in goals] == [goal["id"]]

    updated = client.put(f"/api/goals/{goal['id']}", json={"saved": 500})
    assert updated.json()["progress"] == 50
    assert client.put(f"/api/goals/{goal['id']}", json={}).status_code == 400
    assert client.put("/api/goals/missing", json={"saved": 1}).status_code == 404

    assert client.delete(f"/api/goals/{goal['id']}").status_code == 204
    assert client.delete(f"/api/goals/{goal['id']}").status_code == 404
    assert client.post("/api/goals/", json={"name": "Car", "target": 0}).status_code == 422


def test_forum_endpoints(store: MemoryStore) -> None:
    created = client.post("/api/forum/posts", json={"title": "Saving for a car", "author_id": "u1"})
    assert created.status_code == 201
    post = created.json()
    assert post["likes"] == 0

    commented = client.post(f"/api/forum/posts/{post['id']}/comments", json={"text": "Start early", "author_name": "Ben"})
    assert commented.json()["comments"][0]["text"] == "Start early"
    assert client.post(f"/api/forum/posts/{post['id']}/like").json()["likes"] == 1
    assert client.post("/api/forum/posts/missing/like").status_code == 404
    assert [p["id"] for p in client.get("/api/forum/posts").json()] == [post["id"]]

    assert client.delete(f"/api/forum/posts/{post['id']}").status_code == 403
    assert client.delete(f"/api/forum/posts/{post['id']}", headers={"X-User-Id": "u2"}).status_code == 403
    assert client.delete(f"/api/forum/posts/{post['id']}", headers={"X-User-Id": "u1"}).status_code == 204
    assert client.get("/api/forum/posts").json() == []
    assert client.post("/api/forum/posts", json={"title": ""}).status_code == 422
