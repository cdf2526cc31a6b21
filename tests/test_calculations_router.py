"""
Tests for daily calculation endpoints.
"""
import uuid

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from stockroom.models.activity_log import ActivityLog, EntityType


class TestDailyCalculations:

    def test_create_then_replace(self, client: TestClient, db: Session, auth_headers: dict, flour, make_recipe):
        bread = make_recipe("Bread", "Bakery", [(flour, 2)])
        body = {"date": "2024-01-01T17:45:00", "calculations": [{"recipe": str(bread.id), "quantity": 3}]}

        created = client.post("/api/calcule", json=body, headers=auth_headers)
        assert created.status_code == 201
        data = created.json()
        assert data["date"] == "2024-01-01"
        assert data["total_cost"] == 30.0
        assert data["ingredient_requirements"][0]["required_quantity"] == 6.0
        assert data["calculations"][0]["recipe_name"] == "Bread"

        body["calculations"][0]["quantity"] = 1
        replaced = client.post("/api/calcule", json=body, headers=auth_headers)
        assert replaced.status_code == 200
        assert replaced.json()["id"] == data["id"]
        assert replaced.json()["total_cost"] == 10.0

        actions = [log.action for log in db.query(ActivityLog).filter(
            ActivityLog.entity_type == EntityType.DAILY_CALCULATION
        ).order_by(ActivityLog.created_at)]
        assert sorted(actions) == ["create", "update"]

    def test_missing_recipe(self, client: TestClient, auth_headers: dict):
        response = client.post(
            "/api/calcule",
            json={"date": "2024-01-01", "calculations": [{"recipe": str(uuid.uuid4()), "quantity": 1}]},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_get_by_date(self, client: TestClient, auth_headers: dict, flour, make_recipe):
        bread = make_recipe("Bread", "Bakery", [(flour, 2)])
        client.post(
            "/api/calcule",
            json={"date": "2024-01-01", "calculations": [{"recipe": str(bread.id), "quantity": 1}]},
            headers=auth_headers,
        )

        assert client.get("/api/calcule/2024-01-01").json()["total_cost"] == 10.0

        missing = client.get("/api/calcule/2024-01-02")
        assert missing.status_code == 404
        assert missing.json()["message"] == "No calculations found for this date"

    def test_range(self, client: TestClient, auth_headers: dict, flour, make_recipe):
        bread = make_recipe("Bread", "Bakery", [(flour, 2)])
        for day in ("2024-01-03", "2024-01-01", "2024-01-07"):
            client.post(
                "/api/calcule",
                json={"date": day, "calculations": [{"recipe": str(bread.id), "quantity": 1}]},
                headers=auth_headers,
            )

        response = client.get("/api/calcule/range/2024-01-01/2024-01-05")

        assert [c["date"] for c in response.json()] == ["2024-01-01", "2024-01-03"]
