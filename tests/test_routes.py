"""Tests for the HTTP API with the pricing service wired to a mocked store."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from mealdeal.config import Settings, get_settings
from mealdeal.main import app
from mealdeal.pricing import DishPricingService, StoreUnavailableError
from mealdeal.pricing.entities import ChainRecord
from mealdeal.routers.dependencies import get_pricing_service

ADMIN_TOKEN = "s3cret"


@pytest.fixture
def client(mock_repository, today):
    service = DishPricingService(mock_repository, today=lambda: today)
    app.dependency_overrides[get_pricing_service] = lambda: service
    app.dependency_overrides[get_settings] = lambda: Settings(admin_api_token=ADMIN_TOKEN)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def priced_dish(mock_repository, make_link, make_offer):
    mock_repository.fetch_dish_ingredients.return_value = {
        "D001": [make_link("I001", role="main"), make_link("I002", role="side")]
    }
    mock_repository.fetch_valid_offers.return_value = [make_offer(1, 3.00, pack_size=2.0)]


class TestDishRoutes:
    """Tests for /api/v1/dishes."""

    def test_list_dishes(self, client, priced_dish):
        response = client.get("/api/v1/dishes", params={"plz": "10115"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["dishes"][0]["dish_id"] == "D001"
        assert data["dishes"][0]["total_aggregated_savings"] == pytest.approx(0.50)

    def test_list_dishes_without_plz(self, client):
        response = client.get("/api/v1/dishes")

        assert response.status_code == 200
        assert response.json() == {"dishes": [], "total": 0}

    def test_invalid_plz(self, client):
        response = client.get("/api/v1/dishes", params={"plz": "1011"})
        assert response.status_code == 422

    def test_get_dish(self, client):
        response = client.get("/api/v1/dishes/D001")

        assert response.status_code == 200
        assert response.json()["name"] == "Pasta Pomodoro"

    def test_dish_not_found(self, client, mock_repository):
        mock_repository.get_dish.return_value = None

        assert client.get("/api/v1/dishes/D404").status_code == 404
        assert client.get("/api/v1/dishes/D404/pricing").status_code == 404
        assert client.get("/api/v1/dishes/D404/ingredients").status_code == 404

    def test_dish_pricing(self, client, priced_dish):
        response = client.get("/api/v1/dishes/D001/pricing", params={"plz": "10115"})

        assert response.status_code == 200
        assert response.json() == {
            "dish_id": "D001",
            "total_aggregated_savings": pytest.approx(0.50),
            "ingredients_with_offers_count": 1,
            "available_offers_count": 1,
        }

    def test_dish_ingredients(self, client, priced_dish):
        response = client.get(
            "/api/v1/dishes/D001/ingredients", params={"plz": "10115", "chain_id": "C1"}
        )

        assert response.status_code == 200
        tomatoes, pasta = response.json()
        assert tomatoes["has_offer"] is True
        assert tomatoes["all_offers"][0]["is_lowest_price"] is True
        assert pasta["has_offer"] is False
        assert pasta["all_offers"] == []

    def test_has_chain_offers(self, client, priced_dish):
        response = client.get("/api/v1/dishes/D001/chains/C1/has-offers", params={"plz": "10115"})

        assert response.status_code == 200
        assert response.json() == {"dish_id": "D001", "chain_id": "C1", "has_offers": True}

    def test_store_unavailable(self, client, mock_repository):
        mock_repository.get_dish.side_effect = StoreUnavailableError("get_dish")

        response = client.get("/api/v1/dishes/D001/pricing", params={"plz": "10115"})

        assert response.status_code == 503


class TestReferenceRoutes:
    """Tests for ingredients, chains, categories and postal codes."""

    def test_ingredient_savings(self, client, priced_dish):
        response = client.get("/api/v1/ingredients/I001/savings", params={"plz": "10115"})

        assert response.status_code == 200
        assert response.json()["savings_per_unit"] == pytest.approx(0.50)

    def test_ingredient_savings_incompatible_unit(self, client):
        response = client.get(
            "/api/v1/ingredients/I001/savings", params={"plz": "10115", "unit": "l"}
        )
        assert response.status_code == 404

    def test_chains(self, client, mock_repository):
        mock_repository.chains_with_active_offers.return_value = [ChainRecord("C1", "Aldi")]

        response = client.get("/api/v1/chains", params={"plz": "10115"})

        assert response.json() == [{"chain_id": "C1", "chain_name": "Aldi"}]

    def test_categories(self, client, mock_repository):
        mock_repository.list_categories.return_value = ["Pasta"]
        assert client.get("/api/v1/categories").json() == ["Pasta"]

    def test_postal_code(self, client, mock_repository):
        assert client.get("/api/v1/postal-codes/10115").json() == {"plz": "10115", "valid": True}

        mock_repository.plz_exists.return_value = False
        assert client.get("/api/v1/postal-codes/99999").json()["valid"] is False

        assert client.get("/api/v1/postal-codes/abc").status_code == 422


class TestAdminRoutes:
    """Tests for CSV import/export authorization and dry runs."""

    def test_missing_token(self, client):
        response = client.get("/api/v1/admin/export/chains")
        assert response.status_code == 401

    def test_wrong_token(self, client):
        response = client.get("/api/v1/admin/export/chains", headers={"X-Admin-Token": "nope"})
        assert response.status_code == 401

    def test_admin_disabled(self, client):
        app.dependency_overrides[get_settings] = lambda: Settings(admin_api_token="")

        response = client.get(
            "/api/v1/admin/export/chains", headers={"X-Admin-Token": ADMIN_TOKEN}
        )
        assert response.status_code == 403

    def test_unknown_table(self, client):
        response = client.get("/api/v1/admin/export/users", headers={"X-Admin-Token": ADMIN_TOKEN})
        assert response.status_code == 404

    def test_dry_run_import(self, client):
        response = client.post(
            "/api/v1/admin/import/chains",
            headers={"X-Admin-Token": ADMIN_TOKEN},
            files={"file": ("chains.csv", b"chain_id,chain_name\nC1,Aldi\nC2,\n", "text/csv")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["dry_run"] is True
        assert data["valid_rows"] == 1
        assert data["imported"] is None
        assert data["errors"][0].startswith("Row 3: chain_name")

    def test_import_missing_columns(self, client):
        response = client.post(
            "/api/v1/admin/import/chains",
            headers={"X-Admin-Token": ADMIN_TOKEN},
            files={"file": ("chains.csv", b"chain_id\nC1\n", "text/csv")},
        )

        assert response.status_code == 400
        assert "chain_name" in response.json()["detail"]

    def test_background_import_is_queued(self, client):
        from mealdeal.tasks.imports import import_csv_task

        with patch.object(import_csv_task, "delay", return_value=MagicMock(id="task-1")) as delay:
            response = client.post(
                "/api/v1/admin/import/chains",
                params={"background": "true", "dry_run": "false"},
                headers={"X-Admin-Token": ADMIN_TOKEN},
                files={"file": ("chains.csv", b"chain_id,chain_name\nC1,Aldi\n", "text/csv")},
            )

        assert response.status_code == 200
        assert response.json()["task_id"] == "task-1"
        delay.assert_called_once_with("chains", "chain_id,chain_name\nC1,Aldi\n", dry_run=False)
