"""API tests for /api/calculations."""

import pytest


@pytest.fixture
def sugar(client):
    response = client.post("/api/ingredients/", json={
        "name": "Sugar", "cost_per_unit": 4.00, "quantity": 16, "unit_type": "oz",
    })
    return response.json()


@pytest.fixture
def cake(client, flour, sugar, box):
    """Cake: 1.20 flour + 0.50 sugar + 0.25 box per serving, 4 servings."""
    response = client.post("/api/recipes/", json={
        "name": "Cake",
        "servings": 4,
        "week": "2024-03-18",
        "desired_profit_margin": 50,
        "recipe_ingredients": [
            {"ingredient_id": sugar["id"], "quantity": 2, "unit": "oz"},
            {"ingredient_id": flour["id"], "quantity": 1, "unit": "cup"},
        ],
        "recipe_packaging": [{"packaging_id": box["id"], "quantity": 1}],
    })
    assert response.status_code == 201
    return response.json()


class TestCostBreakdown:
    def test_breakdown_at_desired_margin(self, client, cake):
        body = client.get(f"/api/calculations/recipe/{cake['id']}").json()
        assert body["costs"] == {
            "ingredient_cost_per_serving": 1.70,
            "packaging_cost_per_serving": 0.25,
            "cost_per_serving": 1.95,
            "total_recipe_cost": 7.80,
        }
        assert body["pricing"]["desired_profit_margin"] == 50
        assert body["pricing"]["suggested_price_per_serving"] == pytest.approx(3.90)
        assert body["pricing"]["total_profit"] == pytest.approx(7.80)

    def test_ingredients_most_expensive_first(self, client, cake):
        ingredients = client.get(f"/api/calculations/recipe/{cake['id']}").json()["ingredients"]
        assert [i["ingredient_name"] for i in ingredients] == ["Flour", "Sugar"]
        assert ingredients[0]["percentage_of_ingredient_cost"] == pytest.approx(70.59)

    def test_margin_override(self, client, cake):
        body = client.get(f"/api/calculations/recipe/{cake['id']}", params={"margin": 25}).json()
        assert body["pricing"]["suggested_price_per_serving"] == pytest.approx(2.60)

    def test_margin_override_out_of_range(self, client, cake):
        response = client.get(f"/api/calculations/recipe/{cake['id']}", params={"margin": 100})
        assert response.status_code == 400
        assert response.json()["field"] == "margin"

    def test_missing_recipe(self, client):
        assert client.get("/api/calculations/recipe/9").status_code == 404


class TestScenarios:
    def test_scenarios_in_request_order(self, client, cake):
        response = client.post("/api/calculations/pricing-scenarios", json={
            "recipe_id": cake["id"], "profit_margins": [50, 25, 50],
        })
        body = response.json()
        assert body["cost_per_serving"] == 1.95
        assert [s["profit_margin"] for s in body["scenarios"]] == [50, 25, 50]
        assert body["scenarios"][1]["suggested_price_per_serving"] == pytest.approx(2.60)

    def test_bad_margin_names_its_position(self, client, cake):
        response = client.post("/api/calculations/pricing-scenarios", json={
            "recipe_id": cake["id"], "profit_margins": [30, 150],
        })
        assert response.status_code == 400
        assert response.json()["field"] == "profit_margins[1]"

    def test_empty_margin_list_rejected(self, client, cake):
        response = client.post("/api/calculations/pricing-scenarios", json={
            "recipe_id": cake["id"], "profit_margins": [],
        })
        assert response.status_code == 422


class TestSuggestedPrice:
    def test_quarter_margin(self, client):
        response = client.post("/api/calculations/suggested-price", json={
            "cost_per_serving": 3.00, "desired_profit_margin": 25, "servings": 10,
        })
        assert response.json() == {
            "profit_margin": 25,
            "suggested_price_per_serving": 4.00,
            "profit_per_serving": 1.00,
            "total_profit": 10.00,
        }

    @pytest.mark.parametrize("margin", [100, 150, 0])
    def test_degenerate_margin_rejected(self, client, margin):
        response = client.post("/api/calculations/suggested-price", json={
            "cost_per_serving": 3.00, "desired_profit_margin": margin,
        })
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.parametrize("cost", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_cost_rejected(self, client, cost):
        response = client.post("/api/calculations/suggested-price", json={
            "cost_per_serving": cost, "desired_profit_margin": 25,
        })
        assert response.status_code == 422


class TestUsageAndProfitability:
    def test_ingredient_usage(self, client, cake):
        usage = client.get("/api/calculations/ingredient-usage").json()
        flour = usage[0]
        assert flour["ingredient_name"] == "Flour"
        assert flour["used_in_recipes"] == 1
        assert flour["total_quantity_oz"] == pytest.approx(32.0)
        assert flour["total_cost_across_recipes"] == pytest.approx(4.80)

    def test_profitability_grouped_by_week(self, client, cake):
        client.post("/api/recipes/", json={"name": "Someday", "servings": 1})
        groups = client.get("/api/calculations/profitability-analysis").json()
        assert [g["week"] for g in groups] == ["2024-03-17", "Unscheduled"]
        row = groups[0]["recipes"][0]
        assert row["recipe_name"] == "Cake"
        assert row["suggested_price_per_serving"] == pytest.approx(3.90)
        assert row["total_profit"] == pytest.approx(7.80)


class TestPriceChanges:
    def test_every_endpoint_sees_the_new_price(self, client, cake, flour):
        # flour doubles to 4.80/lb, so a cup costs 2.40 and a serving 3.15
        client.patch(f"/api/ingredients/{flour['id']}", json={"cost_per_unit": 24.00})

        breakdown = client.get(f"/api/calculations/recipe/{cake['id']}").json()
        scenarios = client.post("/api/calculations/pricing-scenarios", json={
            "recipe_id": cake["id"], "profit_margins": [50],
        }).json()
        row = client.get("/api/calculations/profitability-analysis").json()[0]["recipes"][0]
        recipe = client.get(f"/api/recipes/{cake['id']}").json()

        assert breakdown["costs"]["cost_per_serving"] == pytest.approx(3.15)
        assert scenarios["cost_per_serving"] == pytest.approx(3.15)
        assert row["cost_per_serving"] == pytest.approx(3.15)
        assert recipe["cost_per_serving"] == pytest.approx(3.15)

        assert breakdown["pricing"]["suggested_price_per_serving"] == pytest.approx(6.30)
        assert scenarios["scenarios"][0]["suggested_price_per_serving"] == pytest.approx(6.30)
        assert row["suggested_price_per_serving"] == pytest.approx(6.30)
        assert row["total_recipe_cost"] == pytest.approx(12.60)
