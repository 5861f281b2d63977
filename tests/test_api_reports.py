"""API tests for /api/reports and the health endpoints."""

import pytest


@pytest.fixture
def recipes(client, flour, box):
    """Three costed recipes and one empty one."""
    created = []
    for name, servings, price in [("Bread", 10, 3.00), ("Rolls", 24, 0), ("Pie", 2, 0)]:
        response = client.post("/api/recipes/", json={
            "name": name,
            "servings": servings,
            "selling_price_per_serving": price,
            "recipe_ingredients": [{"ingredient_id": flour["id"], "quantity": 8, "unit": "oz"}],
        })
        created.append(response.json())
    client.post("/api/recipes/", json={"name": "Empty", "servings": 1})
    return created


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    health = client.get("/api/health").json()
    assert health["status"] == "OK"
    assert "timestamp" in health


def test_highest_cost(client, recipes):
    ranked = client.get("/api/reports/highest-cost-recipes", params={"limit": 2}).json()
    assert [r["recipe_name"] for r in ranked] == ["Rolls", "Bread"]
    assert ranked[0]["total_recipe_cost"] == pytest.approx(28.80)


def test_most_profitable_uses_multiplier_fallback(client, recipes):
    ranked = client.get("/api/reports/most-profitable-recipes").json()
    assert [r["recipe_name"] for r in ranked] == ["Rolls", "Bread", "Pie"]
    rolls, bread = ranked[0], ranked[1]
    # no recorded revenue: 28.80 x 3
    assert rolls["estimated_revenue"] == pytest.approx(86.40)
    assert rolls["profit_margin_percent"] == pytest.approx(66.67)
    # recorded revenue wins
    assert bread["estimated_revenue"] == pytest.approx(30.00)
    assert bread["estimated_profit"] == pytest.approx(18.00)


def test_multiplier_override(client, recipes):
    ranked = client.get("/api/reports/most-profitable-recipes", params={"profit_multiplier": 2}).json()
    rolls = next(r for r in ranked if r["recipe_name"] == "Rolls")
    assert rolls["estimated_revenue"] == pytest.approx(57.60)


def test_multiplier_must_be_positive(client):
    response = client.get("/api/reports/most-profitable-recipes", params={"profit_multiplier": 0})
    assert response.status_code == 422


def test_weekly_analysis(client, recipes):
    weeks = client.get("/api/reports/weekly-analysis").json()
    assert sum(w["recipes_created"] for w in weeks) == 3
    for week in weeks:
        assert week["week_label"].count("/") == 2


def test_recipe_metrics(client, recipes):
    metrics = client.get("/api/reports/recipe-metrics").json()
    assert metrics["total_recipes"] == 3
    assert metrics["highest_recipe_cost"] == pytest.approx(28.80)
    assert metrics["lowest_recipe_cost"] == pytest.approx(2.40)
    assert metrics["total_servings_all_recipes"] == 36


def test_vendor_analysis(client, recipes, vendor):
    rows = client.get("/api/reports/vendor-analysis").json()
    assert rows[0]["vendor_name"] == "Restaurant Depot"
    assert rows[0]["ingredient_count"] == 1
    assert rows[0]["total_vendor_cost"] == pytest.approx(12.00)


def test_dashboard(client, recipes):
    dashboard = client.get("/api/reports/dashboard").json()
    assert dashboard["profit_multiplier"] == 3.0
    assert len(dashboard["highest_cost_recipes"]) == 3
    assert dashboard["average_profit_margin"]["total_recipes"] == 3
    assert dashboard["recipe_metrics"]["total_recipes"] == 3
    assert dashboard["vendor_analysis"][0]["ingredient_count"] == 1
    assert "generated_at" in dashboard


def test_empty_reports(client):
    assert client.get("/api/reports/highest-cost-recipes").json() == []
    metrics = client.get("/api/reports/recipe-metrics").json()
    assert metrics["total_recipes"] == 0
    assert metrics["avg_recipe_cost"] == 0


def test_deactivated_vendor_still_analysed(client, recipes, vendor):
    # the vendor still has flour, so delete only deactivates it
    assert client.delete(f"/api/vendors/{vendor['id']}").json()["deactivated"] is True

    analysis = client.get("/api/reports/vendor-analysis").json()
    dashboard = client.get("/api/reports/dashboard").json()["vendor_analysis"]

    assert analysis == dashboard
    assert analysis[0]["vendor_name"] == "Restaurant Depot"
    assert analysis[0]["is_active"] is False
    assert analysis[0]["ingredient_count"] == 1
