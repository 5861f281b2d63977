"""API tests for /api/recipes."""

import pytest

from recipe_costing import repository


@pytest.fixture
def bread(client, flour, box):
    """Bread: 8 oz flour and one box per serving, 10 servings sold at 3.00."""
    response = client.post("/api/recipes/", json={
        "name": "Bread",
        "servings": 10,
        "week": "2024-03-20",
        "selling_price_per_serving": 3.00,
        "desired_profit_margin": 25,
        "recipe_ingredients": [{"ingredient_id": flour["id"], "quantity": 8, "unit": "oz"}],
        "recipe_packaging": [{"packaging_id": box["id"], "quantity": 1}],
    })
    assert response.status_code == 201
    return response.json()


class TestCreateRecipe:
    def test_costs_computed_from_lines(self, bread):
        assert bread["cost_per_serving"] == pytest.approx(1.45)
        assert bread["total_recipe_cost"] == pytest.approx(14.50)
        assert bread["total_revenue"] == pytest.approx(30.00)
        assert bread["profit_margin"] == pytest.approx(51.67)
        assert bread["all_units_recognized"] is True

    def test_line_items_carry_costs(self, bread):
        line = bread["ingredients"][0]
        assert line["ingredient_name"] == "Flour"
        assert line["line_cost"] == pytest.approx(1.20)
        assert line["unit_recognized"] is True
        assert bread["packaging"][0]["line_cost"] == pytest.approx(0.25)

    def test_default_desired_margin(self, client):
        response = client.post("/api/recipes/", json={"name": "Water", "servings": 1})
        assert response.status_code == 201
        assert response.json()["desired_profit_margin"] == 30.0

    def test_unknown_unit_is_flagged(self, client, flour):
        response = client.post("/api/recipes/", json={
            "name": "Rustic Loaf",
            "servings": 2,
            "recipe_ingredients": [{"ingredient_id": flour["id"], "quantity": 2, "unit": "handful"}],
        })
        body = response.json()
        assert body["all_units_recognized"] is False
        assert body["ingredients"][0]["unit_recognized"] is False

    def test_missing_ingredient_writes_nothing(self, client, flour):
        response = client.post("/api/recipes/", json={
            "name": "Ghost",
            "servings": 1,
            "recipe_ingredients": [
                {"ingredient_id": flour["id"], "quantity": 1, "unit": "oz"},
                {"ingredient_id": 999, "quantity": 1, "unit": "oz"},
            ],
        })
        assert response.status_code == 404
        assert response.json()["field"] == "ingredient_id"
        assert client.get("/api/recipes/").json() == []

    def test_zero_servings_rejected(self, client):
        assert client.post("/api/recipes/", json={"name": "Nothing", "servings": 0}).status_code == 422

    def test_margin_of_100_rejected(self, client):
        response = client.post("/api/recipes/", json={
            "name": "Greedy", "servings": 1, "desired_profit_margin": 100,
        })
        assert response.status_code == 422

    def test_blank_name_rejected(self, client):
        assert client.post("/api/recipes/", json={"name": "   ", "servings": 1}).status_code == 422
        assert client.get("/api/recipes/").json() == []

    def test_blank_unit_rejected(self, client, flour):
        response = client.post("/api/recipes/", json={
            "name": "Loaf",
            "servings": 1,
            "recipe_ingredients": [{"ingredient_id": flour["id"], "quantity": 1, "unit": " "}],
        })
        assert response.status_code == 422

    def test_infinite_quantity_rejected(self, client, flour):
        response = client.post("/api/recipes/", json={
            "name": "Loaf",
            "servings": 1,
            "recipe_ingredients": [{"ingredient_id": flour["id"], "quantity": "Infinity", "unit": "oz"}],
        })
        assert response.status_code == 422


class TestListRecipes:
    def test_week_descending_unscheduled_last(self, client):
        for name, week in [("Old", "2024-03-03"), ("Loose", None), ("New", "2024-03-17"), ("Also New", "2024-03-17")]:
            client.post("/api/recipes/", json={"name": name, "servings": 1, "week": week})
        names = [r["name"] for r in client.get("/api/recipes/").json()]
        assert names == ["Also New", "New", "Old", "Loose"]


class TestUpdateRecipe:
    def test_omitted_lines_are_kept(self, client, bread):
        response = client.put(f"/api/recipes/{bread['id']}", json={
            "name": "Bread", "servings": 20, "selling_price_per_serving": 3.00,
        })
        body = response.json()
        assert len(body["ingredients"]) == 1
        assert len(body["packaging"]) == 1
        assert body["total_recipe_cost"] == pytest.approx(29.00)
        assert body["desired_profit_margin"] == 25.0

    def test_lines_are_replaced(self, client, bread, flour):
        response = client.put(f"/api/recipes/{bread['id']}", json={
            "name": "Bread",
            "servings": 10,
            "recipe_ingredients": [{"ingredient_id": flour["id"], "quantity": 1, "unit": "lb"}],
            "recipe_packaging": [],
        })
        body = response.json()
        assert body["cost_per_serving"] == pytest.approx(2.40)
        assert body["packaging"] == []
        assert body["profit_margin"] == 0

    def test_failed_update_leaves_recipe_untouched(self, client, bread):
        response = client.put(f"/api/recipes/{bread['id']}", json={
            "name": "Bread",
            "servings": 10,
            "recipe_ingredients": [{"ingredient_id": 999, "quantity": 1, "unit": "oz"}],
        })
        assert response.status_code == 404
        body = client.get(f"/api/recipes/{bread['id']}").json()
        assert len(body["ingredients"]) == 1
        assert body["cost_per_serving"] == pytest.approx(1.45)

    def test_write_failure_rolls_back_every_statement(self, client, bread, flour, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError("disk full")

        # fails after the recipe row and its ingredient lines were rewritten
        monkeypatch.setattr(repository, "replace_packaging_items", fail)

        with pytest.raises(RuntimeError):
            client.put(f"/api/recipes/{bread['id']}", json={
                "name": "Sourdough",
                "servings": 20,
                "recipe_ingredients": [{"ingredient_id": flour["id"], "quantity": 1, "unit": "lb"}],
                "recipe_packaging": [],
            })

        body = client.get(f"/api/recipes/{bread['id']}").json()
        assert body["name"] == "Bread"
        assert body["servings"] == 10
        assert body["cost_per_serving"] == pytest.approx(1.45)
        assert len(body["ingredients"]) == 1
        assert body["ingredients"][0]["quantity_used"] == 8
        assert len(body["packaging"]) == 1

    def test_blank_name_rejected(self, client, bread):
        response = client.put(f"/api/recipes/{bread['id']}", json={"name": " ", "servings": 10})
        assert response.status_code == 422
        assert client.get(f"/api/recipes/{bread['id']}").json()["name"] == "Bread"

    def test_missing_recipe(self, client):
        response = client.put("/api/recipes/5", json={"name": "X", "servings": 1})
        assert response.status_code == 404


class TestDeleteAndDuplicate:
    def test_delete(self, client, bread, flour):
        assert client.delete(f"/api/recipes/{bread['id']}").status_code == 204
        assert client.get(f"/api/recipes/{bread['id']}").status_code == 404
        # the ingredient is free to delete once no recipe uses it
        assert client.delete(f"/api/ingredients/{flour['id']}").status_code == 204

    def test_duplicate_defaults(self, client, bread):
        response = client.post(f"/api/recipes/{bread['id']}/duplicate")
        assert response.status_code == 201
        copy = response.json()
        assert copy["id"] != bread["id"]
        assert copy["name"] == "Bread (Copy)"
        assert copy["week"] == "2024-03-20"
        assert copy["cost_per_serving"] == pytest.approx(1.45)
        assert len(copy["ingredients"]) == 1
        assert len(copy["packaging"]) == 1

    def test_duplicate_with_overrides(self, client, bread):
        copy = client.post(
            f"/api/recipes/{bread['id']}/duplicate",
            json={"name": "Bread Week 2", "week": "2024-03-27"}
        ).json()
        assert copy["name"] == "Bread Week 2"
        assert copy["week"] == "2024-03-27"
