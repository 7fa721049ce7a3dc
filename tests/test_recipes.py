"""Recipe API tests."""

from decimal import Decimal

import pytest


def purchased(master, quantity):
    return {"kind": "purchased", "master_ingredient_id": master["id"], "quantity": quantity}


def sub_recipe(recipe, quantity):
    return {"kind": "sub_recipe", "prepared_recipe_id": recipe["id"], "quantity": quantity}


@pytest.fixture
def masters(create_master_ingredient):
    """Two purchased ingredients costing 1.50 and 3.00 per recipe unit."""
    cheese = create_master_ingredient(
        item_code="CHEESE",
        product="Cheddar",
        current_price="15.00",
        recipe_unit_per_purchase_unit="10",
        allergen_milk=True,
    )
    bread = create_master_ingredient(
        item_code="BREAD",
        product="Sourdough",
        current_price="30.00",
        recipe_unit_per_purchase_unit="10",
        allergen_wheat="true",
    )
    return {"cheese": cheese, "bread": bread}


@pytest.fixture
def sandwich(client, org_headers, masters):
    """A staged recipe whose second ingredient quantity does not parse."""
    response = client.post(
        "/api/v1/recipes",
        headers=org_headers,
        json={
            "name": "Grilled Cheese",
            "type": "final",
            "prep_time": 10,
            "cook_time": 20,
            "rest_time": 5,
            "recipe_unit_ratio": "4",
            "ingredients": [
                purchased(masters["cheese"], "2"),
                purchased(masters["bread"], "bad"),
            ],
            "stages": [{"name": "Prep", "is_prep_list_task": True}, {"name": "Cook"}],
            "steps": [
                {"instruction": "Slice cheese", "stage_index": 0, "time_in_minutes": 5},
                {"instruction": "Butter bread", "stage_index": 0, "time_in_minutes": 10},
                {"instruction": "Plate", "time_in_minutes": 3},
            ],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def create_recipe(client, headers, **fields):
    payload = {"name": "Test Recipe"}
    payload.update(fields)
    response = client.post("/api/v1/recipes", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# --- Create and derived values ---


def test_create_recipe_derives_cost_and_times(sandwich):
    """Test that create computes total time, cost per unit and stage totals."""
    assert sandwich["status"] == "draft"
    assert sandwich["version"] == "1.0"
    assert sandwich["total_time"] == 35
    assert Decimal(sandwich["cost_per_unit"]) == Decimal("0.75")
    # 3.00 of ingredients plus 30 active minutes at the default 20/hour
    assert Decimal(sandwich["total_cost"]) == Decimal("13.00")

    prep, cook = sandwich["stages"]
    assert prep["name"] == "Prep"
    assert prep["is_prep_list_task"] is True
    assert prep["total_time"] == 15
    assert cook["total_time"] == 0
    assert [step["stage_id"] for step in sandwich["steps"]] == [prep["id"], prep["id"], None]


def test_create_recipe_with_number_quantity(client, org_headers, masters):
    """Test that numeric quantities are stored as text."""
    recipe = create_recipe(
        client,
        org_headers,
        ingredients=[purchased(masters["cheese"], 3)],
    )
    assert recipe["ingredients"][0]["quantity"] == "3"
    assert Decimal(recipe["cost_per_unit"]) == Decimal("4.50")


def test_create_recipe_invalid_reference_shape(client, org_headers, masters):
    """Test that a purchased line must point at a master ingredient only."""
    response = client.post(
        "/api/v1/recipes",
        headers=org_headers,
        json={
            "name": "Broken",
            "ingredients": [{"kind": "purchased", "prepared_recipe_id": 1}],
        },
    )
    assert response.status_code == 422


def test_create_recipe_with_other_organizations_ingredient(
    client, other_org_headers, masters
):
    """Test that ingredients from another organization are rejected."""
    response = client.post(
        "/api/v1/recipes",
        headers=other_org_headers,
        json={
            "name": "Borrowed",
            "ingredients": [purchased(masters["cheese"], "1")],
        },
    )
    assert response.status_code == 400


def test_create_recipe_step_with_missing_stage_index(client, org_headers):
    """Test that steps must point at a stage in the same request."""
    response = client.post(
        "/api/v1/recipes",
        headers=org_headers,
        json={
            "name": "Lost Step",
            "stages": [{"name": "Prep"}],
            "steps": [{"instruction": "Nowhere", "stage_index": 3}],
        },
    )
    assert response.status_code == 400


def test_list_recipes(client, org_headers, sandwich):
    """Test listing recipes with filters."""
    create_recipe(client, org_headers, name="Chicken Stock", type="prepared")

    response = client.get("/api/v1/recipes", headers=org_headers)
    assert response.status_code == 200
    recipes = response.json()
    assert [r["name"] for r in recipes] == ["Chicken Stock", "Grilled Cheese"]
    assert recipes[1]["ingredient_count"] == 2

    response = client.get("/api/v1/recipes", headers=org_headers, params={"type": "prepared"})
    assert [r["name"] for r in response.json()] == ["Chicken Stock"]


def test_recipe_scoped_to_organization(client, other_org_headers, sandwich):
    """Test that another organization cannot read the recipe."""
    response = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=other_org_headers)
    assert response.status_code == 404


def test_update_recipe_recomputes(client, org_headers, sandwich):
    """Test that changing times and ratio recomputes derived fields."""
    response = client.put(
        f"/api/v1/recipes/{sandwich['id']}",
        headers=org_headers,
        json={"name": "Toastie", "rest_time": 0, "recipe_unit_ratio": "2"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Toastie"
    assert data["total_time"] == 30
    assert Decimal(data["cost_per_unit"]) == Decimal("1.50")


def test_delete_recipe(client, org_headers, sandwich):
    """Test soft deleting a recipe."""
    response = client.delete(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers)
    assert response.status_code == 204

    response = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers)
    assert response.status_code == 404


# --- Ingredients ---


def test_update_ingredient_quantity_recomputes_cost(client, org_headers, sandwich):
    """Test that fixing a quantity updates the recipe cost."""
    bread_line = sandwich["ingredients"][1]

    response = client.put(
        f"/api/v1/recipes/ingredients/{bread_line['id']}",
        headers=org_headers,
        json={"quantity": "1"},
    )
    assert response.status_code == 200
    assert response.json()["quantity"] == "1"

    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    assert Decimal(recipe["cost_per_unit"]) == Decimal("1.50")


def test_add_and_delete_ingredient(client, org_headers, sandwich, masters):
    """Test adding then removing an ingredient line."""
    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/ingredients",
        headers=org_headers,
        json=purchased(masters["bread"], "1"),
    )
    assert response.status_code == 201
    line = response.json()
    assert line["sort_order"] == 2

    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    assert Decimal(recipe["cost_per_unit"]) == Decimal("1.50")

    response = client.delete(f"/api/v1/recipes/ingredients/{line['id']}", headers=org_headers)
    assert response.status_code == 204

    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    assert len(recipe["ingredients"]) == 2
    assert Decimal(recipe["cost_per_unit"]) == Decimal("0.75")


def test_sub_recipe_cost(client, org_headers, masters):
    """Test that a sub-recipe line costs the sub-recipe's cost per unit."""
    stock = create_recipe(
        client,
        org_headers,
        name="Cheese Sauce",
        type="prepared",
        recipe_unit_ratio="2",
        ingredients=[purchased(masters["cheese"], "4")],
    )
    assert Decimal(stock["cost_per_unit"]) == Decimal("3.00")

    plate = create_recipe(
        client,
        org_headers,
        name="Mac and Cheese",
        ingredients=[sub_recipe(stock, "2")],
    )
    assert Decimal(plate["cost_per_unit"]) == Decimal("6.00")


def test_recipe_cannot_contain_itself(client, org_headers, masters):
    """Test that self and circular sub-recipe references are rejected."""
    sauce = create_recipe(client, org_headers, name="Sauce", type="prepared")
    plate = create_recipe(
        client,
        org_headers,
        name="Plate",
        ingredients=[sub_recipe(sauce, "1")],
    )

    response = client.post(
        f"/api/v1/recipes/{sauce['id']}/ingredients",
        headers=org_headers,
        json=sub_recipe(sauce, "1"),
    )
    assert response.status_code == 400

    response = client.post(
        f"/api/v1/recipes/{sauce['id']}/ingredients",
        headers=org_headers,
        json=sub_recipe(plate, "1"),
    )
    assert response.status_code == 400


def test_recalculate_propagates_price_changes(client, org_headers, masters):
    """Test that an org-wide recalculation updates sub-recipes before their parents."""
    sauce = create_recipe(
        client,
        org_headers,
        name="Z Cheese Sauce",
        type="prepared",
        recipe_unit_ratio="2",
        ingredients=[purchased(masters["cheese"], "4")],
    )
    plate = create_recipe(
        client,
        org_headers,
        name="A Plate",
        ingredients=[sub_recipe(sauce, "2")],
    )

    client.put(
        f"/api/v1/master-ingredients/{masters['cheese']['id']}",
        headers=org_headers,
        json={"current_price": "30.00"},
    )
    unchanged = client.get(f"/api/v1/recipes/{plate['id']}", headers=org_headers).json()
    assert Decimal(unchanged["cost_per_unit"]) == Decimal("6.00")

    response = client.post("/api/v1/recipes/recalculate", headers=org_headers)
    assert response.status_code == 200
    assert response.json()["recalculated"] == 2

    sauce = client.get(f"/api/v1/recipes/{sauce['id']}", headers=org_headers).json()
    plate = client.get(f"/api/v1/recipes/{plate['id']}", headers=org_headers).json()
    assert Decimal(sauce["cost_per_unit"]) == Decimal("6.00")
    assert Decimal(plate["cost_per_unit"]) == Decimal("12.00")


def test_costing_reports_unresolved_ingredients(client, org_headers, sandwich, masters):
    """Test that a deleted master ingredient leaves an unresolved line."""
    client.delete(f"/api/v1/master-ingredients/{masters['cheese']['id']}", headers=org_headers)

    response = client.get(f"/api/v1/recipes/{sandwich['id']}/costing", headers=org_headers)
    assert response.status_code == 200
    data = response.json()
    cheese_line = sandwich["ingredients"][0]
    assert data["unresolved_ingredient_ids"] == [cheese_line["id"]]
    assert data["lines"][0]["resolved"] is False
    assert Decimal(data["lines"][1]["quantity"]) == Decimal("0")
    assert Decimal(data["ingredient_total"]) == Decimal("0")
    assert Decimal(data["target_cost"]) == Decimal(data["total_cost"]) * Decimal("0.3")


# --- Allergens ---


def test_allergen_suggestions_are_advisory(client, org_headers, masters):
    """Test that suggestions never change the declared allergens."""
    recipe = create_recipe(
        client,
        org_headers,
        allergen_info={"contains": ["Fish"]},
        ingredients=[
            purchased(masters["cheese"], "1"),
            purchased(masters["bread"], "1"),
        ],
    )
    assert recipe["allergen_info"]["contains"] == ["fish"]

    response = client.get(
        f"/api/v1/recipes/{recipe['id']}/allergens/suggestions", headers=org_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["derived"] == ["milk", "wheat"]
    assert data["suggested"] == ["milk", "wheat"]
    assert data["declared_only"] == ["fish"]
    assert data["unresolved_ingredient_ids"] == []

    recipe = client.get(f"/api/v1/recipes/{recipe['id']}", headers=org_headers).json()
    assert recipe["allergen_info"]["contains"] == ["fish"]


def test_sub_recipe_allergens(client, org_headers):
    """Test that a sub-recipe contributes its declared contains tier."""
    sauce = create_recipe(
        client,
        org_headers,
        name="Celery Salt",
        type="prepared",
        allergen_info={"contains": ["celery"], "may_contain": ["mustard"]},
    )
    plate = create_recipe(
        client,
        org_headers,
        name="Bloody Mary",
        ingredients=[sub_recipe(sauce, "1")],
    )

    response = client.get(
        f"/api/v1/recipes/{plate['id']}/allergens/suggestions", headers=org_headers
    )
    assert response.json()["derived"] == ["celery"]


def test_declare_and_toggle_allergens(client, org_headers, sandwich):
    """Test manual declaration and moving one allergen between tiers."""
    response = client.put(
        f"/api/v1/recipes/{sandwich['id']}/allergens",
        headers=org_headers,
        json={
            "allergen_info": {"contains": ["Milk", "wheat"], "mayContain": ["sesame"]},
            "modified_by": "Chef Ana",
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["allergen_info"] == {
        "contains": ["milk", "wheat"],
        "may_contain": ["sesame"],
        "cross_contact_risk": [],
    }
    assert data["modified_by"] == "Chef Ana"

    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/allergens/toggle",
        headers=org_headers,
        json={"allergen": "wheat", "tier": "cross_contact_risk"},
    )
    assert response.status_code == 200
    assert response.json()["allergen_info"] == {
        "contains": ["milk"],
        "may_contain": ["sesame"],
        "cross_contact_risk": ["wheat"],
    }

    suggestions = client.get(
        f"/api/v1/recipes/{sandwich['id']}/allergens/suggestions", headers=org_headers
    ).json()
    assert suggestions["suggested"] == ["wheat"]


# --- Stages and steps ---


def test_delete_stage_keeps_steps(client, org_headers, sandwich):
    """Test that deleting a stage leaves its steps unstaged."""
    prep = sandwich["stages"][0]

    response = client.delete(f"/api/v1/recipes/stages/{prep['id']}", headers=org_headers)
    assert response.status_code == 204

    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    assert [stage["name"] for stage in recipe["stages"]] == ["Cook"]
    assert recipe["stages"][0]["sort_order"] == 0
    assert len(recipe["steps"]) == 3
    assert all(step["stage_id"] is None for step in recipe["steps"])

    timing = client.get(f"/api/v1/recipes/{sandwich['id']}/timing", headers=org_headers).json()
    assert timing["unstaged_time"] == 18
    cook_id = recipe["stages"][0]["id"]
    assert timing["stages"] == [{"stage_id": cook_id, "name": "Cook", "total_time": 0}]


def test_move_step_between_stages(client, org_headers, sandwich):
    """Test that reassigning a step rolls up both stages."""
    prep, cook = sandwich["stages"]
    slice_step = sandwich["steps"][0]

    response = client.put(
        f"/api/v1/recipes/steps/{slice_step['id']}",
        headers=org_headers,
        json={"stage_id": cook["id"], "warning_level": "high"},
    )
    assert response.status_code == 200
    assert response.json()["warning_level"] == "high"

    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    totals = {stage["name"]: stage["total_time"] for stage in recipe["stages"]}
    assert totals == {"Prep": 10, "Cook": 5}

    response = client.put(
        f"/api/v1/recipes/steps/{slice_step['id']}",
        headers=org_headers,
        json={"stage_id": None},
    )
    assert response.status_code == 200
    assert response.json()["stage_id"] is None


def test_step_cannot_use_another_recipes_stage(client, org_headers, sandwich):
    """Test that a step only joins stages of its own recipe."""
    other = create_recipe(client, org_headers, name="Other", stages=[{"name": "Elsewhere"}])

    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/steps",
        headers=org_headers,
        json={"instruction": "Sneak in", "stage_id": other["stages"][0]["id"]},
    )
    assert response.status_code == 400


def test_add_step_and_stage(client, org_headers, sandwich):
    """Test appending a stage and a timed step in it."""
    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/stages",
        headers=org_headers,
        json={"name": "Finish"},
    )
    assert response.status_code == 201
    finish = response.json()
    assert finish["sort_order"] == 2

    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/steps",
        headers=org_headers,
        json={
            "instruction": "Hold at temperature",
            "stage_id": finish["id"],
            "time_in_minutes": 4,
            "temperature_value": "140",
            "temperature_unit": "F",
            "is_critical_control_point": True,
        },
    )
    assert response.status_code == 201
    step = response.json()
    assert step["sort_order"] == 3
    assert step["is_critical_control_point"] is True

    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    assert recipe["stages"][2]["total_time"] == 4


def test_reorder_steps(client, org_headers, sandwich):
    """Test moving the last step to the front."""
    step_ids = [step["id"] for step in sandwich["steps"]]

    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/steps/reorder",
        headers=org_headers,
        json={"item_id": step_ids[2], "new_index": 0},
    )
    assert response.status_code == 200
    assert [step["id"] for step in response.json()] == [step_ids[2], step_ids[0], step_ids[1]]

    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    assert [step["id"] for step in recipe["steps"]] == [step_ids[2], step_ids[0], step_ids[1]]


def test_reorder_stages_unknown_stage(client, org_headers, sandwich):
    """Test that reordering a stage from another recipe fails."""
    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/stages/reorder",
        headers=org_headers,
        json={"item_id": 99999, "new_index": 0},
    )
    assert response.status_code == 404


# --- Status and versions ---


def test_status_workflow(client, org_headers, sandwich):
    """Test review and approval stamps."""
    response = client.put(
        f"/api/v1/recipes/{sandwich['id']}/status",
        headers=org_headers,
        json={"status": "review", "actor": "Sous Chef"},
    )
    assert response.status_code == 200
    assert response.json()["last_reviewed_by"] == "Sous Chef"
    assert response.json()["last_reviewed_at"] is not None

    response = client.put(
        f"/api/v1/recipes/{sandwich['id']}/status",
        headers=org_headers,
        json={"status": "approved", "actor": "Exec Chef"},
    )
    data = response.json()
    assert data["status"] == "approved"
    assert data["approved_by"] == "Exec Chef"
    assert data["approved_at"] is not None
    assert data["approval_notes"] is None


def test_approval_notes_are_kept_in_version_history(client, org_headers, sandwich):
    """Test that approval notes are stored and archived with the version."""
    response = client.put(
        f"/api/v1/recipes/{sandwich['id']}/status",
        headers=org_headers,
        json={"status": "approved", "actor": "Exec Chef", "notes": "Plating checked"},
    )
    assert response.status_code == 200
    assert response.json()["approval_notes"] == "Plating checked"

    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/versions",
        headers=org_headers,
        json={"created_by": "Chef Ana"},
    )
    entry = response.json()
    assert entry["status"] == "approved"
    assert entry["approved_by"] == "Exec Chef"
    assert entry["approval_notes"] == "Plating checked"


def test_create_version_bumps_label(client, org_headers, sandwich):
    """Test that creating a version archives the current state."""
    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/versions",
        headers=org_headers,
        json={"changes": ["Initial costing"], "created_by": "Chef Ana"},
    )
    assert response.status_code == 201
    entry = response.json()
    assert entry["version"] == "1.0"
    assert entry["changes"] == ["Initial costing"]
    assert entry["reverted_from"] is None

    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    assert recipe["version"] == "1.1"
    assert recipe["status"] == "draft"

    client.post(
        f"/api/v1/recipes/{sandwich['id']}/versions",
        headers=org_headers,
        json={"bump": "major"},
    )
    recipe = client.get(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers).json()
    assert recipe["version"] == "2.0"

    versions = client.get(f"/api/v1/recipes/{sandwich['id']}/versions", headers=org_headers).json()
    assert [v["version"] for v in versions] == ["1.1", "1.0"]


def test_revert_to_version(client, org_headers, sandwich, masters):
    """Test restoring a stored version as a new draft."""
    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/versions",
        headers=org_headers,
        json={"created_by": "Chef Ana"},
    )
    first_version = response.json()

    client.put(f"/api/v1/recipes/{sandwich['id']}", headers=org_headers, json={"name": "Changed"})
    client.post(
        f"/api/v1/recipes/{sandwich['id']}/ingredients",
        headers=org_headers,
        json=purchased(masters["cheese"], "2"),
    )

    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/versions/{first_version['id']}/revert",
        headers=org_headers,
        json={"created_by": "Chef Ana", "notes": "Back to the original"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Grilled Cheese"
    assert data["version"] == "1.2"
    assert data["status"] == "draft"
    assert len(data["ingredients"]) == 2
    assert Decimal(data["cost_per_unit"]) == Decimal("0.75")
    assert [stage["name"] for stage in data["stages"]] == ["Prep", "Cook"]
    assert data["stages"][0]["total_time"] == 15
    assert data["steps"][0]["stage_id"] == data["stages"][0]["id"]

    versions = client.get(f"/api/v1/recipes/{sandwich['id']}/versions", headers=org_headers).json()
    assert [v["version"] for v in versions] == ["1.1", "1.0"]
    assert versions[0]["reverted_from"] == "1.0"


def test_revert_to_unknown_version(client, org_headers, sandwich):
    """Test that reverting to a version that does not exist fails."""
    response = client.post(
        f"/api/v1/recipes/{sandwich['id']}/versions/99999/revert",
        headers=org_headers,
        json={},
    )
    assert response.status_code == 400


def test_revert_cannot_make_recipe_contain_itself(client, org_headers):
    """Test that a restored sub-recipe line may not close a loop."""
    sauce = create_recipe(client, org_headers, name="Sauce", type="prepared")
    plate = create_recipe(
        client,
        org_headers,
        name="Plate",
        ingredients=[sub_recipe(sauce, "1")],
    )
    response = client.post(
        f"/api/v1/recipes/{plate['id']}/versions",
        headers=org_headers,
        json={},
    )
    with_sauce = response.json()

    response = client.delete(
        f"/api/v1/recipes/ingredients/{plate['ingredients'][0]['id']}",
        headers=org_headers,
    )
    assert response.status_code == 204
    response = client.post(
        f"/api/v1/recipes/{sauce['id']}/ingredients",
        headers=org_headers,
        json=sub_recipe(plate, "1"),
    )
    assert response.status_code == 201

    response = client.post(
        f"/api/v1/recipes/{plate['id']}/versions/{with_sauce['id']}/revert",
        headers=org_headers,
        json={},
    )
    assert response.status_code == 400

    plate = client.get(f"/api/v1/recipes/{plate['id']}", headers=org_headers).json()
    assert plate["ingredients"] == []
    assert plate["version"] == "1.1"
    versions = client.get(f"/api/v1/recipes/{plate['id']}/versions", headers=org_headers).json()
    assert [v["version"] for v in versions] == ["1.0"]
