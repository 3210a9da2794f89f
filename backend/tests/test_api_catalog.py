"""
CaterHub Backend — Catalog API Tests
======================================

What:  Dishes, package items and packages over HTTP for two caterers.

What we test:
    ✅ End-to-end scenario: signup → login → bad reference → dish → item → guarded delete
    ✅ Another caterer's ids behave exactly like nonexistent ids
    ✅ Partial updates and subcategory re-validation
    ✅ Draft items, link-batch all-or-nothing, package item replacement and delete
    ✅ Package item partial update, back to draft, re-pointing at foreign rows
    ✅ Multipart create with an image, rejected uploads
    ✅ A failed commit leaves neither the row nor the stored image
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError


async def _create_dish(client, account, body):
    response = await client.post("/caterer/dishes", json=body, headers=account.headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _create_item(client, account, dish_id, **extra):
    response = await client.post(
        "/caterer/packages/items",
        json={"dish_id": dish_id, "people_count": 10, **extra},
        headers=account.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _create_package(client, account, lookups, **extra):
    body = {
        "name": "Wedding Feast",
        "people_count": 50,
        "package_type_id": lookups["package_type"]["Fixed Menu"],
        "total_price": 1500,
    }
    body.update(extra)
    response = await client.post("/caterer/packages", json=body, headers=account.headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# ── Scenario ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_caterer_scenario(test_client, lookups, dish_body):
    signup = await test_client.post(
        "/auth/signup",
        json={
            "first_name": "A",
            "last_name": "X",
            "phone": "1",
            "email": "a@x.com",
            "password": "secret1",
            "type": "CATERER",
            "company_name": "Acme",
        },
    )
    assert signup.status_code == 201
    user_id = signup.json()["data"]["user"]["id"]

    login = await test_client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert login.status_code == 200
    assert login.json()["data"]["user"]["id"] == user_id
    headers = {"Authorization": f"Bearer {login.json()['data']['token']}"}

    bad = await test_client.post(
        "/caterer/dishes", json=dish_body(category_id=str(uuid.uuid4())), headers=headers
    )
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "invalid_reference"

    created = await test_client.post("/caterer/dishes", json=dish_body(), headers=headers)
    assert created.status_code == 201
    dish = created.json()["data"]
    assert dish["price"] == 10.0
    assert dish["currency"] == "AED"
    assert dish["caterer_id"] == user_id

    item = await test_client.post(
        "/caterer/packages/items",
        json={"dish_id": dish["id"], "people_count": 10},
        headers=headers,
    )
    assert item.status_code == 201
    assert item.json()["data"]["price_at_time"] == 10.0

    blocked = await test_client.delete(f"/caterer/dishes/{dish['id']}", headers=headers)
    assert blocked.status_code == 400
    assert blocked.json()["error"]["code"] == "referenced_by_package_item"

    removed = await test_client.delete(
        f"/caterer/packages/items/{item.json()['data']['id']}", headers=headers
    )
    assert removed.status_code == 200

    deleted = await test_client.delete(f"/caterer/dishes/{dish['id']}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Dish deleted successfully"


# ── Dishes ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_dish_missing_fields(test_client, caterer):
    response = await test_client.post(
        "/caterer/dishes", json={"name": "Soup"}, headers=caterer.headers
    )
    assert response.status_code == 400
    assert response.json()["error"]["message"] == (
        "Missing required fields: name, cuisine_type_id, category_id, sub_category_id, price"
    )


@pytest.mark.asyncio
async def test_dish_sub_category_must_match_category(test_client, caterer, dish_body, lookups):
    response = await test_client.post(
        "/caterer/dishes",
        json=dish_body(sub_category_id=lookups["sub_category"]["Cakes"]),
        headers=caterer.headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["message"] == (
        "Subcategory does not belong to the specified category"
    )


@pytest.mark.asyncio
async def test_dish_partial_update(test_client, caterer, dish_body, lookups):
    dish = await _create_dish(test_client, caterer, dish_body(description="Spicy"))

    response = await test_client.put(
        f"/caterer/dishes/{dish['id']}",
        json={"price": "12.50", "is_active": False},
        headers=caterer.headers,
    )
    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["price"] == 12.5
    assert updated["is_active"] is False
    assert updated["name"] == dish["name"]
    assert updated["description"] == "Spicy"

    # Subcategory-only change is checked against the current category
    mismatch = await test_client.put(
        f"/caterer/dishes/{dish['id']}",
        json={"sub_category_id": lookups["sub_category"]["Pastries"]},
        headers=caterer.headers,
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["error"]["code"] == "invalid_reference"


@pytest.mark.asyncio
async def test_dish_free_forms(test_client, caterer, dish_body, lookups):
    vegan = lookups["free_form"]["Vegan"]
    halal = lookups["free_form"]["Halal"]

    dish = await _create_dish(test_client, caterer, dish_body(free_form_ids=[vegan, halal]))
    assert sorted(f["name"] for f in dish["free_forms"]) == ["Halal", "Vegan"]

    response = await test_client.put(
        f"/caterer/dishes/{dish['id']}", json={"free_form_ids": [halal]}, headers=caterer.headers
    )
    assert [f["name"] for f in response.json()["data"]["free_forms"]] == ["Halal"]

    unknown = await test_client.put(
        f"/caterer/dishes/{dish['id']}",
        json={"free_form_ids": [str(uuid.uuid4())]},
        headers=caterer.headers,
    )
    assert unknown.status_code == 400
    assert unknown.json()["error"]["message"] == "Invalid free form"


@pytest.mark.asyncio
async def test_dish_list_filters(test_client, caterer, dish_body, lookups):
    await _create_dish(test_client, caterer, dish_body(name="Biryani"))
    await _create_dish(
        test_client,
        caterer,
        dish_body(
            name="Tiramisu",
            cuisine_type_id=lookups["cuisine"]["Italian"],
            category_id=lookups["category"]["Desserts"],
            sub_category_id=lookups["sub_category"]["Cakes"],
            is_active=False,
        ),
    )

    all_dishes = await test_client.get("/caterer/dishes", headers=caterer.headers)
    assert [d["name"] for d in all_dishes.json()["data"]] == ["Tiramisu", "Biryani"]

    desserts = await test_client.get(
        "/caterer/dishes",
        params={"category_id": lookups["category"]["Desserts"]},
        headers=caterer.headers,
    )
    assert [d["name"] for d in desserts.json()["data"]] == ["Tiramisu"]

    active = await test_client.get(
        "/caterer/dishes", params={"is_active": "true"}, headers=caterer.headers
    )
    assert [d["name"] for d in active.json()["data"]] == ["Biryani"]


# ── Tenant isolation ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_other_caterers_rows_look_missing(test_client, caterer, other_caterer, dish_body, lookups):
    dish = await _create_dish(test_client, caterer, dish_body())
    item = await _create_item(test_client, caterer, dish["id"])
    package = await _create_package(test_client, caterer, lookups)

    for path in (
        f"/caterer/dishes/{dish['id']}",
        f"/caterer/packages/items/{item['id']}",
        f"/caterer/packages/{package['id']}",
    ):
        foreign = await test_client.get(path, headers=other_caterer.headers)
        missing = await test_client.get(
            path.rsplit("/", 1)[0] + f"/{uuid.uuid4()}", headers=other_caterer.headers
        )
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json()["error"]["message"].endswith(
            "not found or you don't have permission to access it"
        )

        assert (await test_client.put(path, json={"name": "Mine"}, headers=other_caterer.headers)).status_code == 404
        assert (await test_client.delete(path, headers=other_caterer.headers)).status_code == 404

    listed = await test_client.get("/caterer/dishes", headers=other_caterer.headers)
    assert listed.json()["data"] == []

    # Still intact for the owner
    assert (await test_client.get(f"/caterer/dishes/{dish['id']}", headers=caterer.headers)).status_code == 200


@pytest.mark.asyncio
async def test_malformed_path_id_is_not_found(test_client, caterer):
    response = await test_client.get("/caterer/dishes/not-a-uuid", headers=caterer.headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_item_on_foreign_dish_rejected(test_client, caterer, other_caterer, dish_body):
    dish = await _create_dish(test_client, caterer, dish_body())

    response = await test_client.post(
        "/caterer/packages/items",
        json={"dish_id": dish["id"], "people_count": 5},
        headers=other_caterer.headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["message"] == (
        "Dish not found or does not belong to this caterer"
    )


# ── Package items and linking ─────────────────────────────────────────────

@pytest.mark.asyncio
async def test_item_update(test_client, caterer, dish_body, lookups):
    dish = await _create_dish(test_client, caterer, dish_body())
    spare = await _create_dish(test_client, caterer, dish_body(name="Lamb Ouzi", price=25))
    item = await _create_item(test_client, caterer, dish["id"], quantity=2, is_optional=True)
    package = await _create_package(test_client, caterer, lookups)
    url = f"/caterer/packages/items/{item['id']}"

    partial = await test_client.put(url, json={"people_count": 25}, headers=caterer.headers)
    assert partial.status_code == 200
    data = partial.json()["data"]
    assert data["people_count"] == 25
    assert data["quantity"] == 2
    assert data["is_optional"] is True
    assert data["dish_id"] == dish["id"]
    assert data["price_at_time"] == 10.0

    moved = await test_client.put(
        url, json={"dish_id": spare["id"], "package_id": package["id"]}, headers=caterer.headers
    )
    assert moved.json()["data"]["dish"]["name"] == "Lamb Ouzi"
    assert moved.json()["data"]["package_id"] == package["id"]
    assert moved.json()["data"]["is_draft"] is False

    drafted = await test_client.put(url, json={"package_id": None}, headers=caterer.headers)
    assert drafted.json()["data"]["package_id"] is None
    assert drafted.json()["data"]["is_draft"] is True

    cleared = await test_client.put(url, json={"dish_id": None}, headers=caterer.headers)
    assert cleared.status_code == 400
    assert cleared.json()["error"]["message"] == "dish_id cannot be empty"


@pytest.mark.asyncio
async def test_item_update_rejects_foreign_targets(test_client, caterer, other_caterer, dish_body, lookups):
    dish = await _create_dish(test_client, caterer, dish_body())
    item = await _create_item(test_client, caterer, dish["id"])
    rival_dish = await _create_dish(test_client, other_caterer, dish_body())
    rival_package = await _create_package(test_client, other_caterer, lookups)
    url = f"/caterer/packages/items/{item['id']}"

    foreign_dish = await test_client.put(
        url, json={"dish_id": rival_dish["id"]}, headers=caterer.headers
    )
    assert foreign_dish.status_code == 400
    assert foreign_dish.json()["error"]["code"] == "invalid_reference"
    assert foreign_dish.json()["error"]["message"] == (
        "Dish not found or does not belong to this caterer"
    )

    foreign_package = await test_client.put(
        url, json={"package_id": rival_package["id"]}, headers=caterer.headers
    )
    assert foreign_package.status_code == 400
    assert foreign_package.json()["error"]["message"] == (
        "Package not found or does not belong to this caterer"
    )

    unchanged = await test_client.get(url, headers=caterer.headers)
    assert unchanged.json()["data"]["dish_id"] == dish["id"]
    assert unchanged.json()["data"]["package_id"] is None


@pytest.mark.asyncio
async def test_link_batch(test_client, caterer, other_caterer, dish_body, lookups):
    dish = await _create_dish(test_client, caterer, dish_body())
    first = await _create_item(test_client, caterer, dish["id"])
    second = await _create_item(test_client, caterer, dish["id"], quantity=2, is_addon=True)
    assert first["is_draft"] is True and first["package_id"] is None

    drafts = await test_client.get(
        "/caterer/packages/items", params={"draft": "true"}, headers=caterer.headers
    )
    assert len(drafts.json()["data"]) == 2

    package = await _create_package(test_client, caterer, lookups)

    linked = await test_client.post(
        f"/caterer/packages/{package['id']}/items/link",
        json={"item_ids": [first["id"], second["id"]]},
        headers=caterer.headers,
    )
    assert linked.status_code == 200
    assert linked.json()["message"] == "Package items linked successfully"
    assert {i["package_id"] for i in linked.json()["data"]} == {package["id"]}

    drafts = await test_client.get(
        "/caterer/packages/items", params={"draft": "1"}, headers=caterer.headers
    )
    assert drafts.json()["data"] == []

    by_package = await test_client.get(
        "/caterer/packages/items", params={"package_id": package["id"]}, headers=caterer.headers
    )
    assert len(by_package.json()["data"]) == 2

    detail = await test_client.get(f"/caterer/packages/{package['id']}", headers=caterer.headers)
    assert len(detail.json()["data"]["items"]) == 2
    assert detail.json()["data"]["items"][0]["dish"]["name"] == "Chicken Biryani"


@pytest.mark.asyncio
async def test_link_batch_is_all_or_nothing(test_client, caterer, other_caterer, dish_body, lookups):
    mine_dish = await _create_dish(test_client, caterer, dish_body())
    theirs_dish = await _create_dish(test_client, other_caterer, dish_body())
    mine = await _create_item(test_client, caterer, mine_dish["id"])
    theirs = await _create_item(test_client, other_caterer, theirs_dish["id"])
    package = await _create_package(test_client, caterer, lookups)

    response = await test_client.post(
        f"/caterer/packages/{package['id']}/items/link",
        json={"item_ids": [mine["id"], theirs["id"]]},
        headers=caterer.headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "partial_ownership_mismatch"

    unchanged = await test_client.get(
        f"/caterer/packages/items/{mine['id']}", headers=caterer.headers
    )
    assert unchanged.json()["data"]["package_id"] is None
    still_theirs = await test_client.get(
        f"/caterer/packages/items/{theirs['id']}", headers=other_caterer.headers
    )
    assert still_theirs.json()["data"]["package_id"] is None


@pytest.mark.asyncio
async def test_link_batch_validation(test_client, caterer, other_caterer, lookups):
    package = await _create_package(test_client, caterer, lookups)
    url = f"/caterer/packages/{package['id']}/items/link"

    for body in ({}, {"item_ids": []}, {"item_ids": "abc"}):
        response = await test_client.post(url, json=body, headers=caterer.headers)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "item_ids array is required"

    foreign = await test_client.post(
        url, json={"item_ids": [str(uuid.uuid4())]}, headers=other_caterer.headers
    )
    assert foreign.status_code == 404


# ── Packages ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_package_create_update_delete(test_client, caterer, dish_body, lookups):
    dish = await _create_dish(test_client, caterer, dish_body())
    first = await _create_item(test_client, caterer, dish["id"])
    second = await _create_item(test_client, caterer, dish["id"])

    package = await _create_package(
        test_client,
        caterer,
        lookups,
        package_item_ids=[first["id"]],
        customisation_type="customisable",
    )
    assert package["customisation_type"] == "CUSTOMISABLE"
    assert package["package_type"]["name"] == "Fixed Menu"
    assert [i["id"] for i in package["items"]] == [first["id"]]

    replaced = await test_client.put(
        f"/caterer/packages/{package['id']}",
        json={"package_item_ids": [second["id"]], "total_price": "1750.50"},
        headers=caterer.headers,
    )
    assert replaced.status_code == 200
    data = replaced.json()["data"]
    assert [i["id"] for i in data["items"]] == [second["id"]]
    assert data["total_price"] == 1750.5
    assert data["name"] == "Wedding Feast"

    # The dropped item went back to draft
    dropped = await test_client.get(f"/caterer/packages/items/{first['id']}", headers=caterer.headers)
    assert dropped.json()["data"]["is_draft"] is True

    deleted = await test_client.delete(f"/caterer/packages/{package['id']}", headers=caterer.headers)
    assert deleted.status_code == 200

    survivor = await test_client.get(f"/caterer/packages/items/{second['id']}", headers=caterer.headers)
    assert survivor.status_code == 200
    assert survivor.json()["data"]["package_id"] is None


@pytest.mark.asyncio
async def test_package_validation(test_client, caterer, lookups):
    missing = await test_client.post(
        "/caterer/packages", json={"name": "Tea"}, headers=caterer.headers
    )
    assert missing.status_code == 400
    assert missing.json()["error"]["message"].startswith("Missing required fields")

    bad_type = await test_client.post(
        "/caterer/packages",
        json={
            "name": "Tea",
            "people_count": 10,
            "package_type_id": str(uuid.uuid4()),
            "total_price": 100,
        },
        headers=caterer.headers,
    )
    assert bad_type.status_code == 400
    assert bad_type.json()["error"]["message"] == "Invalid package type"


# ── Uploads ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_multipart_dish_with_image(test_client, caterer, dish_body, lookups, png_bytes):
    form = {k: str(v) for k, v in dish_body(is_active="true").items()}
    form["free_form_ids"] = f"{lookups['free_form']['Vegan']},{lookups['free_form']['Halal']}"

    response = await test_client.post(
        "/caterer/dishes",
        data=form,
        files={"image": ("biryani.png", png_bytes, "image/png")},
        headers=caterer.headers,
    )
    assert response.status_code == 201, response.text
    dish = response.json()["data"]
    assert dish["image_url"].startswith("/files/dishes/")
    assert dish["image_url"].endswith(".png")
    assert len(dish["free_forms"]) == 2

    served = await test_client.get(dish["image_url"])
    assert served.status_code == 200
    assert served.content == png_bytes


@pytest.mark.asyncio
async def test_upload_rejections(test_client, caterer, dish_body, app):
    form = {k: str(v) for k, v in dish_body().items()}

    not_image = await test_client.post(
        "/caterer/dishes",
        data=form,
        files={"image": ("menu.pdf", b"%PDF-1.4", "application/pdf")},
        headers=caterer.headers,
    )
    assert not_image.status_code == 400
    assert not_image.json()["error"]["code"] == "upload_error"

    disguised = await test_client.post(
        "/caterer/dishes",
        data=form,
        files={"image": ("photo.png", b"not really a png", "image/png")},
        headers=caterer.headers,
    )
    assert disguised.status_code == 400
    assert disguised.json()["error"]["message"] == "Uploaded file is not a valid image"

    listed = await test_client.get("/caterer/dishes", headers=caterer.headers)
    assert listed.json()["data"] == []


@pytest.mark.asyncio
async def test_pixel_bomb_upload_rejected(test_client, caterer, dish_body, oversized_header_png):
    form = {k: str(v) for k, v in dish_body().items()}
    response = await test_client.post(
        "/caterer/dishes",
        data=form,
        files={"image": ("huge.png", oversized_header_png, "image/png")},
        headers=caterer.headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "upload_error"
    assert response.json()["error"]["message"] == "Image dimensions are too large"


@pytest.mark.asyncio
async def test_rejected_write_removes_stored_image(test_client, caterer, dish_body, app, png_bytes):
    form = {k: str(v) for k, v in dish_body(category_id=str(uuid.uuid4())).items()}

    response = await test_client.post(
        "/caterer/dishes",
        data=form,
        files={"image": ("biryani.png", png_bytes, "image/png")},
        headers=caterer.headers,
    )
    assert response.status_code == 400

    storage_root = app.state.image_storage.storage_root
    assert not [p for p in storage_root.rglob("*") if p.is_file()]


@pytest.mark.asyncio
async def test_failed_commit_removes_stored_image(test_client, caterer, dish_body, app, png_bytes):
    form = {k: str(v) for k, v in dish_body().items()}

    with patch(
        "sqlalchemy.ext.asyncio.AsyncSession.commit",
        new_callable=AsyncMock,
        side_effect=SQLAlchemyError("could not serialize access due to concurrent update"),
    ):
        response = await test_client.post(
            "/caterer/dishes",
            data=form,
            files={"image": ("biryani.png", png_bytes, "image/png")},
            headers=caterer.headers,
        )

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "server_error"

    storage_root = app.state.image_storage.storage_root
    assert not [p for p in storage_root.rglob("*") if p.is_file()]

    listed = await test_client.get("/caterer/dishes", headers=caterer.headers)
    assert listed.json()["data"] == []


@pytest.mark.asyncio
async def test_package_cover_image(test_client, caterer, lookups, png_bytes):
    response = await test_client.post(
        "/caterer/packages",
        data={
            "name": "Afternoon Tea",
            "people_count": "20",
            "package_type_id": lookups["package_type"]["Buffet Style"],
            "total_price": "300",
        },
        files={"image": ("tea.png", png_bytes, "image/png")},
        headers=caterer.headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["data"]["cover_image_url"].startswith("/files/packages/")
