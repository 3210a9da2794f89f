"""
CaterHub Backend — Platform API Tests
=======================================

What:  Health, metadata lookups, the dashboard, file serving, the error
       envelope for unknown routes, rate limiting, the lookup seed and
       startup refusal of the placeholder JWT secret outside DEBUG logging.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from caterhub.config import DEFAULT_JWT_SECRET
from caterhub.main import create_app, setup_logging
from caterhub.models.lookup import Category, CuisineType, SubCategory
from caterhub.seed import CUISINE_TYPES, seed_lookups


# ── Health ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health_ok(test_client):
    response = await test_client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "API is running"
    assert body["database"] == "connected"


@pytest.mark.asyncio
async def test_health_database_down(test_client, app):
    with patch.object(app.state.db, "ping", new=AsyncMock(side_effect=OSError("refused"))):
        response = await test_client.get("/health")
    assert response.status_code == 503
    assert response.json()["success"] is False
    assert response.json()["database"] == "disconnected"


# ── Metadata ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_metadata_requires_caterer(test_client, make_account):
    assert (await test_client.get("/caterer/metadata/cuisine-types")).status_code == 401

    customer = await make_account("guest@example.com", role="USER", company_name=None)
    response = await test_client.get("/caterer/metadata/cuisine-types", headers=customer.headers)
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    [
        "/caterer/metadata/cuisine-types",
        "/caterer/metadata/categories",
        "/caterer/metadata/subcategories",
        "/caterer/metadata/freeforms",
        "/caterer/metadata/package-types",
        "/caterer/metadata/occasions",
    ],
)
async def test_metadata_sorted_by_name(test_client, caterer, path):
    response = await test_client.get(path, headers=caterer.headers)
    assert response.status_code == 200
    names = [row["name"] for row in response.json()["data"]]
    assert names
    assert names == sorted(names)


@pytest.mark.asyncio
async def test_categories_embed_subcategories(test_client, caterer):
    response = await test_client.get("/caterer/metadata/categories", headers=caterer.headers)
    by_name = {row["name"]: row for row in response.json()["data"]}
    assert {s["name"] for s in by_name["Desserts"]["sub_categories"]} == {
        "Cakes",
        "Ice Cream",
        "Pastries",
    }
    assert by_name["Soups"]["sub_categories"] == []


@pytest.mark.asyncio
async def test_subcategories_filtered_by_category(test_client, caterer, lookups):
    desserts = lookups["category"]["Desserts"]
    response = await test_client.get(
        "/caterer/metadata/subcategories",
        params={"category_id": desserts},
        headers=caterer.headers,
    )
    rows = response.json()["data"]
    assert [r["name"] for r in rows] == ["Cakes", "Ice Cream", "Pastries"]
    assert {r["category_id"] for r in rows} == {desserts}

    malformed = await test_client.get(
        "/caterer/metadata/subcategories",
        params={"category_id": "nope"},
        headers=caterer.headers,
    )
    assert malformed.json()["data"] == []


# ── Dashboard ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_dashboard_empty(test_client, caterer):
    response = await test_client.get("/caterer/dashboard", headers=caterer.headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["dishes"] == {"total": 0, "active": 0, "inactive": 0}
    assert data["packageItems"] == {"total": 0, "draft": 0, "linked": 0}
    assert data["financial"] == {
        "averagePackagePrice": 0.0,
        "totalRevenuePotential": 0.0,
        "currency": "AED",
    }
    assert data["recent"] == {"dishes": [], "packages": []}


@pytest.mark.asyncio
async def test_dashboard_counts(test_client, caterer, other_caterer, dish_body, lookups):
    headers = caterer.headers
    active = (await test_client.post("/caterer/dishes", json=dish_body(), headers=headers)).json()["data"]
    await test_client.post(
        "/caterer/dishes", json=dish_body(name="Old Curry", is_active=False), headers=headers
    )
    # Another tenant's rows never count
    await test_client.post("/caterer/dishes", json=dish_body(), headers=other_caterer.headers)

    item = await test_client.post(
        "/caterer/packages/items", json={"dish_id": active["id"], "people_count": 4}, headers=headers
    )
    await test_client.post(
        "/caterer/packages/items", json={"dish_id": active["id"], "people_count": 8}, headers=headers
    )
    for name, price, extra in (("Gold", 100, {}), ("Silver", 50.55, {"is_available": False})):
        await test_client.post(
            "/caterer/packages",
            json={
                "name": name,
                "people_count": 10,
                "package_type_id": lookups["package_type"]["Buffet Style"],
                "total_price": price,
                "currency": "usd",
                "package_item_ids": [item.json()["data"]["id"]] if name == "Gold" else [],
                **extra,
            },
            headers=headers,
        )

    data = (await test_client.get("/caterer/dashboard", headers=headers)).json()["data"]

    dishes = data["dishes"]
    assert dishes == {"total": 2, "active": 1, "inactive": 1}
    assert dishes["active"] + dishes["inactive"] == dishes["total"]

    packages = data["packages"]
    assert packages["total"] == 2
    assert packages["available"] == 1
    assert packages["active"] + packages["inactive"] == packages["total"]

    items = data["packageItems"]
    assert items == {"total": 2, "draft": 1, "linked": 1}

    assert data["financial"]["totalRevenuePotential"] == 150.55
    assert data["financial"]["averagePackagePrice"] == 75.28
    assert data["financial"]["currency"] == "USD"
    assert len(data["recent"]["dishes"]) == 2
    assert [p["name"] for p in data["recent"]["packages"]] == ["Silver", "Gold"]


@pytest.mark.asyncio
async def test_dashboard_forbidden_for_customers(test_client, make_account):
    customer = await make_account("diner@example.com", role="USER", company_name=None)
    response = await test_client.get("/caterer/dashboard", headers=customer.headers)
    assert response.status_code == 403
    assert response.json()["success"] is False


# ── Routing and files ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(test_client):
    response = await test_client.get("/no/such/route")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_missing_file_is_not_found(test_client):
    response = await test_client.get("/files/dishes/2024/01/missing.png")
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "File not found"


@pytest.mark.asyncio
async def test_file_path_traversal_rejected(test_client, tmp_path):
    (tmp_path / "secret.txt").write_text("nope")
    response = await test_client.get("/files/..%2Fsecret.txt")
    assert response.status_code == 404


# ── Rate limiting ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_login_rate_limited(test_settings):
    limited = create_app(test_settings.model_copy(update={"rate_limit_requests": 2}))
    await limited.state.db.create_all()
    try:
        transport = ASGITransport(app=limited)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            body = {"email": "nobody@example.com", "password": "wrong-password"}
            assert (await client.post("/auth/login", json=body)).status_code == 401
            assert (await client.post("/auth/login", json=body)).status_code == 401

            blocked = await client.post("/auth/login", json=body)
            assert blocked.status_code == 429
            assert blocked.json()["error"]["code"] == "rate_limit_exceeded"
            assert int(blocked.headers["Retry-After"]) >= 1

            # Other paths are not limited
            assert (await client.get("/health")).status_code == 200
    finally:
        await limited.state.db.dispose()


# ── Seeding ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_seed_is_idempotent(app):
    async with app.state.db.session_factory() as session:
        async with session.begin():
            await seed_lookups(session)
            await seed_lookups(session)

        cuisines = (await session.execute(select(func.count()).select_from(CuisineType))).scalar()
        categories = (await session.execute(select(func.count()).select_from(Category))).scalar()
        subs = (await session.execute(select(func.count()).select_from(SubCategory))).scalar()

    assert cuisines == len(CUISINE_TYPES)
    assert categories == 7
    assert subs == 13


# ── Database failures ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_database_error_is_generic_500(test_client, caterer):
    with patch(
        "caterhub.routes.dishes.dish_service.list_dishes",
        new_callable=AsyncMock,
        side_effect=SQLAlchemyError("server closed the connection unexpectedly"),
    ):
        response = await test_client.get("/caterer/dishes", headers=caterer.headers)

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "server_error"
    assert error["message"] == "A database error occurred. Please try again later."
    assert error["details"] is None
    assert "connection" not in response.text


# ── Startup ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
@pytest.mark.parametrize("log_level", ["INFO", "WARNING", "ERROR"])
async def test_placeholder_secret_refused_at_startup(test_settings, log_level):
    settings = test_settings.model_copy(
        update={"jwt_secret": DEFAULT_JWT_SECRET, "log_level": log_level}
    )
    application = create_app(settings)

    with pytest.raises(ValueError, match="JWT_SECRET is not set"):
        async with application.router.lifespan_context(application):
            pass

    await application.state.db.dispose()


@pytest.mark.asyncio
async def test_placeholder_secret_allowed_with_debug_logging(test_settings):
    settings = test_settings.model_copy(
        update={"jwt_secret": DEFAULT_JWT_SECRET, "log_level": "DEBUG"}
    )
    application = create_app(settings)

    async with application.router.lifespan_context(application):
        pass

    setup_logging(test_settings.log_level)


@pytest.mark.asyncio
async def test_real_secret_starts(test_settings):
    application = create_app(test_settings)

    async with application.router.lifespan_context(application):
        pass
