"""Integration tests for category management."""

import pytest
from httpx import AsyncClient

from tests.conftest import requires_postgres

pytestmark = [pytest.mark.asyncio, requires_postgres]


@pytest.fixture
async def admin(user_factory):
    return await user_factory(role="admin")


class TestCategories:
    async def test_admin_creates(self, async_client: AsyncClient, admin, auth_headers):
        response = await async_client.post(
            "/api/v1/categories",
            json={"name": "Garden", "description": "Outdoor things"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Garden"

    async def test_list_sorted_by_name(
        self, async_client: AsyncClient, category_factory, user_factory, auth_headers
    ):
        await category_factory(name="Toys")
        await category_factory(name="Books")
        user = await user_factory()

        response = await async_client.get("/api/v1/categories", headers=auth_headers(user))

        assert [c["name"] for c in response.json()] == ["Books", "Toys"]

    async def test_duplicate_name(
        self, async_client: AsyncClient, admin, category_factory, auth_headers
    ):
        await category_factory(name="Garden")

        response = await async_client.post(
            "/api/v1/categories", json={"name": "Garden"}, headers=auth_headers(admin)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"

    async def test_update(self, async_client: AsyncClient, admin, category_factory, auth_headers):
        category = await category_factory(name="Garden")

        response = await async_client.patch(
            f"/api/v1/categories/{category.id}",
            json={"description": "Plants and tools"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["description"] == "Plants and tools"
        assert response.json()["name"] == "Garden"

    async def test_delete_empty_category(
        self, async_client: AsyncClient, admin, category_factory, auth_headers
    ):
        category = await category_factory(name="Garden")

        response = await async_client.delete(
            f"/api/v1/categories/{category.id}", headers=auth_headers(admin)
        )
        assert response.status_code == 204

        response = await async_client.get(
            f"/api/v1/categories/{category.id}", headers=auth_headers(admin)
        )
        assert response.status_code == 404

    async def test_delete_category_in_use(
        self, async_client: AsyncClient, admin, product_factory, category_factory, auth_headers
    ):
        category = await category_factory(name="Garden")
        await product_factory(category=category, name="Rake")

        response = await async_client.delete(
            f"/api/v1/categories/{category.id}", headers=auth_headers(admin)
        )

        assert response.status_code == 400
