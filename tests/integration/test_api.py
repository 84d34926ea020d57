"""
Integration tests for the HTTP API (web/main.py and web/routes/api).

Runs the FastAPI app in-process against a seeded in-memory DuckDB store.
"""
import asyncio
import pytest
from fastapi.testclient import TestClient

from conftest import seed_brand
from trackr.repositories import DuckDBRecordStore
from web.main import create_app
from web.routes.api._deps import limiter

OWNER = {"X-User-Id": "owner-1", "X-User-Role": "brand_admin"}
MASTER = {"X-User-Id": "root", "X-User-Role": "master"}
JANUARY = {"start_date": "2024-01-01", "end_date": "2024-01-31"}


@pytest.fixture
def client():
    """TestClient over a seeded store; rate limits reset per test."""
    store = DuckDBRecordStore(":memory:")

    async def _prepare():
        await store.connect()
        return await seed_brand(store)

    seed = asyncio.run(_prepare())
    limiter.reset()
    with TestClient(create_app(store)) as test_client:
        test_client.seed = seed
        yield test_client
    asyncio.run(store.close())


class TestHealth:
    def test_healthy_with_store(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["store"]["status"] == "connected"
        assert "version" in body

    def test_correlation_header(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "abc12345"})
        assert response.headers.get("X-Request-ID") == "abc12345"


class TestAccess:
    """Identity and permission mapping to status codes."""

    def test_missing_identity(self, client):
        response = client.get("/api/brands/brand-1/metrics", params=JANUARY)
        assert response.status_code == 401

    def test_influencer_forbidden(self, client):
        response = client.get(
            "/api/brands/brand-1/metrics",
            params=JANUARY,
            headers={"X-User-Id": "owner-1", "X-User-Role": "influencer"},
        )
        assert response.status_code == 403

    def test_other_admin_forbidden(self, client):
        response = client.get(
            "/api/brands/brand-1/metrics",
            params=JANUARY,
            headers={"X-User-Id": "owner-2", "X-User-Role": "brand_admin"},
        )
        assert response.status_code == 403

    def test_unknown_brand(self, client):
        response = client.get("/api/brands/missing/metrics", params=JANUARY, headers=OWNER)
        assert response.status_code == 404

    def test_brand_list_by_role(self, client):
        owned = client.get("/api/brands", headers=OWNER).json()
        assert [b["id"] for b in owned["data"]] == ["brand-1"]

        everyone = client.get("/api/brands", headers=MASTER).json()
        assert len(everyone["data"]) == 1

        nobody = client.get("/api/brands", headers={"X-User-Id": "u", "X-User-Role": "influencer"}).json()
        assert nobody == {"data": [], "error": None}

    def test_brand_list_shape(self, client):
        brand = client.get("/api/brands", headers=OWNER).json()["data"][0]
        assert set(brand) == {"id", "name", "ownerId", "externalStoreId", "isReal"}
        assert brand["ownerId"] == "owner-1"

    def test_influencers(self, client):
        response = client.get("/api/brands/brand-1/influencers", headers=OWNER)
        assert response.status_code == 200
        assert [i["name"] for i in response.json()["data"]] == ["Bia", "Ana"]

        january = client.get("/api/brands/brand-1/influencers", params=JANUARY, headers=OWNER).json()
        assert [i["name"] for i in january["data"]] == ["Bia"]

    def test_influencers_forbidden_for_other_admin(self, client):
        response = client.get(
            "/api/brands/brand-1/influencers",
            headers={"X-User-Id": "owner-2", "X-User-Role": "brand_admin"},
        )
        assert response.status_code == 403


class TestDashboardEndpoints:
    def test_metrics(self, client):
        response = client.get("/api/brands/brand-1/metrics", params=JANUARY, headers=OWNER)
        assert response.status_code == 200
        body = response.json()
        assert body["error"] is None
        assert body["data"]["totalRevenue"] == 75.01
        assert body["data"]["totalOrders"] == 3

    def test_overview_has_every_widget(self, client):
        response = client.get("/api/brands/brand-1/overview", params=JANUARY, headers=OWNER)
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"metrics", "dailyRevenue", "topCoupons", "topClassifications", "pendingOrders"}
        assert body["topCoupons"]["data"][0]["code"] == "SAVE10"
        assert body["pendingOrders"]["data"]["count"] == 1

    def test_bad_date(self, client):
        response = client.get(
            "/api/brands/brand-1/metrics",
            params={"start_date": "2024-13-01", "end_date": "2024-01-31"},
            headers=OWNER,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Formato de data inválido. Use AAAA-MM-DD"

    def test_bad_period(self, client):
        response = client.get("/api/brands/brand-1/metrics", params={"period": "decade"}, headers=OWNER)
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Período inválido")


class TestTableEndpoints:
    def test_coupons_table(self, client):
        response = client.get(
            "/api/brands/brand-1/coupons",
            params={**JANUARY, "sort_by": "totalSales", "sort_direction": "desc"},
            headers=OWNER,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["totalCount"] == 3
        assert body["data"]["coupons"][0]["code"] == "SAVE10"

    def test_bad_sort_field(self, client):
        response = client.get(
            "/api/brands/brand-1/coupons", params={**JANUARY, "sort_by": "nope"}, headers=OWNER
        )
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Campo de ordenação inválido")

    def test_bad_page_on_conversions(self, client):
        response = client.get(
            "/api/brands/brand-1/conversions", params={**JANUARY, "page": 0}, headers=OWNER
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Deve ser no mínimo 1"

    def test_bad_sort_checked_after_access(self, client):
        response = client.get(
            "/api/brands/brand-1/coupons",
            params={**JANUARY, "sort_by": "nope"},
            headers={"X-User-Id": "owner-2", "X-User-Role": "brand_admin"},
        )
        assert response.status_code == 403

    def test_conversions_table(self, client):
        response = client.get("/api/brands/brand-1/conversions", params=JANUARY, headers=OWNER)
        assert response.status_code == 200
        assert response.json()["data"]["totalCount"] == 4

    def test_coupon_filters(self, client):
        response = client.get("/api/brands/brand-1/coupons/filters", params=JANUARY, headers=OWNER)
        assert response.status_code == 200
        assert response.json()["error"] is None


class TestManagementEndpoints:
    def test_create_then_list(self, client):
        created = client.post(
            "/api/brands/brand-1/classifications",
            json={"name": "VIP", "color": "#FF0000"},
            headers=OWNER,
        ).json()
        assert created["error"] is None
        assert created["data"]["color"] == "#ff0000"

        listed = client.get("/api/brands/brand-1/classifications", headers=OWNER).json()
        assert [c["name"] for c in listed["data"]] == ["VIP"]

    def test_invalid_color_is_envelope_error(self, client):
        response = client.post(
            "/api/brands/brand-1/classifications",
            json={"name": "VIP", "color": "red"},
            headers=OWNER,
        )
        assert response.status_code == 200
        assert response.json() == {"data": {}, "error": "Cor inválida. Use o formato #rrggbb"}

    def test_assign_without_selection(self, client):
        coupons = client.get("/api/brands/brand-1/coupons", params=JANUARY, headers=OWNER).json()
        coupon_id = coupons["data"]["coupons"][0]["id"]
        response = client.put(
            f"/api/brands/brand-1/coupons/{coupon_id}/classification",
            json={"classification_id": None},
            headers=OWNER,
        )
        assert response.json()["error"] == "Selecione uma classificação"

    def test_duplicate_coupon(self, client):
        response = client.post("/api/brands/brand-1/coupons", json={"code": "SAVE10"}, headers=OWNER)
        assert response.json()["error"] == "Já existe um cupom com este código"

    def test_log_conversion(self, client):
        response = client.post(
            "/api/brands/brand-1/conversions",
            json={"order_id": "77", "order_amount": 12.5, "coupon_code": "SAVE10"},
            headers=OWNER,
        )
        body = response.json()
        assert body["error"] is None
        assert body["data"]["couponCode"] == "SAVE10"

    def test_log_conversion_by_coupon_id(self, client):
        bia15 = client.seed["coupons"]["BIA15"]
        response = client.post(
            "/api/brands/brand-1/conversions",
            json={"order_id": "78", "order_amount": 9, "coupon_id": bia15.id, "metadata": {"channel": "app"}},
            headers=OWNER,
        )
        body = response.json()
        assert body["error"] is None
        assert body["data"]["couponCode"] == "BIA15"
        assert body["data"]["metadata"] == {"channel": "app"}

    def test_influencer_cannot_write(self, client):
        response = client.post(
            "/api/brands/brand-1/classifications",
            json={"name": "VIP"},
            headers={"X-User-Id": "owner-1", "X-User-Role": "influencer"},
        )
        assert response.status_code == 403
