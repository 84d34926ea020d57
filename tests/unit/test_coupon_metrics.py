"""
Tests for trackr.coupon_metrics module.
"""
import pytest

from trackr.coupon_metrics import (
    compose_coupon_metric,
    filter_by_influencer,
    list_coupons_with_metrics,
    page_to_dict,
    sort_coupon_metrics,
)
from trackr.models import CouponClassification
from conftest import brand_dt


@pytest.fixture
def fifteen_coupons(make_coupon, make_conversion, in_memory_store):
    """15 coupons; coupon i sold (i + 1) * 10 in January."""
    coupons = [make_coupon(f"c{i:02d}", f"CODE{i:02d}") for i in range(15)]
    conversions = [
        make_conversion(amount=(i + 1) * 10, status="paid", coupon_id=c.id, coupon_code=c.code)
        for i, c in enumerate(coupons)
    ]
    return in_memory_store(conversions=conversions, coupons=coupons)


class TestComposeCouponMetric:
    """Tests for compose_coupon_metric function."""

    def test_usage_statuses(self, make_coupon, make_conversion):
        coupon = make_coupon("c1", "SAVE10")
        conversions = [
            make_conversion(amount="10", status="paid", coupon_id="c1", sale_date=brand_dt(2024, 1, 3)),
            make_conversion(amount="20", status="completed", coupon_id="c1", sale_date=brand_dt(2024, 1, 9)),
            make_conversion(amount="40", status="authorized", coupon_id="c1", sale_date=brand_dt(2024, 1, 20)),
            make_conversion(amount="80", status="paid", real=False, coupon_id="c1"),
            make_conversion(amount="160", status="paid", coupon_id="other"),
        ]
        metric = compose_coupon_metric(coupon, conversions, {})
        assert metric.usage_count == 2
        assert metric.total_sales == 30.0
        assert metric.last_usage == brand_dt(2024, 1, 9)

    def test_unused_coupon(self, make_coupon):
        metric = compose_coupon_metric(make_coupon("c1", "SAVE10"), [], {})
        assert metric.usage_count == 0
        assert metric.total_sales == 0.0
        assert metric.last_usage is None

    def test_soft_deleted_classification_still_rendered(self, make_coupon):
        old = CouponClassification(id="cl-1", brand_id="brand-1", name="Embaixador",
                                   color="#123456", is_active=False)
        metric = compose_coupon_metric(make_coupon("c1", "X", classification="cl-1"), [], {"cl-1": old})
        assert metric.classification_name == "Embaixador"
        assert metric.classification_color == "#123456"

    def test_to_dict_keys(self, make_coupon):
        data = compose_coupon_metric(make_coupon("c1", "X", influencer_name="Ana"), [], {}).to_dict()
        assert data["code"] == "X"
        assert data["influencerName"] == "Ana"
        assert data["usageCount"] == 0
        assert data["lastUsage"] is None


class TestFilterAndSort:
    """Tests for filter_by_influencer and sort_coupon_metrics."""

    def test_filter_by_influencer(self, make_coupon):
        coupons = [make_coupon("c1", "A", influencer_name="Ana"), make_coupon("c2", "B", influencer_name="Bia")]
        assert [c.id for c in filter_by_influencer(coupons, "Bia")] == ["c2"]
        assert len(filter_by_influencer(coupons, None)) == 2

    @pytest.mark.parametrize("direction", ["asc", "desc"])
    def test_nulls_last(self, make_coupon, direction):
        metrics = [
            compose_coupon_metric(make_coupon("c1", "A", influencer_name=None), [], {}),
            compose_coupon_metric(make_coupon("c2", "B", influencer_name="bia"), [], {}),
            compose_coupon_metric(make_coupon("c3", "C", influencer_name="Ana"), [], {}),
        ]
        result = sort_coupon_metrics(metrics, "influencer_name", direction)
        assert result[-1].id == "c1"
        expected = ["c3", "c2"] if direction == "asc" else ["c2", "c3"]
        assert [m.id for m in result[:2]] == expected

    def test_ties_broken_by_code(self, make_coupon):
        metrics = [
            compose_coupon_metric(make_coupon("c1", "ZED"), [], {}),
            compose_coupon_metric(make_coupon("c2", "ABC"), [], {}),
        ]
        for direction in ("asc", "desc"):
            result = sort_coupon_metrics(metrics, "usage_count", direction)
            assert [m.code for m in result] == ["ABC", "ZED"]

    def test_camel_case_column(self, make_coupon, make_conversion):
        metrics = [
            compose_coupon_metric(make_coupon("c1", "A"), [make_conversion(amount=5, coupon_id="c1")], {}),
            compose_coupon_metric(make_coupon("c2", "B"), [make_conversion(amount=9, coupon_id="c2")], {}),
        ]
        assert [m.code for m in sort_coupon_metrics(metrics, "totalSales", "desc")] == ["B", "A"]


class TestListCouponsWithMetrics:
    """Tests for list_coupons_with_metrics pipeline."""

    @pytest.mark.asyncio
    async def test_top_sellers_first_then_remainder(self, fifteen_coupons, january):
        first = await list_coupons_with_metrics(
            fifteen_coupons, "brand-1", january, page=1, limit=10,
            sort_by="totalSales", sort_direction="desc",
        )
        second = await list_coupons_with_metrics(
            fifteen_coupons, "brand-1", january, page=2, limit=10,
            sort_by="totalSales", sort_direction="desc",
        )
        assert first.total_count == second.total_count == 15
        assert [m.code for m in first.items] == [f"CODE{i:02d}" for i in range(14, 4, -1)]
        assert [m.code for m in second.items] == [f"CODE{i:02d}" for i in range(4, -1, -1)]

    @pytest.mark.asyncio
    async def test_repeatable_ordering(self, fifteen_coupons, january):
        """Identical calls give identical ordering and count."""
        params = dict(page=1, limit=15, sort_by="usage_count", sort_direction="desc")
        first = await list_coupons_with_metrics(fifteen_coupons, "brand-1", january, **params)
        second = await list_coupons_with_metrics(fifteen_coupons, "brand-1", january, **params)
        assert [m.id for m in first.items] == [m.id for m in second.items]
        assert page_to_dict(first) == page_to_dict(second)

    @pytest.mark.asyncio
    async def test_out_of_range_sales_ignored(self, make_coupon, make_conversion, in_memory_store, january):
        store = in_memory_store(
            coupons=[make_coupon("c1", "A")],
            conversions=[
                make_conversion(amount=10, coupon_id="c1", sale_date=brand_dt(2024, 1, 31, 23, 59, 59)),
                make_conversion(amount=99, coupon_id="c1", sale_date=brand_dt(2024, 2, 1, 0, 0, 0)),
            ],
        )
        result = await list_coupons_with_metrics(store, "brand-1", january)
        assert result.items[0].total_sales == 10.0

    @pytest.mark.asyncio
    async def test_code_and_influencer_filters(self, make_coupon, in_memory_store, january):
        store = in_memory_store(coupons=[
            make_coupon("c1", "A", influencer_name="Ana"),
            make_coupon("c2", "B", influencer_name="Ana"),
            make_coupon("c3", "C", influencer_name="Bia"),
        ])
        by_influencer = await list_coupons_with_metrics(store, "brand-1", january, influencer_name="Ana")
        assert by_influencer.total_count == 2

        by_code = await list_coupons_with_metrics(store, "brand-1", january, coupon_code="C")
        assert [m.id for m in by_code.items] == ["c3"]

    @pytest.mark.asyncio
    async def test_empty_page_past_end(self, fifteen_coupons, january):
        result = await list_coupons_with_metrics(fifteen_coupons, "brand-1", january, page=3, limit=10)
        assert result.items == []
        assert result.total_count == 15
