"""Tests for the filter predicate — text search and criteria."""
from decimal import Decimal

import pytest

from app.models.enums import ListingKind, PropertyStatus
from app.schemas.catalog_schema import FilterCriteria
from app.services.filter_service import filter_properties, matches, matches_criteria, matches_search
from tests.conftest import make_record


@pytest.fixture
def rent_and_sale():
    rent = make_record(title="Apartamento em Pinheiros", price=2000, bedroom_count=2, listing_kind="rent")
    sale = make_record(
        title="Casa em Vila Madalena",
        public_address="Vila Madalena, São Paulo - SP",
        description="Casa ampla com quintal.",
        price=500000,
        bedroom_count=3,
        listing_kind="sale",
    )
    return [rent, sale]


class TestPriceScenario:
    def test_price_range_keeps_only_rental(self, rent_and_sale):
        result = filter_properties(rent_and_sale, FilterCriteria(min_price=1000, max_price=3000))
        assert result == [rent_and_sale[0]]

    def test_bounds_are_inclusive(self, rent_and_sale):
        result = filter_properties(rent_and_sale, FilterCriteria(min_price=2000, max_price=2000))
        assert result == [rent_and_sale[0]]


class TestSearch:
    def test_title_match_is_case_insensitive(self, rent_and_sale):
        result = filter_properties(rent_and_sale, FilterCriteria(), "pinheiros")
        assert result == [rent_and_sale[0]]

    def test_upper_case_query(self, rent_and_sale):
        result = filter_properties(rent_and_sale, FilterCriteria(), "PINHEIROS")
        assert result == [rent_and_sale[0]]

    def test_matches_address(self, rent_and_sale):
        assert filter_properties(rent_and_sale, None, "vila madalena") == [rent_and_sale[1]]

    def test_matches_description(self, rent_and_sale):
        assert filter_properties(rent_and_sale, None, "quintal") == [rent_and_sale[1]]

    def test_missing_description_is_skipped(self):
        prop = make_record(description=None)
        assert matches_search(prop, "metrô") is False

    def test_empty_or_blank_query_passes(self, rent_and_sale):
        assert filter_properties(rent_and_sale, None, "") == rent_and_sale
        assert filter_properties(rent_and_sale, None, "   ") == rent_and_sale
        assert filter_properties(rent_and_sale, None, None) == rent_and_sale

    def test_does_not_match_listing_kind_text(self, rent_and_sale):
        assert filter_properties(rent_and_sale, None, "sale") == []


class TestCriteria:
    def test_empty_criteria_is_unconstrained(self, rent_and_sale):
        assert filter_properties(rent_and_sale, FilterCriteria()) == rent_and_sale

    def test_min_bedrooms_means_n_or_more(self, rent_and_sale):
        assert filter_properties(rent_and_sale, FilterCriteria(min_bedrooms=3)) == [rent_and_sale[1]]
        assert filter_properties(rent_and_sale, FilterCriteria(min_bedrooms=2)) == rent_and_sale

    def test_zero_is_a_real_constraint(self):
        studio = make_record(bedroom_count=0)
        criteria = FilterCriteria(min_bedrooms=0)
        assert criteria.min_bedrooms == 0
        assert criteria.is_empty() is False
        assert matches_criteria(studio, criteria) is True
        assert matches_criteria(studio, FilterCriteria(min_bedrooms=1)) is False

    def test_min_bathrooms(self):
        prop = make_record(bathroom_count=1)
        assert matches_criteria(prop, FilterCriteria(min_bathrooms=2)) is False
        assert matches_criteria(prop, FilterCriteria(min_bathrooms=1)) is True

    def test_area_range(self):
        prop = make_record(area_sq_meters=65.0)
        assert matches_criteria(prop, FilterCriteria(min_area=60, max_area=70)) is True
        assert matches_criteria(prop, FilterCriteria(min_area=66)) is False
        assert matches_criteria(prop, FilterCriteria(max_area=64.9)) is False

    def test_listing_kind_equality(self, rent_and_sale):
        result = filter_properties(rent_and_sale, FilterCriteria(listing_kind=ListingKind.SALE))
        assert result == [rent_and_sale[1]]

    def test_all_sentinel_is_unconstrained(self, rent_and_sale):
        criteria = FilterCriteria(listing_kind="all", status="all", is_public="all")
        assert criteria.listing_kind is None
        assert criteria.status is None
        assert criteria.is_public is None
        assert filter_properties(rent_and_sale, criteria) == rent_and_sale

    def test_status_and_visibility_equality(self):
        archived = make_record(status="archived", is_public=False)
        assert matches_criteria(archived, FilterCriteria(status=PropertyStatus.ARCHIVED)) is True
        assert matches_criteria(archived, FilterCriteria(status=PropertyStatus.ACTIVE)) is False
        assert matches_criteria(archived, FilterCriteria(is_public=False)) is True
        assert matches_criteria(archived, FilterCriteria(is_public=True)) is False

    def test_text_and_criteria_are_conjunctive(self, rent_and_sale):
        rent = rent_and_sale[0]
        assert matches(rent, FilterCriteria(max_price=Decimal("3000")), "pinheiros") is True
        assert matches(rent, FilterCriteria(max_price=Decimal("1000")), "pinheiros") is False
        assert matches(rent, FilterCriteria(max_price=Decimal("3000")), "madalena") is False


def test_result_is_ordered_subset_satisfying_predicate():
    catalog = [
        make_record(title=f"Imóvel {i}", price=1000 * (i + 1), bedroom_count=i % 4,
                    area_sq_meters=30.0 + i * 10, listing_kind="rent" if i % 2 else "sale")
        for i in range(10)
    ]
    criteria_list = [
        FilterCriteria(),
        FilterCriteria(min_price=3000),
        FilterCriteria(max_price=5000, min_bedrooms=1),
        FilterCriteria(listing_kind="rent", min_area=60),
        FilterCriteria(min_bedrooms=0, max_area=50),
    ]
    for criteria in criteria_list:
        for query in ("", "imóvel 1", "nada"):
            result = filter_properties(catalog, criteria, query)
            assert all(prop in catalog for prop in result)
            assert all(matches(prop, criteria, query) for prop in result)
            assert result == [p for p in catalog if p in result]


def test_featured_equality():
    featured = make_record(featured=True)
    plain = make_record(featured=False)
    assert filter_properties([featured, plain], FilterCriteria(featured=True)) == [featured]
    assert filter_properties([featured, plain], FilterCriteria(featured=False)) == [plain]
    assert filter_properties([featured, plain], FilterCriteria(featured="all")) == [featured, plain]
