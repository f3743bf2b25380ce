"""
Unit tests for the field extractor.
"""

import json
from datetime import date

import pytest
from bs4 import BeautifulSoup

from auctionresults.core.models import ScrapeContext
from auctionresults.scraper.extractor import (
    extract_containers,
    extract_fields,
    extract_location,
    extract_page,
    listing_to_raw,
)
from auctionresults.scraper.locator import locate_containers
from auctionresults.scraper.sites import DOMAIN_SITE, REA_SITE, SiteConfig

BARE_SITE = SiteConfig(source="domain", base_url="https://www.domain.com.au")


@pytest.fixture
def context() -> ScrapeContext:
    return ScrapeContext(
        source="domain",
        auction_date=date(2024, 6, 15),
        page_url="https://www.domain.com.au/auction-results/sydney/castle-hill-nsw-2154",
        suburb="Castle Hill",
        state="NSW",
        postcode="2154",
    )


def first_container(html: str):
    return BeautifulSoup(html, "html.parser").find(["article", "div", "li"])


class TestExtractFields:
    """Tests for per-container field extraction."""

    def test_selector_driven_fields(self, results_html, context):
        containers = locate_containers(BeautifulSoup(results_html, "html.parser"), DOMAIN_SITE)
        raw = extract_fields(containers[0], DOMAIN_SITE, context)

        assert raw["address"] == "12 Smith Street, Castle Hill NSW 2154"
        assert raw["price_text"] == "$1,250,000"
        assert raw["result_text"] == "sold"
        assert raw["property_type"] == "House"
        assert raw["bedrooms"] == 4
        assert raw["bathrooms"] == 2
        assert raw["car_spaces"] == 2
        assert raw["agent_name"] == "Jane Citizen"
        assert raw["agency_name"] == "Ray White Castle Hill"
        assert raw["listing_url"] == (
            "https://www.domain.com.au/property/12-smith-street-castle-hill-nsw-2154"
        )

    def test_text_fallbacks_without_selectors(self, context):
        container = first_container(
            "<div>"
            "<p>Auction result</p>"
            "<p>15 Beach Parade</p>"
            "<p>Withdrawn</p>"
            "<p>2 bed 1 bath 1 car apartment</p>"
            "<p>Tom Baker</p>"
            "<p>Coastal Realty Pty Ltd</p>"
            "</div>"
        )
        raw = extract_fields(container, BARE_SITE, context)

        assert raw["address"] == "15 Beach Parade"
        assert raw["result_text"] == "withdrawn"
        assert raw["price_text"] is None
        assert raw["property_type"] == "Apartment"
        assert raw["agent_name"] == "Tom Baker"
        assert raw["agency_name"] == "Coastal Realty Pty Ltd"

    def test_first_line_is_address_fallback(self, context):
        container = first_container("<div><p>Lot 5 Hilltop</p><p>Sold $700,000</p></div>")
        raw = extract_fields(container, BARE_SITE, context)
        assert raw["address"] == "Lot 5 Hilltop"

    def test_undisclosed_price_is_suppressed(self, context):
        container = first_container(
            "<div><p>9 Park Avenue</p><p>Sold</p><p>Price undisclosed</p></div>"
        )
        raw = extract_fields(container, BARE_SITE, context)
        assert raw["price_text"] is None
        assert raw["result_text"] == "sold"

    def test_implausible_feature_counts_dropped(self, context):
        container = first_container("<div><p>40 Bed Street</p><p>Sold $1,000,000</p></div>")
        raw = extract_fields(container, BARE_SITE, context)
        assert raw["bedrooms"] is None

    def test_suburb_name_is_not_an_agent(self, context):
        container = first_container(
            "<div><p>3 Pye Road</p><p>Castle Hill</p><p>Sold Prior</p><p>$990,000</p></div>"
        )
        raw = extract_fields(container, BARE_SITE, context)
        assert raw["agent_name"] is None


class TestExtractLocation:
    """Tests for location recovery from text."""

    def test_from_address_line(self):
        location = extract_location("", "12 Smith Street, Castle Hill NSW 2154")
        assert location == {"suburb": "Castle Hill", "state": "NSW", "postcode": "2154"}

    def test_state_and_postcode_from_text(self):
        location = extract_location("Sold in Richmond VIC 3121", "4 Lennox Street")
        assert location["state"] == "VIC"
        assert location["postcode"] == "3121"
        assert location["suburb"] is None


class TestExtractContainers:
    """Tests for record building with per-container isolation."""

    def test_builds_records(self, results_html, context):
        containers = locate_containers(BeautifulSoup(results_html, "html.parser"), DOMAIN_SITE)
        records = extract_containers(containers, DOMAIN_SITE, context)

        assert len(records) == 2
        sold, passed = records
        assert sold.result == "sold"
        assert sold.price == 1250000
        assert sold.suburb == "Castle Hill"
        assert sold.auction_date == date(2024, 6, 15)
        assert passed.result == "passed_in"
        assert passed.price is None
        assert passed.property_type == "Townhouse"

    def test_implicit_sale_from_price(self, context):
        container = first_container("<div><p>8 Hill Road</p><p>$1,100,000</p><p>3 bed</p></div>")
        records = extract_containers([container], BARE_SITE, context)
        assert records[0].result == "sold"
        assert records[0].price == 1100000

    def test_bad_container_is_skipped(self, context):
        good = first_container("<div><p>8 Hill Road</p><p>Sold $1,100,000</p></div>")
        empty = first_container("<div><p></p></div>")
        records = extract_containers([empty, good], BARE_SITE, context)
        assert [r.address for r in records] == ["8 Hill Road"]

    def test_record_without_state_is_dropped(self):
        context = ScrapeContext(source="rea", auction_date=date(2024, 6, 15), suburb="Somewhere")
        container = first_container("<div><p>8 Hill Road</p><p>Sold $1,100,000</p></div>")
        assert extract_containers([container], REA_SITE, context) == []


class TestEmbeddedData:
    """Tests for the embedded JSON pass."""

    def test_listing_to_raw_composes_address(self):
        item = {
            "listingModel": {
                "address": {"unitNumber": "3", "streetNumber": "12", "street": "Smith Street",
                            "suburb": "CASTLE HILL", "state": "NSW", "postcode": "2154"},
                "price": "$905,000",
                "tags": {"tagText": "Sold at auction"},
                "features": {"beds": 2, "baths": 1, "parking": 1},
                "propertyType": "apartment-unit-flat",
                "branding": {"agentName": "Jane Citizen", "brandName": "Ray White"},
                "url": "/property/3-12-smith-street-castle-hill-nsw-2154",
            }
        }
        raw = listing_to_raw(item, DOMAIN_SITE)
        assert raw["address"] == "3/12 Smith Street"
        assert raw["result_text"] == "Sold at auction"
        assert raw["bedrooms"] == 2
        assert raw["agency_name"] == "Ray White"
        assert raw["listing_url"].startswith("https://www.domain.com.au/property/")

    def test_extract_page_falls_back_to_next_data(self, context):
        payload = {
            "props": {"pageProps": {"componentProps": {"listingsMap": {
                "123": {"listingModel": {
                    "address": {"streetNumber": "5", "street": "Ocean Parade",
                                "suburb": "Castle Hill", "state": "NSW", "postcode": "2154"},
                    "price": "$2,100,000",
                    "tags": {"tagText": "Sold"},
                }},
                "456": {"listingModel": {
                    "address": {"streetNumber": "6", "street": "Ocean Parade"},
                    "tags": {"tagText": "Passed in"},
                }},
            }}}}
        }
        html = (
            "<html><body><main></main>"
            f"<script id='__NEXT_DATA__' type='application/json'>{json.dumps(payload)}</script>"
            "</body></html>"
        )
        records = extract_page(html, BARE_SITE, context)

        assert sorted(r.address for r in records) == ["5 Ocean Parade", "6 Ocean Parade"]
        by_address = {r.address: r for r in records}
        assert by_address["5 Ocean Parade"].price == 2100000
        assert by_address["6 Ocean Parade"].result == "passed_in"

    def test_extract_page_reads_initial_state(self, context):
        state = {"results": [{"displayAddress": "21 Pitt Street", "result": "sold", "price": 1500000}]}
        html = (
            "<html><body>"
            f"<script>window.__INITIAL_STATE__ = {json.dumps(state)};</script>"
            "</body></html>"
        )
        records = extract_page(html, BARE_SITE, context)
        assert len(records) == 1
        assert records[0].address == "21 Pitt Street"
        assert records[0].price == 1500000

    def next_data_page(self, listings):
        payload = {"props": {"pageProps": {"listings": listings}}}
        return (
            "<html><body><main></main>"
            f"<script id='__NEXT_DATA__' type='application/json'>{json.dumps(payload)}</script>"
            "</body></html>"
        )

    def test_numeric_street_does_not_sink_the_page(self, context):
        html = self.next_data_page([
            {"address": {"streetNumber": "5", "street": "Ocean Parade",
                         "suburb": "Castle Hill", "state": "NSW", "postcode": "2154"},
             "tags": {"tagText": "Sold"}, "price": "$2,100,000"},
            {"address": {"streetNumber": "7", "street": 42}, "tags": {"tagText": "Sold"}},
        ])
        records = extract_page(html, BARE_SITE, context)
        assert [r.address for r in records] == ["5 Ocean Parade"]

    def test_failing_listing_is_isolated(self, context, monkeypatch):
        from auctionresults.scraper import extractor

        real_listing_to_raw = extractor.listing_to_raw

        def flaky(item, site):
            if item["address"]["streetNumber"] == "7":
                raise TypeError("unexpected listing shape")
            return real_listing_to_raw(item, site)

        monkeypatch.setattr(extractor, "listing_to_raw", flaky)
        html = self.next_data_page([
            {"address": {"streetNumber": "7", "street": "Ocean Parade"}},
            {"address": {"streetNumber": "5", "street": "Ocean Parade"}, "tags": {"tagText": "Sold"}},
        ])
        records = extract_page(html, BARE_SITE, context)
        assert [r.address for r in records] == ["5 Ocean Parade"]

    def test_broken_embedded_json_yields_nothing(self, context):
        html = "<script id='__NEXT_DATA__'>{not json</script>"
        assert extract_page(html, BARE_SITE, context) == []
