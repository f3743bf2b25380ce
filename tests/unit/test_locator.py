"""
Unit tests for the container locator.
"""

from bs4 import BeautifulSoup

from auctionresults.scraper.locator import (
    count_signals,
    detect_challenge,
    generic_strategy,
    locate_containers,
    looks_like_auction_result,
)
from auctionresults.scraper.sites import DOMAIN_SITE, SiteConfig

BARE_SITE = SiteConfig(source="domain", base_url="https://www.domain.com.au")


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestCountSignals:
    """Tests for auction signal scoring."""

    def test_all_five_signals(self):
        text = "12 Smith Street Castle Hill 2154 Sold $1,250,000 4 bed"
        assert count_signals(text) == 5

    def test_price_and_features_only(self):
        assert count_signals("$850,000 with 3 bed 2 bath on offer") == 2

    def test_no_signals(self):
        assert count_signals("Subscribe to our newsletter") == 0

    def test_threshold(self):
        assert looks_like_auction_result("Sold for $900,000")
        assert not looks_like_auction_result("Sold")


class TestGenericStrategy:
    """Tests for the signal-scoring fallback strategy."""

    def test_accepts_price_and_bed_count_without_postcode_or_keyword(self):
        soup = soup_of("<div>$850,000 with 3 bed 2 bath on offer today</div>")
        found = generic_strategy(soup)
        assert len(found) == 1
        assert found[0].name == "div"

    def test_rejects_single_signal(self):
        soup = soup_of("<div>Sold</div><div>Weekend results are coming soon</div>")
        assert generic_strategy(soup) == []

    def test_rejects_text_shorter_than_window(self):
        soup = soup_of("<li>$1 3 bed</li>")
        assert generic_strategy(soup) == []

    def test_rejects_text_longer_than_window(self):
        filler = "lorem ipsum " * 200
        soup = soup_of(f"<section>Sold $1,250,000 4 bed {filler}</section>")
        assert generic_strategy(soup) == []

    def test_nested_candidates_keep_innermost(self):
        soup = soup_of(
            "<section><div class='inner'>12 Smith Street Sold $1,000,000</div></section>"
        )
        found = generic_strategy(soup)
        assert [el.get("class") for el in found] == [["inner"]]

    def test_siblings_are_all_kept(self):
        soup = soup_of(
            "<ul>"
            "<li>1 Swan Street Sold $850,000</li>"
            "<li>2 Church Street Passed in 3 bed</li>"
            "</ul>"
        )
        assert len(generic_strategy(soup)) == 2


class TestLocateContainers:
    """Tests for strategy ordering and plausibility filtering."""

    def test_site_selector_wins(self, results_html):
        found = locate_containers(soup_of(results_html), DOMAIN_SITE)
        assert len(found) == 2
        assert all(el.name == "article" for el in found)

    def test_implausible_selector_matches_fall_through_to_generic(self):
        site = SiteConfig(
            source="domain",
            base_url="https://www.domain.com.au",
            container_selectors=(".card",),
        )
        html = (
            "<span class='card'>Hi</span>"
            "<div>3 Bridge Road Sold $1,800,000</div>"
        )
        found = locate_containers(soup_of(html), site)
        assert len(found) == 1
        assert found[0].name == "div"

    def test_empty_page_is_not_an_error(self):
        assert locate_containers(soup_of("<main></main>"), BARE_SITE) == []


class TestDetectChallenge:
    """Tests for anti-bot page detection."""

    def test_detects_phrase(self, challenge_html):
        assert detect_challenge(challenge_html) == "verify you are human"

    def test_ignores_scripts(self):
        html = "<html><script src='recaptcha.js'>var captcha = 1;</script><main>Results</main></html>"
        assert detect_challenge(html) is None

    def test_normal_page(self, results_html):
        assert detect_challenge(results_html) is None
