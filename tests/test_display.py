"""Tests for the dish listing display rule."""

from mealdeal.pricing.display import is_main_role, should_display_dish


class TestShouldDisplayDish:
    """Tests for the main/secondary ingredient threshold."""

    def test_one_main_ingredient_with_offer(self, make_link, make_offer):
        links = [make_link("I001", role="main"), make_link("I002", role="side")]
        offers = {"I001": [make_offer(1, 1.00)]}
        assert should_display_dish(links, offers) is True

    def test_german_main_role(self, make_link, make_offer):
        links = [make_link("I001", role="Hauptzutat")]
        assert should_display_dish(links, {"I001": [make_offer(1, 1.00)]}) is True

    def test_single_secondary_is_not_enough(self, make_link, make_offer):
        links = [make_link("I001", role="main"), make_link("I002", role="side")]
        offers = {"I002": [make_offer(1, 1.00, ingredient_id="I002")]}
        assert should_display_dish(links, offers) is False

    def test_two_secondary_ingredients(self, make_link, make_offer):
        links = [make_link("I002", role="side"), make_link("I003", role=None)]
        offers = {
            "I002": [make_offer(1, 1.00, ingredient_id="I002")],
            "I003": [make_offer(2, 1.00, ingredient_id="I003")],
        }
        assert should_display_dish(links, offers) is True

    def test_chain_filter_only_counts_that_chain(self, make_link, make_offer):
        links = [make_link("I001", role="main")]
        offers = {"I001": [make_offer(1, 1.00, chain_id="C1")]}

        assert should_display_dish(links, offers, chain_id="C1") is True
        assert should_display_dish(links, offers, chain_id="C2") is False

    def test_no_offers(self, make_link):
        assert should_display_dish([make_link("I001")], {}) is False

    def test_is_main_role(self):
        assert is_main_role(" MAIN ")
        assert not is_main_role("side")
        assert not is_main_role(None)
