"""Whether a dish is worth listing for a location."""

from collections.abc import Mapping, Sequence

from mealdeal.pricing.entities import DishIngredientLink, OfferRecord

MAIN_ROLES = frozenset({"main", "hauptzutat"})

MIN_MAIN_WITH_OFFERS = 1
MIN_SECONDARY_WITH_OFFERS = 2


def is_main_role(role: str | None) -> bool:
    return (role or "").strip().lower() in MAIN_ROLES


def should_display_dish(
    links: Sequence[DishIngredientLink],
    offers_by_ingredient: Mapping[str, Sequence[OfferRecord]],
    chain_id: str | None = None,
) -> bool:
    """
    A dish is listed when at least one main ingredient, or at least two
    secondary ingredients, have a valid offer. With a chain filter only that
    chain's offers count.
    """
    main_hits: set[str] = set()
    secondary_hits: set[str] = set()

    for link in links:
        offers = offers_by_ingredient.get(link.ingredient_id, ())
        if chain_id is not None:
            offers = [o for o in offers if o.chain_id == chain_id]
        if not offers:
            continue
        if is_main_role(link.role):
            main_hits.add(link.ingredient_id)
        else:
            secondary_hits.add(link.ingredient_id)

    return (
        len(main_hits) >= MIN_MAIN_WITH_OFFERS
        or len(secondary_hits) >= MIN_SECONDARY_WITH_OFFERS
    )
