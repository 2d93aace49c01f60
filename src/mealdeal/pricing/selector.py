"""Offer selection: pick the offer used for savings math and rank all offers for display."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from mealdeal.normalize.units import offer_unit_price
from mealdeal.pricing.entities import OfferRecord
from mealdeal.schemas import RankedOffer


@dataclass
class OfferSelection:
    """Winner used for savings plus the display ranking of every offer."""

    winner: OfferRecord | None = None
    ranked: list[RankedOffer] = field(default_factory=list)

    @property
    def winner_unit_price(self) -> float | None:
        if self.winner is None:
            return None
        return offer_unit_price(self.winner)


def _chain_sort_name(offer: OfferRecord) -> str:
    return (offer.chain_name or "").lower()


def _winner_key(offer: OfferRecord) -> tuple[float, float, str, int]:
    return (offer_unit_price(offer), offer.price_total, _chain_sort_name(offer), offer.offer_id)


def _display_key(offer: OfferRecord, preferred_chain_id: str | None) -> tuple:
    key = (offer.price_total, _chain_sort_name(offer), offer.offer_id)
    if preferred_chain_id is None:
        return key
    return (offer.chain_id != preferred_chain_id, *key)


def pick_winner(
    offers: Sequence[OfferRecord],
    preferred_chain_id: str | None = None,
) -> OfferRecord | None:
    """
    Choose the offer that drives the savings computation.

    The cheapest offer per unit from the preferred chain wins when that chain
    has any offer; otherwise the cheapest offer per unit overall. Ties fall back
    to price_total, chain name and offer_id.
    """
    if not offers:
        return None

    candidates: Sequence[OfferRecord] = offers
    if preferred_chain_id is not None:
        same_chain = [o for o in offers if o.chain_id == preferred_chain_id]
        if same_chain:
            candidates = same_chain

    return min(candidates, key=_winner_key)


def rank_offers(
    offers: Sequence[OfferRecord],
    preferred_chain_id: str | None = None,
    winner: OfferRecord | None = None,
) -> list[RankedOffer]:
    """
    Order offers for display and mark the "best price" ones.

    With a chain filter, that chain's offers come first and all of them are
    marked. Without one, only the winner is marked.
    """
    ranked: list[RankedOffer] = []
    for offer in sorted(offers, key=lambda o: _display_key(o, preferred_chain_id)):
        if preferred_chain_id is not None:
            is_best = offer.chain_id == preferred_chain_id
        else:
            is_best = winner is not None and offer.offer_id == winner.offer_id

        ranked.append(
            RankedOffer(
                offer_id=offer.offer_id,
                price_total=offer.price_total,
                pack_size=offer.pack_size,
                unit_base=offer.unit_base,
                source=offer.source,
                source_ref_id=offer.source_ref_id,
                valid_from=offer.valid_from,
                valid_to=offer.valid_to,
                chain_id=offer.chain_id,
                chain_name=offer.chain_name,
                price_per_unit=offer_unit_price(offer),
                is_lowest_price=is_best,
            )
        )
    return ranked


def select(
    offers: Sequence[OfferRecord],
    preferred_chain_id: str | None = None,
) -> OfferSelection:
    """Pick the winner and rank all offers for one ingredient."""
    if not offers:
        return OfferSelection()

    winner = pick_winner(offers, preferred_chain_id)
    return OfferSelection(
        winner=winner,
        ranked=rank_offers(offers, preferred_chain_id, winner),
    )
