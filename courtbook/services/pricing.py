"""
Pricing calculator.

All amounts are integer colones.  The only rounding is on half-price
splits (deposits and challenge team shares), which round up.
"""

from __future__ import annotations

from courtbook.config import REFEREE_FEE
from courtbook.errors import InvalidInput
from courtbook.models import PLAYER_TIERS, Court, Site
from courtbook.services.registry import registry


def ceil_half(amount: int) -> int:
    return -(-amount // 2)


def resolve_player_count(court: Court, player_count: int | None) -> int:
    """Players per team for a booking on *court*."""
    if court.is_tiered:
        if player_count not in PLAYER_TIERS:
            raise InvalidInput(
                f"{court.name} is booked for {', '.join(map(str, PLAYER_TIERS))} players per team",
                court_id=court.id,
                player_count=player_count,
            )
        return player_count
    assert court.players is not None
    if player_count is not None and player_count != court.players:
        raise InvalidInput(
            f"{court.name} is a {court.players}-a-side court",
            court_id=court.id,
            player_count=player_count,
        )
    return court.players


def base_price(court: Court, player_count: int | None = None) -> int:
    if court.is_tiered:
        assert court.tier_prices is not None
        return court.tier_prices[resolve_player_count(court, player_count)]
    assert court.price is not None
    return court.price


def referee_applies(site: Site, requested: bool) -> bool:
    """A referee is only hired where the site offers one."""
    return requested and registry.policy(site).supports_referee


def referee_fee(site: Site, requested: bool) -> int:
    return REFEREE_FEE if referee_applies(site, requested) else 0


def booking_price(court: Court, player_count: int | None, referee: bool) -> int:
    """Full price of a direct booking (also used for matched challenges)."""
    return base_price(court, player_count) + referee_fee(court.site, referee)


def team_price(court: Court, player_count: int | None, referee: bool) -> int:
    """What each challenge team pays: half the field and half the referee."""
    return ceil_half(base_price(court, player_count)) + ceil_half(
        referee_fee(court.site, referee)
    )


def deposit_amount(price: int) -> int:
    return ceil_half(price)
