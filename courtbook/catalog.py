"""
Default catalog: sites, courts, linked groups and opening hours.

Seeded into the database the first time it is created.  After that the
stored rows are authoritative and this module only supplies the per-site
policies, which are properties of a site rather than of its courts.
"""

from __future__ import annotations

from dataclasses import dataclass

from courtbook.models import Court, LinkedGroup, ScheduleConfig, Site

# ── Site policies ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SitePolicy:
    """What a site asks of its customers."""
    name: str
    requires_deposit: bool
    supports_referee: bool


SITE_POLICIES: dict[Site, SitePolicy] = {
    Site.SABANA:    SitePolicy(name="Sabana",    requires_deposit=True,  supports_referee=False),
    Site.GUADALUPE: SitePolicy(name="Guadalupe", requires_deposit=False, supports_referee=True),
}

# ── Linked groups ─────────────────────────────────────────────────────────
# The large Guadalupe field is laid over the three smaller ones: booking
# any of them takes the hour away from all four.

LARGE_FIELD_GROUP = "guadalupe-large"

DEFAULT_GROUPS: list[LinkedGroup] = [
    LinkedGroup(id=LARGE_FIELD_GROUP, name="Cancha grande Guadalupe", court_ids=[1, 3, 5, 6]),
]

# ── Courts ────────────────────────────────────────────────────────────────

DEFAULT_TIER_PRICES: dict[int, int] = {7: 40000, 8: 45000, 9: 50000}

DEFAULT_COURTS: list[Court] = [
    Court(id=1, name="Cancha 1", site=Site.GUADALUPE, players=6, price=30000,
          linked_group_id=LARGE_FIELD_GROUP),
    Court(id=2, name="Cancha 2", site=Site.SABANA, players=5, price=23000),
    Court(id=3, name="Cancha 3", site=Site.GUADALUPE, players=6, price=30000,
          linked_group_id=LARGE_FIELD_GROUP),
    Court(id=4, name="Cancha 4", site=Site.SABANA, players=7, price=35000),
    Court(id=5, name="Cancha 5", site=Site.GUADALUPE, players=6, price=30000,
          linked_group_id=LARGE_FIELD_GROUP),
    Court(id=6, name="Cancha 6", site=Site.GUADALUPE, tier_prices=DEFAULT_TIER_PRICES,
          linked_group_id=LARGE_FIELD_GROUP),
]

# ── Opening hours ─────────────────────────────────────────────────────────

DEFAULT_SCHEDULES: list[ScheduleConfig] = [
    ScheduleConfig(site=Site.SABANA, opening_hour=7, closing_hour=23),
    ScheduleConfig(site=Site.GUADALUPE, opening_hour=16, closing_hour=2),
]
