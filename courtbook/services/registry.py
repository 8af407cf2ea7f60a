"""
Court registry – the catalog every booking decision is made against.

Holds the courts, the linked groups they belong to and each site's opening
hours.  Loaded once from the database at application startup; routers
and services look courts up here rather than querying storage.
"""

from __future__ import annotations

import logging

from courtbook import db
from courtbook.catalog import SITE_POLICIES, SitePolicy
from courtbook.errors import InvalidInput, NotFound
from courtbook.models import Court, LinkedGroup, ScheduleConfig, Site

logger = logging.getLogger(__name__)


class CourtRegistry:
    """
    Registry of courts, linked groups and site schedules.

    A court belongs to at most one linked group.  Booking any member of a
    group takes that hour away from every member, so all members share a
    single slot pool identified by :meth:`pool_key`.
    """

    def __init__(self) -> None:
        self._courts: dict[int, Court] = {}
        self._groups: dict[str, LinkedGroup] = {}
        self._group_of: dict[int, str] = {}
        self._schedules: dict[Site, ScheduleConfig] = {}

    async def load(self) -> None:
        """Read the catalog from the database."""
        self.load_catalog(
            await db.list_courts(),
            await db.list_linked_groups(),
            await db.list_schedules(),
        )
        logger.info(
            "Registry loaded: %d courts, %d linked groups", len(self._courts), len(self._groups)
        )

    def load_catalog(
        self,
        courts: list[Court],
        groups: list[LinkedGroup],
        schedules: list[ScheduleConfig],
    ) -> None:
        """Replace the in-memory catalog, checking group membership is consistent."""
        court_map = {c.id: c for c in courts}
        group_of: dict[int, str] = {}
        for group in groups:
            for court_id in group.court_ids:
                if court_id not in court_map:
                    raise InvalidInput(
                        "Linked group references an unknown court",
                        group_id=group.id,
                        court_id=court_id,
                    )
                if court_id in group_of:
                    raise InvalidInput(
                        "Court belongs to more than one linked group",
                        court_id=court_id,
                        groups=[group_of[court_id], group.id],
                    )
                group_of[court_id] = group.id

        for court in courts:
            if group_of.get(court.id) != court.linked_group_id:
                raise InvalidInput(
                    "Court's linked group does not match the group definitions",
                    court_id=court.id,
                )

        self._courts = court_map
        self._groups = {g.id: g for g in groups}
        self._group_of = group_of
        self._schedules = {s.site: s for s in schedules}

    # ── Courts ────────────────────────────────────────────────────────

    def get_court(self, court_id: int) -> Court:
        court = self._courts.get(court_id)
        if court is None:
            raise NotFound(f"Court {court_id} not found", court_id=court_id)
        return court

    def list_courts(self, site: Site | None = None) -> list[Court]:
        courts = sorted(self._courts.values(), key=lambda c: c.id)
        if site is not None:
            courts = [c for c in courts if c.site == site]
        return courts

    def list_groups(self) -> list[LinkedGroup]:
        return list(self._groups.values())

    def effective_court_ids(self, court_id: int) -> list[int]:
        """The court plus every court it shares a slot pool with."""
        self.get_court(court_id)
        group_id = self._group_of.get(court_id)
        if group_id is None:
            return [court_id]
        return sorted(self._groups[group_id].court_ids)

    def pool_key(self, court_id: int) -> str:
        """Identifier of the slot pool the court draws from."""
        group_id = self._group_of.get(court_id)
        if group_id is not None:
            return f"group:{group_id}"
        return f"court:{court_id}"

    # ── Sites ─────────────────────────────────────────────────────────

    def policy(self, site: Site) -> SitePolicy:
        return SITE_POLICIES[site]

    def schedule(self, site: Site) -> ScheduleConfig:
        schedule = self._schedules.get(site)
        if schedule is None:
            raise NotFound(f"No schedule configured for {site}", site=site.value)
        return schedule

    def list_schedules(self) -> list[ScheduleConfig]:
        return [self._schedules[s] for s in Site if s in self._schedules]

    async def update_schedule(
        self, site: Site, opening_hour: int, closing_hour: int
    ) -> ScheduleConfig:
        """Store new opening hours for a site. Existing bookings are left untouched.

        Equal hours mean the site is open around the clock.
        """
        schedule = ScheduleConfig(site=site, opening_hour=opening_hour, closing_hour=closing_hour)
        async with db.transaction() as conn:
            await db.update_schedule(conn, site, opening_hour, closing_hour)
        self._schedules[site] = schedule
        logger.info("Schedule for %s set to %02d–%02d", site, opening_hour, closing_hour)
        return schedule


# ── Singleton instance ────────────────────────────────────────────────────
registry = CourtRegistry()
