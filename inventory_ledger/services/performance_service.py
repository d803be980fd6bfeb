"""Revenue facts, competitor benchmarking and performance indices."""

from __future__ import annotations

from typing import Optional

from inventory_ledger.domain.constraints import (
    limits_from_settings,
    validate_date,
    validate_identifier,
    validate_identity,
    validate_name,
    validate_non_negative,
    validate_occupancy,
)
from inventory_ledger.domain.errors import (
    CompetitorDataNotFoundError,
    CompetitorSetNotFoundError,
    DuplicateKeyError,
    InvalidArgumentError,
    NotOwnerError,
    PropertyDataNotFoundError,
)
from inventory_ledger.domain.models import (
    CompetitorAggregate,
    CompetitorSet,
    DatedComparison,
    PerformanceComparison,
    RevenueFact,
)
from inventory_ledger.repository.data_repository import DataRepository
from inventory_ledger.services.auth_service import AuthService
from inventory_ledger.utils.config import Settings, get_settings
from inventory_ledger.utils.logger import get_logger


logger = get_logger(__name__)


def compute_revpar(adr: int, occupancy_percentage: int) -> int:
    """Revenue per available room in the caller's integer currency unit, truncated."""
    return adr * occupancy_percentage // 100


def compute_index(property_metric: int, competitor_average: int) -> int:
    if competitor_average <= 0:
        return 0
    return property_metric * 100 // competitor_average


def compare_metrics(fact: RevenueFact, aggregate: CompetitorAggregate) -> PerformanceComparison:
    return PerformanceComparison(
        occupancy_index=compute_index(fact.occupancy_percentage, aggregate.avg_occupancy),
        adr_index=compute_index(fact.adr, aggregate.avg_adr),
        revpar_index=compute_index(fact.revpar, aggregate.avg_revpar),
    )


class PerformanceIndexService:
    """Records daily revenue facts and indexes them against competitor sets.

    Competitor aggregates are ingested from an external feed by the
    administrator; nothing here derives them from member revenue.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        auth_service: Optional[AuthService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._auth_service = auth_service or AuthService(
            repository=self._repository,
            settings=self._settings,
        )
        self._limits = limits_from_settings(self._settings)

    def record_revenue(
        self,
        property_id: str,
        date: int,
        room_revenue: int,
        other_revenue: int,
        occupancy_percentage: int,
        adr: int,
        caller: str,
    ) -> RevenueFact:
        validate_identifier("property_id", property_id, self._limits)
        validate_date(date)
        validate_non_negative("room_revenue", room_revenue)
        validate_non_negative("other_revenue", other_revenue)
        validate_occupancy("occupancy_percentage", occupancy_percentage)
        validate_non_negative("adr", adr)
        validate_identity("caller", caller, self._limits)

        fact = RevenueFact(
            property_id=property_id,
            date=date,
            room_revenue=room_revenue,
            other_revenue=other_revenue,
            occupancy_percentage=occupancy_percentage,
            adr=adr,
            revpar=compute_revpar(adr, occupancy_percentage),
        )
        self._repository.upsert_revenue_fact(fact, recorded_by=caller)
        logger.info("Revenue recorded for %s on %s (revpar=%s)", property_id, date, fact.revpar)
        return fact

    def get_revenue(self, property_id: str, date: int) -> RevenueFact:
        validate_identifier("property_id", property_id, self._limits)
        validate_date(date)
        fact = self._repository.get_revenue_fact(property_id, date)
        if fact is None:
            raise PropertyDataNotFoundError(f"No revenue recorded for {property_id} on {date}")
        return fact

    def create_competitor_set(self, set_id: str, name: str, caller: str) -> CompetitorSet:
        competitor_set = CompetitorSet(
            set_id=validate_identifier("set_id", set_id, self._limits),
            name=validate_name("name", name, self._limits),
            owner=validate_identity("caller", caller, self._limits),
        )
        if not self._repository.insert_competitor_set(competitor_set):
            raise DuplicateKeyError(f"Competitor set {set_id} already exists")
        logger.info("Competitor set %s created", set_id)
        return competitor_set

    def get_competitor_set(self, set_id: str) -> CompetitorSet:
        validate_identifier("set_id", set_id, self._limits)
        competitor_set = self._repository.get_competitor_set(set_id)
        if competitor_set is None:
            raise CompetitorSetNotFoundError(f"Competitor set {set_id} not found")
        return competitor_set

    def _set_membership(
        self,
        set_id: str,
        property_id: str,
        caller: str,
        is_member: bool,
    ) -> None:
        validate_identifier("property_id", property_id, self._limits)
        validate_identity("caller", caller, self._limits)
        competitor_set = self.get_competitor_set(set_id)
        if competitor_set.owner != caller:
            raise NotOwnerError(f"Caller does not own competitor set {set_id}")
        self._repository.set_membership(set_id, property_id, is_member)
        logger.info(
            "Property %s %s competitor set %s",
            property_id,
            "added to" if is_member else "removed from",
            set_id,
        )

    def add_property_to_set(self, set_id: str, property_id: str, caller: str) -> None:
        self._set_membership(set_id, property_id, caller, is_member=True)

    def remove_property_from_set(self, set_id: str, property_id: str, caller: str) -> None:
        """Soft removal: the membership row stays, flagged as not a member."""
        self._set_membership(set_id, property_id, caller, is_member=False)

    def is_member(self, set_id: str, property_id: str) -> bool:
        validate_identifier("set_id", set_id, self._limits)
        validate_identifier("property_id", property_id, self._limits)
        return bool(self._repository.get_membership(set_id, property_id))

    def list_members(self, set_id: str) -> list[str]:
        self.get_competitor_set(set_id)
        return self._repository.list_members(set_id)

    def update_competitor_aggregate(
        self,
        set_id: str,
        date: int,
        avg_occupancy: int,
        avg_adr: int,
        avg_revpar: int,
        property_count: int,
        caller: str,
    ) -> CompetitorAggregate:
        validate_identifier("set_id", set_id, self._limits)
        validate_date(date)
        validate_occupancy("avg_occupancy", avg_occupancy)
        validate_non_negative("avg_adr", avg_adr)
        validate_non_negative("avg_revpar", avg_revpar)
        validate_non_negative("property_count", property_count)
        validate_identity("caller", caller, self._limits)

        self._auth_service.require_admin(caller)
        self.get_competitor_set(set_id)
        aggregate = CompetitorAggregate(
            set_id=set_id,
            date=date,
            avg_occupancy=avg_occupancy,
            avg_adr=avg_adr,
            avg_revpar=avg_revpar,
            property_count=property_count,
        )
        self._repository.upsert_competitor_aggregate(aggregate)
        logger.info("Competitor aggregate stored for %s on %s", set_id, date)
        return aggregate

    def get_competitor_aggregate(self, set_id: str, date: int) -> CompetitorAggregate:
        validate_identifier("set_id", set_id, self._limits)
        validate_date(date)
        aggregate = self._repository.get_competitor_aggregate(set_id, date)
        if aggregate is None:
            raise CompetitorDataNotFoundError(f"No competitor data for {set_id} on {date}")
        return aggregate

    def compare_performance(
        self,
        property_id: str,
        set_id: str,
        date: int,
    ) -> PerformanceComparison:
        fact = self.get_revenue(property_id, date)
        aggregate = self.get_competitor_aggregate(set_id, date)
        return compare_metrics(fact, aggregate)

    def compare_performance_range(
        self,
        property_id: str,
        set_id: str,
        start_date: int,
        end_date: int,
    ) -> list[DatedComparison]:
        """Indices for every date in range where both sides have data."""
        validate_identifier("property_id", property_id, self._limits)
        validate_identifier("set_id", set_id, self._limits)
        validate_date(start_date)
        validate_date(end_date)
        if start_date > end_date:
            raise InvalidArgumentError("start_date must not be after end_date")

        facts = {
            fact.date: fact
            for fact in self._repository.list_revenue_facts(property_id, start_date, end_date)
        }
        aggregates = self._repository.list_competitor_aggregates(set_id, start_date, end_date)
        return [
            DatedComparison(
                date=aggregate.date,
                comparison=compare_metrics(facts[aggregate.date], aggregate),
            )
            for aggregate in aggregates
            if aggregate.date in facts
        ]
