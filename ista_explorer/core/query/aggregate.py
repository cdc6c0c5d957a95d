import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from ista_explorer.core import queries
from ista_explorer.core.query.gateway import QueryGateway, execute_with_deadline
from ista_explorer.core.schemas import AggregatePoint, SlotSnapshot


# -----------------------------------------------------------------------------
# AGGREGATE MODULE
# Purpose: load the fixed dashboard datasets once, each into its own slot.
# The queries run concurrently and independently. A slot whose query fails,
# hangs past its deadline or returns something that is not a list simply
# stays "not yet loaded"; the other slots are unaffected.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)


def decade_label(value: Any) -> str:
    """
    Render a decade bucket as "<n>s".

    Example:
        40 -> "40s", 40.0 -> "40s", Decimal("30") -> "30s"
    """
    if isinstance(value, (float, Decimal)) and value == int(value):
        value = int(value)
    return f"{value}s"


@dataclass(frozen=True)
class AggregateQuery:
    """One dashboard dataset: SQL plus which record fields to chart."""

    name: str
    title: str
    sql: str
    category_key: str
    value_key: str
    label: Optional[Callable[[Any], Any]] = None


AGGREGATE_QUERIES = [
    AggregateQuery(
        name="bookings_by_planet",
        title="Bookings by Planet",
        sql=queries.BOOKINGS_BY_PLANET,
        category_key="planet",
        value_key="total_bookings",
    ),
    AggregateQuery(
        name="missions_by_month",
        title="Missions per Month",
        sql=queries.MISSIONS_BY_MONTH,
        category_key="month",
        value_key="missions",
    ),
    AggregateQuery(
        name="crew_by_role",
        title="Crew Assignments by Role",
        sql=queries.CREW_BY_ROLE,
        category_key="role",
        value_key="assignments",
    ),
    AggregateQuery(
        name="tourist_age_by_decade",
        title="Tourist Ages by Decade",
        sql=queries.TOURIST_AGE_BY_DECADE,
        category_key="decade",
        value_key="count",
        label=decade_label,
    ),
]


class AggregateSlot:
    """Holds one dataset, or nothing until its query has resolved."""

    def __init__(self, query: AggregateQuery):
        self.query = query
        self.points: Optional[List[AggregatePoint]] = None

    @property
    def loaded(self) -> bool:
        return self.points is not None

    def shape(self, records: List[Dict[str, Any]]) -> List[AggregatePoint]:
        points = []
        for record in records:
            category = record.get(self.query.category_key)
            if self.query.label is not None:
                category = self.query.label(category)
            points.append(
                AggregatePoint(category=category, value=record.get(self.query.value_key))
            )
        return points

    def snapshot(self) -> SlotSnapshot:
        return SlotSnapshot(
            name=self.query.name,
            title=self.query.title,
            category_label=self.query.category_key,
            value_label=self.query.value_key,
            loaded=self.loaded,
            points=list(self.points or []),
        )


SlotListener = Callable[[SlotSnapshot], None]


class AggregateFetcher:
    """Loads every dashboard slot once per process."""

    def __init__(
        self,
        gateway: QueryGateway,
        timeout: Optional[float] = None,
        aggregate_queries: Optional[List[AggregateQuery]] = None,
    ):
        self.gateway = gateway
        self.timeout = timeout
        self.slots: Dict[str, AggregateSlot] = {
            query.name: AggregateSlot(query)
            for query in (aggregate_queries or AGGREGATE_QUERIES)
        }
        self._listeners: List[SlotListener] = []
        self._started = False

    def subscribe(self, listener: SlotListener) -> None:
        """Call `listener` with each slot as soon as it is published."""
        self._listeners.append(listener)

    def get(self, name: str) -> Optional[AggregateSlot]:
        return self.slots.get(name)

    def snapshots(self) -> List[SlotSnapshot]:
        return [slot.snapshot() for slot in self.slots.values()]

    async def load_all(self) -> None:
        """
        Fire every aggregate query at once and publish each as it lands.

        Only the first call does anything; slots are never re-fetched.
        Never raises because of a failing query.
        """
        if self._started:
            logger.debug("Aggregates already loaded for this session")
            return
        self._started = True

        await asyncio.gather(*(self._load_slot(slot) for slot in self.slots.values()))

        loaded = sum(1 for slot in self.slots.values() if slot.loaded)
        logger.info(f"Dashboard aggregates loaded: {loaded}/{len(self.slots)}")

    async def _load_slot(self, slot: AggregateSlot) -> None:
        name = slot.query.name
        try:
            records = await execute_with_deadline(
                self.gateway, slot.query.sql, self.timeout
            )
            if not isinstance(records, list):
                logger.warning(f"Aggregate {name} returned no list, slot left empty")
                return
            slot.points = slot.shape(records)
        except Exception as e:
            # One slot failing must not take the others down with it
            logger.warning(f"Aggregate {name} failed: {e}")
            return

        self._publish(slot)

    def _publish(self, slot: AggregateSlot) -> None:
        snapshot = slot.snapshot()
        for listener in self._listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Slot listener failed for {slot.query.name}: {e}")
