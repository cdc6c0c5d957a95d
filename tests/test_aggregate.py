import asyncio
from decimal import Decimal

import pytest

from ista_explorer.core import queries
from ista_explorer.core.query.aggregate import AggregateFetcher, decade_label

from conftest import FakeGateway


def dashboard_gateway() -> FakeGateway:
    return FakeGateway(
        responses={
            queries.BOOKINGS_BY_PLANET: [
                {"planet": "Mars-jn18", "total_bookings": 10},
                {"planet": "Proxima b-ag46", "total_bookings": 10},
                {"planet": "Kepler-452b", "total_bookings": 9},
            ],
            queries.MISSIONS_BY_MONTH: [
                {"month": "2025-01", "missions": 50},
                {"month": "2025-02", "missions": 120},
            ],
            queries.CREW_BY_ROLE: [
                {"role": "Guide", "assignments": 819},
                {"role": "Medic", "assignments": 796},
            ],
            queries.TOURIST_AGE_BY_DECADE: [
                {"decade": 20.0, "count": 610},
                {"decade": Decimal("40"), "count": 875},
            ],
        }
    )


@pytest.mark.asyncio
async def test_all_slots_load():
    fetcher = AggregateFetcher(dashboard_gateway())
    await fetcher.load_all()

    snapshots = {s.name: s for s in fetcher.snapshots()}
    assert all(s.loaded for s in snapshots.values())

    planets = snapshots["bookings_by_planet"]
    assert planets.category_label == "planet"
    assert planets.value_label == "total_bookings"
    assert [(p.category, p.value) for p in planets.points] == [
        ("Mars-jn18", 10),
        ("Proxima b-ag46", 10),
        ("Kepler-452b", 9),
    ]

    ages = snapshots["tourist_age_by_decade"]
    assert [p.category for p in ages.points] == ["20s", "40s"]


@pytest.mark.asyncio
async def test_slots_start_not_loaded(fetcher: AggregateFetcher):
    assert len(fetcher.snapshots()) == 4
    assert not any(s.loaded for s in fetcher.snapshots())


@pytest.mark.asyncio
async def test_failing_slot_does_not_affect_others():
    """missions_by_month errors, the other three still populate"""
    gateway = dashboard_gateway()
    gateway.errors[queries.MISSIONS_BY_MONTH] = "relation does not exist"
    fetcher = AggregateFetcher(gateway)

    await fetcher.load_all()

    assert fetcher.get("missions_by_month").loaded is False
    assert fetcher.get("missions_by_month").snapshot().points == []
    for name in ("bookings_by_planet", "crew_by_role", "tourist_age_by_decade"):
        assert fetcher.get(name).loaded is True


@pytest.mark.asyncio
async def test_slow_slot_does_not_block_others():
    gateway = dashboard_gateway()
    gate = asyncio.Event()
    gateway.gates[queries.CREW_BY_ROLE] = gate
    fetcher = AggregateFetcher(gateway)

    task = asyncio.create_task(fetcher.load_all())
    for _ in range(100):
        if sum(s.loaded for s in fetcher.slots.values()) == 3:
            break
        await asyncio.sleep(0.01)

    assert fetcher.get("crew_by_role").loaded is False
    assert fetcher.get("bookings_by_planet").loaded is True

    gate.set()
    await task
    assert fetcher.get("crew_by_role").loaded is True


@pytest.mark.asyncio
async def test_hanging_slot_times_out_and_stays_empty():
    gateway = dashboard_gateway()
    gateway.gates[queries.TOURIST_AGE_BY_DECADE] = asyncio.Event()
    fetcher = AggregateFetcher(gateway, timeout=0.05)

    await fetcher.load_all()

    assert fetcher.get("tourist_age_by_decade").loaded is False
    assert fetcher.get("missions_by_month").loaded is True


@pytest.mark.asyncio
async def test_load_all_runs_once():
    gateway = dashboard_gateway()
    fetcher = AggregateFetcher(gateway)

    await fetcher.load_all()
    await fetcher.load_all()

    assert len(gateway.calls) == 4


@pytest.mark.asyncio
async def test_aggregates_skip_read_only_policy():
    """Fixed internal SQL goes straight to the gateway"""
    gateway = dashboard_gateway()
    await AggregateFetcher(gateway).load_all()
    assert set(gateway.calls) == {
        queries.BOOKINGS_BY_PLANET,
        queries.MISSIONS_BY_MONTH,
        queries.CREW_BY_ROLE,
        queries.TOURIST_AGE_BY_DECADE,
    }


@pytest.mark.asyncio
async def test_subscribers_get_each_published_slot():
    gateway = dashboard_gateway()
    gateway.errors[queries.CREW_BY_ROLE] = "boom"
    fetcher = AggregateFetcher(gateway)
    published = []
    fetcher.subscribe(published.append)

    await fetcher.load_all()

    assert sorted(s.name for s in published) == [
        "bookings_by_planet",
        "missions_by_month",
        "tourist_age_by_decade",
    ]


@pytest.mark.asyncio
async def test_broken_subscriber_does_not_break_loading():
    fetcher = AggregateFetcher(dashboard_gateway())

    def broken(snapshot):
        raise RuntimeError("render failed")

    fetcher.subscribe(broken)
    await fetcher.load_all()

    assert all(s.loaded for s in fetcher.snapshots())


@pytest.mark.parametrize(
    "value, label",
    [(40, "40s"), (40.0, "40s"), (Decimal("30"), "30s"), (Decimal("30.0"), "30s"), ("50", "50s")],
)
def test_decade_label(value, label):
    assert decade_label(value) == label
