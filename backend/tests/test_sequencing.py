import random

import pytest

from journeyplan.core.errors import PlanLockedError
from journeyplan.models.domain import PlanStatus, new_journey_plan


def assert_sequenced(plan):
    count = len(plan.stops)
    assert count >= 2
    for index, stop in enumerate(plan.stops):
        assert stop.sequence == index
    assert plan.stops[0].name == "Origin"
    assert plan.stops[-1].name == "Final Destination"
    for index, stop in enumerate(plan.stops[1:-1], start=1):
        assert stop.name == f"Stop {index}"


def test_add_stop_inserts_before_final_destination(sequencing):
    plan = new_journey_plan("u1")
    origin, final = plan.stops

    first = sequencing.add_stop(plan)
    second = sequencing.add_stop(plan)

    assert [s.id for s in plan.stops] == [origin.id, first.id, second.id, final.id]
    assert [s.name for s in plan.stops] == ["Origin", "Stop 1", "Stop 2", "Final Destination"]
    assert_sequenced(plan)


def test_remove_stop_renames_remaining(sequencing):
    plan = new_journey_plan("u1")
    first = sequencing.add_stop(plan)
    second = sequencing.add_stop(plan)

    assert sequencing.remove_stop(plan, first.id)

    assert plan.stops[1] is second
    assert second.name == "Stop 1"
    assert_sequenced(plan)


def test_removing_origin_promotes_next_stop(sequencing):
    plan = new_journey_plan("u1")
    origin = plan.stops[0]
    first = sequencing.add_stop(plan)

    assert sequencing.remove_stop(plan, origin.id)

    assert plan.stops[0] is first
    assert first.name == "Origin"
    assert_sequenced(plan)


def test_remove_on_two_stop_plan_is_noop(sequencing):
    plan = new_journey_plan("u1")
    before = [(s.id, s.name, s.sequence) for s in plan.stops]

    assert not sequencing.remove_stop(plan, plan.stops[0].id)

    assert [(s.id, s.name, s.sequence) for s in plan.stops] == before


def test_remove_unknown_stop_is_noop(sequencing):
    plan = new_journey_plan("u1")
    sequencing.add_stop(plan)

    assert not sequencing.remove_stop(plan, "nope")
    assert len(plan.stops) == 3


def test_random_add_remove_sequences_keep_invariants(sequencing):
    rng = random.Random(7)
    plan = new_journey_plan("u1")
    for _ in range(200):
        if rng.random() < 0.55:
            sequencing.add_stop(plan)
        else:
            sequencing.remove_stop(plan, rng.choice(plan.stops).id)
        assert_sequenced(plan)


def test_update_stop_address_clears_location(sequencing):
    plan = new_journey_plan("u1")
    stop = plan.stops[0]
    stop.address_input = "Harbor"
    stop.location = object()

    sequencing.update_stop(plan, stop.id, address_input="Harbor", notes="gate 3")
    assert stop.location is not None
    assert stop.notes == "gate 3"

    sequencing.update_stop(plan, stop.id, address_input="Airport")
    assert stop.location is None
    assert stop.address_input == "Airport"


def test_finalized_plan_cannot_be_resequenced(sequencing):
    plan = new_journey_plan("u1")
    plan.status = PlanStatus.planned

    with pytest.raises(PlanLockedError):
        sequencing.add_stop(plan)
    with pytest.raises(PlanLockedError):
        sequencing.rename_plan(plan, "Other")
