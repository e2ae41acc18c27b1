"""Ticket pool and weighted selection tests."""

from collections import Counter
import random

import pytest

from toy_raffle.drawing import (
    DrawingEngine,
    build_ticket_pool,
    candidate_toys,
    select_prize,
    tickets_for,
)
from toy_raffle.toys import Catalog, Toy
from toy_raffle.winners import WonToys


@pytest.mark.parametrize(
    "weight, tickets",
    [(100.0, 10), (90.0, 9), (55.5, 5), (10.0, 1), (9.99, 0), (5.0, 0), (0.0, 0), (-20.0, 0), (250.0, 25)],
)
def test_tickets_for(weight, tickets):
    assert tickets_for(Toy(1, "A", 1, weight)) == tickets


def test_ticket_pool_keeps_catalog_order():
    toys = [Toy(1, "A", 1, 20.0), Toy(2, "B", 1, 5.0), Toy(3, "C", 1, 30.0)]
    pool = build_ticket_pool(toys)
    assert pool.size == 5
    assert [pool.owner(ticket).id for ticket in range(pool.size)] == [1, 1, 3, 3, 3]
    with pytest.raises(IndexError):
        pool.owner(5)


@pytest.mark.parametrize("weight", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_weight_holds_no_tickets(weight):
    assert tickets_for(Toy(1, "A", 1, weight)) == 0
    assert select_prize([Toy(1, "A", 1, weight)], set(), random.Random(0)) is None


def test_huge_weight_is_drawn_without_expanding_the_pool():
    toys = [Toy(1, "Giant", 1, 1e300), Toy(2, "Small", 1, 10.0)]
    pool = build_ticket_pool(toys)
    assert pool.size == tickets_for(toys[0]) + 1
    assert pool.owner(pool.size - 1).id == 2
    assert select_prize(toys, set(), random.Random(8)).id == 1
    assert select_prize(toys, {1}, random.Random(8)).id == 2


def test_candidates_exclude_won_ids():
    toys = [Toy(1, "A", 1, 20.0), Toy(2, "B", 1, 20.0)]
    assert [toy.id for toy in candidate_toys(toys, {1})] == [2]


def test_low_weights_yield_nothing():
    toys = [Toy(1, "A", 5, 5.0), Toy(2, "B", 5, 5.0)]
    assert select_prize(toys, set(), random.Random(0)) is None


def test_won_toy_never_selected():
    toys = [Toy(1, "A", 5, 100.0), Toy(2, "B", 5, 10.0)]
    rng = random.Random(3)
    picks = {select_prize(toys, {1}, rng).id for _ in range(200)}
    assert picks == {2}


def test_selection_is_deterministic_for_a_seed():
    toys = [Toy(i, f"T{i}", 1, 10.0 * i) for i in range(1, 8)]
    rng_a = random.Random(99)
    rng_b = random.Random(99)
    seq_a = [select_prize(toys, set(), rng_a).id for _ in range(50)]
    seq_b = [select_prize(toys, set(), rng_b).id for _ in range(50)]
    assert seq_a == seq_b


def test_weighted_bias_matches_ticket_share():
    toys = [Toy(1, "A", 1000, 90.0), Toy(2, "B", 1000, 10.0)]
    rng = random.Random(2024)
    counts = Counter(select_prize(toys, set(), rng).id for _ in range(10000))
    share = counts[1] / 10000
    assert abs(share - 0.9) <= 0.02


def test_engine_draw_leaves_state_untouched_until_applied():
    catalog = Catalog([Toy(1, "A", 2, 100.0)])
    won = WonToys()
    engine = DrawingEngine(catalog, won, rng=random.Random(1))
    award = engine.draw("2024-03-05 14:07:09")
    assert award.toy_id == 1 and award.name == "A"
    assert catalog.find_by_id(1).quantity == 2
    assert 1 not in won

    assert engine.apply(award) == 1
    assert catalog.find_by_id(1).quantity == 1
    assert 1 in won
    assert engine.draw("2024-03-05 14:08:00") is None
