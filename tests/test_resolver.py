"""
Test Weighted Outcome Resolver
Draw derivation, weighted winner selection and payout split
"""

import hashlib
import secrets

import pytest

from spin_wheel.config import ROULETTE_MODULUS
from spin_wheel.errors import InvalidEntryError, NoEligibleParticipantsError, WeightOverflowError
from spin_wheel.models import Entry
from spin_wheel.resolver import (
    WeightedOutcomeResolver,
    build_weight_ranges,
    compute_payout,
    simulate_fairness,
)
from spin_wheel.seed_codec import hash256

ZERO_SEED = "0" * 64
POT = [("A", 10), ("B", 30), ("C", 60)]


def expected_draw(server_seed, client_seed, nonce, modulus):
    digest = hashlib.sha512(f"{server_seed}-{client_seed}-{nonce}".encode()).hexdigest()
    return int(digest[:8], 16) % modulus


def test_compute_draw_follows_published_algorithm():
    resolver = WeightedOutcomeResolver()
    assert resolver.compute_draw(ZERO_SEED, "abc", "1") == expected_draw(ZERO_SEED, "abc", "1", 2 ** 32)


def test_roulette_modulus_reproduces_wheel_position():
    resolver = WeightedOutcomeResolver(modulus=ROULETTE_MODULUS)
    draw = resolver.compute_draw(ZERO_SEED, "abc", 7)
    assert draw == expected_draw(ZERO_SEED, "abc", "7", 37)
    assert 0 <= draw < 37


def test_integer_and_string_nonce_agree():
    resolver = WeightedOutcomeResolver()
    assert resolver.compute_draw(ZERO_SEED, "abc", 1) == resolver.compute_draw(ZERO_SEED, "abc", "1")


@pytest.mark.parametrize("modulus", [2, ROULETTE_MODULUS, 1000, 2 ** 32])
def test_draw_stays_below_modulus(modulus):
    resolver = WeightedOutcomeResolver(modulus=modulus)
    for nonce in range(10_000):
        draw = resolver.compute_draw(secrets.token_hex(32), "client", nonce)
        assert 0 <= draw < modulus


@pytest.mark.parametrize("modulus", [0, 1, -5, 2.5, True])
def test_invalid_modulus_rejected(modulus):
    with pytest.raises(ValueError):
        WeightedOutcomeResolver(modulus=modulus)


def test_weight_ranges_are_cumulative_in_order():
    ranges, total = build_weight_ranges(POT)
    assert total == 100
    assert [(r.participant_id, r.start, r.end) for r in ranges] == [("A", 0, 10), ("B", 10, 40), ("C", 40, 100)]


def test_select_winner_uses_position_in_weight_space():
    resolver = WeightedOutcomeResolver()
    assert resolver.select_winner(POT, 0) == "A"
    assert resolver.select_winner(POT, 9) == "A"
    assert resolver.select_winner(POT, 10) == "B"
    assert resolver.select_winner(POT, 39) == "B"
    assert resolver.select_winner(POT, 40) == "C"
    assert resolver.select_winner(POT, 99) == "C"
    # draw is reduced modulo the total weight
    assert resolver.select_winner(POT, 100) == "A"
    assert resolver.select_winner(POT, 1040) == "C"


def test_equal_weights_keep_their_own_ranges():
    resolver = WeightedOutcomeResolver()
    pot = [("P1", 1), ("P2", 1)]
    assert resolver.select_winner(pot, 0) == "P1"
    assert resolver.select_winner(pot, 1) == "P2"


@pytest.mark.parametrize("pot", [
    [("D", 0), ("A", 5), ("B", 5)],
    [("A", 5), ("D", 0), ("B", 5)],
    [("A", 5), ("B", 5), ("D", 0)],
])
def test_zero_weight_entry_never_selected(pot):
    resolver = WeightedOutcomeResolver()
    for draw in range(500):
        assert resolver.select_winner(pot, draw) != "D"


def test_zero_total_weight_raises():
    resolver = WeightedOutcomeResolver()
    with pytest.raises(NoEligibleParticipantsError):
        resolver.select_winner([("A", 0), ("B", 0)], 3)
    with pytest.raises(NoEligibleParticipantsError):
        resolver.select_winner([], 3)


def test_negative_weight_rejected():
    with pytest.raises(InvalidEntryError):
        WeightedOutcomeResolver().select_winner([("A", -1), ("B", 5)], 0)


def test_settle_round_is_deterministic():
    resolver = WeightedOutcomeResolver()
    first = resolver.settle_round(ZERO_SEED, "abc", "1", POT)
    second = resolver.settle_round(ZERO_SEED, "abc", "1", [Entry(p, w) for p, w in POT])
    assert first == second
    assert first.server_seed_hash == hash256(ZERO_SEED)
    assert first.revealed_server_seed == ZERO_SEED
    assert first.client_seed == "abc"
    assert first.nonce == "1"
    assert first.winner_participant_id == resolver.select_winner(POT, first.winning_draw)


def test_selection_is_proportional_to_weight():
    resolver = WeightedOutcomeResolver()
    runs = 6000
    wins = {"A": 0, "B": 0, "C": 0}
    for i in range(runs):
        server_seed = hash256(f"proportionality-{i}")
        outcome = resolver.settle_round(server_seed, "client", i, POT)
        wins[outcome.winner_participant_id] += 1

    assert abs(wins["A"] / runs - 0.10) < 0.03
    assert abs(wins["B"] / runs - 0.30) < 0.03
    assert abs(wins["C"] / runs - 0.60) < 0.03


def test_win_probability_sums_participant_entries():
    pot = [("A", 10), ("B", 30), ("A", 10), ("D", 0)]
    assert WeightedOutcomeResolver.win_probability(pot, "A") == pytest.approx(0.4)
    assert WeightedOutcomeResolver.win_probability(pot, "D") == 0.0
    assert WeightedOutcomeResolver.win_probability(pot, "nobody") == 0.0
    assert WeightedOutcomeResolver.win_probability([], "A") == 0.0


def test_compute_payout_rounds_fee_down():
    assert compute_payout(1_000_000, 10) == (1_000, 999_000)
    assert compute_payout(999, 10) == (0, 999)
    assert compute_payout(10_000, 500) == (500, 9_500)
    assert compute_payout(10_000, 0) == (0, 10_000)


@pytest.mark.parametrize("fee", [-1, 501])
def test_compute_payout_rejects_fee_out_of_range(fee):
    with pytest.raises(ValueError):
        compute_payout(100, fee)


def test_simulate_fairness_reports_every_participant():
    sim = simulate_fairness(POT + [("D", 0)], num_simulations=400)
    assert sim["num_simulations"] == 400
    assert sim["total_weight"] == 100
    by_id = {r["participant_id"]: r for r in sim["results"]}
    assert set(by_id) == {"A", "B", "C", "D"}
    assert sum(r["actual_wins"] for r in sim["results"]) == 400
    assert by_id["D"]["actual_wins"] == 0
    assert by_id["C"]["expected_wins"] == pytest.approx(240)


def test_simulate_fairness_empty_pot_raises():
    with pytest.raises(NoEligibleParticipantsError):
        simulate_fairness([("A", 0)], num_simulations=10)


def test_pot_heavier_than_modulus_rejected():
    roulette = WeightedOutcomeResolver(modulus=ROULETTE_MODULUS)
    with pytest.raises(WeightOverflowError) as excinfo:
        roulette.select_winner(POT, 5)
    assert excinfo.value.total_weight == 100
    assert excinfo.value.modulus == ROULETTE_MODULUS

    # a pot that fits the modulus is fine
    assert roulette.select_winner([("A", 10), ("B", 27)], 36) == "B"


def test_simulate_fairness_rejects_pot_heavier_than_modulus():
    with pytest.raises(WeightOverflowError):
        simulate_fairness(POT, num_simulations=10, resolver=WeightedOutcomeResolver(modulus=50))
