"""
Test spin-wheel command line tools
"""

import logging

import pytest

from spin_wheel.cli import main
from spin_wheel.game import SpinWheelGame
from spin_wheel.resolver import WeightedOutcomeResolver
from spin_wheel.seed_codec import hash256

ZERO_SEED = "0" * 64


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger('spin_wheel')
    logger.handlers.clear()
    logger.propagate = True


def verify_args(winner, server_seed=ZERO_SEED):
    return [
        "--log-level", "WARNING",
        "verify",
        "--server-seed", server_seed,
        "--server-seed-hash", hash256(ZERO_SEED),
        "--client-seed", "abc",
        "--nonce", "1",
        "--entry", "P1:1",
        "--entry", "P2:1",
        "--winner", winner,
    ]


@pytest.fixture
def winner():
    return WeightedOutcomeResolver().settle_round(ZERO_SEED, "abc", "1", [("P1", 1), ("P2", 1)]).winner_participant_id


def test_verify_passes_for_honest_round(winner, capsys):
    assert main(verify_args(winner)) == 0
    assert "provably fair" in capsys.readouterr().out


def test_verify_fails_for_wrong_winner(winner):
    loser = "P2" if winner == "P1" else "P1"
    assert main(verify_args(loser)) == 1


def test_verify_rejects_malformed_seed(winner, capsys):
    assert main(verify_args(winner, server_seed="zz")) == 2
    assert "server_seed" in capsys.readouterr().err


def test_simulate(capsys):
    assert main(["--log-level", "WARNING", "simulate", "--entry", "a:1", "--entry", "b:3", "--runs", "200"]) == 0
    out = capsys.readouterr().out
    assert "200 simulated rounds" in out
    assert "b:" in out


def test_history_and_verify_round_from_database(tmp_path, sql_ledger, fixed_seeds, capsys):
    url = f"sqlite:///{tmp_path / 'spin_wheel.db'}"
    game = SpinWheelGame(ledger=sql_ledger, min_bet=1, seed_source=fixed_seeds)
    opened = game.open_round("cli")
    game.place_bet("alice", 4)
    game.reveal_and_settle()

    assert main(["--database-url", url, "--log-level", "WARNING", "history"]) == 0
    assert opened['round_id'] in capsys.readouterr().out

    assert main(["--database-url", url, "--log-level", "WARNING", "verify-round", opened['round_id']]) == 0
    assert "provably fair" in capsys.readouterr().out

    assert main(["--database-url", url, "--log-level", "WARNING", "verify-round", "missing"]) == 2


def test_database_without_tables_exits_with_error(tmp_path, capsys):
    url = f"sqlite:///{tmp_path / 'empty.db'}"
    assert main(["--database-url", url, "--log-level", "CRITICAL", "history"]) == 2
    assert "❌" in capsys.readouterr().err


def test_unusable_database_url_exits_with_error(capsys):
    assert main(["--database-url", "nosuchdriver://x", "--log-level", "CRITICAL", "history"]) == 2
