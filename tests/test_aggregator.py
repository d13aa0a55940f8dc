import pytest

from scorebook.data.models import BattingFigures, BowlingFigures, Performance
from scorebook.stats.aggregator import (
    PlayerStatistics,
    create_statistics,
    fold,
    is_better_bowling,
    parse_best_bowling,
)


def batting(*innings):
    return Performance(innings=[BattingFigures(runs=r, balls=b, dismissal=d) for r, b, d in innings])


def bowling(*spells):
    return Performance(spells=[BowlingFigures(overs=o, runs_conceded=r, wickets=w) for o, r, w in spells])


def test_create_is_fold_against_empty_row():
    performance = Performance(
        innings=[BattingFigures(runs=45, balls=30, dismissal="not out")],
        spells=[BowlingFigures(overs=5.2, maidens=1, runs_conceded=22, wickets=1)],
        catches=1,
    )
    created = create_statistics(7, "2025", performance, player_name="R Patel", overs_mode="balls")
    folded = fold(PlayerStatistics.empty(7, "2025", "R Patel"), performance, "balls")
    assert created == folded


def test_first_innings_not_out():
    stats = create_statistics(1, "2025", batting((45, 30, "not out")))

    assert stats.games == 1
    assert stats.inns == 1
    assert stats.not_outs == 1
    assert stats.runs == 45
    assert stats.high_score == 45
    assert stats.high_score_not_out is True
    assert stats.avg == 0.0
    assert stats.strike_rate == pytest.approx(150.0)


def test_average_divides_by_dismissals():
    stats = create_statistics(1, "2025", batting((100, 80, "c Smith")))
    stats = fold(stats, batting((30, 20, "not out")))

    assert stats.runs == 130
    assert stats.inns == 2
    assert stats.not_outs == 1
    assert stats.avg == pytest.approx(130.0)
    assert stats.hundreds == 1
    assert stats.fifties == 0
    assert stats.high_score == 100
    assert stats.high_score_not_out is False


def test_strike_rate_comes_from_latest_innings():
    stats = create_statistics(1, "2025", batting((10, 20, "bowled")))
    stats = fold(stats, batting((90, 30, "bowled")))
    assert stats.strike_rate == pytest.approx(300.0)


def test_strike_rate_kept_when_no_balls_recorded():
    stats = create_statistics(1, "2025", batting((40, 20, "bowled")))
    stats = fold(stats, batting((5, 0, "bowled")))
    assert stats.strike_rate == pytest.approx(200.0)


def test_season_strike_rate_mode():
    stats = create_statistics(1, "2025", batting((10, 20, "bowled")))
    stats = fold(stats, batting((90, 30, "bowled")), strike_rate_mode="season")
    assert stats.strike_rate == pytest.approx(200.0)


def test_high_score_replaced_only_by_more_runs():
    stats = create_statistics(1, "2025", batting((60, 50, "bowled")))
    stats = fold(stats, batting((60, 40, "not out")))
    assert stats.high_score == 60
    assert stats.high_score_not_out is False
    assert stats.fifties == 2


def test_bowling_only_performance_leaves_batting_untouched():
    stats = create_statistics(1, "2025", bowling((4.0, 20, 2)))

    assert stats.games == 1
    assert stats.inns == 0
    assert stats.avg == 0.0
    assert stats.strike_rate == 0.0
    assert stats.overs == pytest.approx(4.0)
    assert stats.balls_bowled == 24
    assert stats.economy_rate == pytest.approx(5.0)
    assert stats.bowling_strike_rate == pytest.approx(12.0)
    assert stats.bowling_average == pytest.approx(10.0)
    assert stats.best_bowling == "2/20"


def test_batting_and_bowling_in_one_match_is_one_game():
    performance = Performance(
        innings=[BattingFigures(runs=12, balls=15, dismissal="c Hughes")],
        spells=[BowlingFigures(overs=3.0, runs_conceded=18, wickets=0)],
    )
    stats = create_statistics(1, "2025", performance)
    assert stats.games == 1


def test_best_bowling_compares_not_sums():
    stats = create_statistics(1, "2025", bowling((8.0, 40, 3)))
    stats = fold(stats, bowling((4.0, 10, 2)))
    assert stats.best_bowling == "3/40"

    stats = fold(stats, bowling((6.0, 25, 3)))
    assert stats.best_bowling == "3/25"
    assert stats.wickets == 8


def test_wicketless_spells_keep_default_best():
    stats = create_statistics(1, "2025", bowling((2.0, 15, 0)))
    assert stats.best_bowling == "0/0"


def test_five_wicket_haul():
    stats = create_statistics(1, "2025", bowling((10.0, 35, 5)))
    assert stats.five_wicket_haul == 1


def test_overs_in_balls_mode_carry():
    stats = create_statistics(1, "2025", bowling((0.4, 5, 0)), overs_mode="balls")
    stats = fold(stats, bowling((0.4, 5, 0)), overs_mode="balls")
    assert stats.balls_bowled == 8
    assert stats.overs == pytest.approx(1.2)
    assert stats.economy_rate == pytest.approx(10 / (8 / 6))


def test_overs_in_decimal_mode_sum_raw_values():
    stats = create_statistics(1, "2025", bowling((0.4, 5, 0)), overs_mode="decimal")
    stats = fold(stats, bowling((0.4, 5, 0)), overs_mode="decimal")
    assert stats.balls_bowled == 8
    assert stats.overs == pytest.approx(0.8)
    assert stats.economy_rate == pytest.approx(10 / 0.8)


def test_fielding_counts_accumulate():
    stats = create_statistics(1, "2025", Performance(catches=2))
    stats = fold(stats, Performance(stumpings=1, run_outs=1))
    assert (stats.catches, stats.stumpings, stats.run_outs) == (2, 1, 1)
    assert stats.games == 2


def test_fold_does_not_modify_existing_row():
    existing = create_statistics(1, "2025", batting((10, 10, "bowled")))
    fold(existing, batting((50, 40, "bowled")))
    assert existing.runs == 10


@pytest.mark.parametrize(
    "figures, parsed",
    [
        ("3/40", (3, 40)),
        ("0/0", (0, 0)),
        (None, (0, 0)),
        ("garbage", (0, 0)),
    ]
)
def test_parse_best_bowling(figures, parsed):
    assert parse_best_bowling(figures) == parsed


def test_is_better_bowling():
    assert is_better_bowling(4, 60, "3/10")
    assert is_better_bowling(3, 20, "3/25")
    assert not is_better_bowling(3, 30, "3/25")
    assert not is_better_bowling(0, 0, "0/0")
