import pytest

from scorebook.stats.overs import (
    balls_to_overs,
    balls_to_overs_float,
    is_valid_overs,
    overs_to_balls,
)


@pytest.mark.parametrize(
    "overs, balls",
    [
        ("19.4", 118),
        (19.4, 118),
        (20, 120),
        ("0.5", 5),
        (0.0, 0),
        ("8", 48),
    ]
)
def test_overs_to_balls(overs, balls):
    assert overs_to_balls(overs) == balls


@pytest.mark.parametrize("overs", ["19.6", 4.7, "-1", -2.3])
def test_overs_to_balls_rejects_invalid(overs):
    with pytest.raises(ValueError):
        overs_to_balls(overs)


def test_balls_to_overs():
    assert balls_to_overs(118) == pytest.approx(19.4)
    assert balls_to_overs(120) == pytest.approx(20.0)
    assert balls_to_overs(0) == 0.0


def test_partial_overs_carry_at_six_balls():
    total = overs_to_balls(0.4) + overs_to_balls(0.4)
    assert balls_to_overs(total) == pytest.approx(1.2)


def test_balls_to_overs_float_is_a_true_fraction():
    assert balls_to_overs_float(9) == pytest.approx(1.5)


def test_is_valid_overs():
    assert is_valid_overs("5.2")
    assert not is_valid_overs("5.9")
    assert not is_valid_overs("abc")
    assert not is_valid_overs(None)
