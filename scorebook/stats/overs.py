"""
Cricket overs arithmetic.

Overs are written as ``<overs>.<balls>`` where the part after the point is a
count of balls (0-5), not a decimal fraction: 19.2 is 19 overs and 2 balls,
i.e. 116 balls. Season totals are kept in balls and converted back for
display so that 0.4 + 0.4 gives 1.2 rather than 0.8.
"""

from typing import Union

BALLS_PER_OVER = 6
OversLike = Union[str, int, float]


def overs_to_balls(overs: OversLike) -> int:
    """
    Convert cricket overs notation to balls.

    Args:
        overs: "19.4", 19.4 or 20. Floats are formatted to one decimal place
            before splitting, so 19.4 is read as "19.4".

    Returns:
        Total balls, e.g. 19.4 -> 118.

    Raises:
        ValueError: for negative values or a balls part outside 0-5.
    """
    if overs is None:
        raise ValueError("Overs cannot be None")

    if isinstance(overs, float):
        s = f"{overs:.1f}"
    else:
        s = str(overs).strip()
    if not s:
        raise ValueError("Overs cannot be empty")

    if "." not in s:
        ov_i = int(s)
        if ov_i < 0:
            raise ValueError(f"Invalid overs: {overs}")
        return ov_i * BALLS_PER_OVER

    ov_part, ball_part = s.split(".", 1)
    ov_i = int(ov_part) if ov_part else 0
    balls_i = int(ball_part) if ball_part.strip() else 0

    if ov_i < 0 or s.startswith("-"):
        raise ValueError(f"Invalid overs: {overs}")
    if balls_i < 0 or balls_i >= BALLS_PER_OVER:
        raise ValueError(f"Invalid overs format: {overs} (balls part must be 0-5)")

    return ov_i * BALLS_PER_OVER + balls_i


def balls_to_overs(balls: int) -> float:
    """Convert balls back to overs notation: 118 -> 19.4."""
    if balls <= 0:
        return 0.0
    return balls // BALLS_PER_OVER + (balls % BALLS_PER_OVER) / 10.0


def balls_to_overs_float(balls: int) -> float:
    """Overs as a true fraction for rate calculations: 118 -> 19.666..."""
    if balls <= 0:
        return 0.0
    return balls / float(BALLS_PER_OVER)


def is_valid_overs(overs: OversLike) -> bool:
    try:
        overs_to_balls(overs)
    except (ValueError, TypeError):
        return False
    return True
