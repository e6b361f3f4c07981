"""Bonus points from the number of matching POAPs."""

from decimal import Decimal

from src.poap.models import ScoringRules


def calculate_score(
    match_count: int,
    points_per_match: Decimal | float | str,
    special_count: int,
    special_points: Decimal | float | str,
) -> Decimal:
    """Linear points per POAP, except exactly `special_count` POAPs score `special_points`.

    With the default rules 3 POAPs give 1 point rather than 0.99.
    Rates go through str() so a float 0.33 counts as exactly 0.33.
    """
    if match_count == special_count:
        return Decimal(str(special_points))
    return match_count * Decimal(str(points_per_match))


def score_for(match_count: int, rules: ScoringRules) -> Decimal:
    return calculate_score(
        match_count, rules.points_per_match, rules.special_count, rules.special_points
    )
