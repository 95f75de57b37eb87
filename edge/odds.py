"""
American odds conversions and de-vig.

- american_to_decimal: -110 -> 1.909, +150 -> 2.5
- american_to_implied: raw implied probability including the vig
- implied_to_american: back from a probability to an American line
- devig: multiplicative method, scale implied probs so they sum to 1
"""
from typing import Tuple


def american_to_decimal(odds: float) -> float:
    if odds >= 100:
        return 1 + odds / 100
    if odds <= -100:
        return 1 + 100 / -odds
    raise ValueError(f"American odds must be <= -100 or >= 100, got {odds}")


def american_to_implied(odds: float) -> float:
    return 1 / american_to_decimal(odds)


def implied_to_american(probability: float) -> float:
    if not 0 < probability < 1:
        raise ValueError(f"probability must be in (0, 1), got {probability}")
    if probability >= 0.5:
        return -100 * probability / (1 - probability)
    return 100 * (1 - probability) / probability


def payout(stake: float, odds: float) -> float:
    """Profit on a winning bet of stake at American odds."""
    if odds >= 100:
        return stake * odds / 100
    if odds <= -100:
        return stake * 100 / -odds
    raise ValueError(f"American odds must be <= -100 or >= 100, got {odds}")


def devig(home_implied: float, away_implied: float) -> Tuple[float, float]:
    """Scale implied probs so they sum to 1."""
    s = home_implied + away_implied
    if s <= 0:
        return (0.5, 0.5)
    return (home_implied / s, away_implied / s)
