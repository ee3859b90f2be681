"""
Vampire Detector
================
Decides whether a single number is a vampire number and finds its fangs.

A vampire number has an even digit count and factors into two fangs of half
that length whose digits, taken together, are a rearrangement of its own.
Pairs where both fangs end in 0 do not count.

Search:
    1. Odd digit counts (and negatives) are rejected outright.
    2. Candidate factors run from the largest half-length number down to,
       but excluding, the smallest one.
    3. A candidate is kept when it divides the number, neither factor was
       already paired, the factors do not both end in 0, and the cofactor
       is not larger than the candidate.
    4. Candidates survive only if their digits match the number's digits.

Pure and reentrant: safe to call from any worker thread or process.
"""

from __future__ import annotations

import logging

from .models import FangPair, ScanResult

logger = logging.getLogger(__name__)


def digit_count(num: int) -> int:
    """Decimal digit count; 0 counts as one digit."""
    return len(str(abs(num)))


def sorted_digits(*values: int) -> list[str]:
    return sorted("".join(str(v) for v in values))


def fang_bounds(num: int) -> tuple[int, int]:
    """
    Factor search bounds for `num`.

    Returns:
        (upper, lower): the largest and smallest numbers with half as many
        digits as `num`. The search never tries `lower` itself.
    """
    half = digit_count(num) // 2
    upper = 10 ** half - 1
    lower = 10 ** (half - 1)
    return upper, lower


def candidate_pairs(num: int) -> list[tuple[int, int]]:
    """
    Factor pairs (larger, smaller) of `num` that pass the search filters.

    Digits are not checked here; see `digits_match`.
    """
    upper, lower = fang_bounds(num)
    pairs: list[tuple[int, int]] = []
    paired: set[int] = set()

    for factor in range(upper, lower, -1):
        if num % factor != 0:
            continue
        cofactor = num // factor
        if factor in paired or cofactor in paired:
            continue
        # Both fangs ending in 0 is the trivial case
        if factor % 10 + cofactor % 10 == 0:
            continue
        if cofactor > factor:
            continue
        pairs.append((factor, cofactor))
        paired.update((factor, cofactor))

    return pairs


def digits_match(pair: tuple[int, int], num: int) -> bool:
    """True when the digits of both factors are a permutation of `num`'s."""
    return sorted_digits(*pair) == sorted_digits(num)


def detect(num: int) -> ScanResult:
    """
    Run the detector on one number.

    Args:
        num: Number to check.

    Returns:
        ScanResult whose `fangs` list is empty when `num` is not a vampire
        number. Never raises for integer input.
    """
    if num < 0 or digit_count(num) % 2 != 0:
        return ScanResult(number=num)

    fangs = [
        FangPair(first=smaller, second=larger)
        for larger, smaller in candidate_pairs(num)
        if digits_match((larger, smaller), num)
    ]

    if fangs:
        logger.debug(f"{num} is a vampire number with {len(fangs)} fang pair(s)")

    return ScanResult(number=num, fangs=fangs)
