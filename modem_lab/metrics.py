from __future__ import annotations

from typing import List


def count_bit_errors(src: List[int], dec: List[int]) -> int:
    n = min(len(src), len(dec))
    return sum(1 for a, b in zip(src[:n], dec[:n]) if int(a) != int(b))


def bit_error_rate(src: List[int], dec: List[int]) -> float:
    """
    Fraction of mismatched bits over the common prefix of `src` and `dec`.
    The decision list has one entry per whole sample window, so it can run a
    few entries past the source (floor rounding of samples_per_bit) or fall
    short of it (fewer samples than bits). Returns 0.0 when there is nothing
    to compare.
    """
    n = min(len(src), len(dec))
    if n == 0:
        return 0.0
    return count_bit_errors(src, dec) / n
