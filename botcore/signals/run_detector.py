#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Run Detector

Single-transition detector over a lookback window.

Scanning from the most recent bar (offset 0) backwards, a window is accepted
only when the predicate holds on a contiguous prefix and fails on the whole
remaining suffix, with both parts non-empty:

    offsets:   0  1  2  3  4
    accepted:  T  T  F  F  F
    rejected:  T  T  T  T  T   (no transition)
    rejected:  F  F  T  T  T   (condition not active on the latest bar)
    rejected:  T  F  T  F  F   (oscillation)
"""

from typing import Callable


def classify(predicate: Callable[[int], bool], lookback: int) -> bool:
    """
    Check that a condition crossed into effect exactly once within the window.

    Args:
        predicate: Boolean function of a bars-back offset (0 = most recent bar)
        lookback: Number of offsets to scan, [0, lookback)

    Returns:
        bool: True iff a non-empty true run is followed by a non-empty false run
    """
    seen_true = False
    seen_false = False

    for offset in range(lookback):
        if predicate(offset):
            if seen_false:
                return False
            seen_true = True
        else:
            if not seen_true:
                return False
            seen_false = True

    return seen_true and seen_false


class RunDetector:
    """
    Reusable detector bound to a fixed lookback.

    Usage:
        detector = RunDetector(lookback=5)
        detector.classify(lambda i: feed.value('macd_hist', i) > 0)
    """

    def __init__(self, lookback: int):
        self.lookback = lookback

    def classify(self, predicate: Callable[[int], bool]) -> bool:
        return classify(predicate, self.lookback)

    def __repr__(self) -> str:
        return f"RunDetector(lookback={self.lookback})"
