"""
Threshold classifier — maps raw metric values and check outcomes to tiers.

Cut points and direction are configured per metric name (see
config.DEFAULT_THRESHOLDS); nothing is inferred from the values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from ..config import HIGHER_IS_BETTER, LOWER_IS_BETTER
from ..probes.base import MetricFailure, Outcome


class Tier(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    NOT_APPLICABLE = "n/a"


# Worst first
TIER_PRECEDENCE = [Tier.FAIL, Tier.WARN, Tier.PASS, Tier.NOT_APPLICABLE]

_OUTCOME_TIERS = {
    Outcome.PASSED: Tier.PASS,
    Outcome.FAILED: Tier.FAIL,
    Outcome.INACCESSIBLE: Tier.FAIL,
    Outcome.NO_DATA: Tier.WARN,
}


def worst_tier(tiers) -> Tier:
    """Most severe tier of a collection; NOT_APPLICABLE when empty."""
    present = set(tiers)
    for tier in TIER_PRECEDENCE:
        if tier in present:
            return tier
    return Tier.NOT_APPLICABLE


@dataclass(frozen=True)
class ThresholdRule:
    """
    Cut points for one metric.

    higher_is_better: below `fail` → FAIL, below `warn` → WARN, else PASS.
    lower_is_better:  above `fail` → FAIL, above `warn` → WARN, else PASS.
    With inclusive=True a value equal to a cut point falls into the worse tier.
    Either cut may be None to skip that tier.
    """
    metric: str
    direction: str = HIGHER_IS_BETTER
    fail: Optional[float] = None
    warn: Optional[float] = None
    inclusive: bool = False
    absolute: bool = False

    def __post_init__(self):
        if self.direction not in (HIGHER_IS_BETTER, LOWER_IS_BETTER):
            raise ValueError(f"Unknown direction for {self.metric}: {self.direction!r}")

    @classmethod
    def from_dict(cls, metric: str, data: dict[str, Any]) -> "ThresholdRule":
        return cls(
            metric=metric,
            direction=data.get("direction", HIGHER_IS_BETTER),
            fail=data.get("fail"),
            warn=data.get("warn"),
            inclusive=bool(data.get("inclusive", False)),
            absolute=bool(data.get("absolute", False)),
        )

    def _worse_than(self, value: float, cut: Optional[float]) -> bool:
        if cut is None:
            return False
        if self.direction == HIGHER_IS_BETTER:
            return value <= cut if self.inclusive else value < cut
        return value >= cut if self.inclusive else value > cut

    def classify(self, value: float) -> Tier:
        if self.absolute:
            value = abs(value)
        if self._worse_than(value, self.fail):
            return Tier.FAIL
        if self._worse_than(value, self.warn):
            return Tier.WARN
        return Tier.PASS


class Classifier:
    """Pure, total mapping from (metric, value) and outcomes to tiers."""

    def __init__(self, rules: dict[str, ThresholdRule]):
        self.rules = dict(rules)

    @classmethod
    def from_config(cls, thresholds: dict[str, dict]) -> "Classifier":
        return cls({
            metric: ThresholdRule.from_dict(metric, data)
            for metric, data in thresholds.items()
        })

    def classify(self, metric: str, value: Union[float, MetricFailure, None]) -> Tier:
        if isinstance(value, MetricFailure):
            return Tier.FAIL
        if value is None:
            return Tier.NOT_APPLICABLE
        if isinstance(value, float) and math.isnan(value):
            return Tier.FAIL
        rule = self.rules.get(metric)
        if rule is None:
            return Tier.NOT_APPLICABLE
        return rule.classify(float(value))

    @staticmethod
    def classify_outcome(outcome: Outcome) -> Tier:
        return _OUTCOME_TIERS.get(outcome, Tier.NOT_APPLICABLE)
