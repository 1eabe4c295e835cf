"""
Decay schedule verification.

Given the spending tiers of a template, check that they form a proper decay
schedule: each tier needs no more signatures than the one before it and
becomes available strictly later.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, TypedDict

from .policy import SpendingCondition
from .template import WalletTemplate


class ScheduleResult(TypedDict):
    ok: bool
    reason: Optional[str]
    thresholds: List[Optional[int]]
    locktimes: List[Optional[int]]


def verify_decay_schedule(conditions: Sequence[SpendingCondition], signer_count: Optional[int] = None) -> ScheduleResult:
    thresholds = [cond.sigs.threshold(signer_count) for cond in conditions]
    locktimes = [cond.timelock.locktime() for cond in conditions]

    def result(reason: Optional[str]) -> ScheduleResult:
        return {
            'ok': reason is None,
            'reason': reason,
            'thresholds': thresholds,
            'locktimes': locktimes,
        }

    if not conditions:
        return result('no spending conditions')

    if signer_count is not None:
        for i, n in enumerate(thresholds):
            if n is not None and n > signer_count:
                return result(f'threshold {n} exceeds signer count {signer_count} at tier {i}')

    for i in range(1, len(conditions)):
        prev, cur = thresholds[i - 1], thresholds[i]
        # all() with an unknown signer count is the maximum possible threshold
        if prev is not None and (cur is None or cur > prev):
            return result(f'threshold increases at tier {i}')
        if not conditions[i - 1].timelock < conditions[i].timelock:
            return result(f'timelock does not increase at tier {i}')

    return result(None)


def verify_template(template: WalletTemplate) -> ScheduleResult:
    """Verify a template's tiers against its minimal signer count."""
    return verify_decay_schedule(template.conditions, template.min_signer_count)
