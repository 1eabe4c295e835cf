"""
Spending-condition model for wallet templates.

A wallet template offers one or more alternative ways to spend (tiers). Each
tier pairs a signature threshold (SigsReq) with a time gate (TimelockReq):
the tier is satisfied when both hold, and the wallet is spendable when any
tier is satisfied.
"""
from __future__ import annotations

import calendar
import functools
from dataclasses import dataclass, field
from datetime import MAXYEAR, datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Optional


class Requirement(IntEnum):
    """Three-state capability gate used for hardware and watch-only signers."""
    ALLOW = 0
    REQUIRE = 1
    DENY = 2

    @classmethod
    def default(cls) -> "Requirement":
        return cls.ALLOW

    @classmethod
    def parse(cls, value: str) -> "Requirement":
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown requirement '{value}' (expected allow, require or deny)") from None


def normalize_threshold(value: Any) -> int:
    """Coerce a signature threshold to int and require it to be positive."""
    try:
        n = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("threshold must be an integer") from exc
    if n <= 0:
        raise ValueError("threshold must be a positive integer")
    return n


class Sigs(Enum):
    ALL = "all"
    ANY = "any"
    AT_LEAST = "at_least"


@dataclass(frozen=True)
class SigsReq:
    """Signature threshold over the (implicit) signer set of a wallet.

    Use the `all()`, `any()` and `at_least(k)` constructors. The bound of
    `k` against the real number of signers is not checked here.
    """
    kind: Sigs
    count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind is Sigs.AT_LEAST:
            object.__setattr__(self, 'count', normalize_threshold(self.count))
        elif self.count is not None:
            raise ValueError(f"{self.kind.value} threshold takes no count")

    @classmethod
    def all(cls) -> "SigsReq":
        return cls(Sigs.ALL)

    @classmethod
    def any(cls) -> "SigsReq":
        return cls(Sigs.ANY)

    @classmethod
    def at_least(cls, count: int) -> "SigsReq":
        return cls(Sigs.AT_LEAST, count)

    def threshold(self, total: Optional[int] = None) -> Optional[int]:
        """Number of signatures this requirement needs out of `total` signers.

        Returns None for `all()` when the signer count is not known.
        """
        if self.kind is Sigs.ANY:
            return 1
        if self.kind is Sigs.AT_LEAST:
            return self.count
        return total

    def normalized(self, total: int) -> "SigsReq":
        """Canonical form: at_least(total) becomes all(), at_least(1) becomes any()."""
        if self.kind is Sigs.AT_LEAST:
            if self.count == 1:
                return SigsReq.any()
            if self.count == total:
                return SigsReq.all()
        return self

    def describe(self) -> str:
        if self.kind is Sigs.ALL:
            return "all signatures"
        if self.kind is Sigs.ANY:
            return "any signature"
        return f"at least {self.count} signatures"


def after_years(now: datetime, years: int) -> datetime:
    """Move `now` forward by whole calendar years.

    A 29 February instant landing on a non-leap year becomes 28 February.
    """
    year = now.year + years
    if year > MAXYEAR:
        raise ValueError(f"{now.isoformat()} + {years} years is past the last representable year {MAXYEAR}")
    day = now.day
    if now.month == 2 and day == 29 and not calendar.isleap(year):
        day = 28
    return now.replace(year=year, day=day)


@functools.total_ordering
@dataclass(frozen=True)
class TimelockReq:
    """Time gate of a tier: no constraint, or usable only after an absolute UTC instant."""
    after: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.after is None:
            return
        if self.after.tzinfo is None:
            raise ValueError("timelock instant must be timezone-aware")
        object.__setattr__(self, 'after', self.after.astimezone(timezone.utc))

    @classmethod
    def anytime(cls) -> "TimelockReq":
        return cls()

    @classmethod
    def after_time(cls, instant: datetime) -> "TimelockReq":
        return cls(instant)

    @property
    def is_anytime(self) -> bool:
        return self.after is None

    def locktime(self) -> Optional[int]:
        """BIP-65 absolute lock time (unix seconds), or None when unconstrained."""
        if self.after is None:
            return None
        return int(self.after.timestamp())

    def __lt__(self, other: "TimelockReq") -> bool:
        if not isinstance(other, TimelockReq):
            return NotImplemented
        if other.after is None:
            return False
        return self.after is None or self.after < other.after

    def describe(self) -> str:
        if self.after is None:
            return "at any time"
        return f"after {self.after.date().isoformat()}"


@dataclass(frozen=True)
class SpendingCondition:
    """One tier: `sigs` signatures, available once `timelock` has passed."""
    sigs: SigsReq = field(default_factory=SigsReq.all)
    timelock: TimelockReq = field(default_factory=TimelockReq.anytime)

    def describe(self) -> str:
        return f"{self.sigs.describe()} {self.timelock.describe()}"

    def __str__(self) -> str:
        return self.describe()
