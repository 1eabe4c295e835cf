"""
Wallet templates: the policy a wallet is created from.

A template constrains a future wallet descriptor (format, signer bounds,
hardware/watch-only requirements and the ordered spending tiers) without
knowing the actual signers yet. Templates are produced by the
`singlesig`, `hodling` and `multisig` constructors.

Decay schedule
- Tiers go from most to least restrictive: the signature threshold never
  grows from one tier to the next while the timelock always moves later.
- Every multi-signer template ends with an `any()` tier after 5 years so
  that funds stay recoverable if keys are lost.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple

from .bip43 import Bip43
from .network import Network
from .policy import Requirement, SigsReq, SpendingCondition, TimelockReq, after_years

logger = logging.getLogger(__name__)

MIN_HODLING_SIGNERS = 3
DEFAULT_MULTISIG_SIGNERS = 2
MAJORITY_AFTER_YEARS = 3
RECOVERY_AFTER_YEARS = 5


class TemplateError(ValueError):
    """Base class for rejected template parameters."""

    def __init__(self, message: str, value: Any = None):
        self.value = value
        super().__init__(message)


class InvalidSignerCount(TemplateError):
    """Hodling wallet asked for fewer than 3 signers."""


class InvalidMultisigThreshold(TemplateError):
    """Multisig wallet asked for a threshold of 0 or 1 signatures."""


def _utc_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        raise ValueError("now must be a timezone-aware datetime")
    return now.astimezone(timezone.utc)


def _anytime(sigs: SigsReq) -> SpendingCondition:
    return SpendingCondition(sigs, TimelockReq.anytime())


def _after(sigs: SigsReq, now: datetime, years: int) -> SpendingCondition:
    return SpendingCondition(sigs, TimelockReq.after_time(after_years(now, years)))


@dataclass(frozen=True)
class WalletTemplate:
    """Constrained wallet description, see module docstring.

    Attributes:
        format: BIP-43 derivation scheme of the wallet.
        min_signer_count: lower bound on signers (None = unbounded).
        max_signer_count: upper bound on signers (None = unbounded).
        hardware_req: whether signers must (not) be hardware devices.
        watch_only_req: whether signers must (not) be watch-only.
        conditions: spending tiers, alternatives to each other.
        network: chain the wallet lives on.
    """
    format: Bip43
    min_signer_count: Optional[int]
    max_signer_count: Optional[int]
    hardware_req: Requirement = Requirement.ALLOW
    watch_only_req: Requirement = Requirement.ALLOW
    conditions: Tuple[SpendingCondition, ...] = field(default=(SpendingCondition(),))
    network: Network = Network.MAINNET

    def __post_init__(self) -> None:
        object.__setattr__(self, 'conditions', tuple(self.conditions))
        self.validate()

    def validate(self) -> None:
        for name in ('min_signer_count', 'max_signer_count'):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be a positive integer")
        if (self.min_signer_count is not None and self.max_signer_count is not None
                and self.min_signer_count > self.max_signer_count):
            raise ValueError("min_signer_count must not exceed max_signer_count")
        if not self.conditions:
            raise ValueError("template must have at least one spending condition")

    @classmethod
    def singlesig(cls, taproot: bool, network: Network, require_hardware: bool) -> "WalletTemplate":
        """Single-key wallet: either a hardware signer or a watch-only key, never both."""
        if require_hardware:
            hardware_req, watch_only_req = Requirement.REQUIRE, Requirement.DENY
        else:
            hardware_req, watch_only_req = Requirement.DENY, Requirement.REQUIRE
        return cls(
            format=Bip43.singlesig(taproot),
            min_signer_count=1,
            max_signer_count=1,
            hardware_req=hardware_req,
            watch_only_req=watch_only_req,
            conditions=(SpendingCondition(),),
            network=network,
        )

    @classmethod
    def hodling(
        cls,
        network: Network,
        sigs_required: int,
        hardware_req: Requirement,
        watch_only_req: Requirement,
        *,
        now: Optional[datetime] = None,
    ) -> "WalletTemplate":
        """Long-term holding wallet: all signers now, any single signer after 5 years.

        Raises:
            InvalidSignerCount: if `sigs_required` is less than 3.
        """
        if sigs_required < MIN_HODLING_SIGNERS:
            raise InvalidSignerCount(
                f"hodling wallet must require at least {MIN_HODLING_SIGNERS} signers (got {sigs_required})",
                sigs_required,
            )
        now = _utc_now(now)
        conditions = (
            _anytime(SigsReq.all()),
            _after(SigsReq.any(), now, RECOVERY_AFTER_YEARS),
        )
        logger.debug("hodling template: %d signers, %d tiers", sigs_required, len(conditions))
        return cls(
            format=Bip43.multisig(),
            min_signer_count=sigs_required,
            max_signer_count=None,
            hardware_req=hardware_req,
            watch_only_req=watch_only_req,
            conditions=conditions,
            network=network,
        )

    @classmethod
    def multisig(
        cls,
        network: Network,
        sigs_required: Optional[int],
        hardware_req: Requirement,
        watch_only_req: Requirement,
        *,
        now: Optional[datetime] = None,
    ) -> "WalletTemplate":
        """Multisig wallet with a decay schedule sized by `sigs_required`.

        With no `sigs_required` the threshold is left to descriptor time and
        a single all-signers tier is produced.

        Raises:
            InvalidMultisigThreshold: if `sigs_required` is 0 or 1.
        """
        conditions = decay_schedule(sigs_required, _utc_now(now))
        logger.debug("multisig template: threshold %s, %d tiers", sigs_required, len(conditions))
        return cls(
            format=Bip43.multisig(),
            min_signer_count=DEFAULT_MULTISIG_SIGNERS if sigs_required is None else sigs_required,
            max_signer_count=None,
            hardware_req=hardware_req,
            watch_only_req=watch_only_req,
            conditions=conditions,
            network=network,
        )

    def describe(self, account: int = 0) -> Sequence[str]:
        lines = [
            f"format        = {self.format.describe()} (BIP-{self.format.purpose})",
            f"path          = {self.format.derivation_path(self.network, account)}",
            f"network       = {self.network.value}",
            f"signers       = {_bounds(self.min_signer_count, self.max_signer_count)}",
            f"hardware      = {self.hardware_req.name.lower()}",
            f"watch_only    = {self.watch_only_req.name.lower()}",
        ]
        for i, cond in enumerate(self.conditions):
            lines.append(f"tier {i}        = {cond.describe()}")
        return lines

    def to_dict(self, account: int = 0) -> Dict[str, Any]:
        """JSON-compatible representation of the template."""
        return {
            'format': self.format.name.lower(),
            'purpose': self.format.purpose,
            'derivation_path': self.format.derivation_path(self.network, account),
            'network': self.network.value,
            'min_signer_count': self.min_signer_count,
            'max_signer_count': self.max_signer_count,
            'hardware_req': self.hardware_req.name.lower(),
            'watch_only_req': self.watch_only_req.name.lower(),
            'conditions': [
                {
                    'sigs': cond.sigs.kind.value,
                    'threshold': cond.sigs.threshold(self.min_signer_count),
                    'after': None if cond.timelock.after is None else cond.timelock.after.isoformat(),
                    'locktime': cond.timelock.locktime(),
                }
                for cond in self.conditions
            ],
        }


def decay_schedule(sigs_required: Optional[int], now: datetime) -> Tuple[SpendingCondition, ...]:
    """Spending tiers for a multisig wallet requiring `sigs_required` signatures.

      None  -> [all]
      2     -> [all, any after 5y]
      3     -> [2 of n, any after 5y]
      n > 3 -> [n-1 of n, ceil(n/2) of n after 3y, any after 5y]
    """
    if sigs_required is None:
        return (_anytime(SigsReq.all()),)
    if sigs_required <= 1:
        raise InvalidMultisigThreshold(
            f"multisig wallet must require more than one signature (got {sigs_required})",
            sigs_required,
        )
    recovery = _after(SigsReq.any(), now, RECOVERY_AFTER_YEARS)
    if sigs_required == 2:
        return (_anytime(SigsReq.all()), recovery)
    if sigs_required == 3:
        return (_anytime(SigsReq.at_least(2)), recovery)
    return (
        _anytime(SigsReq.at_least(sigs_required - 1)),
        _after(SigsReq.at_least((sigs_required + 1) // 2), now, MAJORITY_AFTER_YEARS),
        recovery,
    )


def _bounds(lo: Optional[int], hi: Optional[int]) -> str:
    if lo is not None and lo == hi:
        return str(lo)
    return f"{'0' if lo is None else lo}..{'' if hi is None else hi}"
