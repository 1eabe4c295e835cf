"""
BIP-43 wallet format selector.

Maps the abstract wallet shape (single-sig segwit v0, single-sig taproot,
multisig) onto the purpose field of the derivation scheme:

  single-sig segwit v0  BIP-84  m/84h/{coin_type}h/{account}h
  single-sig taproot    BIP-86  m/86h/{coin_type}h/{account}h
  multisig descriptor   BIP-87  m/87h/{coin_type}h/{account}h
"""
from __future__ import annotations

from enum import Enum

from .network import Network

MAX_ACCOUNT = 0x7FFFFFFF  # hardened index space


class Bip43(Enum):
    SINGLESIG_SEGWIT0 = 84
    SINGLESIG_TAPROOT = 86
    MULTISIG_DESCRIPTOR = 87

    @classmethod
    def singlesig(cls, taproot: bool) -> "Bip43":
        return cls.SINGLESIG_TAPROOT if taproot else cls.SINGLESIG_SEGWIT0

    @classmethod
    def multisig(cls) -> "Bip43":
        return cls.MULTISIG_DESCRIPTOR

    @property
    def purpose(self) -> int:
        return self.value

    @property
    def is_multisig(self) -> bool:
        return self is Bip43.MULTISIG_DESCRIPTOR

    def derivation_path(self, network: Network, account: int = 0) -> str:
        """Account-level derivation path, hardened components written with 'h'."""
        if account < 0 or account > MAX_ACCOUNT:
            raise ValueError(f"account must be in range 0..{MAX_ACCOUNT}")
        return f"m/{self.purpose}h/{network.coin_type}h/{account}h"

    def describe(self) -> str:
        return {
            Bip43.SINGLESIG_SEGWIT0: "single-sig segwit v0",
            Bip43.SINGLESIG_TAPROOT: "single-sig taproot",
            Bip43.MULTISIG_DESCRIPTOR: "multisig descriptor",
        }[self]
