"""
Chain network tag carried by wallet templates.

The template itself never interprets the network beyond the BIP-44 coin
type; `chain_params()` hands the matching python-bitcointx chain parameters
to whatever builds descriptors or addresses from the template.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

_ALIASES = {
    'bitcoin': 'mainnet',
    'main': 'mainnet',
    'test': 'testnet',
    'testnet3': 'testnet',
}


def _imp_chain_params():
    import importlib
    return importlib.import_module('bitcointx').ChainParams


class Network(Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"

    @classmethod
    def parse(cls, name: str) -> "Network":
        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown network '{name}'") from None

    @property
    def coin_type(self) -> int:
        """BIP-44 coin type: 0 for mainnet, 1 for all test networks."""
        return 0 if self is Network.MAINNET else 1

    @property
    def chain_name(self) -> str:
        """python-bitcointx chain parameters name."""
        if self is Network.MAINNET:
            return 'bitcoin'
        return f'bitcoin/{self.value}'

    def chain_params(self) -> Any:
        """Return a bitcointx ChainParams context manager for this network.

        Raises:
            ImportError if python-bitcointx is not installed.
        """
        ChainParams = _imp_chain_params()
        return ChainParams(self.chain_name)
