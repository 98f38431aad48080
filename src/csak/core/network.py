"""
Cardano network tags.

A Network is a pure configuration value: the CIP-19 network id written into
the low nibble of every Shelley address header, the protocol magic, and the
bech32 prefixes used when rendering addresses.
"""

from __future__ import annotations

from enum import Enum

from csak.core.exceptions import InvalidNetwork


class Network(Enum):
    """Supported networks: (name, network id, protocol magic)."""

    MAINNET = ("mainnet", 1, 764824073)
    PREPROD = ("preprod", 0, 1)
    PREVIEW = ("preview", 0, 2)

    def __init__(self, label: str, network_id: int, protocol_magic: int) -> None:
        self.label = label
        self.network_id = network_id
        self.protocol_magic = protocol_magic

    @property
    def is_mainnet(self) -> bool:
        return self.network_id == 1

    @property
    def address_prefix(self) -> str:
        return "addr" if self.is_mainnet else "addr_test"

    @property
    def stake_prefix(self) -> str:
        return "stake" if self.is_mainnet else "stake_test"

    @classmethod
    def from_name(cls, name: str) -> "Network":
        """
        Resolve a user supplied network name (case-insensitive).

        Raises:
            InvalidNetwork: If the name is not recognized
        """
        if not isinstance(name, str):
            raise InvalidNetwork(name)
        normalized = name.strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        for network in cls:
            if network.label == normalized:
                return network
        raise InvalidNetwork(name)

    @classmethod
    def from_network_id(cls, network_id: int) -> "Network":
        """Best-effort mapping of a header discriminant back to a Network."""
        if network_id == 1:
            return cls.MAINNET
        if network_id == 0:
            return cls.PREPROD
        raise InvalidNetwork(network_id)

    @classmethod
    def names(cls) -> list[str]:
        return [network.label for network in cls] + sorted(_ALIASES)

    def __str__(self) -> str:
        return self.label


# "testnet" is the name most tools use for the long-lived pre-production network
_ALIASES = {"testnet": Network.PREPROD.label}
