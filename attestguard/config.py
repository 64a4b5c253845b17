"""
Network configuration for attestguard.

Trusted infrastructure addresses and the CCTP domain table are loaded from
the bundled ``networks.json`` (or the file named by
``ATTESTGUARD_NETWORKS_PATH``) and handed to the decoders as immutable values.
"""
import os
import json
import logging
import importlib.resources
from types import MappingProxyType
from typing import Dict, Any, Optional, Mapping

from pydantic import BaseModel, field_validator

from .models import normalize_address

logger = logging.getLogger(__name__)

NETWORKS_PATH_ENV = "ATTESTGUARD_NETWORKS_PATH"


class RelayAddresses(BaseModel):
    """Trusted relay infrastructure on one chain"""
    receiver: str
    solver: str

    class Config:
        frozen = True

    @field_validator("receiver", "solver", mode="before")
    @classmethod
    def _checksum_address(cls, value):
        return normalize_address(value)


class NetworkConfig:
    """Access to the per-network configuration, cached at class level."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network definitions

        Returns:
            Mapping of network name to its configuration
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        override = os.environ.get(NETWORKS_PATH_ENV)
        if override:
            logger.debug("Loading networks from %s", override)
            with open(override, "r", encoding="utf-8") as f:
                networks = json.load(f)
        else:
            resource = importlib.resources.files("attestguard").joinpath("networks.json")
            networks = json.loads(resource.read_text(encoding="utf-8"))

        cls._networks_cache = networks
        return networks

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network}'. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        return int(cls.get_network(network)["chainId"])

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None) -> str:
        """
        Resolve the RPC URL for a network

        Args:
            network: Network name
            override: Explicit URL that wins over everything else

        Returns:
            ``override``, then ``<NETWORK>_RPC_URL`` from the environment,
            then the configured URL
        """
        if override:
            return override
        env_var = f"{network.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url
        return cls.get_network(network)["rpc"]

    @classmethod
    def get_network_by_chain_id(cls, chain_id: int) -> Dict[str, Any]:
        for name, network in cls.load_networks().items():
            if int(network["chainId"]) == chain_id:
                return network
        raise ValueError(f"No network configured for chain id {chain_id}")

    @classmethod
    def cctp_domains(cls) -> Mapping[int, int]:
        """Read-only map of CCTP domain to chain id."""
        return MappingProxyType({
            int(network["cctpDomain"]): int(network["chainId"])
            for network in cls.load_networks().values()
            if network.get("cctpDomain") is not None
        })

    @classmethod
    def relay_addresses(cls, chain_id: int) -> RelayAddresses:
        network = cls.get_network_by_chain_id(chain_id)
        relay = network.get("relay")
        if not relay:
            raise ValueError(f"No relay addresses configured for chain id {chain_id}")
        return RelayAddresses(receiver=relay["receiver"], solver=relay["solver"])

    @classmethod
    def permit_spender(cls, chain_id: int) -> Optional[str]:
        spender = cls.get_network_by_chain_id(chain_id).get("permitSpender")
        return normalize_address(spender) if spender else None
