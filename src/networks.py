"""
GalaChain Networks - Endpoint configuration

Each deployment exposes two base URLs:
- operations: chaincode API (balances, public key lookup)
- identity: identity service (registration)

Endpoint paths are templates with {channel} and {contract} placeholders.
"""

import logging
import os
from dataclasses import dataclass, replace, fields
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


# ============================================
# Network Configurations
# ============================================

@dataclass(frozen=True)
class TokenClassKey:
    """Token class identifying the balance to display."""
    collection: str = "GALA"
    category: str = "Unit"
    type: str = "none"
    additional_key: str = "none"
    instance: str = "0"


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for a GalaChain deployment."""
    name: str
    display_name: str
    operations_url: str
    identity_url: str
    channel: str = "product"
    contract: str = "GalaChainToken"
    balance_endpoint: str = "/api/{channel}/{contract}/FetchBalances"
    public_key_endpoint: str = "/api/{channel}/PublicKeyContract/GetPublicKey"
    registration_endpoint: str = "/api/identities/register"
    token: TokenClassKey = TokenClassKey()
    request_timeout: float = 30.0  # seconds, per HTTP request
    is_testnet: bool = True

    def build_url(self, base_url: str, template: str) -> str:
        """Substitute {channel}/{contract} and join with the base URL."""
        endpoint = template.replace("{channel}", self.channel).replace("{contract}", self.contract)
        return base_url.rstrip("/") + endpoint

    @property
    def balance_url(self) -> str:
        return self.build_url(self.operations_url, self.balance_endpoint)

    @property
    def public_key_url(self) -> str:
        return self.build_url(self.operations_url, self.public_key_endpoint)

    @property
    def registration_url(self) -> str:
        return self.build_url(self.identity_url, self.registration_endpoint)


# Known deployments
NETWORKS = {
    # Local development stack (chaincode on :3000, identity server on :4000)
    "local": ChainConfig(
        name="local",
        display_name="Local GalaChain",
        operations_url="http://localhost:3000",
        identity_url="http://localhost:4000",
    ),
    # Local stack with everything proxied through the identity server
    "local-proxy": ChainConfig(
        name="local-proxy",
        display_name="Local GalaChain (proxied)",
        operations_url="http://localhost:4000",
        identity_url="http://localhost:4000",
    ),
}

# Default network
DEFAULT_NETWORK = "local"


# ============================================
# Configuration Loading
# ============================================

# Environment overrides (applied after the settings file)
ENV_OVERRIDES = {
    "GALAWALLET_OPERATIONS_URL": "operations_url",
    "GALAWALLET_IDENTITY_URL": "identity_url",
    "GALAWALLET_CHANNEL": "channel",
    "GALAWALLET_CONTRACT": "contract",
}

_STRING_FIELDS = {
    f.name for f in fields(ChainConfig)
    if f.name not in ("name", "token", "request_timeout", "is_testnet")
}


def get_network(name: str) -> Optional[ChainConfig]:
    """Get network config by name."""
    return NETWORKS.get(name)


def load_chain_config(settings: Optional[Mapping] = None,
                      environ: Optional[Mapping[str, str]] = None) -> ChainConfig:
    """
    Resolve the active chain configuration.

    Order: preset (settings "chain.network" or GALAWALLET_NETWORK), then
    string overrides from the settings "chain" section, then environment
    variables.

    Args:
        settings: Parsed settings.json contents
        environ: Environment mapping (defaults to os.environ)
    """
    settings = settings or {}
    environ = os.environ if environ is None else environ
    chain_settings = settings.get("chain") or {}
    if not isinstance(chain_settings, Mapping):
        logger.warning(f"Ignoring invalid chain settings: {chain_settings!r}")
        chain_settings = {}

    settings_network = chain_settings.get("network")
    if not isinstance(settings_network, str):
        settings_network = None
    network_name = environ.get("GALAWALLET_NETWORK") or settings_network or DEFAULT_NETWORK
    config = get_network(network_name)
    if config is None:
        logger.warning(f"Unknown network '{network_name}', falling back to {DEFAULT_NETWORK}")
        config = NETWORKS[DEFAULT_NETWORK]

    overrides = {k: v for k, v in chain_settings.items() if k in _STRING_FIELDS and isinstance(v, str) and v}
    if "request_timeout" in chain_settings:
        try:
            overrides["request_timeout"] = float(chain_settings["request_timeout"])
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid request_timeout: {chain_settings['request_timeout']!r}")

    for env_var, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if value:
            overrides[field_name] = value

    if overrides:
        config = replace(config, **overrides)
    return config


# ============================================
# Utility Functions
# ============================================

def format_address(address: str, chars: int = 4) -> str:
    """Format address as 0x1234...5678 (or eth|1234...5678)."""
    prefix_len = address.index("|") + 1 if "|" in address else 2
    if len(address) <= chars * 2 + prefix_len:
        return address
    return f"{address[:chars + prefix_len]}...{address[-chars:]}"
