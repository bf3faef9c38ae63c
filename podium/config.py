"""
podium/config.py - Local configuration management

Reads config from a platform-appropriate directory:
  - macOS/Linux: ~/.podium/config.toml
  - Windows: %APPDATA%\\podium\\config.toml

Every section is optional; anything missing falls back to the defaults below.

Example:
    [chain]
    chain_id = 31337
    rpc_url = "http://127.0.0.1:8545"
    settlement = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

    [wallet]
    address = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
    private_key = "0x..."

    [schedule]
    min_registration_period = 300
    max_submission_period = 1209600

    [settlement]
    default_leaderboard_size = 10
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

from podium.schedule import ScheduleLimits

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================


def _get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "podium"
    return Path.home() / ".podium"


CONFIG_DIR = _get_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_CHAIN_ID = 31337  # local anvil/hardhat node


# ============================================================================
# Data Types
# ============================================================================


@dataclass
class ChainConfig:
    """Network the Web3TokenLedger talks to."""

    chain_id: int = DEFAULT_CHAIN_ID
    rpc_url: str = DEFAULT_RPC_URL
    settlement: str | None = None  # address holding escrowed fees and prizes


@dataclass
class WalletConfig:
    """Signing key for outgoing transfers."""

    address: str | None = None
    private_key: str | None = None


@dataclass
class SettlementConfig:
    default_leaderboard_size: int = 10
    max_additional_shares: int = 16  # one packed recipient-share word


@dataclass
class PodiumConfig:
    """Top-level configuration."""

    chain: ChainConfig = field(default_factory=ChainConfig)
    wallet: WalletConfig | None = None
    schedule: ScheduleLimits = field(default_factory=ScheduleLimits)
    settlement: SettlementConfig = field(default_factory=SettlementConfig)


# ============================================================================
# Parsing
# ============================================================================


def _section(raw: dict, name: str) -> dict | None:
    data = raw.get(name)
    return data if isinstance(data, dict) else None


def _parse_schedule_limits(data: dict) -> ScheduleLimits:
    """Override only the limits present in [schedule]."""
    known = {f.name for f in fields(ScheduleLimits)}
    overrides = {k: v for k, v in data.items() if k in known}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown [schedule] keys: {', '.join(sorted(unknown))}")
    return ScheduleLimits(**overrides)


def load_config(path: Path | None = None) -> PodiumConfig:
    """
    Read config from TOML file.

    Args:
        path: Override config file path (default: ~/.podium/config.toml)

    Returns:
        PodiumConfig. Missing file or bad TOML returns the defaults.
    """
    config_path = path or CONFIG_PATH

    if not config_path.exists():
        return PodiumConfig()

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return PodiumConfig()

    config = PodiumConfig()

    # Parse [chain] section
    chain_data = _section(raw, "chain")
    if chain_data is not None:
        _defaults = ChainConfig()
        config.chain = ChainConfig(
            chain_id=chain_data.get("chain_id", _defaults.chain_id),
            rpc_url=chain_data.get("rpc_url", _defaults.rpc_url),
            settlement=chain_data.get("settlement"),
        )

    # Parse [wallet] section
    wallet_data = _section(raw, "wallet")
    if wallet_data is not None:
        config.wallet = WalletConfig(
            address=wallet_data.get("address"),
            private_key=wallet_data.get("private_key"),
        )

    # Parse [schedule] section
    schedule_data = _section(raw, "schedule")
    if schedule_data is not None:
        config.schedule = _parse_schedule_limits(schedule_data)

    # Parse [settlement] section
    settlement_data = _section(raw, "settlement")
    if settlement_data is not None:
        _defaults = SettlementConfig()
        config.settlement = SettlementConfig(
            default_leaderboard_size=settlement_data.get(
                "default_leaderboard_size", _defaults.default_leaderboard_size
            ),
            max_additional_shares=settlement_data.get(
                "max_additional_shares", _defaults.max_additional_shares
            ),
        )

    return config
