"""
Configuration management for evm_multinode

Loads settings from environment variables and .env file.
Includes logging configuration with rotating file output.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict

from dotenv import load_dotenv


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # evm_multinode package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def get_env_nodes(key: str) -> Optional[Dict[str, str]]:
    """
    Parse a node list from the environment.

    Format: ``name=url,name=url``. Entries without a name get ``node-<index>``.

    Returns:
        Mapping of provider name to URL, or None if the variable is unset
    """
    value = os.getenv(key)
    if value is None or not value.strip():
        return None

    nodes: Dict[str, str] = {}
    for index, entry in enumerate(value.split(",")):
        entry = entry.strip()
        if not entry:
            continue
        if "=" in entry:
            name, url = entry.split("=", 1)
            nodes[name.strip()] = url.strip()
        else:
            nodes[f"node-{index}"] = entry
    return nodes


@dataclass
class RpcConfig:
    """JSON-RPC provider configuration"""
    # Per-call bound for every provider request (reads and broadcasts)
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 4.0))


@dataclass
class MonitorConfig:
    """Transaction monitor configuration"""
    poll_interval: float = field(default_factory=lambda: _get_env_float("MONITOR_POLL_INTERVAL", 5.0))
    # A hash never seen pending within this window is reported lost
    lost_timeout: float = field(default_factory=lambda: _get_env_float("MONITOR_LOST_TIMEOUT", 180.0))


@dataclass
class GasPriceConfig:
    """Gas price oracle configuration"""
    cache_ttl: float = field(default_factory=lambda: _get_env_float("GAS_PRICE_CACHE_TTL", 30.0))
    gas_station_url: str = field(default_factory=lambda: _get_env(
        "GAS_STATION_URL", "https://ethgasstation.info/json/ethgasAPI.json"
    ))
    timeout: float = field(default_factory=lambda: _get_env_float("GAS_STATION_TIMEOUT", 10.0))


@dataclass
class ExplorerConfig:
    """Block explorer (ABI source) configuration"""
    etherscan_api_key: str = field(default_factory=lambda: _get_env("ETHERSCAN_API_KEY", ""))
    bscscan_api_key: str = field(default_factory=lambda: _get_env("BSCSCAN_API_KEY", ""))
    timeout: float = field(default_factory=lambda: _get_env_float("EXPLORER_TIMEOUT", 10.0))


@dataclass
class TxConfig:
    """Transaction defaults"""
    transfer_gas_limit: int = field(default_factory=lambda: _get_env_int("TX_TRANSFER_GAS_LIMIT", 21_000))


@dataclass
class LoggingConfig:
    """
    LOG_FILE enables rotating file output, LOG_LEVEL sets the level and
    LOG_CONSOLE=false silences stderr.
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", ""))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    console_output: bool = field(default_factory=lambda: _get_env("LOG_CONSOLE", "true").lower() != "false")

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class Config:
    """
    Main configuration container

    Usage:
        from evm_multinode.config import config

        print(config.rpc.timeout_seconds)
        print(config.monitor.poll_interval)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    gas_price: GasPriceConfig = field(default_factory=GasPriceConfig)
    explorer: ExplorerConfig = field(default_factory=ExplorerConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global config instance
config = Config()


def reload_config() -> Config:
    """
    Re-read .env and the environment into a new global config

    Objects built earlier keep the values they were constructed with.
    """
    global config
    _load_env_file()
    config = Config()
    return config


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "evm_multinode",
) -> logging.Logger:
    """
    Attach file and/or console handlers to the package logger

    Calling it again replaces the handlers it installed before.
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    handlers: List[logging.Handler] = []
    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        Path(log_config.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_config.log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        ))
    if log_config.console_output:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # Records stop here instead of reaching the root logger
    logger.propagate = False
    return logger
