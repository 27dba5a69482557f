"""
Settings for reaching an Ethereum JSON-RPC node.

Values come from the process environment, optionally seeded from a .env
file. ETHEREUM_RPC_URL wins when set; otherwise the URL is composed from
ETHEREUM_HOST / ETHEREUM_PORT / ETHEREUM_USE_SSL / INFURA_PROJECT_ID.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = "8545"
DEFAULT_TIMEOUT = 20.0
# Fetching a filter's full log history can take far longer than a call
DEFAULT_LOG_TIMEOUT = 300.0


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    timeout: float = DEFAULT_TIMEOUT
    log_timeout: float = DEFAULT_LOG_TIMEOUT
    log_level: str = "INFO"


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number of seconds, got {raw!r}") from exc


def rpc_url_from_env(env: Mapping[str, str]) -> str:
    """Build the node URL from environment values."""
    explicit = env.get("ETHEREUM_RPC_URL")
    if explicit:
        return explicit

    host = env.get("ETHEREUM_HOST") or DEFAULT_HOST
    port = env.get("ETHEREUM_PORT") or DEFAULT_PORT
    if _flag(env.get("ETHEREUM_USE_SSL")):
        project_id = env.get("INFURA_PROJECT_ID")
        if project_id:
            return f"https://{host}/{project_id}"
        return f"https://{host}:{port}"
    return f"http://{host}:{port}"


def load_settings(env_path: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_path: Optional .env file loaded (without overriding) before reading
        env: Mapping to read instead of os.environ

    Returns:
        Settings instance
    """
    if env is None:
        if env_path is not None and Path(env_path).exists():
            load_dotenv(env_path, override=False)
        env = os.environ

    return Settings(
        rpc_url=rpc_url_from_env(env),
        timeout=_float(env, "ETHEREUM_RPC_TIMEOUT", DEFAULT_TIMEOUT),
        log_timeout=_float(env, "ETHEREUM_LOG_TIMEOUT", DEFAULT_LOG_TIMEOUT),
        log_level=(env.get("ETHEREUM_LOG_LEVEL") or "INFO").upper(),
    )
