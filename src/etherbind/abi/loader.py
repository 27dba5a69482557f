"""
ABI Loader - Read contract ABIs and bytecode from JSON files.

Accepts either a bare ABI array or a compiler artifact object carrying
"abi" and "bytecode" (Foundry's {"object": "0x..."} or a plain hex string).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from .registry import AbiConfigurationError


def _read_json(path: Path) -> Any:
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"ABI file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_abi(path: str | Path) -> list[dict[str, Any]]:
    """
    Load an ABI from a JSON file.

    Args:
        path: Path to an ABI array or compiler artifact

    Returns:
        ABI as a list of dicts

    Raises:
        FileNotFoundError: If the file does not exist
        AbiConfigurationError: If the file holds no ABI array
    """
    payload = _read_json(Path(path))
    if isinstance(payload, dict):
        payload = payload.get("abi")
    if not isinstance(payload, list):
        raise AbiConfigurationError(f"No ABI array in {path}")
    return payload


def load_bytecode(path: str | Path) -> Optional[str]:
    """
    Load deployment bytecode from a compiler artifact.

    Returns:
        0x-prefixed hex bytecode, or None when the artifact carries none
    """
    payload = _read_json(Path(path))
    if not isinstance(payload, dict):
        return None

    bytecode = payload.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not bytecode:
        return None

    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    return bytecode
