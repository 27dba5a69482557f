from __future__ import annotations

from typing import Any, Optional

import pytest

from etherbind.abi.codec import encode_tuple


HOLDER = "0x" + "ab" * 20
RECIPIENT = "0x" + "cd" * 20
TOKEN_ADDRESS = "0x" + "12" * 20

TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "constructor",
        "inputs": [{"name": "initialSupply", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "metadata",
        "inputs": [],
        "outputs": [
            {"name": "name", "type": "string"},
            {"name": "decimals", "type": "uint8"},
        ],
        "stateMutability": "view",
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Approval",
        "anonymous": False,
        "inputs": [
            {"name": "owner", "type": "address", "indexed": True},
            {"name": "spender", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
]


def padded(address: str) -> str:
    """32-byte topic form of an address."""
    return "0x" + "0" * 24 + address[2:]


def word(value: int) -> str:
    return "0x" + value.to_bytes(32, "big").hex()


def transfer_log(sender: str, recipient: str, value: int, **extra: Any) -> dict[str, Any]:
    raw = {
        "topics": [TRANSFER_TOPIC, padded(sender), padded(recipient)],
        "data": "0x" + encode_tuple("(uint256)", [value]).hex(),
        "blockNumber": "0x10",
        "logIndex": "0x1",
        "transactionIndex": "0x2",
        "transactionHash": "0x" + "ee" * 32,
    }
    raw.update(extra)
    return raw


class FakeRpc:
    """Stands in for JsonRpcClient; records every request."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, Any]] = []
        self.call_result: Optional[str] = None
        self.tx_hash = "0x" + "aa" * 32
        self.filter_id = "0x1"
        self.logs: list[dict] = []
        self.changes: list[dict] = []
        self.receipt: Optional[dict] = None
        self.error: Optional[Exception] = None

    def _record(self, method: str, params: Any) -> None:
        self.requests.append((method, params))
        if self.error is not None:
            raise self.error

    def eth_call(self, transaction: dict, block: str = "latest") -> Optional[str]:
        self._record("eth_call", [transaction, block])
        return self.call_result

    def eth_send_transaction(self, transaction: dict) -> str:
        self._record("eth_sendTransaction", [transaction])
        return self.tx_hash

    def eth_new_filter(self, params: dict) -> str:
        self._record("eth_newFilter", [params])
        return self.filter_id

    def eth_get_filter_logs(self, filter_id: str) -> list:
        self._record("eth_getFilterLogs", [filter_id])
        return self.logs

    def eth_get_filter_changes(self, filter_id: str) -> list:
        self._record("eth_getFilterChanges", [filter_id])
        return self.changes

    def eth_uninstall_filter(self, filter_id: str) -> bool:
        self._record("eth_uninstallFilter", [filter_id])
        return True

    def eth_get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        self._record("eth_getTransactionReceipt", [tx_hash])
        return self.receipt

    def wait_for_receipt(self, tx_hash: str, timeout: float = 120, poll_interval: float = 2.0) -> dict:
        self._record("wait_for_receipt", [tx_hash, timeout, poll_interval])
        return self.receipt or {}

    def last(self, method: str) -> Any:
        for name, params in reversed(self.requests):
            if name == method:
                return params
        raise AssertionError(f"{method} was never requested")


@pytest.fixture()
def erc20_abi() -> list[dict[str, Any]]:
    return [dict(entry) for entry in ERC20_ABI]


@pytest.fixture()
def rpc() -> FakeRpc:
    return FakeRpc()
