"""
JSON-RPC Client for an Ethereum node.

Lightweight alternative to web3.py: uses httpx for HTTP. Only the methods
the contract layer needs are wrapped; anything else goes through
:meth:`JsonRpcClient.request`.
"""

from __future__ import annotations

import itertools
import time
from typing import Any, Optional

import httpx
import structlog

from .config import DEFAULT_LOG_TIMEOUT, DEFAULT_TIMEOUT, Settings

log = structlog.get_logger(__name__)


class TransportError(RuntimeError):
    pass


class RPCTimeoutError(TransportError):
    pass


class RPCError(TransportError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: Optional[int], message: str, data: Any = None) -> None:
        super().__init__(f"RPC error from {method}: [{code}] {message}")
        self.method = method
        self.code = code
        self.message = message
        self.data = data


class JsonRpcClient:
    """
    Blocking JSON-RPC 2.0 client.

    Args:
        url: Node endpoint
        timeout: Seconds allowed for ordinary calls
        log_timeout: Seconds allowed for filter log fetches
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        log_timeout: float = DEFAULT_LOG_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.log_timeout = log_timeout
        self._transport = transport
        self._ids = itertools.count(1)

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> "JsonRpcClient":
        return cls(
            settings.rpc_url,
            timeout=settings.timeout,
            log_timeout=settings.log_timeout,
            transport=transport,
        )

    def request(self, method: str, params: Optional[list] = None, timeout: Optional[float] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters
            timeout: Overrides the client's default timeout

        Returns:
            Result field from the RPC response

        Raises:
            RPCTimeoutError: If the node does not answer in time
            RPCError: If the response carries an error object
            TransportError: On connection, HTTP or payload failures
        """
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params if params is not None else [],
            "id": request_id,
        }
        wait = self.timeout if timeout is None else timeout
        log.debug("rpc_request", method=method, id=request_id)

        try:
            with httpx.Client(timeout=wait, transport=self._transport) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            log.warning("rpc_timeout", method=method, timeout=wait)
            raise RPCTimeoutError(f"{method} timed out after {wait}s") from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(f"{method} failed with HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"{method} returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise TransportError(f"{method} returned an unexpected payload: {data!r}")

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise RPCError(method, error.get("code"), str(error.get("message", "")), error.get("data"))
            raise RPCError(method, None, str(error))

        return data.get("result")

    # ------------------------------------------------------------------
    # eth namespace
    # ------------------------------------------------------------------

    def eth_call(self, transaction: dict, block: str = "latest") -> Optional[str]:
        return self.request("eth_call", [transaction, block])

    def eth_send_transaction(self, transaction: dict) -> str:
        return self.request("eth_sendTransaction", [transaction])

    def eth_new_filter(self, params: dict) -> str:
        return self.request("eth_newFilter", [params])

    def eth_get_filter_logs(self, filter_id: str) -> list:
        return self.request("eth_getFilterLogs", [filter_id], timeout=self.log_timeout) or []

    def eth_get_filter_changes(self, filter_id: str) -> list:
        return self.request("eth_getFilterChanges", [filter_id]) or []

    def eth_uninstall_filter(self, filter_id: str) -> bool:
        return bool(self.request("eth_uninstallFilter", [filter_id]))

    def eth_get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        return self.request("eth_getTransactionReceipt", [tx_hash])

    def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120,
        poll_interval: float = 2.0,
    ) -> dict:
        """
        Wait for a transaction receipt.

        Args:
            tx_hash: Transaction hash
            timeout: Maximum wait time in seconds
            poll_interval: Polling interval in seconds

        Returns:
            Transaction receipt dict

        Raises:
            RPCTimeoutError: If receipt not found within timeout
        """
        start = time.time()
        while time.time() - start < timeout:
            receipt = self.eth_get_transaction_receipt(tx_hash)
            if receipt is not None:
                return receipt
            time.sleep(poll_interval)

        raise RPCTimeoutError(f"Transaction {tx_hash} not confirmed within {timeout}s")


__all__ = ["JsonRpcClient", "RPCError", "RPCTimeoutError", "TransportError"]
