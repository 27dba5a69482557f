"""
Contract Session - One owner for all registered contracts and installed filters.

Every mutation and every read-then-act runs under the manager's lock.
Network calls happen after the lock is released, on frozen metadata, so a
slow or failing node never leaves a contract half-updated.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Sequence

import structlog

from ..abi.codec import (
    AbiDecodingError,
    decode_tuple,
    encode_options,
    encode_tuple,
    types_signature,
)
from ..abi.registry import (
    Abi,
    AbiConfigurationError,
    EventMetadata,
    FunctionEntry,
    UnknownEntryError,
    parse_abi,
)
from ..rpc import JsonRpcClient
from ..utils import strip_0x
from .errors import (
    ConstructorArgumentError,
    ContractExecutionError,
    MissingAddressError,
    MissingBytecodeError,
    MissingGasError,
    MissingSenderError,
    UnknownContractError,
    UnknownEventError,
)
from .events import FieldHook, format_log
from .filters import FilterRegistry, build_filter_params

log = structlog.get_logger(__name__)

# Transaction fields sent as hex quantities
QUANTITY_OPTIONS = ("gas", "gasPrice", "value", "nonce", "maxFeePerGas", "maxPriorityFeePerGas")


@dataclass(frozen=True)
class ContractState:
    name: str
    abi: Abi
    address: Optional[str] = None
    bytecode: Optional[str] = None


class ContractManager:
    """
    Register contracts, then call, send, deploy and filter against them.

    Args:
        client: JSON-RPC transport (anything exposing the eth_* methods of JsonRpcClient)
        field_hooks: Per-field post-processing applied to decoded non-indexed event values
        block: Block tag used for eth_call
    """

    def __init__(
        self,
        client: JsonRpcClient,
        field_hooks: Optional[Mapping[str, FieldHook]] = None,
        block: str = "latest",
    ) -> None:
        self._client = client
        self._field_hooks = dict(field_hooks or {})
        self._block = block
        self._contracts: dict[str, ContractState] = {}
        self._filters = FilterRegistry()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def register(self, name: str, abi: Any, bytecode: Optional[str] = None) -> ContractState:
        """
        Register (or re-register) a contract under ``name``.

        Raises:
            AbiConfigurationError: If no ABI is given or it cannot be parsed
        """
        if abi is None:
            raise AbiConfigurationError(f"ABI not provided for contract {name}")
        parsed = abi if isinstance(abi, Abi) else parse_abi(abi)
        state = ContractState(name=name, abi=parsed, bytecode=bytecode)
        with self._lock:
            self._contracts[name] = state
        log.info("contract_registered", contract=name, events=len(parsed.events), functions=len(parsed.functions))
        return state

    def at(self, name: str, address: str) -> None:
        """Bind ``name`` to a deployed address."""
        with self._lock:
            self._contracts[name] = replace(self._state(name), address=address)
        log.info("contract_bound", contract=name, address=address)

    bind_address = at

    def address(self, name: str) -> Optional[str]:
        with self._lock:
            return self._state(name).address

    def contract(self, name: str) -> ContractState:
        with self._lock:
            return self._state(name)

    def _state(self, name: str) -> ContractState:
        try:
            return self._contracts[name]
        except KeyError:
            raise UnknownContractError(f"Contract {name!r} is not registered") from None

    def _bound_state(self, name: str) -> ContractState:
        state = self.contract(name)
        if not state.address:
            raise MissingAddressError(name)
        return state

    # ------------------------------------------------------------------
    # Calls and transactions
    # ------------------------------------------------------------------

    def deploy(
        self,
        name: str,
        options: Mapping[str, Any],
        args: Optional[Sequence[Any]] = None,
        bytecode: Optional[str] = None,
    ) -> str:
        """
        Deploy ``name`` with eth_sendTransaction and return the transaction hash.

        Args:
            name: Registered contract name
            options: Transaction options; "from" and "gas" are required
            args: Constructor arguments
            bytecode: Creation bytecode, overriding the registered one

        Raises:
            MissingSenderError, MissingGasError, MissingBytecodeError: On missing inputs
            ConstructorArgumentError: If the arguments do not fit the constructor
        """
        state = self.contract(name)
        if options.get("from") is None:
            raise MissingSenderError(name)
        if options.get("gas") is None:
            raise MissingGasError(name)
        code = bytecode or state.bytecode
        if not code:
            raise MissingBytecodeError(name)

        args = list(args or [])
        constructor = state.abi.constructor
        if constructor is not None:
            if len(args) != len(constructor.inputs):
                raise ConstructorArgumentError(
                    f"Number of provided arguments to constructor is incorrect. "
                    f"Was given {len(args)} args, looking for {len(constructor.inputs)}."
                )
            encoded = encode_tuple(types_signature(constructor.input_types), args)
        elif args:
            raise ConstructorArgumentError(
                f"Constructor not found in ABI for {name}, but constructor args were provided."
            )
        else:
            encoded = b""

        tx = {key: value for key, value in options.items() if value is not None}
        tx.update(encode_options(options, QUANTITY_OPTIONS))
        tx["data"] = "0x" + strip_0x(code) + encoded.hex()

        tx_hash = self._client.eth_send_transaction(tx)
        log.info("contract_deploy_sent", contract=name, tx_hash=tx_hash)
        return tx_hash

    def call(self, name: str, method: str, args: Sequence[Any] = ()) -> Any:
        """
        Read from the contract with eth_call and decode the result.

        Returns:
            The single output value, a tuple for several outputs, or None
            when the method has no outputs or the node returned no data

        Raises:
            MissingAddressError: If the contract has no bound address
            ContractExecutionError: If the returned data does not match the outputs
        """
        state = self._bound_state(name)
        function = state.abi.function(method)
        data = self._client.eth_call(
            {"to": state.address, "data": _encode_call(function, args)},
            self._block,
        )

        if data is None or strip_0x(data) == "":
            return None
        if not function.outputs:
            return None
        try:
            values = decode_tuple(types_signature(function.output_types), data)
        except AbiDecodingError as exc:
            log.warning("contract_call_undecodable", contract=name, method=function.signature, error=str(exc))
            raise ContractExecutionError(name, function.signature, data) from exc

        if len(values) == 1:
            return values[0]
        return tuple(values)

    def send(self, name: str, method: str, args: Sequence[Any], options: Mapping[str, Any]) -> str:
        """
        Call a state-changing method with eth_sendTransaction.

        Raises:
            MissingAddressError, MissingSenderError, MissingGasError: On missing inputs
        """
        state = self._bound_state(name)
        if options.get("from") is None:
            raise MissingSenderError(name)
        if options.get("gas") is None:
            raise MissingGasError(name)

        function = state.abi.function(method)
        tx = {key: value for key, value in options.items() if value is not None}
        tx.update(encode_options(options, QUANTITY_OPTIONS))
        tx["to"] = state.address
        tx["data"] = _encode_call(function, args)

        tx_hash = self._client.eth_send_transaction(tx)
        log.info("contract_tx_sent", contract=name, method=function.signature, tx_hash=tx_hash)
        return tx_hash

    def tx_receipt(self, name: str, tx_hash: str) -> tuple[Optional[dict], list[Optional[dict]]]:
        """
        Fetch a receipt and decode the logs emitted by ``name``'s events.

        Returns:
            (receipt, decoded_logs); logs from unknown events decode to None
        """
        abi = self.contract(name).abi
        receipt = self._client.eth_get_transaction_receipt(tx_hash)
        if receipt is None:
            return None, []

        decoded: list[Optional[dict]] = []
        for raw_log in receipt.get("logs") or []:
            topics = raw_log.get("topics") or []
            metadata = abi.event_by_topic(topics[0]) if topics else None
            decoded.append(format_log(raw_log, metadata, self._field_hooks) if metadata else None)
        return receipt, decoded

    def wait_for_receipt(self, tx_hash: str, timeout: float = 120, poll_interval: float = 2.0) -> dict:
        return self._client.wait_for_receipt(tx_hash, timeout=timeout, poll_interval=poll_interval)

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def filter(self, name: str, event: str, criteria: Optional[Mapping[str, Any]] = None) -> str:
        """
        Install an event filter on the node and remember how to decode its logs.

        Args:
            name: Registered contract name
            event: Event name or full signature
            criteria: "topics" (mapping or positional), "fromBlock", "toBlock" and
                any other eth_newFilter fields

        Returns:
            The node-assigned filter id
        """
        state = self.contract(name)
        metadata = self._event_metadata(state, event)
        params = build_filter_params(state.address, metadata, criteria)

        filter_id = self._client.eth_new_filter(params)
        with self._lock:
            record = self._filters.add(filter_id, name, metadata.signature)
        log.info("filter_installed", contract=name, event=metadata.signature, filter_id=record.filter_id)
        return filter_id

    install_filter = filter

    def uninstall_filter(self, filter_id: str) -> bool:
        removed = self._client.eth_uninstall_filter(filter_id)
        with self._lock:
            self._filters.remove(filter_id)
        log.info("filter_uninstalled", filter_id=filter_id, removed=removed)
        return removed

    def get_filter_logs(self, filter_id: str) -> list[dict]:
        """All logs matching the filter, decoded."""
        metadata = self._filter_metadata(filter_id)
        logs = self._client.eth_get_filter_logs(filter_id)
        log.debug("filter_logs_fetched", filter_id=filter_id, count=len(logs))
        return [format_log(raw_log, metadata, self._field_hooks) for raw_log in logs]

    def get_filter_changes(self, filter_id: str) -> list[dict]:
        """Logs added since the last poll, decoded."""
        metadata = self._filter_metadata(filter_id)
        logs = self._client.eth_get_filter_changes(filter_id)
        log.debug("filter_changes_fetched", filter_id=filter_id, count=len(logs))
        return [format_log(raw_log, metadata, self._field_hooks) for raw_log in logs]

    def filters(self) -> list:
        with self._lock:
            return list(self._filters)

    def _filter_metadata(self, filter_id: str) -> EventMetadata:
        with self._lock:
            record = self._filters.get(filter_id)
            return self._event_metadata(self._state(record.contract_name), record.event_name)

    @staticmethod
    def _event_metadata(state: ContractState, event: str) -> EventMetadata:
        try:
            return state.abi.event_metadata(event)
        except UnknownEntryError as exc:
            raise UnknownEventError(f"{state.name}: {exc}") from exc


def _encode_call(function: FunctionEntry, args: Sequence[Any]) -> str:
    """selector || encoded arguments, as 0x-hex calldata."""
    encoded = encode_tuple(types_signature(function.input_types), list(args))
    return "0x" + function.selector.hex() + encoded.hex()


__all__ = ["ContractManager", "ContractState", "QUANTITY_OPTIONS"]
