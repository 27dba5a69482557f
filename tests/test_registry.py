"""Unit tests for ABI parsing and event metadata."""

from __future__ import annotations

import pytest

from etherbind.abi.codec import AbiDecodingError, AbiTypeError, encode_tuple
from etherbind.abi.registry import (
    AbiConfigurationError,
    AmbiguousNameError,
    ConstructorEntry,
    EntryKind,
    FunctionEntry,
    UnknownEntryError,
    canonical_type,
    parse_abi,
)

from conftest import HOLDER, TRANSFER_TOPIC


class TestParseAbi:
    """Entry kinds, keys and slots."""

    def test_functions_keyed_by_signature(self, erc20_abi: list) -> None:
        abi = parse_abi(erc20_abi)
        assert set(abi.functions) == {"balanceOf(address)", "transfer(address,uint256)", "metadata()"}
        assert abi.function("transfer") is abi.functions["transfer(address,uint256)"]

    def test_entry_kinds_decided_at_parse_time(self, erc20_abi: list) -> None:
        abi = parse_abi(erc20_abi)
        assert isinstance(abi.function("balanceOf"), FunctionEntry)
        assert abi.function("balanceOf").kind is EntryKind.FUNCTION
        assert isinstance(abi.constructor, ConstructorEntry)
        assert abi.constructor.input_types == ["uint256"]
        assert abi.event("Transfer").kind is EntryKind.EVENT

    def test_parameter_order_preserved(self, erc20_abi: list) -> None:
        function = parse_abi(erc20_abi).function("transfer")
        assert [p.name for p in function.inputs] == ["to", "amount"]
        assert function.signature == "transfer(address,uint256)"
        assert function.selector == bytes.fromhex("a9059cbb")

    def test_selector_independent_of_key_order(self) -> None:
        reordered = {
            "outputs": [],
            "inputs": [{"type": "address", "name": "to"}, {"type": "uint256", "name": "amount"}],
            "name": "transfer",
            "type": "function",
        }
        assert parse_abi([reordered]).function("transfer").selector == bytes.fromhex("a9059cbb")

    def test_type_defaults_to_function(self) -> None:
        abi = parse_abi([{"name": "totalSupply", "inputs": [], "outputs": [{"type": "uint256"}]}])
        assert abi.function("totalSupply").output_types == ["uint256"]

    def test_fallback_and_receive_slots(self) -> None:
        abi = parse_abi(
            [
                {"type": "fallback", "stateMutability": "payable"},
                {"type": "receive", "stateMutability": "payable"},
            ]
        )
        assert abi.fallback is not None and abi.fallback.kind is EntryKind.FALLBACK
        assert abi.receive is not None and abi.receive.kind is EntryKind.RECEIVE

    def test_error_entries_are_skipped(self) -> None:
        abi = parse_abi(
            [
                {"type": "error", "name": "Unauthorized", "inputs": []},
                {"type": "function", "name": "ping", "inputs": [], "outputs": []},
            ]
        )
        assert list(abi.functions) == ["ping()"]

    def test_tuple_components_expanded(self) -> None:
        param = {
            "type": "tuple[]",
            "components": [{"type": "uint256"}, {"type": "address"}],
        }
        assert canonical_type(param) == "(uint256,address)[]"


class TestParseAbiErrors:
    @pytest.mark.parametrize("missing", [None, []])
    def test_missing_abi(self, missing: object) -> None:
        with pytest.raises(AbiConfigurationError):
            parse_abi(missing)  # type: ignore[arg-type]

    def test_not_a_list(self) -> None:
        with pytest.raises(AbiConfigurationError):
            parse_abi({"abi": []})  # type: ignore[arg-type]

    def test_unknown_entry_type(self) -> None:
        with pytest.raises(AbiConfigurationError):
            parse_abi([{"type": "modifier", "name": "onlyOwner"}])

    def test_duplicate_signature(self) -> None:
        entry = {"type": "function", "name": "ping", "inputs": [], "outputs": []}
        with pytest.raises(AbiConfigurationError):
            parse_abi([entry, dict(entry)])

    def test_two_constructors(self) -> None:
        with pytest.raises(AbiConfigurationError):
            parse_abi([{"type": "constructor", "inputs": []}, {"type": "constructor", "inputs": []}])

    def test_malformed_parameter_type(self) -> None:
        with pytest.raises(AbiTypeError):
            parse_abi([{"type": "function", "name": "bad", "inputs": [{"type": "uint7"}]}])

    def test_function_without_name(self) -> None:
        with pytest.raises(AbiConfigurationError):
            parse_abi([{"type": "function", "inputs": []}])


class TestOverloads:
    ABI = [
        {
            "type": "function",
            "name": "safeTransferFrom",
            "inputs": [{"type": "address"}, {"type": "address"}, {"type": "uint256"}],
            "outputs": [],
        },
        {
            "type": "function",
            "name": "safeTransferFrom",
            "inputs": [{"type": "address"}, {"type": "address"}, {"type": "uint256"}, {"type": "bytes"}],
            "outputs": [],
        },
    ]

    def test_bare_name_is_ambiguous(self) -> None:
        abi = parse_abi(self.ABI)
        with pytest.raises(AmbiguousNameError):
            abi.function("safeTransferFrom")

    def test_full_signature_resolves(self) -> None:
        abi = parse_abi(self.ABI)
        entry = abi.function("safeTransferFrom(address,address,uint256,bytes)")
        assert len(entry.inputs) == 4

    def test_unknown_name(self) -> None:
        with pytest.raises(UnknownEntryError):
            parse_abi(self.ABI).function("approve")


class TestEventMetadata:
    def test_transfer_metadata(self, erc20_abi: list) -> None:
        metadata = parse_abi(erc20_abi).event_metadata("Transfer")
        assert metadata.topic == TRANSFER_TOPIC
        assert metadata.signature == "Transfer(address,address,uint256)"
        assert metadata.topic_names == ("from", "to")
        assert metadata.topic_types == ("address", "address")
        assert metadata.non_indexed_names == ("value",)
        assert metadata.data_signature == "(uint256)"

    def test_lookup_tables(self, erc20_abi: list) -> None:
        abi = parse_abi(erc20_abi)
        assert abi.event_names["Transfer(address,address,uint256)"] == TRANSFER_TOPIC
        assert abi.event_names["Transfer"] == TRANSFER_TOPIC
        assert abi.event_by_topic(TRANSFER_TOPIC.upper().replace("0X", "0x")).name == "Transfer"
        assert abi.event_by_topic("0x" + "00" * 32) is None

    def test_indexed_partition_keeps_declaration_order(self) -> None:
        abi = parse_abi(
            [
                {
                    "type": "event",
                    "name": "Mixed",
                    "inputs": [
                        {"name": "a", "type": "uint256", "indexed": False},
                        {"name": "b", "type": "address", "indexed": True},
                        {"name": "c", "type": "string", "indexed": False},
                        {"name": "d", "type": "bytes32", "indexed": True},
                    ],
                }
            ]
        )
        metadata = abi.event_metadata("Mixed")
        assert metadata.topic_names == ("b", "d")
        assert metadata.non_indexed_names == ("a", "c")
        assert metadata.data_types == ("uint256", "string")

    def test_unnamed_fields_get_positional_names(self) -> None:
        abi = parse_abi(
            [{"type": "event", "name": "Ping", "inputs": [{"type": "uint256"}, {"type": "address", "indexed": True}]}]
        )
        metadata = abi.event_metadata("Ping")
        assert metadata.non_indexed_names == ("_0",)
        assert metadata.topic_names == ("_1",)

    def test_duplicate_field_names_rejected(self) -> None:
        with pytest.raises(AbiConfigurationError):
            parse_abi(
                [
                    {
                        "type": "event",
                        "name": "Clash",
                        "inputs": [
                            {"name": "x", "type": "uint256", "indexed": True},
                            {"name": "x", "type": "uint256"},
                        ],
                    }
                ]
            )

    def test_metadata_is_immutable(self, erc20_abi: list) -> None:
        metadata = parse_abi(erc20_abi).event_metadata("Transfer")
        with pytest.raises(AttributeError):
            metadata.topic = "0x00"  # type: ignore[misc]


class TestSelectorsAndInput:
    def test_selector_map(self, erc20_abi: list) -> None:
        selectors = parse_abi(erc20_abi).selectors()
        assert selectors["0xa9059cbb"] == "transfer(address,uint256)"
        assert selectors["0x70a08231"] == "balanceOf(address)"

    def test_decode_input(self, erc20_abi: list) -> None:
        calldata = "0xa9059cbb" + encode_tuple("(address,uint256)", [HOLDER, 10]).hex()
        assert parse_abi(erc20_abi).decode_input(calldata) == ("transfer(address,uint256)", [HOLDER, 10])

    def test_decode_input_unknown_selector(self, erc20_abi: list) -> None:
        with pytest.raises(UnknownEntryError):
            parse_abi(erc20_abi).decode_input("0xdeadbeef")

    @pytest.mark.parametrize("arguments", ["abc", "zz" * 32])
    def test_decode_input_malformed_arguments(self, erc20_abi: list, arguments: str) -> None:
        with pytest.raises(AbiDecodingError):
            parse_abi(erc20_abi).decode_input("0xa9059cbb" + arguments)


class TestAnonymousEventMetadata:
    ABI = [
        {
            "type": "event",
            "name": "Ping",
            "anonymous": True,
            "inputs": [{"name": "who", "type": "address", "indexed": True}],
        }
    ]

    def test_flag_carried(self) -> None:
        assert parse_abi(self.ABI).event_metadata("Ping").anonymous is True

    def test_not_recognised_by_topic(self) -> None:
        abi = parse_abi(self.ABI)
        assert abi.event_by_topic(abi.event_metadata("Ping").topic) is None
