"""
ABI Codec - Encode and decode Ethereum ABI values.

Thin layer over eth-abi for the 32-byte word format plus eth-hash for
Keccak-256. Values come back normalised: addresses as lowercase 0x-hex,
arrays as lists, structs as tuples.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from eth_abi import decode, encode, is_encodable_type
from eth_abi.exceptions import ABITypeError, DecodingError, EncodingError, ParseError
from eth_abi.grammar import ABIType, TupleType, parse
from eth_hash.auto import keccak

from ..utils import hex_to_bytes, strip_0x, to_hex


class AbiError(ValueError):
    pass


class AbiTypeError(AbiError):
    pass


class AbiEncodingError(AbiError):
    pass


class AbiDecodingError(AbiError):
    pass


def keccak256(data: bytes | str) -> bytes:
    """Keccak-256 digest. NOTE: not the same as hashlib.sha3_256."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return keccak(data)


def parse_type(type_str: str) -> ABIType:
    """Parse and validate a single ABI type string."""
    try:
        abi_type = parse(type_str)
        abi_type.validate()
    except (ParseError, ABITypeError) as exc:
        raise AbiTypeError(f"Malformed ABI type {type_str!r}: {exc}") from exc
    _check_known(abi_type, type_str)
    return abi_type


def _check_known(abi_type: ABIType, type_str: str) -> None:
    # The grammar accepts any identifier as a base type
    if isinstance(abi_type, TupleType):
        for component in abi_type.components:
            _check_known(component, type_str)
    elif not is_encodable_type(abi_type.to_type_str()):
        raise AbiTypeError(f"Unknown ABI type in {type_str!r}")


def split_signature(type_signature: str) -> list[str]:
    """
    Split a parenthesized type tuple into its component type strings.

    Examples:
        >>> split_signature("(uint256,address)")
        ['uint256', 'address']
        >>> split_signature("()")
        []
    """
    abi_type = parse_type(type_signature)
    if not isinstance(abi_type, TupleType) or abi_type.is_array:
        raise AbiTypeError(f"Expected a parenthesized type tuple, got {type_signature!r}")
    return [component.to_type_str() for component in abi_type.components]


def types_signature(types: Iterable[str]) -> str:
    return "(" + ",".join(types) + ")"


def selector(name: str, input_types: Sequence[str]) -> bytes:
    """First 4 bytes of keccak256("name(type1,type2,...)")."""
    for type_str in input_types:
        parse_type(type_str)
    return keccak256(f"{name}{types_signature(input_types)}")[:4]


def topic_hash(signature: str) -> bytes:
    """Event topic-0: keccak256 of the full event signature text."""
    return keccak256(signature)


def encode_tuple(type_signature: str, values: Sequence[Any]) -> bytes:
    """
    ABI-encode ``values`` against a type tuple such as "(uint256,string)".

    Static values land in the head; strings, bytes and dynamic arrays go to
    the tail and are referenced by an offset word.
    """
    types = split_signature(type_signature)
    values = list(values)
    if len(values) != len(types):
        raise AbiEncodingError(
            f"{type_signature} expects {len(types)} values, got {len(values)}"
        )
    if not types:
        return b""
    try:
        return encode(types, values)
    except (EncodingError, TypeError, ValueError) as exc:
        raise AbiEncodingError(f"Cannot encode {values!r} as {type_signature}: {exc}") from exc


def decode_tuple(type_signature: str, data: bytes | str) -> list[Any]:
    """
    Decode ABI data against a type tuple.

    A hex string decoded as "(address)" is read as a bare address word
    rather than a one-element tuple; topic decoding depends on it.
    """
    if type_signature == "(address)" and isinstance(data, str):
        return [decode_address(data)]

    types = split_signature(type_signature)
    try:
        raw = hex_to_bytes(data)
    except ValueError as exc:
        raise AbiDecodingError(f"Data is not valid hex: {data!r}") from exc
    if not types:
        return []
    try:
        decoded = decode(types, raw)
    except (DecodingError, TypeError, ValueError) as exc:
        raise AbiDecodingError(f"Cannot decode {len(raw)} bytes as {type_signature}: {exc}") from exc
    return [_normalise(parse(t), value) for t, value in zip(types, decoded)]


def _normalise(abi_type: ABIType, value: Any) -> Any:
    if abi_type.is_array:
        return [_normalise(abi_type.item_type, item) for item in value]
    if isinstance(abi_type, TupleType):
        return tuple(_normalise(c, item) for c, item in zip(abi_type.components, value))
    if abi_type.base == "address":
        return value.lower()
    return value


def decode_address(word: bytes | str) -> str:
    """
    Decode an address from either its 32-byte padded word or its native 20-byte form.

    Both forms of the same address produce the same lowercase 0x + 40 hex string.
    """
    if isinstance(word, (bytes, bytearray)):
        hexed = bytes(word).hex()
    else:
        hexed = strip_0x(word).lower()

    if len(hexed) == 64:
        padding, body = hexed[:24], hexed[24:]
        if padding.strip("0"):
            raise AbiDecodingError(f"Word has non-zero padding, not an address: 0x{hexed}")
    elif len(hexed) == 40:
        body = hexed
    else:
        raise AbiDecodingError(f"Cannot read an address from {len(hexed)} hex chars: {word!r}")

    try:
        int(body, 16)
    except ValueError as exc:
        raise AbiDecodingError(f"Address is not valid hex: {word!r}") from exc
    return "0x" + body


def encode_topic(abi_type: str, value: Any) -> str:
    """Encode one indexed event value into a 0x-hex 32-byte topic word."""
    parsed = parse_type(abi_type)
    if abi_type == "string":
        if not isinstance(value, str):
            raise AbiEncodingError(f"Expected text for an indexed string, got {value!r}")
        return "0x" + keccak256(value.encode("utf-8")).hex()
    if abi_type == "bytes":
        # Byte values are 0x-hex strings or raw bytes, never text
        try:
            raw = hex_to_bytes(value)
        except (TypeError, ValueError) as exc:
            raise AbiEncodingError(f"Expected 0x-hex or bytes for an indexed bytes, got {value!r}") from exc
        return "0x" + keccak256(raw).hex()
    if parsed.is_dynamic:
        raise AbiTypeError(f"Cannot build a filter topic for dynamic type {abi_type}")
    return "0x" + encode_tuple(types_signature([abi_type]), [value]).hex()


def encode_quantity(value: Optional[int]) -> Optional[str]:
    """
    Encode an integer as a JSON-RPC quantity.

    ``None`` stays ``None`` so callers can drop the key; it is never turned into 0.

    Examples:
        >>> encode_quantity(0)
        '0x0'
        >>> encode_quantity(1440002)
        '0x15f902'
    """
    if value is None:
        return None
    return to_hex(value)


def encode_options(options: Mapping[str, Any], keys: Iterable[str]) -> dict[str, str]:
    """Hex-encode each of ``keys`` present in ``options``; absent or None keys are omitted."""
    encoded: dict[str, str] = {}
    for key in keys:
        quantity = encode_quantity(options.get(key))
        if quantity is not None:
            encoded[key] = quantity
    return encoded


__all__ = [
    "AbiDecodingError",
    "AbiEncodingError",
    "AbiError",
    "AbiTypeError",
    "decode_address",
    "decode_tuple",
    "encode_options",
    "encode_quantity",
    "encode_topic",
    "encode_tuple",
    "keccak256",
    "parse_type",
    "selector",
    "split_signature",
    "topic_hash",
    "types_signature",
]
