"""
ABI Registry - Parse a raw ABI description into indexed, typed entries.

Entry kinds are decided once here; everything downstream works with the
dataclasses below rather than re-reading the "type" strings.

Functions and events are keyed by full signature so overloads can live side
by side. Looking one up by bare name works as long as the name is unique.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import structlog

from .codec import (
    AbiDecodingError,
    AbiError,
    decode_tuple,
    parse_type,
    selector,
    topic_hash,
    types_signature,
)
from ..utils import strip_0x

log = structlog.get_logger(__name__)


class AbiConfigurationError(AbiError):
    pass


class AmbiguousNameError(AbiError):
    pass


class UnknownEntryError(AbiError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class EntryKind(enum.Enum):
    FUNCTION = "function"
    CONSTRUCTOR = "constructor"
    FALLBACK = "fallback"
    RECEIVE = "receive"
    EVENT = "event"
    ERROR = "error"


@dataclass(frozen=True)
class AbiParam:
    name: str
    type: str
    indexed: bool = False


@dataclass(frozen=True)
class FunctionEntry:
    name: str
    inputs: tuple[AbiParam, ...]
    outputs: tuple[AbiParam, ...]
    state_mutability: str = "nonpayable"
    kind: EntryKind = field(default=EntryKind.FUNCTION, init=False)

    @property
    def input_types(self) -> list[str]:
        return [p.type for p in self.inputs]

    @property
    def output_types(self) -> list[str]:
        return [p.type for p in self.outputs]

    @property
    def signature(self) -> str:
        return self.name + types_signature(self.input_types)

    @property
    def selector(self) -> bytes:
        return selector(self.name, self.input_types)


@dataclass(frozen=True)
class ConstructorEntry:
    inputs: tuple[AbiParam, ...]
    state_mutability: str = "nonpayable"
    kind: EntryKind = field(default=EntryKind.CONSTRUCTOR, init=False)

    @property
    def input_types(self) -> list[str]:
        return [p.type for p in self.inputs]


@dataclass(frozen=True)
class FallbackEntry:
    kind: EntryKind
    state_mutability: str = "nonpayable"


@dataclass(frozen=True)
class EventEntry:
    name: str
    inputs: tuple[AbiParam, ...]
    anonymous: bool = False
    kind: EntryKind = field(default=EntryKind.EVENT, init=False)

    @property
    def signature(self) -> str:
        return self.name + types_signature(p.type for p in self.inputs)


AbiEntry = Union[FunctionEntry, ConstructorEntry, FallbackEntry, EventEntry]


@dataclass(frozen=True)
class EventMetadata:
    """
    Everything needed to build filter topics for an event and decode its logs.

    Attributes:
        name: Event name
        signature: Full signature text, e.g. "Transfer(address,address,uint256)"
        topic: 0x-prefixed topic-0 hash of the signature
        data_types: Types of the non-indexed fields, in declaration order
        non_indexed_names: Names of the non-indexed fields
        topic_types: Types of the indexed fields, in declaration order
        topic_names: Names of the indexed fields
        anonymous: The event emits no signature topic; every topic is an indexed field
    """
    name: str
    signature: str
    topic: str
    data_types: tuple[str, ...]
    non_indexed_names: tuple[str, ...]
    topic_types: tuple[str, ...]
    topic_names: tuple[str, ...]
    anonymous: bool = False

    @property
    def data_signature(self) -> str:
        return types_signature(self.data_types)

    @classmethod
    def from_entry(cls, entry: EventEntry) -> "EventMetadata":
        indexed = [p for p in entry.inputs if p.indexed]
        non_indexed = [p for p in entry.inputs if not p.indexed]
        return cls(
            name=entry.name,
            signature=entry.signature,
            topic="0x" + topic_hash(entry.signature).hex(),
            data_types=tuple(p.type for p in non_indexed),
            non_indexed_names=tuple(p.name for p in non_indexed),
            topic_types=tuple(p.type for p in indexed),
            topic_names=tuple(p.name for p in indexed),
            anonymous=entry.anonymous,
        )


@dataclass
class Abi:
    """A parsed contract ABI."""

    functions: dict[str, FunctionEntry] = field(default_factory=dict)
    events: dict[str, EventEntry] = field(default_factory=dict)
    constructor: Optional[ConstructorEntry] = None
    fallback: Optional[FallbackEntry] = None
    receive: Optional[FallbackEntry] = None
    events_by_topic: dict[str, EventMetadata] = field(default_factory=dict)
    event_names: dict[str, str] = field(default_factory=dict)
    _function_names: dict[str, list[str]] = field(default_factory=dict, repr=False)
    _event_names: dict[str, list[str]] = field(default_factory=dict, repr=False)

    def function(self, name: str) -> FunctionEntry:
        """Look up a function by full signature or by bare name."""
        return self._lookup(self.functions, self._function_names, name, "function")

    def event(self, name: str) -> EventEntry:
        """Look up an event by full signature or by bare name."""
        return self._lookup(self.events, self._event_names, name, "event")

    def event_metadata(self, name: str) -> EventMetadata:
        return self.events_by_topic[self.event_names[self.event(name).signature]]

    def event_by_topic(self, topic: str) -> Optional[EventMetadata]:
        # Anonymous events have no topic 0 to be recognised by
        metadata = self.events_by_topic.get("0x" + strip_0x(topic).lower())
        if metadata is None or metadata.anonymous:
            return None
        return metadata

    def selectors(self) -> dict[str, str]:
        """Map each 0x-prefixed 4-byte selector to its function signature."""
        return {"0x" + entry.selector.hex(): sig for sig, entry in self.functions.items()}

    def decode_input(self, calldata: str | bytes) -> tuple[str, list[Any]]:
        """
        Decode transaction input data back into the function signature and its arguments.

        Raises:
            UnknownEntryError: If no function matches the 4-byte selector
            AbiDecodingError: If the arguments are not valid hex or do not fit the inputs
        """
        hexed = calldata.hex() if isinstance(calldata, (bytes, bytearray)) else strip_0x(calldata)
        hexed = hexed.lower()
        method_id = "0x" + hexed[:8]
        signature = self.selectors().get(method_id)
        if signature is None:
            raise UnknownEntryError(f"No function with selector {method_id} in the ABI")
        entry = self.functions[signature]
        try:
            arguments = bytes.fromhex(hexed[8:])
        except ValueError as exc:
            raise AbiDecodingError(f"Calldata for {signature} is not valid hex: {calldata!r}") from exc
        args = decode_tuple(types_signature(entry.input_types), arguments)
        return signature, args

    @staticmethod
    def _lookup(
        table: Mapping[str, Any],
        names: Mapping[str, list[str]],
        key: str,
        label: str,
    ) -> Any:
        if key in table:
            return table[key]
        candidates = names.get(key, [])
        if len(candidates) == 1:
            return table[candidates[0]]
        if candidates:
            raise AmbiguousNameError(
                f"{label} {key!r} is overloaded; use one of: {', '.join(candidates)}"
            )
        raise UnknownEntryError(f"{label} {key!r} not found in the ABI")


def canonical_type(param: Mapping[str, Any]) -> str:
    """Canonical type string for an ABI parameter, expanding tuple components."""
    type_str = str(param.get("type", ""))
    if type_str.startswith("tuple"):
        components = ",".join(canonical_type(c) for c in param.get("components", []))
        type_str = f"({components}){type_str[len('tuple'):]}"
    parse_type(type_str)
    return type_str


def _params(raw: Optional[Iterable[Mapping[str, Any]]]) -> tuple[AbiParam, ...]:
    return tuple(
        AbiParam(
            name=str(p.get("name") or ""),
            type=canonical_type(p),
            indexed=bool(p.get("indexed", False)),
        )
        for p in (raw or [])
    )


def _event_params(raw: Optional[Iterable[Mapping[str, Any]]], event_name: str) -> tuple[AbiParam, ...]:
    params = []
    seen: set[str] = set()
    for position, param in enumerate(_params(raw)):
        name = param.name or f"_{position}"
        if name in seen:
            raise AbiConfigurationError(f"Event {event_name} declares field {name!r} twice")
        seen.add(name)
        params.append(AbiParam(name=name, type=param.type, indexed=param.indexed))
    return tuple(params)


def parse_abi(entries: Optional[Sequence[Mapping[str, Any]]]) -> Abi:
    """
    Parse a raw ABI (list of JSON objects) into an :class:`Abi`.

    Raises:
        AbiConfigurationError: If the ABI is missing, malformed or has duplicate entries
        AbiTypeError: If a parameter type string is malformed
    """
    if not entries:
        raise AbiConfigurationError("ABI not provided")
    if not isinstance(entries, (list, tuple)):
        raise AbiConfigurationError("Contract ABI must be a list of JSON objects")

    abi = Abi()
    for raw in entries:
        if not isinstance(raw, Mapping):
            raise AbiConfigurationError(f"ABI entry must be an object, got {raw!r}")
        try:
            kind = EntryKind(raw.get("type", "function"))
        except ValueError as exc:
            raise AbiConfigurationError(f"Unknown ABI entry type {raw.get('type')!r}") from exc
        mutability = str(raw.get("stateMutability", "nonpayable"))

        if kind is EntryKind.FUNCTION:
            entry = FunctionEntry(
                name=_require_name(raw, kind),
                inputs=_params(raw.get("inputs")),
                outputs=_params(raw.get("outputs")),
                state_mutability=mutability,
            )
            _insert(abi.functions, abi._function_names, entry.signature, entry.name, entry)
        elif kind is EntryKind.EVENT:
            name = _require_name(raw, kind)
            event = EventEntry(
                name=name,
                inputs=_event_params(raw.get("inputs"), name),
                anonymous=bool(raw.get("anonymous", False)),
            )
            _insert(abi.events, abi._event_names, event.signature, event.name, event)
            metadata = EventMetadata.from_entry(event)
            abi.events_by_topic[metadata.topic] = metadata
            abi.event_names[event.signature] = metadata.topic
        elif kind is EntryKind.CONSTRUCTOR:
            if abi.constructor is not None:
                raise AbiConfigurationError("ABI declares more than one constructor")
            abi.constructor = ConstructorEntry(inputs=_params(raw.get("inputs")), state_mutability=mutability)
        elif kind is EntryKind.FALLBACK or kind is EntryKind.RECEIVE:
            slot = "fallback" if kind is EntryKind.FALLBACK else "receive"
            if getattr(abi, slot) is not None:
                raise AbiConfigurationError(f"ABI declares more than one {slot} entry")
            setattr(abi, slot, FallbackEntry(kind=kind, state_mutability=mutability))
        else:
            log.debug("abi_entry_skipped", type=kind.value, name=raw.get("name"))

    # Unique event names resolve to their topic as well
    for name, signatures in abi._event_names.items():
        if len(signatures) == 1:
            abi.event_names[name] = abi.event_names[signatures[0]]
    return abi


def _require_name(raw: Mapping[str, Any], kind: EntryKind) -> str:
    name = raw.get("name")
    if not name:
        raise AbiConfigurationError(f"ABI {kind.value} entry is missing a name")
    return str(name)


def _insert(table: dict, names: dict[str, list[str]], signature: str, name: str, entry: Any) -> None:
    if signature in table:
        raise AbiConfigurationError(f"ABI declares {signature} more than once")
    table[signature] = entry
    names.setdefault(name, []).append(signature)


__all__ = [
    "Abi",
    "AbiConfigurationError",
    "AbiEntry",
    "AbiParam",
    "AmbiguousNameError",
    "ConstructorEntry",
    "EntryKind",
    "EventEntry",
    "EventMetadata",
    "FallbackEntry",
    "FunctionEntry",
    "UnknownEntryError",
    "canonical_type",
    "parse_abi",
]
