"""
Filter construction and the local filter registry.

The node assigns filter ids; locally we only remember which contract and
event each id decodes against.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Sequence

from ..abi.codec import AbiError, encode_quantity, encode_topic
from ..abi.registry import EventMetadata
from ..utils import strip_0x, to_hex
from .errors import FilterCriteriaError, UnknownFilterError

BLOCK_TAGS = frozenset({"latest", "earliest", "pending", "safe", "finalized"})


@dataclass(frozen=True)
class FilterRecord:
    filter_id: str
    contract_name: str
    event_name: str


def _encode_slot(abi_type: str, value: Any) -> Any:
    if value is None:
        return None
    try:
        if isinstance(value, (list, tuple)):
            return [encode_topic(abi_type, candidate) for candidate in value]
        return encode_topic(abi_type, value)
    except AbiError as exc:
        raise FilterCriteriaError(f"Cannot encode topic value {value!r} as {abi_type}: {exc}") from exc


def build_topics(metadata: EventMetadata, topics: Optional[Mapping[str, Any] | Sequence[Any]]) -> list[Any]:
    """
    Build the topics array for an event filter.

    Topic 0 is the event signature hash, absent for anonymous events.
    Remaining slots follow the indexed parameters in declaration order: a
    single value matches exactly, a list or tuple of values matches any of
    them, and None matches anything.

    Args:
        metadata: Event being filtered
        topics: Mapping of indexed field name -> value, or positional values

    Raises:
        FilterCriteriaError: On unknown field names, too many values, or unencodable values
    """
    result: list[Any] = [] if metadata.anonymous else [metadata.topic]
    if topics is None:
        return result

    if isinstance(topics, Mapping):
        unknown = set(topics) - set(metadata.topic_names)
        if unknown:
            raise FilterCriteriaError(
                f"{metadata.name} has no indexed fields named {', '.join(sorted(unknown))}"
            )
        values = [topics.get(name) for name in metadata.topic_names]
    else:
        values = list(topics)
        if len(values) > len(metadata.topic_types):
            raise FilterCriteriaError(
                f"{metadata.name} has {len(metadata.topic_types)} indexed fields, got {len(values)} topic values"
            )

    for abi_type, value in zip(metadata.topic_types, values):
        result.append(_encode_slot(abi_type, value))
    return result


def format_block(value: Any) -> str:
    """Render a block bound: ints and hex strings become canonical quantities, tags pass through."""
    if isinstance(value, str):
        if value in BLOCK_TAGS:
            return value
        if value.startswith("0x"):
            try:
                return to_hex(int(value, 16))
            except ValueError:
                pass
        raise FilterCriteriaError(f"Invalid block bound: {value!r}")
    try:
        return encode_quantity(value)
    except ValueError as exc:
        raise FilterCriteriaError(f"Invalid block bound: {value!r}") from exc


def build_filter_params(
    address: Optional[str],
    metadata: EventMetadata,
    criteria: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Assemble the eth_newFilter parameter object."""
    criteria = dict(criteria or {})
    params: dict[str, Any] = {}
    if address:
        params["address"] = address
    params["topics"] = build_topics(metadata, criteria.pop("topics", None))
    for key in ("fromBlock", "toBlock"):
        value = criteria.pop(key, None)
        if value is not None:
            params[key] = format_block(value)
    params.update(criteria)
    return params


def normalise_filter_id(filter_id: str) -> str:
    return "0x" + strip_0x(str(filter_id)).lower()


class FilterRegistry:
    """Filter id -> (contract, event). Not thread-safe; the owning manager locks around it."""

    def __init__(self) -> None:
        self._records: dict[str, FilterRecord] = {}

    def add(self, filter_id: str, contract_name: str, event_name: str) -> FilterRecord:
        record = FilterRecord(normalise_filter_id(filter_id), contract_name, event_name)
        self._records[record.filter_id] = record
        return record

    def get(self, filter_id: str) -> FilterRecord:
        try:
            return self._records[normalise_filter_id(filter_id)]
        except KeyError:
            raise UnknownFilterError(f"Unknown filter id: {filter_id}") from None

    def remove(self, filter_id: str) -> Optional[FilterRecord]:
        return self._records.pop(normalise_filter_id(filter_id), None)

    def __contains__(self, filter_id: object) -> bool:
        return isinstance(filter_id, str) and normalise_filter_id(filter_id) in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FilterRecord]:
        return iter(list(self._records.values()))
