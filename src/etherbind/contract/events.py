"""
Event log decoding.

Indexed fields come from the log's topics (topic 0 is the event signature
and is skipped, unless the event is anonymous); non-indexed fields come from
its data blob. Both are zipped with the names captured in
:class:`EventMetadata` at registration.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from ..abi.codec import AbiDecodingError, decode_address, decode_tuple, parse_type, types_signature
from ..abi.registry import EventMetadata
from ..utils import keys_to_decimal

FieldHook = Callable[[Any], Any]

LOG_QUANTITY_KEYS = ("blockNumber", "logIndex", "transactionIndex", "transactionLogIndex")


def bytes_to_address(value: Any) -> str:
    """Field hook: render a raw 20- or 32-byte value as a 0x address."""
    return decode_address(value)


def _decode_topic(abi_type: str, topic: Any) -> Any:
    # Indexed strings, bytes, arrays and structs are stored as their hash
    if parse_type(abi_type).is_dynamic:
        return topic.lower() if isinstance(topic, str) else "0x" + bytes(topic).hex()
    if isinstance(topic, str):
        topic = topic.lower()
    return decode_tuple(types_signature([abi_type]), topic)[0]


def decode_log(
    raw_log: Mapping[str, Any],
    metadata: EventMetadata,
    field_hooks: Optional[Mapping[str, FieldHook]] = None,
) -> dict[str, Any]:
    """
    Decode a raw log into a field name -> value map.

    Args:
        raw_log: Log as returned by the node ("topics", "data", ...)
        metadata: The event the log belongs to
        field_hooks: Optional post-processing applied to named non-indexed fields

    Raises:
        AbiDecodingError: If the topics or data do not match the event
    """
    data = raw_log.get("data") or "0x"
    values = decode_tuple(metadata.data_signature, data) if metadata.data_types else []
    non_indexed = dict(zip(metadata.non_indexed_names, values))

    for name, hook in (field_hooks or {}).items():
        if name in non_indexed:
            non_indexed[name] = hook(non_indexed[name])

    topics = list(raw_log.get("topics") or [])
    if not metadata.anonymous:
        topics = topics[1:]
    if len(topics) < len(metadata.topic_types):
        raise AbiDecodingError(
            f"{metadata.signature} has {len(metadata.topic_types)} indexed fields "
            f"but the log carries {len(topics)} topics"
        )
    indexed = {
        name: _decode_topic(abi_type, topic)
        for name, abi_type, topic in zip(metadata.topic_names, metadata.topic_types, topics)
    }

    return {**indexed, **non_indexed}


def format_log(
    raw_log: Mapping[str, Any],
    metadata: EventMetadata,
    field_hooks: Optional[Mapping[str, FieldHook]] = None,
) -> dict[str, Any]:
    """Copy of ``raw_log`` with decoded fields under "data" and numeric metadata as ints."""
    formatted = dict(raw_log)
    formatted.update(keys_to_decimal(raw_log, LOG_QUANTITY_KEYS))
    formatted["event"] = metadata.name
    formatted["data"] = decode_log(raw_log, metadata, field_hooks)
    return formatted
