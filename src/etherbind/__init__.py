__all__ = [
    # Session
    "ContractManager",
    "ContractState",
    # Contract errors
    "ContractError",
    "ContractExecutionError",
    "ConstructorArgumentError",
    "FilterCriteriaError",
    "MissingAddressError",
    "MissingBytecodeError",
    "MissingGasError",
    "MissingSenderError",
    "PreconditionError",
    "UnknownContractError",
    "UnknownEventError",
    "UnknownFilterError",
    # Filters and logs
    "FilterRecord",
    "FilterRegistry",
    "build_topics",
    "bytes_to_address",
    "decode_log",
    "format_log",
    # ABI
    "Abi",
    "AbiParam",
    "EntryKind",
    "EventMetadata",
    "parse_abi",
    "load_abi",
    "load_bytecode",
    "decode_address",
    "decode_tuple",
    "encode_quantity",
    "encode_tuple",
    "keccak256",
    "selector",
    "topic_hash",
    # ABI errors
    "AbiConfigurationError",
    "AbiDecodingError",
    "AbiEncodingError",
    "AbiError",
    "AbiTypeError",
    "AmbiguousNameError",
    "UnknownEntryError",
    # Transport
    "JsonRpcClient",
    "RPCError",
    "RPCTimeoutError",
    "TransportError",
    # Units
    "format_units",
    "parse_units",
    "to_wei",
    "wei_to_eth",
    # Config
    "Settings",
    "load_settings",
    "configure_logging",
]

from .abi.codec import (
    AbiDecodingError,
    AbiEncodingError,
    AbiError,
    AbiTypeError,
    decode_address,
    decode_tuple,
    encode_quantity,
    encode_tuple,
    keccak256,
    selector,
    topic_hash,
)
from .abi.loader import load_abi, load_bytecode
from .abi.registry import (
    Abi,
    AbiConfigurationError,
    AbiParam,
    AmbiguousNameError,
    EntryKind,
    EventMetadata,
    UnknownEntryError,
    parse_abi,
)
from .config import Settings, load_settings
from .conversion import format_units, parse_units, to_wei, wei_to_eth
from .contract.errors import (
    ConstructorArgumentError,
    ContractError,
    ContractExecutionError,
    FilterCriteriaError,
    MissingAddressError,
    MissingBytecodeError,
    MissingGasError,
    MissingSenderError,
    PreconditionError,
    UnknownContractError,
    UnknownEventError,
    UnknownFilterError,
)
from .contract.events import bytes_to_address, decode_log, format_log
from .contract.filters import FilterRecord, FilterRegistry, build_topics
from .contract.session import ContractManager, ContractState
from .logging import configure_logging
from .rpc import JsonRpcClient, RPCError, RPCTimeoutError, TransportError
