from __future__ import annotations

from typing import Optional


class ContractError(RuntimeError):
    pass


class UnknownContractError(ContractError):
    pass


class UnknownEventError(ContractError):
    pass


class UnknownFilterError(ContractError):
    pass


class ConstructorArgumentError(ContractError):
    pass


class FilterCriteriaError(ContractError):
    pass


class ContractExecutionError(ContractError):
    """The node answered an eth_call with data that does not match the method's outputs."""

    def __init__(self, contract: str, method: str, data: Optional[str]) -> None:
        super().__init__(f"{contract}.{method} returned undecodable data: {data!r}")
        self.contract = contract
        self.method = method
        self.data = data


class PreconditionError(ContractError):
    """A required input (address, sender, gas, bytecode) is missing."""

    reason: str = "precondition_failed"

    def __init__(self, contract: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{contract}: {self.reason}")
        self.contract = contract


class MissingAddressError(PreconditionError):
    reason = "missing_address"


class MissingSenderError(PreconditionError):
    reason = "missing_sender"


class MissingGasError(PreconditionError):
    reason = "missing_gas"


class MissingBytecodeError(PreconditionError):
    reason = "missing_bytecode"
