"""
Exception and Error Definitions Module

Defines the error taxonomy for wallet connection, contract verification,
queries and transaction submission. Every exception carries a machine-readable
``ErrorKind`` and a user-facing message so the render surface can show a single
status line without inspecting exception types.

Exception Hierarchy:
    InventoryError (root)
    ├── NoProviderInstalled
    ├── ProviderRpcError
    ├── ChainSwitchRejected
    ├── ConfigurationError
    ├── ValidationError
    ├── SessionNotReady
    ├── CommandInFlight
    ├── VerificationError
    │   ├── ContractNotDeployed
    │   └── InterfaceMismatch
    ├── ContractInteractionError
    │   ├── AuthorizationDenied
    │   ├── ContractUnreachable
    │   ├── CommandRejected
    │   └── QueryFailed
    └── InvalidTransition
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """
    Machine-readable error classification.

    ``UNKNOWN_NETWORK`` is a warning kind: it is published as a status event
    and never raised.
    """
    NO_PROVIDER_INSTALLED = "no_provider_installed"
    PROVIDER_ERROR = "provider_error"
    CHAIN_SWITCH_REJECTED = "chain_switch_rejected"
    UNKNOWN_NETWORK = "unknown_network"
    CONTRACT_NOT_DEPLOYED = "contract_not_deployed"
    INTERFACE_MISMATCH = "interface_mismatch"
    AUTHORIZATION_DENIED = "authorization_denied"
    CONTRACT_UNREACHABLE = "contract_unreachable"
    COMMAND_REJECTED = "command_rejected"
    QUERY_FAILED = "query_failed"
    VALIDATION_ERROR = "validation_error"
    SESSION_NOT_READY = "session_not_ready"
    COMMAND_IN_FLIGHT = "command_in_flight"
    CONFIGURATION_ERROR = "configuration_error"
    INVALID_TRANSITION = "invalid_transition"


class InventoryError(Exception):
    """
    Root exception class for all project-specific exceptions.

    Attributes:
        kind: Machine-readable classification of the failure
        message: Human-readable description, safe to show to the user
    """
    kind: ErrorKind = ErrorKind.COMMAND_REJECTED
    default_message: str = "Operation failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "error": self.message}


class NoProviderInstalled(InventoryError):
    """Raised when no wallet provider has been injected."""
    kind = ErrorKind.NO_PROVIDER_INSTALLED
    default_message = "Please install MetaMask to continue"


class ProviderRpcError(InventoryError):
    """
    Raised for EIP-1193 provider errors.

    Standard codes:
        4001: User rejected the request
        4100: The requested account or method is not authorized
        4200: The provider does not support the method
        4900: The provider is disconnected from all chains
        4902: Unrecognized chain ID (wallet_switchEthereumChain)
        -32603: Internal error (malformed provider responses)

    Attributes:
        code: Numeric EIP-1193 / JSON-RPC error code
        data: Optional error payload (revert data for eth_call failures)
    """
    kind = ErrorKind.PROVIDER_ERROR
    default_message = "Wallet provider request failed"

    USER_REJECTED = 4001
    UNAUTHORIZED = 4100
    UNSUPPORTED_METHOD = 4200
    DISCONNECTED = 4900
    UNRECOGNIZED_CHAIN = 4902
    INTERNAL_ERROR = -32603

    def __init__(self, code: int, message: Optional[str] = None, data: Any = None) -> None:
        self.code = code
        self.data = data
        super().__init__(message)

    @property
    def user_rejected(self) -> bool:
        return self.code == self.USER_REJECTED


class ChainSwitchRejected(InventoryError):
    """Raised when the user declines a chain switch or the provider errors."""
    kind = ErrorKind.CHAIN_SWITCH_REJECTED
    default_message = "Failed to switch network. Please switch manually in your wallet."


class ConfigurationError(InventoryError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Unknown network key passed to a chain switch
    - Malformed contract address
    - No RPC endpoint available for a chain
    """
    kind = ErrorKind.CONFIGURATION_ERROR
    default_message = "Invalid configuration"


class ValidationError(InventoryError):
    """
    Raised when client-side input is malformed.

    Always raised before any network call is made.
    """
    kind = ErrorKind.VALIDATION_ERROR
    default_message = "Please fill all fields"


class SessionNotReady(InventoryError):
    """Raised when a business operation is attempted outside the Connected state."""
    kind = ErrorKind.SESSION_NOT_READY
    default_message = "Please connect your wallet first"


class CommandInFlight(InventoryError):
    """Raised when an identical command is already pending for the session."""
    kind = ErrorKind.COMMAND_IN_FLIGHT
    default_message = "An identical transaction is already pending"


class VerificationError(InventoryError):
    """
    Base exception for contract verification failures.

    A verification failure leaves the session in VerificationFailed.
    """
    kind = ErrorKind.INTERFACE_MISMATCH
    default_message = "Contract verification failed. Check address and network."


class ContractNotDeployed(VerificationError):
    """Raised when no bytecode exists at the configured contract address."""
    kind = ErrorKind.CONTRACT_NOT_DEPLOYED
    default_message = "No contract deployed at this address on the current network"


class InterfaceMismatch(VerificationError):
    """Raised when the deployed contract does not answer the statistics query."""
    kind = ErrorKind.INTERFACE_MISMATCH
    default_message = "Contract interface mismatch"


class ContractInteractionError(InventoryError):
    """
    Base exception for failed contract calls.

    Attributes:
        reason: Raw reason reported by the node or the decoder
    """

    def __init__(self, reason: Optional[str] = None, message: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(message or self._compose(reason))

    def _compose(self, reason: Optional[str]) -> str:
        return self.default_message if not reason else f"{self.default_message}: {reason}"


class AuthorizationDenied(ContractInteractionError):
    """Raised when the contract reverts because the caller lacks authorization."""
    kind = ErrorKind.AUTHORIZATION_DENIED
    default_message = "Access denied: Manager authorization required"

    def _compose(self, reason: Optional[str]) -> str:
        return self.default_message


class ContractUnreachable(ContractInteractionError):
    """
    Raised when a call could not reach contract code.

    Typically empty return data: the contract may not be deployed on the
    current network. Callers should re-run verification.
    """
    kind = ErrorKind.CONTRACT_UNREACHABLE
    default_message = "Contract call failed: Contract may not be deployed or network mismatch"

    def _compose(self, reason: Optional[str]) -> str:
        return self.default_message


class CommandRejected(ContractInteractionError):
    """Raised when a state-changing call reverts or the provider refuses it."""
    kind = ErrorKind.COMMAND_REJECTED
    default_message = "Transaction failed"


class QueryFailed(ContractInteractionError):
    """
    Raised when a read-only contract query fails.

    Attributes:
        cause_kind: Classification of the underlying failure, used by the
            verifier to tell a revert from an unreachable contract
    """
    kind = ErrorKind.QUERY_FAILED
    default_message = "Query failed"

    def __init__(
        self,
        reason: Optional[str] = None,
        message: Optional[str] = None,
        cause_kind: Optional[ErrorKind] = None,
    ) -> None:
        self.cause_kind = cause_kind
        super().__init__(reason, message)


class InvalidTransition(InventoryError):
    """
    Raised when the session state machine is asked for a transition that the
    current state does not allow.
    """
    kind = ErrorKind.INVALID_TRANSITION
    default_message = "Invalid session state transition"
