"""
Contract Error Classification

Maps web3.py, eth-abi and EIP-1193 failures onto the project error taxonomy.
Classification is driven by exception type first:

    ContractLogicError        -> revert (AuthorizationDenied or CommandRejected)
    BadFunctionCallOutput     -> empty/undecodable return data (ContractUnreachable)
    ProviderRpcError 4001     -> user rejected in wallet (CommandRejected)

Message matching is only a compatibility shim for providers that flatten
everything into a generic error string.
"""

from typing import Optional, Tuple

from loguru import logger
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

from ...engine.exceptions import (
    AuthorizationDenied,
    CommandRejected,
    ContractUnreachable,
    InventoryError,
    ProviderRpcError,
    QueryFailed,
)

AUTHORIZATION_MARKERS: Tuple[str, ...] = (
    "not authorized",
    "unauthorized",
    "caller is not",
    "only owner",
    "access denied",
)

UNREACHABLE_MARKERS: Tuple[str, ...] = (
    "missing revert data",
    "could not transact",
    "is contract deployed",
    "could not decode",
    "returned an empty result",
)


def _reason_of(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__


def _rpc_error_code(exc: BaseException) -> Optional[int]:
    """Numeric JSON-RPC error code carried by web3 RPC errors, if any."""
    response = getattr(exc, "rpc_response", None)
    if isinstance(response, dict) and isinstance(response.get("error"), dict):
        code = response["error"].get("code")
        return code if isinstance(code, int) else None
    return None


def _contains(text: str, markers: Tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def classify_error(exc: BaseException) -> InventoryError:
    """
    Convert any contract-call failure into a taxonomy error.

    Args:
        exc: Exception raised while building, sending or confirming a call

    Returns:
        InventoryError: ``AuthorizationDenied``, ``ContractUnreachable`` or
        ``CommandRejected``. Taxonomy errors pass through unchanged.
    """
    if isinstance(exc, InventoryError) and not isinstance(exc, ProviderRpcError):
        return exc

    reason = _reason_of(exc)

    if isinstance(exc, ProviderRpcError):
        if exc.user_rejected:
            return CommandRejected(reason="User rejected the request")
        if _contains(reason, AUTHORIZATION_MARKERS):
            return AuthorizationDenied(reason=reason)
        return CommandRejected(reason=reason)

    if _rpc_error_code(exc) == ProviderRpcError.USER_REJECTED:
        return CommandRejected(reason="User rejected the request")

    if isinstance(exc, BadFunctionCallOutput):
        return ContractUnreachable(reason=reason)

    if isinstance(exc, ContractLogicError):
        if _contains(reason, AUTHORIZATION_MARKERS):
            return AuthorizationDenied(reason=reason)
        return CommandRejected(reason=reason)

    # Compatibility shim: providers that surface reverts as plain errors.
    if _contains(reason, AUTHORIZATION_MARKERS):
        return AuthorizationDenied(reason=reason)
    if _contains(reason, UNREACHABLE_MARKERS):
        return ContractUnreachable(reason=reason)

    if not isinstance(exc, (Web3Exception, ValueError, TypeError)):
        logger.debug(f"Unclassified contract error {type(exc).__name__}: {reason}")
    return CommandRejected(reason=reason)


def query_error(function_name: str, exc: BaseException) -> QueryFailed:
    """Wrap a failed read in ``QueryFailed`` while keeping the classified cause."""
    if isinstance(exc, QueryFailed):
        return exc
    classified = classify_error(exc)
    reason: Optional[str] = getattr(classified, "reason", None) or classified.message
    return QueryFailed(reason=f"{function_name}: {reason}", cause_kind=classified.kind)
