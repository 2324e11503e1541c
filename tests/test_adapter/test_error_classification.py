"""
Error classification tests.
"""

import pytest
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from inventory_session.adapters.evm.errors import classify_error, query_error
from inventory_session.engine.exceptions import (
    AuthorizationDenied,
    CommandRejected,
    ContractUnreachable,
    ErrorKind,
    ProviderRpcError,
    QueryFailed,
    ValidationError,
)


class TestClassifyError:

    def test_user_rejection(self):
        error = classify_error(ProviderRpcError(4001, "MetaMask Tx Signature: User denied transaction signature."))
        assert isinstance(error, CommandRejected)
        assert error.message == "Transaction failed: User rejected the request"

    @pytest.mark.parametrize("reason", [
        "execution reverted: Not authorized manager",
        "execution reverted: Ownable: caller is not the owner",
        "execution reverted: Only owner can call",
    ])
    def test_authorization_reverts(self, reason):
        error = classify_error(ContractLogicError(reason))
        assert isinstance(error, AuthorizationDenied)
        assert error.message == "Access denied: Manager authorization required"

    def test_other_revert(self):
        error = classify_error(ContractLogicError("execution reverted: Invalid item"))
        assert isinstance(error, CommandRejected)
        assert error.reason == "execution reverted: Invalid item"

    def test_bad_output_is_unreachable(self):
        error = classify_error(BadFunctionCallOutput("Could not transact with/call contract function"))
        assert isinstance(error, ContractUnreachable)
        assert error.kind == ErrorKind.CONTRACT_UNREACHABLE

    def test_flattened_provider_message(self):
        error = classify_error(ValueError("missing revert data in call exception"))
        assert isinstance(error, ContractUnreachable)

    def test_flattened_authorization_message(self):
        error = classify_error(RuntimeError("Error: unauthorized"))
        assert isinstance(error, AuthorizationDenied)

    def test_taxonomy_errors_pass_through(self):
        original = ValidationError("Please fill all fields")
        assert classify_error(original) is original

    def test_provider_error_is_rejected_command(self):
        error = classify_error(ProviderRpcError(-32000, "insufficient funds for gas * price + value"))
        assert isinstance(error, CommandRejected)
        assert "insufficient funds" in error.message


class TestQueryError:

    def test_wraps_with_function_name(self):
        error = query_error("getItemInfo", ContractLogicError("execution reverted: Item does not exist"))
        assert isinstance(error, QueryFailed)
        assert error.reason == "getItemInfo: execution reverted: Item does not exist"
        assert error.cause_kind == ErrorKind.COMMAND_REJECTED

    def test_unreachable_cause(self):
        error = query_error("getContractStats", BadFunctionCallOutput("Could not decode contract function call"))
        assert error.cause_kind == ErrorKind.CONTRACT_UNREACHABLE
        assert error.reason.startswith("getContractStats: ")

    def test_query_failed_passes_through(self):
        original = QueryFailed(reason="getOrderInfo: boom")
        assert query_error("getOrderInfo", original) is original
