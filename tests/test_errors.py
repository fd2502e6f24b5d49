"""Tests for RPC error classification."""

from __future__ import annotations

import pytest

from chainsig import RpcError, is_account_does_not_exist_error


@pytest.mark.parametrize(
    "error",
    [
        {"type": "AccountDoesNotExist"},
        {"message": "Account doesn't exist"},
        {"message": "Account does not exist"},
        {"message": "Account doesn’t exist"},
        {"message": "Account doesn‘t exist"},
        {"message": "Account doesnʼt exist"},
        {"message": "Account doesn`t exist"},
        {"message": "ACCOUNT DOESNT EXIST"},
        {"message": "Server error: AccountDoesNotExist"},
        RpcError("RPC error", type="AccountDoesNotExist"),
        RpcError("account derived.alice.testnet does not exist while viewing"),
        Exception("Account does not exist"),
    ],
)
def test_classifies_missing_account(error):
    assert is_account_does_not_exist_error(error)


@pytest.mark.parametrize(
    "error",
    [
        Exception("Network error"),
        {"type": "TimeoutError", "message": "Request timed out"},
        RpcError("Server error", type="INTERNAL_ERROR"),
        {},
    ],
)
def test_other_errors_are_not_missing_account(error):
    assert not is_account_does_not_exist_error(error)
