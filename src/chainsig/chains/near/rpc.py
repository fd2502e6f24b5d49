"""JSON-RPC client for NEAR nodes."""

import base64
import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ...types import ChainSigError, ErrorCode, RpcError
from .transactions import SignedTransaction

logger = logging.getLogger(__name__)

FinalExecutionOutcome = dict[str, Any]

# Node cause names -> error type tags used by callers
_CAUSE_TYPES = {
    "UNKNOWN_ACCOUNT": "AccountDoesNotExist",
    "UNKNOWN_ACCESS_KEY": "AccessKeyDoesNotExist",
}


def _type_from_message(message: str) -> str | None:
    lowered = message.lower()
    if "does not exist" not in lowered:
        return None
    if lowered.startswith("access key"):
        return "AccessKeyDoesNotExist"
    if lowered.startswith("account"):
        return "AccountDoesNotExist"
    return None


def _rpc_error(error: Any) -> RpcError:
    """Build an RpcError from a JSON-RPC ``error`` member."""
    if not isinstance(error, Mapping):
        message = str(error)
        return RpcError(message, type=_type_from_message(message), data=error)

    cause = error.get("cause")
    cause_name = cause.get("name") if isinstance(cause, Mapping) else None
    data = error.get("data")
    message = data if isinstance(data, str) and data else error.get("message", "RPC error")

    error_type = _CAUSE_TYPES.get(cause_name or "", cause_name or error.get("name"))
    return RpcError(message, type=error_type, data=error)


def get_transaction_last_result(outcome: Mapping[str, Any]) -> Any:
    """Decode the return value of the last receipt, or None if there is none."""
    status = outcome.get("status") if isinstance(outcome, Mapping) else None
    if not isinstance(status, Mapping) or "SuccessValue" not in status:
        return None

    raw = base64.b64decode(status["SuccessValue"] or "")
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


class JsonRpcProvider:
    """
    NEAR JSON-RPC provider with endpoint failover.

    Transport failures rotate to the next URL; errors reported by a node are
    raised immediately as ``RpcError``.

    Example:
        >>> provider = JsonRpcProvider(["https://rpc.testnet.near.org"])
        >>> account = await provider.view_account("example.testnet")
        >>> account["amount"]
        '1000000000000000000000000'
    """

    def __init__(
        self,
        urls: str | list[str],
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._urls = [urls] if isinstance(urls, str) else list(urls)
        if not self._urls:
            raise ChainSigError(ErrorCode.INVALID_CONFIG, "At least one RPC URL is required")
        self._timeout = timeout
        self._transport = transport
        self._current_rpc_index = 0

    @property
    def urls(self) -> list[str]:
        """Get configured RPC URLs."""
        return list(self._urls)

    async def query(self, path: str, data: str = "") -> dict[str, Any]:
        """Run a path-style state query (``account/<id>``, ``access_key/<id>/<key>``)."""
        result = await self._rpc_call("query", [path, data])
        if isinstance(result, Mapping) and result.get("error"):
            raise _rpc_error(result["error"])
        return result

    async def view_account(self, account_id: str) -> dict[str, Any]:
        """Get account state (``amount``, ``locked``, ``storage_usage`` ...)."""
        return await self.query(f"account/{account_id}")

    async def view_access_key(self, account_id: str, public_key: str) -> dict[str, Any]:
        """Get access key state (``nonce``, ``block_hash``, ``permission``)."""
        return await self.query(f"access_key/{account_id}/{public_key}")

    async def block(self, finality: str = "final") -> dict[str, Any]:
        """Get the latest block at the given finality."""
        return await self._rpc_call("block", {"finality": finality})

    async def call_function(
        self,
        contract_id: str,
        method_name: str,
        args: Mapping[str, Any] | None = None,
        finality: str = "optimistic",
    ) -> Any:
        """Call a view method and decode its JSON result."""
        args_base64 = base64.b64encode(json.dumps(args or {}).encode()).decode()
        result = await self._rpc_call(
            "query",
            {
                "request_type": "call_function",
                "finality": finality,
                "account_id": contract_id,
                "method_name": method_name,
                "args_base64": args_base64,
            },
        )
        if result.get("error"):
            raise _rpc_error(result["error"])
        return json.loads(bytes(result["result"]))

    async def send_transaction(self, signed_tx: SignedTransaction) -> FinalExecutionOutcome:
        """Submit a signed transaction and wait for its execution outcome."""
        encoded = base64.b64encode(signed_tx.encode()).decode()
        return await self._rpc_call("broadcast_tx_commit", [encoded])

    async def _rpc_call(self, method: str, params: Any) -> Any:
        """Make an RPC call with failover."""
        errors: list[str] = []

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for _ in range(len(self._urls)):
                rpc_url = self._urls[self._current_rpc_index]
                logger.debug("RPC %s -> %s", method, rpc_url)

                try:
                    response = await client.post(
                        rpc_url,
                        json={
                            "jsonrpc": "2.0",
                            "method": method,
                            "params": params,
                            "id": "dontcare",
                        },
                    )
                    data = response.json()
                except (httpx.HTTPError, ValueError) as e:
                    errors.append(f"{rpc_url}: {e}")
                else:
                    if not response.is_error and isinstance(data, Mapping):
                        if "error" in data:
                            raise _rpc_error(data["error"])
                        if "result" in data:
                            return data["result"]
                    errors.append(f"{rpc_url}: HTTP {response.status_code}")

                logger.warning("RPC %s failed on %s, trying next endpoint", method, rpc_url)
                self._current_rpc_index = (self._current_rpc_index + 1) % len(self._urls)

        raise ChainSigError(
            ErrorCode.NETWORK_ERROR, f"All RPC endpoints failed: {', '.join(errors)}"
        )
