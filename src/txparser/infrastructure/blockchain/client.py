"""JSON-RPC blockchain client with multi-RPC failover support."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from aiohttp import ClientSession, ClientTimeout
from web3 import AsyncHTTPProvider
from web3.types import RPCEndpoint

from txparser.core.config import get_settings

logger = logging.getLogger(__name__)


class ChainClientError(Exception):
    """Raised when the node cannot answer a JSON-RPC request.

    Covers transport failures, timeouts, non-2xx responses, error envelopes
    and envelopes without a result. Always retryable.
    """


class ChainClient(ABC):
    """Abstract base class for blockchain clients."""

    @abstractmethod
    async def block_number(self) -> str:
        """Get the chain tip height as a hex string."""
        ...

    @abstractmethod
    async def get_block_by_number(self, height: int) -> dict[str, Any]:
        """Get a block object, with full transaction objects, by height."""
        ...

    async def close(self) -> None:
        """Release network resources."""


class JSONRPCClient(ChainClient):
    """Ethereum JSON-RPC client with multi-RPC failover."""

    def __init__(
        self,
        rpc_urls: list[str] | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ):
        """Initialize JSON-RPC client.

        Args:
            rpc_urls: List of RPC endpoints (primary + backups).
                     If None, uses the configured endpoints.
            timeout: Per-request timeout in seconds
            max_retries: Maximum attempts per RPC before failing over
            retry_delay: Base delay between retries in seconds
        """
        if not rpc_urls or None in (timeout, max_retries, retry_delay):
            settings = get_settings()
            rpc_urls = rpc_urls or settings.active_rpc_urls
            timeout = timeout if timeout is not None else settings.rpc_timeout
            if max_retries is None:
                max_retries = settings.rpc_max_retries
            if retry_delay is None:
                retry_delay = settings.rpc_retry_delay

        self.rpc_urls = rpc_urls
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._current_rpc_index = 0
        self._providers: dict[int, AsyncHTTPProvider] = {}
        self._session: ClientSession | None = None

    @property
    def current_rpc_url(self) -> str:
        """Endpoint that served the last successful request."""
        return self.rpc_urls[self._current_rpc_index]

    async def _get_provider(self, rpc_index: int) -> AsyncHTTPProvider:
        """Get or create the provider for an RPC, sharing one HTTP session."""
        provider = self._providers.get(rpc_index)
        if provider is not None:
            return provider

        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=self.timeout))

        provider = AsyncHTTPProvider(
            self.rpc_urls[rpc_index],
            request_kwargs={"timeout": ClientTimeout(total=self.timeout)},
        )
        await provider.cache_async_session(self._session)
        self._providers[rpc_index] = provider
        return provider

    @staticmethod
    def _unwrap(method: str, response: Any) -> Any:
        """Extract the result from a JSON-RPC envelope.

        Raises:
            ChainClientError: If the envelope carries an error or no result
        """
        if not isinstance(response, dict):
            raise ChainClientError(f"{method}: malformed response envelope")

        error = response.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ChainClientError(f"{method}: rpc error: {message}")

        if "result" not in response:
            raise ChainClientError(f"{method}: response has no result")

        return response["result"]

    async def _execute_with_failover(self, method: str, params: list[Any]) -> Any:
        """Execute a JSON-RPC call with automatic RPC failover.

        Args:
            method: JSON-RPC method name
            params: Positional parameters

        Returns:
            The ``result`` member of the response envelope

        Raises:
            ChainClientError: If all RPCs fail
        """
        last_error: Exception | None = None

        for rpc_offset in range(len(self.rpc_urls)):
            rpc_index = (self._current_rpc_index + rpc_offset) % len(self.rpc_urls)

            for attempt in range(self.max_retries):
                try:
                    provider = await self._get_provider(rpc_index)
                    response = await provider.make_request(RPCEndpoint(method), params)
                    result = self._unwrap(method, response)

                    # Success - remember the healthy RPC
                    self._current_rpc_index = rpc_index
                    return result

                except asyncio.CancelledError:
                    raise

                except Exception as e:
                    last_error = e
                    logger.warning(
                        f"RPC {self.rpc_urls[rpc_index]} {method} failed "
                        f"(attempt {attempt + 1}): {e}"
                    )
                    if attempt < self.max_retries - 1:
                        await asyncio.sleep(self.retry_delay * (attempt + 1))

            if len(self.rpc_urls) > 1:
                logger.warning(
                    f"Switching from RPC {self.rpc_urls[rpc_index]} to next backup"
                )

        raise ChainClientError(f"All RPCs failed. Last error: {last_error}")

    async def block_number(self) -> str:
        """Get the chain tip height as a hex string."""
        result = await self._execute_with_failover("eth_blockNumber", [])
        if not isinstance(result, str):
            raise ChainClientError(f"eth_blockNumber: unexpected result {result!r}")
        return result

    async def get_block_by_number(self, height: int) -> dict[str, Any]:
        """Get a block object, with full transaction objects, by height."""
        result = await self._execute_with_failover(
            "eth_getBlockByNumber", [hex(height), True]
        )
        if result is None:
            raise ChainClientError(f"block {height} not found")
        if not isinstance(result, dict):
            raise ChainClientError(
                f"eth_getBlockByNumber: unexpected result {type(result).__name__}"
            )
        return result

    async def close(self) -> None:
        """Close the shared HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._providers.clear()
