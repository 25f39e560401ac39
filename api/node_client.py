"""
TrinityChain node REST client.
"""
import asyncio
import json
import logging
from typing import Dict, Any, Optional
import aiohttp
from config import (
    NODE_URL, NODE_SESSION_COOKIE, REQUEST_TIMEOUT, HISTORY_LIMIT,
    STATS_PATH, BLOCKS_PATH, NETWORK_INFO_PATH, PEERS_PATH, API_STATS_PATH
)

logger = logging.getLogger(__name__)

class NodeClientError(Exception):
    """Base class for failures talking to the node."""

class TransportError(NodeClientError):
    """The request could not complete (DNS, connection refused, timeout)."""

class ProtocolError(NodeClientError):
    """The node answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status

class ParseError(NodeClientError):
    """The response body was not the JSON structure expected."""

def _parse_cookie(cookie: str) -> Dict[str, str]:
    """Turn "name=value; other=value" into a cookie mapping."""
    cookies = {}
    for part in cookie.split(";"):
        if "=" in part:
            name, value = part.split("=", 1)
            if name.strip():
                cookies[name.strip()] = value.strip()
    return cookies

class NodeClient:
    """Asynchronous client for the node's REST API.

    One ClientSession is shared by every request so cookies set by a
    forwarding proxy are sent back on later requests.
    """

    def __init__(self, node_url: str = NODE_URL, timeout: float = REQUEST_TIMEOUT,
                 session_cookie: str = NODE_SESSION_COOKIE):
        self.node_url = node_url.rstrip("/")
        self.timeout = timeout
        self.session_cookie = session_cookie
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def set_node_url(self, node_url: str) -> None:
        self.node_url = node_url.rstrip("/")

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # unsafe=True keeps cookies for IP-address hosts such as 127.0.0.1
            self._session = aiohttp.ClientSession(
                cookie_jar=aiohttp.CookieJar(unsafe=True),
                cookies=_parse_cookie(self.session_cookie) if self.session_cookie else None,
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a node endpoint and decode its JSON body.

        Args:
            path: Endpoint path starting with '/'
            params: Query string parameters

        Returns:
            Decoded JSON body

        Raises:
            TransportError: Connection failure or timeout
            ProtocolError: Non-2xx response
            ParseError: Body is not valid JSON
        """
        url = f"{self.node_url}{path}"
        session = self._ensure_session()

        try:
            async with session.get(url, params=params) as response:
                body = await response.text()
                status = response.status
                reason = response.reason or ""
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request to {path} timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request to {path} failed: {e}") from e

        if not 200 <= status < 300:
            raise ProtocolError(status, self._error_message(status, reason, body))

        try:
            return json.loads(body)
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {path}: {e}") from e

    @staticmethod
    def _error_message(status: int, reason: str, body: str) -> str:
        """Prefer the node's own error text over the bare status line."""
        try:
            payload = json.loads(body)
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return f"HTTP {status}: {reason}".rstrip(": ")

    async def _request_object(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        result = await self.request(path, params)
        if not isinstance(result, dict):
            raise ParseError(f"Expected a JSON object from {path}, got {type(result).__name__}")
        return result

    async def get_blockchain_stats(self) -> Dict[str, Any]:
        """Get chain height, difficulty and mempool size."""
        return await self._request_object(STATS_PATH)

    async def get_blocks(self, limit: int = HISTORY_LIMIT) -> Dict[str, Any]:
        """Get the most recent blocks, newest first."""
        result = await self._request_object(BLOCKS_PATH, {"limit": limit})
        if not isinstance(result.get("blocks", []), list):
            raise ParseError(f"Expected 'blocks' to be a list from {BLOCKS_PATH}")
        return result

    async def get_network_info(self) -> Dict[str, Any]:
        return await self._request_object(NETWORK_INFO_PATH)

    async def get_network_peers(self) -> Dict[str, Any]:
        return await self._request_object(PEERS_PATH)

    async def get_api_stats(self) -> Dict[str, Any]:
        """Get API-level request counters and uptime."""
        return await self._request_object(API_STATS_PATH)
