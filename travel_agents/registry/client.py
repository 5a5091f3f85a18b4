"""
Agent registry client.

Resolves a capability name (``air_tickets``, ``hotels``, ``car_rental``) to
the endpoint of the booking agent that serves it. Registries are layered:
a static mapping from configuration, a remote directory spoken to over
JSON-RPC, and a caching wrapper that retries transient directory failures
so repeated lookups within a session do not hit the directory again.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from travel_agents.shared.clock import Clock, SystemClock
from travel_agents.shared.errors import AgentNotFoundError, RegistryUnavailableError


logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 600.0
DEFAULT_DIRECTORY_TIMEOUT_SECONDS = 10.0
FIND_AGENT_TOOL = "find_agent"


@dataclass(frozen=True)
class AgentEndpoint:
    """Where to send tasks for one capability."""

    capability: str
    name: str
    url: str


class AgentRegistry(Protocol):
    async def resolve(self, capability: str) -> AgentEndpoint:
        """
        Raises:
            AgentNotFoundError: If no agent serves the capability
            RegistryUnavailableError: If the backing directory is unreachable
        """
        ...


class StaticAgentRegistry:
    """Capability -> URL mapping taken from configuration."""

    def __init__(self, mapping: Dict[str, str]):
        self._mapping = dict(mapping)

    async def resolve(self, capability: str) -> AgentEndpoint:
        url = self._mapping.get(capability)
        if not url:
            raise AgentNotFoundError(capability)
        return AgentEndpoint(capability=capability, name=capability, url=url)


class DirectoryAgentRegistry:
    """
    Looks agents up in a remote directory.

    The directory exposes a ``find_agent`` tool over JSON-RPC 2.0
    (``tools/call``). Its reply carries the matching agent card as JSON
    text in ``result.content[0].text``, or ``null`` when nothing matches.
    """

    def __init__(
        self,
        directory_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = DEFAULT_DIRECTORY_TIMEOUT_SECONDS,
    ):
        self.directory_url = directory_url
        self.timeout_seconds = timeout_seconds
        self._http = http_client
        self._request_id = 0

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def _post(self, payload: dict) -> httpx.Response:
        if self._http is not None:
            return await self._http.post(
                self.directory_url, json=payload, timeout=self.timeout_seconds
            )
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(self.directory_url, json=payload)

    async def resolve(self, capability: str) -> AgentEndpoint:
        _log = f"[registry=directory] [capability={capability}] "
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": "tools/call",
            "params": {"name": FIND_AGENT_TOOL, "arguments": {"query": capability}},
        }

        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            logger.warning(f"{_log}Directory unreachable: {e}")
            raise RegistryUnavailableError(f"Agent directory unreachable: {e}") from e

        if response.status_code >= 500:
            raise RegistryUnavailableError(
                f"Agent directory returned HTTP {response.status_code}"
            )
        if response.status_code >= 400:
            raise AgentNotFoundError(capability)

        try:
            body = response.json()
        except ValueError as e:
            raise RegistryUnavailableError(f"Agent directory sent invalid JSON: {e}") from e

        if body.get("error"):
            message = body["error"].get("message", "unknown error")
            logger.warning(f"{_log}Directory error: {message}")
            raise RegistryUnavailableError(f"Agent directory error: {message}")

        card = self._parse_card(body.get("result") or {})
        if not card or not card.get("url"):
            logger.info(f"{_log}No agent found")
            raise AgentNotFoundError(capability)

        logger.info(f"{_log}Resolved to {card.get('name')} at {card['url']}")
        return AgentEndpoint(
            capability=capability,
            name=card.get("name") or capability,
            url=card["url"],
        )

    @staticmethod
    def _parse_card(result: dict) -> Optional[dict]:
        content = result.get("content") or []
        if not content:
            return None
        text = content[0].get("text")
        if not text:
            return None
        try:
            card = json.loads(text)
        except json.JSONDecodeError:
            return None
        return card if isinstance(card, dict) else None


class ChainedAgentRegistry:
    """Tries each registry in turn; the first one that knows the capability wins."""

    def __init__(self, *registries: AgentRegistry):
        self._registries = registries

    async def resolve(self, capability: str) -> AgentEndpoint:
        for registry in self._registries:
            try:
                return await registry.resolve(capability)
            except AgentNotFoundError:
                continue
        raise AgentNotFoundError(capability)


class CachingAgentRegistry:
    """
    TTL cache with bounded retries in front of another registry.

    Only successful resolutions are cached, so an agent that registers
    after a miss is picked up on the next lookup. ``lookups`` counts calls
    that reached the inner registry.
    """

    def __init__(
        self,
        inner: AgentRegistry,
        clock: Optional[Clock] = None,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        max_attempts: int = 3,
        retry_min_wait: float = 0.5,
        retry_max_wait: float = 4.0,
    ):
        self.inner = inner
        self.clock = clock or SystemClock()
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait
        self.lookups = 0
        self._cache: Dict[str, Tuple[AgentEndpoint, float]] = {}
        self._lock = threading.Lock()

    def _cached(self, capability: str) -> Optional[AgentEndpoint]:
        with self._lock:
            entry = self._cache.get(capability)
            if entry is None:
                return None
            endpoint, expires_at = entry
            if self.clock.now() >= expires_at:
                del self._cache[capability]
                return None
            return endpoint

    async def _lookup(self, capability: str) -> AgentEndpoint:
        self.lookups += 1
        return await self.inner.resolve(capability)

    async def resolve(self, capability: str) -> AgentEndpoint:
        endpoint = self._cached(capability)
        if endpoint is not None:
            return endpoint

        retryer = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=self.retry_min_wait, max=self.retry_max_wait),
            retry=retry_if_exception_type(RegistryUnavailableError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        endpoint = await retryer(self._lookup, capability)

        with self._lock:
            self._cache[capability] = (endpoint, self.clock.now() + self.ttl_seconds)
        return endpoint

    def invalidate(self, capability: Optional[str] = None) -> None:
        with self._lock:
            if capability is None:
                self._cache.clear()
            else:
                self._cache.pop(capability, None)

