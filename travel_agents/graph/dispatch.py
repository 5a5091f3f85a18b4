"""
Task dispatch to booking agents.

An agent receives ``{query, context_id, task_id}`` and answers with JSON
carrying ``content`` and, when it needs the traveler to answer something,
``require_user_input``.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Union

import httpx

from travel_agents.shared.contracts import PlannerTask
from travel_agents.shared.errors import DispatchError, OperationTimeoutError
from travel_agents.registry.client import AgentEndpoint


logger = logging.getLogger(__name__)

DEFAULT_DISPATCH_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class AgentResult:
    """A booking agent's reply to one task."""

    content: str
    requires_input: bool = False


class AgentDispatcher(Protocol):
    async def dispatch(
        self, endpoint: AgentEndpoint, task: PlannerTask, context_id: Optional[str]
    ) -> AgentResult:
        """
        Raises:
            DispatchError: If the agent rejected or failed the task
            OperationTimeoutError: If the agent did not answer in time
        """
        ...


def build_agent_payload(task: PlannerTask, context_id: Optional[str]) -> Dict[str, Any]:
    return {
        "query": task.query,
        "context_id": context_id or f"node_{task.id}",
        "task_id": task.id,
    }


def parse_agent_reply(body: Any) -> AgentResult:
    """Agents that omit ``content`` have their whole reply passed through as JSON text."""
    if not isinstance(body, dict):
        return AgentResult(content=json.dumps(body))
    content = body.get("content")
    if content is None:
        content = json.dumps(body)
    elif not isinstance(content, str):
        content = json.dumps(content)
    return AgentResult(
        content=content,
        requires_input=bool(body.get("require_user_input", False)),
    )


class HttpAgentDispatcher:
    """POSTs tasks to agent URLs with httpx."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = DEFAULT_DISPATCH_TIMEOUT_SECONDS,
    ):
        self.timeout_seconds = timeout_seconds
        self._http = http_client

    async def _post(self, url: str, payload: dict) -> httpx.Response:
        if self._http is not None:
            return await self._http.post(url, json=payload, timeout=self.timeout_seconds)
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(url, json=payload)

    async def dispatch(
        self, endpoint: AgentEndpoint, task: PlannerTask, context_id: Optional[str]
    ) -> AgentResult:
        _log = f"[session={context_id}] [graph=dispatch] [task={task.id}] "
        logger.info(f"{_log}POST {endpoint.url} | agent={endpoint.name}")

        try:
            response = await self._post(endpoint.url, build_agent_payload(task, context_id))
        except httpx.TimeoutException as e:
            raise OperationTimeoutError(
                f"Agent {endpoint.name} did not answer within {self.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise DispatchError(f"Agent {endpoint.name} unreachable: {e}") from e

        if not response.is_success:
            raise DispatchError(f"Agent {endpoint.name} returned {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise DispatchError(f"Agent {endpoint.name} sent invalid JSON: {e}") from e

        return parse_agent_reply(body)


AgentHandler = Callable[[PlannerTask, Optional[str]], Awaitable[Union[AgentResult, str, dict]]]


class LocalAgentDispatcher:
    """
    Dispatches to in-process async handlers keyed by endpoint name.

    Handlers may return an AgentResult, plain content, or a reply dict in
    the agent wire format.
    """

    def __init__(
        self,
        handlers: Dict[str, AgentHandler],
        timeout_seconds: float = DEFAULT_DISPATCH_TIMEOUT_SECONDS,
    ):
        self.handlers = dict(handlers)
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self, endpoint: AgentEndpoint, task: PlannerTask, context_id: Optional[str]
    ) -> AgentResult:
        handler = self.handlers.get(endpoint.name)
        if handler is None:
            raise DispatchError(f"No local handler for agent {endpoint.name}")

        try:
            reply = await asyncio.wait_for(handler(task, context_id), self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise OperationTimeoutError(
                f"Agent {endpoint.name} did not answer within {self.timeout_seconds}s"
            ) from e

        if isinstance(reply, AgentResult):
            return reply
        if isinstance(reply, str):
            return AgentResult(content=reply)
        return parse_agent_reply(reply)
