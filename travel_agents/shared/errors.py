"""
Error taxonomy shared by all agents.

Component-local errors (extraction, validation) are absorbed by the
planning engine and turned into the next response. Dispatch-level errors
are absorbed per task by the orchestrator. Task graph and state machine
invariant violations are fatal for the current round.
"""

from typing import Any, Optional


class TravelAgentError(Exception):
    """Base class for every error raised by the travel agents."""

    pass


class ExtractionError(TravelAgentError):
    """The model collaborator was unreachable or returned unusable structure."""

    pass


class ValidationError(TravelAgentError):
    """A single extracted field value failed its sanity check."""

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        self.message = message
        super().__init__(f"{field}={value!r}: {message}")


class OperationTimeoutError(TravelAgentError, TimeoutError):
    """A bounded wait (extraction, registry lookup, dispatch) expired."""

    pass


class StateCorruptionError(TravelAgentError):
    """A persisted conversation state could not be decoded."""

    def __init__(self, session_id: str, reason: str):
        self.session_id = session_id
        super().__init__(f"Conversation state for {session_id} is corrupt: {reason}")


class InvalidTransitionError(TravelAgentError):
    """The planning state machine was asked for a transition it does not define."""

    pass


class TaskGraphError(TravelAgentError):
    """A generated task list violates the task graph invariants."""

    pass


class TaskGraphCycleError(TaskGraphError):
    """A generated task list contains a dependency cycle."""

    def __init__(self, task_ids: Optional[list] = None):
        self.task_ids = task_ids or []
        super().__init__(f"Dependency cycle among tasks: {', '.join(self.task_ids)}")


class AgentNotFoundError(TravelAgentError):
    """No agent is registered for the requested capability."""

    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"No agent registered for capability '{capability}'")


class RegistryUnavailableError(TravelAgentError):
    """The agent directory could not be reached (retryable)."""

    pass


class DispatchError(TravelAgentError):
    """A booking agent rejected or failed a dispatched task."""

    pass
