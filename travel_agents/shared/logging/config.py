"""
Logging setup for the service.

Every node logs with a ``[session=..] [graph=..] [node=..]`` prefix. The
text format keeps that prefix inline; the JSON format lifts it into
``session``, ``graph`` and ``node`` keys so log lines can be grouped by
conversation or dispatch round.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-35s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("httpcore", "httpx", "openai")

LOG_PREFIX = re.compile(
    r"^\[session=(?P<session>[^\]]*)\] \[graph=(?P<graph>[^\]]*)\] \[node=(?P<node>[^\]]*)\] "
)

TRANSITION_LOGGER = "travel_agents.transitions"


class StructuredFormatter(logging.Formatter):
    """
    Formats records as one JSON object per line.

    Keys: timestamp, level, logger, message, plus session/graph/node when
    the message carries the node prefix, ``transition`` for state-machine
    records, and ``exception`` when exc_info is set.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        match = LOG_PREFIX.match(message)
        if match:
            log_entry.update(match.groupdict())
            message = message[match.end():]
        log_entry["message"] = message

        transition = getattr(record, "transition", None)
        if transition is not None:
            log_entry["transition"] = transition

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure root logging for the service.

    Args:
        level: Root logging level
        json_format: Emit StructuredFormatter JSON lines instead of the pipe format
        log_file: Optional file that receives the same lines as stdout
    """
    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    # force: uvicorn and test runners may have configured the root already
    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_state_transition(
    event: str,
    state: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a planning state-machine transition.

    Args:
        event: Name of the event (e.g., "missing_fields", "fields_complete")
        state: Summary of the conversation state (session_id, from_state, to_state, ...)
        extra: Additional context merged into the transition record
        logger: Logger instance to use. Defaults to the transitions logger.
    """
    if logger is None:
        logger = logging.getLogger(TRANSITION_LOGGER)

    transition = {
        "event": event,
        "from_state": state.get("from_state"),
        "to_state": state.get("to_state"),
        "round": state.get("round"),
        "turns_in_round": state.get("turns_in_round"),
        "missing_fields": state.get("missing_fields"),
    }
    if extra:
        transition.update(extra)

    logger.info(
        f"[session={state.get('session_id', 'unknown')}] [graph=planning] [node=transition] "
        f"State transition: {event} ({transition['from_state']} -> {transition['to_state']})",
        extra={"transition": transition},
    )
