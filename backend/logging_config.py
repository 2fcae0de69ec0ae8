"""
ShopTalk Logging - colored, one-line-per-event logs for chat turns.

Every module logs through `logging.getLogger(__name__)`. The helpers below
give the recurring turn events a fixed, greppable tag:

    >>> TURN    user message received        (router)
    >>> ROUTE   classifier decision           (classifier)
    >>> LLM     provider call start / <<< end (agent loop)
    >>> TOOL    handler start / <<< end       (agent loop)
    <<< TURN    final reply with tools + view (agent loop)

Usage:
    from logging_config import setup_logging
    setup_logging()            # level from runtime_config.log_level
    setup_logging("DEBUG")
"""

import logging
import sys
from typing import Iterable, Optional, Union

RESET = "\033[0m"
DIM = "\033[2m"

# Tag colors per turn event
EVENT_COLORS = {
    "TURN_IN": "\033[96m",  # Cyan
    "TURN_OUT": "\033[92m",  # Green
    "ROUTE": "\033[95m",  # Magenta
    "TOOL": "\033[93m",  # Yellow
    "LLM": "\033[94m",  # Blue
}

LEVEL_COLORS = {
    logging.DEBUG: "\033[90m",
    logging.INFO: RESET,
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[91m",
    logging.CRITICAL: "\033[1;91m",
}

NOISY_LOGGERS = ("httpx", "httpcore", "openai")


class ColorFormatter(logging.Formatter):
    """HH:MM:SS [LEVL] component: message

    The component is the last dotted part of the logger name, so
    chat_orchestration.agent shows as "agent". Colors are dropped when
    use_color is False (log files, CI).
    """

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def _paint(self, code: str, text: str) -> str:
        return f"{code}{text}{RESET}" if self.use_color else text

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%H:%M:%S")
        level = self._paint(LEVEL_COLORS.get(record.levelno, RESET), record.levelname[:4])
        component = record.name.rsplit(".", 1)[-1]

        formatted = f"{self._paint(DIM, timestamp)} [{level}] {component}: {record.getMessage()}"
        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)
        return formatted


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        from config import runtime_config

        level = runtime_config.log_level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        return resolved
    return level


def setup_logging(level: Union[int, str, None] = None, use_color: Optional[bool] = None) -> logging.Handler:
    """Install the colored stdout handler on the root logger.

    Args:
        level: Level name or number (default: runtime_config.log_level)
        use_color: Force colors on/off (default: only when stdout is a TTY)

    Returns:
        The installed handler
    """
    if use_color is None:
        use_color = sys.stdout.isatty()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter(use_color=use_color))

    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    root.handlers = [handler]

    # Provider SDK request logs drown out the turn events
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler


# =============================================================================
# Turn event helpers
# =============================================================================


def _tag(event: str, arrow: str = ">>>") -> str:
    return f"{EVENT_COLORS[event]}{arrow} {event.split('_')[0]}{RESET}"


def _preview(text: Optional[str], limit: int = 80) -> str:
    text = text or ""
    return text[:limit] + "..." if len(text) > limit else text


def _pairs(context: dict) -> str:
    return " ".join(f"{k}={v}" for k, v in context.items() if v is not None)


def log_message_in(logger: logging.Logger, message: str, **context) -> None:
    """Log an incoming user message with its session/conversation ids."""
    logger.info(f"{_tag('TURN_IN')} {_preview(message)!r} [{_pairs(context)}]")


def log_message_out(
    logger: logging.Logger,
    agent: str = "",
    tools_used: Optional[Iterable[str]] = None,
    ui_action: Optional[str] = None,
) -> None:
    """Log the end of an agent turn: who answered, which tools ran, which view."""
    tools = ", ".join(tools_used) if tools_used else "none"
    logger.info(f"{_tag('TURN_OUT', '<<<')} agent={agent or '-'} tools=[{tools}] view={ui_action or 'none'}")


def log_agent(logger: logging.Logger, agent_type: str, raw: str = "") -> None:
    """Log a routing decision and the classifier text it was parsed from."""
    logger.info(f"{_tag('ROUTE')} {agent_type} (classifier said {_preview(raw, 40)!r})")


def log_tool(logger: logging.Logger, tool_name: str, state: str, **context) -> None:
    # state: start | end
    arrow = ">>>" if state == "start" else "<<<"
    logger.info(f"{_tag('TOOL', arrow)} {tool_name} {_pairs(context)}".rstrip())


def log_llm(
    logger: logging.Logger,
    state: str,
    model: str = "",
    duration: float = 0,
    iteration: int = 0,
) -> None:
    """Log a provider call.

    Args:
        logger: Logger instance
        state: 'start' or 'end'
        model: Model name
        duration: Seconds taken (end only)
        iteration: Loop iteration (start only)
    """
    if state == "start":
        logger.info(f"{_tag('LLM')} calling {model or 'default'} (iteration {iteration})")
    else:
        logger.info(f"{_tag('LLM', '<<<')} {model or 'default'} answered in {duration:.2f}s")
