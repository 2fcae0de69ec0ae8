"""
Message Classifier - Picks the domain agent for a turn.

A zero-tool ToolCallingAgent asks the model for one label, then the reply
is matched against an ordered list of (pattern, label) rules. The parsing
is a best-effort heuristic: the first matching rule wins, and anything
unrecognized (or any failure at all) falls back to the chitchat agent.
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Pattern, Tuple

from config import runtime_config
from logging_config import log_agent

from .agent import ToolCallingAgent
from .models import AgentConfig, TurnContext

logger = logging.getLogger(__name__)


class AgentType(str, Enum):
    """Domain agents a turn can be routed to."""

    CART = "cart"
    PRODUCT_SEARCH = "product_search"
    CHITCHAT = "chitchat"


DEFAULT_AGENT_TYPE = AgentType.CHITCHAT

# Order matters: a cart keyword beats a product keyword in the same reply
CLASSIFICATION_RULES: List[Tuple[Pattern, AgentType]] = [
    (re.compile(r"cart_management|cart|basket"), AgentType.CART),
    (re.compile(r"product_search|product"), AgentType.PRODUCT_SEARCH),
    (re.compile(r"general_conversation|general|chitchat"), AgentType.CHITCHAT),
]

CLASSIFIER_SYSTEM_PROMPT = """You are a message classifier for an e-commerce shopping assistant.
Your job is to analyze the last few messages of a conversation and correctly determine which specialized agent should handle them.
Emphasize on the latest user's message.

Available agents:
1. cart_management - Handles shopping cart operations (add, remove, view basket, update quantities, checkout, order)
2. product_search - Handles product discovery (search, filter, view details, recommendations)
3. general_conversation - Handles greetings, policies, support questions, general chat

Classification rules:
- If the message is about adding, removing, viewing, or managing items in the cart/basket/order -> cart_management
- If the message is about finding, searching, browsing, or viewing products -> product_search
- If the message is about policies, shipping, returns, support, or general questions -> general_conversation
- If the message is a greeting or casual conversation -> general_conversation

Respond with **ONLY** the agent name: cart_management, product_search, or general_conversation
"""


def parse_classification(content: Optional[str]) -> AgentType:
    """Map a free-text classifier reply to an AgentType."""
    if not content or not content.strip():
        logger.warning(f"Empty classification result, defaulting to {DEFAULT_AGENT_TYPE.value}")
        return DEFAULT_AGENT_TYPE

    normalized = content.strip().lower()
    for pattern, agent_type in CLASSIFICATION_RULES:
        if pattern.search(normalized):
            return agent_type

    logger.warning(f"Unclear classification result: {content!r}, defaulting to {DEFAULT_AGENT_TYPE.value}")
    return DEFAULT_AGENT_TYPE


def build_context_summary(messages: List[Dict[str, Any]], history: int) -> str:
    """Render the last `history` messages as 'role(name): content' lines."""
    if not messages or history <= 0:
        return ""

    lines = []
    for msg in messages[-history:]:
        role = msg.get("role", "")
        name = msg.get("name")
        label = f"{role}({name})" if name else role
        lines.append(f"{label}: {msg.get('content') or ''}")
    return "Recent conversation:\n" + "\n".join(lines)


class MessageClassifier:
    """Classifies a user message into an AgentType."""

    def __init__(self, client=None, model: Optional[str] = None, history: Optional[int] = None):
        self._history = history
        self.agent = ToolCallingAgent(
            AgentConfig(
                system_prompt=CLASSIFIER_SYSTEM_PROMPT,
                tools=(),
                model=model or runtime_config.model_classifier,
                name="",
                max_iterations=1,
            ),
            client=client,
        )

    @property
    def history(self) -> int:
        return self._history if self._history is not None else runtime_config.classifier_history

    def build_prompt(self, message: str, context: Optional[TurnContext] = None) -> str:
        summary = build_context_summary(context.messages if context else [], self.history)
        return (
            f"CONTEXT:\n{summary}\n\n"
            f'User message: "{message}"\n\n'
            "Which agent should handle this? Respond with ONLY: cart_management, product_search, or general_conversation"
        )

    async def classify(self, message: str, context: Optional[TurnContext] = None) -> AgentType:
        """Classify a message. Never raises; failures return the default label."""
        try:
            # Scratch context: the classifier exchange must not reach the conversation log
            result = await self.agent.run(self.build_prompt(message, context), TurnContext())
            agent_type = parse_classification(result.get("content"))
            log_agent(logger, agent_type.value, raw=result.get("content") or "")
            return agent_type
        except Exception as e:
            logger.error(f"Classification error: {e}", exc_info=True)
            return DEFAULT_AGENT_TYPE
