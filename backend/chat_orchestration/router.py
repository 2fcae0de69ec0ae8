"""
Agent Router - Classify a turn, announce the choice, delegate to a domain agent.

Per turn:
    CLASSIFYING -> {PRODUCT_SEARCH, CART, CHITCHAT} -> agent loop -> DONE | ERROR

Classification never fails the turn: any classifier problem routes to the
chitchat agent. Domain agent chunks are forwarded unchanged.
"""

import logging
from typing import Dict, Optional

from logging_config import log_message_in
from services.commerce import BasketService, CatalogService, OrderService

from .agents import CartAgent, ChitchatAgent, DomainAgent, ProductSearchAgent
from .chunks import ChunkCallback, ChunkEmitter, agent_selected_chunk
from .classifier import DEFAULT_AGENT_TYPE, AgentType, MessageClassifier
from .models import TurnContext

logger = logging.getLogger(__name__)


class AgentRouter:
    """Routes each message to the domain agent chosen by the classifier.

    Args:
        agents: Domain agents by type; must include the default (chitchat)
        classifier: Message classifier
    """

    def __init__(self, agents: Dict[AgentType, DomainAgent], classifier: MessageClassifier):
        if DEFAULT_AGENT_TYPE not in agents:
            raise ValueError(f"Router needs a {DEFAULT_AGENT_TYPE.value} agent as fallback")
        self.agents = dict(agents)
        self.classifier = classifier

    @classmethod
    def build(
        cls,
        catalog: CatalogService,
        baskets: BasketService,
        orders: OrderService,
        client=None,
    ) -> "AgentRouter":
        """Build the router with the standard three domain agents."""
        agents: Dict[AgentType, DomainAgent] = {
            AgentType.PRODUCT_SEARCH: ProductSearchAgent(catalog, client=client),
            AgentType.CART: CartAgent(baskets, orders, client=client),
            AgentType.CHITCHAT: ChitchatAgent(client=client),
        }
        return cls(agents, MessageClassifier(client=client))

    def agent_for(self, agent_type: AgentType) -> DomainAgent:
        agent = self.agents.get(agent_type)
        if agent is None:
            logger.warning(f"No agent registered for {agent_type}, using {DEFAULT_AGENT_TYPE.value}")
            agent = self.agents[DEFAULT_AGENT_TYPE]
        return agent

    async def route_stream(
        self,
        message: str,
        context: Optional[TurnContext] = None,
        on_chunk: ChunkCallback = None,
    ) -> AgentType:
        """Classify and stream one turn.

        Returns:
            The AgentType the turn was routed to
        """
        context = context if context is not None else TurnContext()
        log_message_in(logger, message, session=context.session_id, conversation=context.conversation_id)

        agent_type = await self.classifier.classify(message, context)
        agent = self.agent_for(agent_type)

        emitter = ChunkEmitter(on_chunk or (lambda chunk: None), context)
        await emitter.emit(agent_selected_chunk(agent_type.value))

        await agent.run_stream(message, context, on_chunk)
        return agent_type


# Singleton instance for easy import
_router_instance: Optional[AgentRouter] = None


def get_router(
    catalog: Optional[CatalogService] = None,
    baskets: Optional[BasketService] = None,
    orders: Optional[OrderService] = None,
    client=None,
) -> AgentRouter:
    """Get or create the singleton router.

    The collaborators are required on the first call only.
    """
    global _router_instance
    if _router_instance is None:
        if catalog is None or baskets is None or orders is None:
            raise ValueError("get_router() needs catalog, baskets and orders on first use")
        _router_instance = AgentRouter.build(catalog, baskets, orders, client=client)
        logger.info("AgentRouter initialized")
    return _router_instance


def reset_router() -> None:
    """Drop the singleton (used in tests)."""
    global _router_instance
    _router_instance = None
