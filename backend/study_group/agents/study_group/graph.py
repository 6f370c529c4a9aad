"""Chat-turn graph for the Study Group workflow.

One invocation handles one student message, which the orchestrator has
already logged on the session it passes in:

    classify_intent -> score_personas -> select_persona -> respond -> record_response

A failure in ``respond`` propagates out of ``invoke``; the partially
updated session inside the graph is discarded.
"""

import logging
from typing import Any, Dict, Optional

from langgraph.graph import END, StateGraph
from typing_extensions import TypedDict

from .intent import IntentResult, classify_intent
from .interfaces import ContentGenerator
from .personas import get_persona
from .responder import PersonaReply, generate_persona_reply
from .scoring import apply_intent_override, calculate_persona_scores, select_persona
from .state import ContextSnapshot, MessageMetadata, Session
from .transitions import PersonaResponded, PersonaSelected, TopicDetected, apply_event, apply_events

logger = logging.getLogger(__name__)


class TurnState(TypedDict, total=False):
    """State carried through one chat turn."""

    # Inputs
    session: Session
    message: str
    topic_hint: Optional[str]
    context: ContextSnapshot

    # Filled in by the nodes
    intent: IntentResult
    scores: Dict[str, int]
    persona: str
    handoff_from: Optional[str]
    reply: PersonaReply


class TurnGraph:
    """
    Wrapper class for the chat-turn graph.

    Provides a clean interface for interacting with the LangGraph.
    """

    def __init__(self, generator: ContentGenerator):
        self.generator = generator
        self.graph = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(TurnState)

        graph.add_node("classify_intent", self._classify_intent_node)
        graph.add_node("score_personas", self._score_personas_node)
        graph.add_node("select_persona", self._select_persona_node)
        graph.add_node("respond", self._respond_node)
        graph.add_node("record_response", self._record_response_node)

        graph.set_entry_point("classify_intent")
        graph.add_edge("classify_intent", "score_personas")
        graph.add_edge("score_personas", "select_persona")
        graph.add_edge("select_persona", "respond")
        graph.add_edge("respond", "record_response")
        graph.add_edge("record_response", END)

        return graph.compile()

    # =========================================================================
    # Nodes
    # =========================================================================

    async def _classify_intent_node(self, state: TurnState) -> Dict[str, Any]:
        intent = await classify_intent(state["message"], self.generator)
        logger.debug(f"Intent {intent.intent} ({intent.confidence}) for session {state['session'].session_id}")
        return {"intent": intent}

    async def _score_personas_node(self, state: TurnState) -> Dict[str, Any]:
        intent = state["intent"]
        scores = calculate_persona_scores(state["context"])
        return {"scores": apply_intent_override(scores, intent.intent, intent.confidence)}

    async def _select_persona_node(self, state: TurnState) -> Dict[str, Any]:
        session = state["session"]
        context = state["context"]
        intent = state["intent"]

        persona = select_persona(state["scores"])
        previous = session.active_persona
        session = apply_event(
            session,
            PersonaSelected(
                persona=persona,
                reason=f"Student intent: {intent.intent}, context-based selection",
                context={"topic": context.topic, "student_confidence": intent.confidence},
            ),
        )

        handoff_from = previous if previous is not None and previous != persona else None
        if handoff_from:
            logger.info(f"Handoff {handoff_from} -> {persona} in session {session.session_id}")

        return {"session": session, "persona": persona, "handoff_from": handoff_from}

    async def _respond_node(self, state: TurnState) -> Dict[str, Any]:
        reply = await generate_persona_reply(
            get_persona(state["persona"]),
            state["message"],
            state["context"],
            state["intent"].intent,
            self.generator,
            topic=state.get("topic_hint") or state["context"].topic,
        )
        return {"reply": reply}

    async def _record_response_node(self, state: TurnState) -> Dict[str, Any]:
        reply = state["reply"]
        metadata = MessageMetadata(
            topic=state.get("topic_hint") or state["context"].topic,
            intent=reply.intent,
            confidence=reply.confidence,
            suggested_handoff=reply.handoff,
            handoff_from=state.get("handoff_from"),
        )
        session = apply_events(
            state["session"],
            [
                PersonaResponded(persona=state["persona"], content=reply.message, metadata=metadata),
                TopicDetected(topic=state["intent"].topic),
            ],
        )
        return {"session": session}

    # =========================================================================
    # Invocation
    # =========================================================================

    async def invoke(
        self,
        state: TurnState,
        config: Optional[Dict[str, Any]] = None,
    ) -> TurnState:
        """
        Run one chat turn.

        Args:
            state: Inputs (session, message, topic_hint, context)
            config: Optional runnable config (tracing tags, metadata)

        Returns:
            Final turn state
        """
        return await self.graph.ainvoke(state, config=config)


def build_turn_graph(generator: ContentGenerator) -> TurnGraph:
    """Build and return a compiled chat-turn graph."""
    return TurnGraph(generator)
