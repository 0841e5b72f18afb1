# innodraw/services/conversation_service.py
import logging
from typing import Any, AsyncIterator
from innodraw.core.exceptions import StreamFailure
from innodraw.core.prompts import CONVERSATION_CONTEXT_PROMPT, CONVERSATION_GREETING, SUGGESTED_PROMPTS
from innodraw.models.conversation import ChatRole, Conversation, ConversationTurn, ConversationView
from innodraw.models.diagram import Diagram

logger = logging.getLogger(__name__)

PENDING_PLACEHOLDER = "..."
APOLOGY_MESSAGE = "Sorry, I encountered an error. Please try again."

def _summarize_components(diagram: Diagram) -> str:
    summary = ", ".join(f'"{c.label}" ({c.description})' for c in diagram.visual_components)
    return summary or "none yet"

def build_seed(idea: str, diagram: Diagram) -> list[ConversationTurn]:
    """The two synthetic turns that give the assistant its context."""
    context = CONVERSATION_CONTEXT_PROMPT.format(idea=idea, components=_summarize_components(diagram))
    greeting = CONVERSATION_GREETING.format(idea=idea)
    return [
        ConversationTurn(role=ChatRole.USER, text=context, synthetic=True),
        ConversationTurn(role=ChatRole.ASSISTANT, text=greeting, synthetic=True),
    ]

class ConversationSession:
    """
    A dialogue about one idea and its diagram.

    Starting a session is purely local; the chat handle is opened on the first
    ``send``. Discarding the session mid-stream is safe, nothing is persisted.
    """
    def __init__(self, backend: Any, idea: str, diagram: Diagram):
        self.backend = backend
        self.idea = idea
        self.conversation = Conversation(turns=build_seed(idea, diagram))
        self._handle: Any = None
        self._streaming = False

    @classmethod
    def start(cls, backend: Any, idea: str, diagram: Diagram) -> "ConversationSession":
        return cls(backend, idea, diagram)

    @property
    def is_streaming(self) -> bool:
        return self._streaming

    @property
    def suggestions(self) -> list[str]:
        only_seed = all(turn.synthetic for turn in self.conversation.turns)
        return list(SUGGESTED_PROMPTS) if only_seed else []

    def view(self) -> ConversationView:
        return ConversationView(
            turns=self.conversation.visible_turns,
            suggestions=self.suggestions,
            streaming=self._streaming,
        )

    async def send(self, text: str) -> AsyncIterator[str]:
        """
        Stream the assistant's reply to ``text``, yielding each increment as it
        is appended to the in-progress assistant turn.
        """
        message = text.strip()
        if not message:
            raise ValueError("Message text cannot be empty.")
        if self._streaming:
            raise StreamFailure("A reply is still streaming.")

        self._streaming = True
        turns = self.conversation.turns
        turns.append(ConversationTurn(role=ChatRole.USER, text=message))
        reply = ConversationTurn(role=ChatRole.ASSISTANT, text=PENDING_PLACEHOLDER, pending=True)
        turns.append(reply)

        try:
            if self._handle is None:
                self._handle = self.backend.open_chat_session(turns[:2])
            async for chunk in self.backend.send_and_stream(self._handle, message):
                if reply.pending:
                    reply.text = ""
                    reply.pending = False
                reply.text += chunk
                yield chunk
        except Exception as e:
            logger.error("Chat error: %s", e)
            reply.text = APOLOGY_MESSAGE
            reply.pending = False
            raise StreamFailure(f"The conversation stream was interrupted: {e}") from e
        finally:
            self._streaming = False

        if reply.pending:
            # The stream ended without a single chunk.
            reply.text = ""
            reply.pending = False
