# innodraw/models/conversation.py
from enum import Enum
from pydantic import BaseModel, Field

class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"

class ConversationTurn(BaseModel):
    role: ChatRole
    text: str
    # seed turns are built locally and the user one is never shown
    synthetic: bool = False
    pending: bool = False

class Conversation(BaseModel):
    turns: list[ConversationTurn] = Field(default_factory=list)

    @property
    def visible_turns(self) -> list[ConversationTurn]:
        return [turn for turn in self.turns if not (turn.synthetic and turn.role == ChatRole.USER)]

class ConversationView(BaseModel):
    turns: list[ConversationTurn]
    suggestions: list[str]
    streaming: bool

class MessageRequest(BaseModel):
    text: str
