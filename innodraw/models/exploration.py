# innodraw/models/exploration.py
from enum import Enum
from typing import Literal, Union
from pydantic import BaseModel, ConfigDict, Field

class ExplorationMode(str, Enum):
    PLAIN = "plain"
    EXPLAIN = "explain"
    EXPLORE = "explore"

class VisualWeight(str, Enum):
    FULL = "full"
    RELATED = "related"
    UNRELATED = "unrelated"

class Tooltip(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    x: float
    y: float

class ExplorationState(BaseModel):
    """Interaction state of the canvas. Never persisted."""
    model_config = ConfigDict(frozen=True)

    mode: ExplorationMode = ExplorationMode.EXPLAIN
    # Where leaving explore lands; toggling explain while exploring flips it.
    previous_mode: ExplorationMode = ExplorationMode.EXPLAIN
    selected_id: str | None = None
    tooltip: Tooltip | None = None

# --- UI events ---
class ToggleModeEvent(BaseModel):
    type: Literal["toggle_mode"] = "toggle_mode"
    mode: ExplorationMode

class ClickEvent(BaseModel):
    type: Literal["click"] = "click"
    component_id: str

class HoverEvent(BaseModel):
    type: Literal["hover"] = "hover"
    component_id: str
    x: float
    y: float

class MouseLeaveEvent(BaseModel):
    type: Literal["mouse_leave"] = "mouse_leave"

ExplorationEvent = Union[ToggleModeEvent, ClickEvent, HoverEvent, MouseLeaveEvent]

class ExplorationEventRequest(BaseModel):
    event: ExplorationEvent = Field(discriminator="type")

# --- Derived views ---
class ComponentVisual(BaseModel):
    weight: VisualWeight
    opacity: float
    pointer: bool

class Connection(BaseModel):
    target_id: str
    description: str
    target_label: str

class DetailPanel(BaseModel):
    component_id: str
    label: str
    description: str
    connections: list[Connection]
    empty_message: str | None = None

class ExplorationView(BaseModel):
    state: ExplorationState
    related_ids: list[str]
    visuals: dict[str, ComponentVisual]
    detail_panel: DetailPanel | None = None
