# innodraw/models/diagram.py
from enum import Enum
from pydantic import BaseModel, Field

class ComponentKind(str, Enum):
    VISUAL = "visual"
    CONNECTOR = "connector"

class Relationship(BaseModel):
    target_id: str
    description: str

class Component(BaseModel):
    id: str
    kind: ComponentKind
    x: float
    y: float
    # visual geometry
    width: float | None = None
    height: float | None = None
    # connector geometry
    x2: float | None = None
    y2: float | None = None
    label: str
    description: str
    artwork_ref: str | None = Field(default=None, repr=False)
    relationships: list[Relationship] = Field(default_factory=list)

    @property
    def is_visual(self) -> bool:
        return self.kind == ComponentKind.VISUAL

class Diagram(BaseModel):
    components: list[Component]

    def get_component(self, component_id: str | None) -> Component | None:
        if component_id is None:
            return None
        for component in self.components:
            if component.id == component_id:
                return component
        return None

    @property
    def visual_components(self) -> list[Component]:
        return [component for component in self.components if component.is_visual]
