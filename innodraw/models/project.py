# innodraw/models/project.py
from datetime import datetime, timezone
from uuid import UUID, uuid4
from pydantic import BaseModel, Field
from innodraw.models.diagram import Diagram

UNTITLED_PROJECT_NAME = "Untitled project"

def derive_project_name(idea: str, max_length: int) -> str:
    """Builds a display name from the idea text, truncated with an ellipsis."""
    collapsed = " ".join(idea.split())
    if not collapsed:
        return UNTITLED_PROJECT_NAME
    if len(collapsed) <= max_length:
        return collapsed
    return collapsed[: max_length - 1].rstrip() + "…"

class Project(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    idea: str
    model: Diagram
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class ProjectSummary(BaseModel):
    id: UUID
    name: str
    created_at: datetime
