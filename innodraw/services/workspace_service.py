# innodraw/services/workspace_service.py
import logging
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import UUID, uuid4
from pydantic import BaseModel
from innodraw.core.config import settings
from innodraw.core.exceptions import GenerationFailure
from innodraw.db.repositories.project_repository import ProjectRepository
from innodraw.models.diagram import Diagram
from innodraw.models.exploration import ExplorationEvent, ExplorationState, ExplorationView
from innodraw.models.project import Project, derive_project_name
from innodraw.services import exploration_engine
from innodraw.services.conversation_service import ConversationSession
from innodraw.services.diagram_assembler import DiagramAssembler, ProgressCallback, ProgressUpdate, require_sync_callback

logger = logging.getLogger(__name__)

DiagramRenderer = Callable[[Diagram], bytes]

class WorkspaceStatus(BaseModel):
    idea: str
    project_id: UUID | None
    model: Diagram | None
    is_loading: bool
    loading_message: str
    error: str | None
    exploration: ExplorationView | None

class Workspace:
    """The single active working copy of an idea and its diagram."""
    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.idea = ""
        self.model: Diagram | None = None
        self.project_id: UUID | None = None
        self.created_at: datetime | None = None
        self.exploration = ExplorationState()
        self.conversation: ConversationSession | None = None
        self.is_loading = False
        self.loading_message = ""
        self.error: str | None = None

    async def generate(
        self,
        idea: str,
        assembler: DiagramAssembler,
        on_progress: ProgressCallback | None = None
    ) -> Diagram | None:
        require_sync_callback(on_progress)
        if not idea.strip():
            self.error = "Please enter an idea."
            return None

        self.is_loading = True
        self.loading_message = "Kicking off the AI..."
        self.error = None
        self.model = None
        self.idea = idea
        self.exploration = exploration_engine.reset_for_new_model(self.exploration)
        self.conversation = None

        def _on_progress(update: ProgressUpdate) -> None:
            self.loading_message = update.message
            if on_progress:
                on_progress(update)

        try:
            self.model = await assembler.assemble(idea, _on_progress)
        except GenerationFailure as exc:
            logger.error("Error generating model: %s", exc.message)
            self.error = exc.message
        finally:
            self.is_loading = False
            self.loading_message = ""
        return self.model

    def snapshot(self) -> Project:
        if self.model is None:
            raise ValueError("There is no model to save yet.")
        return Project(
            id=self.project_id or uuid4(),
            name=derive_project_name(self.idea, settings.PROJECT_NAME_MAX_LENGTH),
            idea=self.idea,
            model=self.model.model_copy(deep=True),
            created_at=self.created_at or datetime.now(timezone.utc),
        )

    async def save(self, store: ProjectRepository) -> Project:
        project = self.snapshot()
        saved = await store.save(project)
        self.project_id = saved.id
        self.created_at = saved.created_at
        return saved

    def load(self, project: Project) -> None:
        self.reset()
        self.idea = project.idea
        self.model = project.model.model_copy(deep=True)
        self.project_id = project.id
        self.created_at = project.created_at

    def dispatch(self, event: ExplorationEvent) -> ExplorationView | None:
        if self.model is None:
            return None
        self.exploration = exploration_engine.reduce(self.model, self.exploration, event)
        return self.exploration_view()

    def exploration_view(self) -> ExplorationView | None:
        if self.model is None:
            return None
        return exploration_engine.derive_view(self.model, self.exploration)

    def open_conversation(self, backend: Any) -> ConversationSession:
        if self.model is None:
            raise ValueError("Generate a model before starting a conversation.")
        self.conversation = ConversationSession.start(backend, self.idea, self.model)
        return self.conversation

    def close_conversation(self) -> None:
        self.conversation = None

    def export_image(self, renderer: DiagramRenderer) -> bytes | None:
        if self.model is None:
            return None
        try:
            return renderer(self.model)
        except Exception as exc:
            logger.error("Failed to export image: %s", exc)
            self.error = "Failed to export image."
            return None

    def status(self) -> WorkspaceStatus:
        return WorkspaceStatus(
            idea=self.idea,
            project_id=self.project_id,
            model=self.model,
            is_loading=self.is_loading,
            loading_message=self.loading_message,
            error=self.error,
            exploration=self.exploration_view(),
        )

class WorkspaceManager:
    """One workspace per user id."""
    def __init__(self):
        self._workspaces: dict[str, Workspace] = {}

    def get(self, user_id: str) -> Workspace:
        workspace = self._workspaces.get(user_id)
        if workspace is None:
            workspace = self._workspaces[user_id] = Workspace()
        return workspace
