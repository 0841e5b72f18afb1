# innodraw/api/router.py
import json
from uuid import UUID
from fastapi import APIRouter, Depends, status, HTTPException, Response, Header, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from innodraw.core.config import settings
from innodraw.core.exceptions import GenerationFailure, ProjectNotFoundException, StreamFailure
from innodraw.core.limiter import CHAT_MESSAGE_LIMIT, GENERATION_LIMIT, limiter
from innodraw.db.repositories.project_repository import ProjectRepository
from innodraw.models.conversation import ConversationView, MessageRequest
from innodraw.models.exploration import ExplorationEventRequest, ExplorationView
from innodraw.models.project import Project, ProjectSummary
from innodraw.services.ai_service import AIService
from innodraw.services.conversation_service import APOLOGY_MESSAGE, ConversationSession
from innodraw.services.diagram_assembler import DiagramAssembler
from innodraw.services.workspace_service import Workspace, WorkspaceManager, WorkspaceStatus

router = APIRouter()

workspace_manager = WorkspaceManager()
project_repository = ProjectRepository(settings.PROJECT_STORE_PATH)
_ai_service: AIService | None = None

class IdeaRequest(BaseModel):
    idea: str

# Dependency to extract the User ID from a header
def get_user_id(x_user_id: str = Header(..., description="Client-generated unique ID for the user workspace.")) -> str:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="X-User-ID header is required.")
    return x_user_id

def get_workspace(user_id: str = Depends(get_user_id)) -> Workspace:
    return workspace_manager.get(user_id)

def get_project_repository() -> ProjectRepository:
    return project_repository

def get_ai_service() -> AIService:
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService(api_key=settings.GEMINI_API_KEY)
    return _ai_service

def get_assembler(ai_service: AIService = Depends(get_ai_service)) -> DiagramAssembler:
    return DiagramAssembler(ai_service)

def _require_conversation(workspace: Workspace) -> ConversationSession:
    if workspace.conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No conversation is open.")
    return workspace.conversation

@router.get("/workspace", response_model=WorkspaceStatus, tags=["Workspace"])
async def get_workspace_status(workspace: Workspace = Depends(get_workspace)):
    """Current idea, diagram, loading/progress message and error for the caller's workspace."""
    return workspace.status()

@router.post("/workspace/generate", response_model=WorkspaceStatus, tags=["Workspace"])
@limiter.limit(GENERATION_LIMIT)
async def generate_diagram(
    request: Request,
    idea_request: IdeaRequest,
    workspace: Workspace = Depends(get_workspace),
    assembler: DiagramAssembler = Depends(get_assembler)
):
    if not idea_request.idea.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please enter an idea.")
    await workspace.generate(idea_request.idea, assembler)
    if workspace.model is None:
        raise GenerationFailure(workspace.error or "Failed to generate model.")
    return workspace.status()

@router.post("/workspace/reset", response_model=WorkspaceStatus, tags=["Workspace"])
async def reset_workspace(workspace: Workspace = Depends(get_workspace)):
    workspace.reset()
    return workspace.status()

@router.get("/workspace/exploration", response_model=ExplorationView, tags=["Exploration"])
async def get_exploration(workspace: Workspace = Depends(get_workspace)):
    view = workspace.exploration_view()
    if view is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No model has been generated yet.")
    return view

@router.post("/workspace/exploration/events", response_model=ExplorationView, tags=["Exploration"])
async def dispatch_exploration_event(
    event_request: ExplorationEventRequest,
    workspace: Workspace = Depends(get_workspace)
):
    view = workspace.dispatch(event_request.event)
    if view is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No model has been generated yet.")
    return view

@router.post("/workspace/save", status_code=status.HTTP_201_CREATED, response_model=Project, tags=["Projects"])
async def save_workspace(
    workspace: Workspace = Depends(get_workspace),
    repository: ProjectRepository = Depends(get_project_repository)
):
    if workspace.model is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="There is no model to save yet.")
    return await workspace.save(repository)

@router.get("/projects", response_model=list[ProjectSummary], tags=["Projects"])
async def list_projects(repository: ProjectRepository = Depends(get_project_repository)):
    projects = await repository.list()
    return [ProjectSummary(id=p.id, name=p.name, created_at=p.created_at) for p in projects]

@router.post("/projects/{project_id}/open", response_model=WorkspaceStatus, tags=["Projects"])
async def open_project(
    project_id: UUID,
    workspace: Workspace = Depends(get_workspace),
    repository: ProjectRepository = Depends(get_project_repository)
):
    project = await repository.get(project_id)
    if project is None:
        raise ProjectNotFoundException()
    workspace.load(project)
    return workspace.status()

@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Projects"])
async def delete_project(
    project_id: UUID,
    repository: ProjectRepository = Depends(get_project_repository)
):
    await repository.delete(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/workspace/conversation", status_code=status.HTTP_201_CREATED, response_model=ConversationView, tags=["Conversation"])
async def start_conversation(
    workspace: Workspace = Depends(get_workspace),
    ai_service: AIService = Depends(get_ai_service)
):
    try:
        session = workspace.open_conversation(ai_service)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return session.view()

@router.get("/workspace/conversation", response_model=ConversationView, tags=["Conversation"])
async def get_conversation(workspace: Workspace = Depends(get_workspace)):
    return _require_conversation(workspace).view()

@router.post("/workspace/conversation/messages", tags=["Conversation"])
@limiter.limit(CHAT_MESSAGE_LIMIT)
async def send_message(
    request: Request,
    message: MessageRequest,
    workspace: Workspace = Depends(get_workspace)
):
    """Streams the assistant's reply as newline-delimited JSON events."""
    session = _require_conversation(workspace)
    if not message.text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message text cannot be empty.")
    if session.is_streaming:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A reply is still streaming.")

    async def _events():
        try:
            async for chunk in session.send(message.text):
                yield json.dumps({"type": "chunk", "text": chunk}) + "\n"
        except StreamFailure:
            yield json.dumps({"type": "error", "text": APOLOGY_MESSAGE}) + "\n"
            return
        yield json.dumps({"type": "done"}) + "\n"

    return StreamingResponse(_events(), media_type="application/x-ndjson")

@router.delete("/workspace/conversation", status_code=status.HTTP_204_NO_CONTENT, tags=["Conversation"])
async def close_conversation(workspace: Workspace = Depends(get_workspace)):
    workspace.close_conversation()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
