# innodraw/services/diagram_assembler.py
import asyncio
import inspect
import json
import logging
from typing import Any, Callable
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from innodraw.core.config import settings
from innodraw.core.exceptions import GenerationFailure
from innodraw.core.prompts import COMPONENT_ARTWORK_PROMPT, DIAGRAM_STRUCTURE_PROMPT
from innodraw.models.diagram import Component, ComponentKind, Diagram, Relationship
from innodraw.services.ai_response_parser import parse_structured_payload

logger = logging.getLogger(__name__)

# Pydantic models for parsing the specific JSON structure from the LLM.
class AI_Relationship(BaseModel):
    targetId: str
    description: str

class AI_Component(BaseModel):
    id: str
    kind: ComponentKind
    x: float
    y: float
    width: float | None = None
    height: float | None = None
    x2: float | None = None
    y2: float | None = None
    label: str
    description: str
    relationships: list[AI_Relationship] | None = None

    @model_validator(mode="after")
    def _check_geometry(self):
        if self.kind == ComponentKind.VISUAL and (self.width is None or self.height is None):
            raise ValueError(f"visual component '{self.id}' needs width and height")
        if self.kind == ComponentKind.CONNECTOR and (self.x2 is None or self.y2 is None):
            raise ValueError(f"connector component '{self.id}' needs x2 and y2")
        return self

class AI_Diagram(BaseModel):
    """The AI's structured output for a whole diagram."""
    components: list[AI_Component]

class ProgressUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    completed: int = 0
    total: int = 0

ProgressCallback = Callable[[ProgressUpdate], Any]
"""Called synchronously from the event loop; its return value is ignored."""

def require_sync_callback(on_progress: ProgressCallback | None) -> None:
    if on_progress is not None and inspect.iscoroutinefunction(on_progress):
        raise TypeError("on_progress must be a plain function; coroutine callbacks are never awaited.")

def _to_component(ai_component: AI_Component) -> Component:
    return Component(
        **ai_component.model_dump(exclude={"relationships"}),
        relationships=[
            Relationship(target_id=rel.targetId, description=rel.description)
            for rel in ai_component.relationships or []
        ],
    )

def parse_diagram(raw_text: str) -> Diagram:
    """
    Validate the raw structural output and convert it into a Diagram.
    Nothing is coerced: any parse or shape problem is a GenerationFailure.
    """
    try:
        payload = parse_structured_payload(raw_text)
    except (json.JSONDecodeError, ValueError) as e:
        raise GenerationFailure(f"Failed to generate model: the response was not valid JSON ({e}).") from e

    if not isinstance(payload.get("components"), list):
        raise GenerationFailure(
            "Failed to generate model: generated JSON does not match the expected model structure."
        )

    try:
        ai_diagram = AI_Diagram.model_validate(payload)
    except ValidationError as e:
        logger.debug("Structural validation errors: %s", e.errors())
        raise GenerationFailure(f"Failed to generate model: invalid component data ({e.error_count()} errors).") from e

    seen: set[str] = set()
    for ai_component in ai_diagram.components:
        if ai_component.id in seen:
            raise GenerationFailure(f"Failed to generate model: duplicate component id '{ai_component.id}'.")
        seen.add(ai_component.id)

    return Diagram(components=[_to_component(c) for c in ai_diagram.components])

class DiagramAssembler:
    """
    Turns an idea into a Diagram: one structural call, then one artwork call per
    visual component, all running concurrently. The first artwork failure aborts
    the whole assembly (fail-fast); no partial Diagram is ever returned.
    """
    def __init__(self, backend: Any, max_concurrency: int | None = None):
        self.backend = backend
        limit = settings.MAX_CONCURRENT_ARTWORK if max_concurrency is None else max_concurrency
        self._semaphore = asyncio.Semaphore(limit) if limit > 0 else None

    async def assemble(self, idea: str, on_progress: ProgressCallback | None = None) -> Diagram:
        require_sync_callback(on_progress)
        report = on_progress or (lambda update: None)

        report(ProgressUpdate(message="Generating model structure..."))
        prompt = DIAGRAM_STRUCTURE_PROMPT.format(canvas_size=settings.CANVAS_SIZE, idea=idea)
        try:
            raw_text = await self.backend.generate_structured_diagram(prompt)
        except GenerationFailure:
            raise
        except Exception as e:
            logger.error("Structural generation call failed: %s", e)
            raise GenerationFailure(f"Failed to generate model: {e}") from e

        diagram = parse_diagram(raw_text)
        visuals = diagram.visual_components
        total = len(visuals)
        logger.info("Structure generated: %d components, %d need artwork.", len(diagram.components), total)
        report(ProgressUpdate(message=f"Generating {total} component images...", total=total))

        enriched = await self._enrich_all(visuals, report)
        return self.merge(diagram, enriched)

    async def _enrich_all(self, visuals: list[Component], report: Callable) -> dict[str, Component]:
        total = len(visuals)
        tasks = [asyncio.create_task(self._enrich(component)) for component in visuals]
        enriched: dict[str, Component] = {}
        try:
            for completed, next_done in enumerate(asyncio.as_completed(tasks), start=1):
                component = await next_done
                enriched[component.id] = component
                report(ProgressUpdate(
                    message=f"Generating component images ({completed}/{total})...",
                    completed=completed,
                    total=total,
                ))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return enriched

    async def _enrich(self, component: Component) -> Component:
        prompt = COMPONENT_ARTWORK_PROMPT.format(label=component.label)
        try:
            if self._semaphore is None:
                artwork_ref = await self.backend.generate_component_artwork(prompt)
            else:
                async with self._semaphore:
                    artwork_ref = await self.backend.generate_component_artwork(prompt)
        except Exception as e:
            logger.error("Failed to generate image for %s: %s", component.label, e)
            raise GenerationFailure(
                f"Failed to generate model: could not generate image for {component.label}."
            ) from e
        return component.model_copy(update={"artwork_ref": artwork_ref})

    @staticmethod
    def merge(diagram: Diagram, enriched: dict[str, Component]) -> Diagram:
        """Swap in enriched components by id, keeping the input order."""
        return Diagram(components=[enriched.get(c.id, c) if c.is_visual else c for c in diagram.components])
