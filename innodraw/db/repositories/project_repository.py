# innodraw/db/repositories/project_repository.py
import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any
from uuid import UUID
from pydantic import ValidationError
from innodraw.core.exceptions import StorageFailure
from innodraw.models.project import Project

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

class ProjectRepository:
    """
    Local, transactional key-value store of projects keyed by id.

    The whole store is one JSON document. Every operation holds an in-process
    lock for its read-modify-write cycle, and writes land through an atomic
    rename, so a reader never observes a half-written document.
    """
    def __init__(self, store_path: Path | str):
        self.store_path = Path(store_path)
        self._lock = asyncio.Lock()
        self._initialized = False

    async def list(self) -> list[Project]:
        async with self._lock:
            data = await self._read_store("list")
        projects = [self._to_project(record, "list") for record in data.values()]
        return sorted(projects, key=lambda project: project.created_at, reverse=True)

    async def get(self, project_id: UUID) -> Project | None:
        async with self._lock:
            data = await self._read_store("get")
        record = data.get(str(project_id))
        return self._to_project(record, "get") if record is not None else None

    async def save(self, project: Project) -> Project:
        """Insert or fully replace the project with the same id."""
        record = project.model_dump(mode="json")
        async with self._lock:
            data = await self._read_store("save")
            data[str(project.id)] = record
            await self._write_store(data, "save")
        logger.info("Saved project %s (%s).", project.id, project.name)
        return Project.model_validate(record)

    async def delete(self, project_id: UUID) -> None:
        async with self._lock:
            data = await self._read_store("delete")
            if data.pop(str(project_id), None) is None:
                return
            await self._write_store(data, "delete")
        logger.info("Deleted project %s.", project_id)

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        def _init() -> None:
            self.store_path.parent.mkdir(parents=True, exist_ok=True)
            if not self.store_path.exists():
                self._dump({"schema_version": SCHEMA_VERSION, "projects": {}})

        try:
            await asyncio.to_thread(_init)
        except OSError as exc:
            logger.error("Failed to open project store at %s: %s", self.store_path, exc)
            raise StorageFailure("open", "Failed to open database.") from exc
        self._initialized = True

    async def _read_store(self, operation: str) -> dict[str, Any]:
        await self._ensure_initialized()

        def _read() -> dict[str, Any]:
            with self.store_path.open("r", encoding="utf-8") as handle:
                return json.load(handle)

        try:
            document = await asyncio.to_thread(_read)
        except (OSError, ValueError) as exc:
            logger.error("Error reading project store during %s: %s", operation, exc)
            raise StorageFailure(operation, "Could not read projects from the database.") from exc

        projects = document.get("projects") if isinstance(document, dict) else None
        if not isinstance(projects, dict):
            raise StorageFailure(operation, "The project database is corrupted.")
        return projects

    async def _write_store(self, projects: dict[str, Any], operation: str) -> None:
        document = {"schema_version": SCHEMA_VERSION, "projects": projects}
        try:
            await asyncio.to_thread(self._dump, document)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error writing project store during %s: %s", operation, exc)
            raise StorageFailure(operation, "Could not write projects to the database.") from exc

    def _dump(self, document: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.store_path.parent, prefix=".projects-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.store_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def _to_project(record: Any, operation: str) -> Project:
        try:
            return Project.model_validate(record)
        except ValidationError as exc:
            raise StorageFailure(operation, "A stored project record is invalid.") from exc
