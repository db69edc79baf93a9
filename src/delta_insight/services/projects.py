"""Project management for one owner."""

from __future__ import annotations

import sqlite3
from typing import Optional

from ..exceptions import MissingFieldError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..persistence import reader, writer
from ..persistence.database import retry_locked
from ..persistence.models import Project
from .context import OwnerContext

logger = get_logger(__name__)


class ProjectService:
    def __init__(self, conn: sqlite3.Connection, persistence_retries: int = 3):
        self.conn = conn
        self.persistence_retries = persistence_retries

    def create(self, ctx: OwnerContext, name: str, description: Optional[str] = None) -> Project:
        if not isinstance(name, str) or not name.strip():
            raise MissingFieldError("name")
        check_optional_text(description, "description")
        project = retry_locked(
            "create project",
            lambda: writer.save_project(self.conn, ctx.owner_id, name.strip(), description),
            self.persistence_retries,
        )
        logger.info("Created project %s", project.id)
        return project

    def list(self, ctx: OwnerContext) -> list[Project]:
        return reader.list_projects(self.conn, ctx.owner_id)

    def get(self, ctx: OwnerContext, project_id: str) -> Project:
        """Return the project if it exists and *ctx* owns it, else ``NotFoundError``."""
        project = None
        if project_id:
            project = reader.load_project(self.conn, project_id, owner_id=ctx.owner_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def delete(self, ctx: OwnerContext, project_id: str) -> None:
        project = self.get(ctx, project_id)
        retry_locked(
            "delete project",
            lambda: writer.delete_project(self.conn, project.id),
            self.persistence_retries,
        )
        logger.info("Deleted project %s", project.id)


def check_optional_text(value: object, field: str) -> None:
    """Reject a client-supplied value that is neither ``None`` nor a string."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
