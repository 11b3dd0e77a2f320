"""Project service: CRUD, todo membership, progress and embedded sub-entities."""

import logging
from collections.abc import Callable
from typing import Any

from taskflow.core.config import constants
from taskflow.core.errors import NotFoundError
from taskflow.core.identifiers import generate_id, now_iso, percent
from taskflow.core.logging import span
from taskflow.domain.base import DomainModel, build_model, changes_of, parse_input
from taskflow.domain.project import (
    MilestoneCreate,
    MilestoneUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
    ResourceCreate,
    ResourceUpdate,
    RiskCreate,
    RiskUpdate,
)
from taskflow.domain.todo import Todo, TodoStatus
from taskflow.services.collection import find, index_of, load_collection, save_collection
from taskflow.services.todo_service import TodoService
from taskflow.storage.entities import Entity
from taskflow.storage.gateway import StorageGateway


logger = logging.getLogger(__name__)

# Receives the current project and returns the fields to change
ProjectMutation = Callable[[Project], dict[str, Any]]


def _new_child(payload: DomainModel, now: str) -> dict[str, Any]:
    return {**payload.model_dump(), "id": generate_id(), "created_at": now, "updated_at": now}


def _children(project: Project, field: str) -> list[dict[str, Any]]:
    return [child.model_dump() for child in getattr(project, field) or []]


def _child_index(children: list[dict[str, Any]], child_id: str, label: str) -> int:
    for index, child in enumerate(children):
        if child["id"] == child_id:
            return index
    raise NotFoundError(label, child_id)


class ProjectService:
    """CRUD over the projects collection.

    A project's todoIds and each member todo's projectId are kept in step:
    membership changes always go through add_todo_to_project and
    remove_todo_from_project.
    """

    def __init__(self, gateway: StorageGateway, todo_service: TodoService) -> None:
        self._gateway = gateway
        self._todos = todo_service

    async def _load(self) -> list[Project]:
        return await load_collection(self._gateway, Entity.PROJECTS, Project)

    async def _require(self, project_id: str) -> Project:
        project = find(await self._load(), project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    async def _require_todo(self, todo_id: str) -> Todo:
        todo = await self._todos.get_by_id(todo_id=todo_id)
        if todo is None:
            raise NotFoundError("Todo", todo_id)
        return todo

    async def _apply(self, project_id: str, mutate: ProjectMutation) -> Project:
        """Load, change, validate and persist one project in a single rewrite.

        Raises:
            NotFoundError: If the project (or a sub-entity looked up by mutate) is missing
            ValidationError: If the changed project fails validation
        """
        projects = await self._load()
        index = index_of(projects, project_id, "Project")
        current = projects[index]

        record = {**current.model_dump(), **mutate(current)}
        record.update(id=current.id, created_at=current.created_at, updated_at=now_iso())
        updated = build_model(Project, record)

        projects[index] = updated
        await save_collection(self._gateway, Entity.PROJECTS, projects)
        return updated

    async def get_all(self) -> list[Project]:
        """Get every project."""
        with span("project_service.get_all"):
            return await self._load()

    async def get_by_id(self, *, project_id: str) -> Project | None:
        """Get a project by ID, or None if it does not exist."""
        with span("project_service.get_by_id"):
            return find(await self._load(), project_id)

    async def create(self, *, data: ProjectCreate | dict[str, Any]) -> Project:
        """Create a new project.

        Args:
            data: Project fields; initial_milestones become embedded milestones

        Returns:
            Created project with empty membership and zero progress

        Raises:
            ValidationError: If the project fails validation
        """
        with span("project_service.create"):
            payload = parse_input(ProjectCreate, data)
            now = now_iso()

            record = payload.model_dump(exclude={"initial_milestones"})
            record.update(
                id=generate_id(),
                color=payload.color or constants.DEFAULT_PROJECT_COLOR,
                start_date=payload.start_date or now,
                todo_ids=[],
                progress=0,
                milestones=[_new_child(milestone, now) for milestone in payload.initial_milestones or []],
                created_at=now,
                updated_at=now,
            )
            project = build_model(Project, record)

            projects = await self._load()
            projects.append(project)
            await save_collection(self._gateway, Entity.PROJECTS, projects)

            logger.info("Created project: %s", project.name, extra={"project_id": project.id})
            return project

    async def update(self, *, project_id: str, changes: ProjectUpdate | dict[str, Any]) -> Project:
        """Apply a partial update, validating the merged project.

        Raises:
            NotFoundError: If the project does not exist
            ValidationError: If the merged project fails validation
        """
        with span("project_service.update"):
            payload = parse_input(ProjectUpdate, changes)
            updated = await self._apply(project_id, lambda _: changes_of(payload))
            logger.info("Updated project", extra={"project_id": project_id, "fields": sorted(changes_of(payload))})
            return updated

    async def delete(self, *, project_id: str) -> None:
        """Delete a project and detach its member todos.

        Raises:
            NotFoundError: If the project does not exist
        """
        with span("project_service.delete"):
            projects = await self._load()
            index = index_of(projects, project_id, "Project")
            del projects[index]
            await save_collection(self._gateway, Entity.PROJECTS, projects)

            for todo in await self._todos.get_by_project(project_id=project_id):
                await self._todos.update(todo_id=todo.id, changes={"project_id": None})

            logger.info("Deleted project", extra={"project_id": project_id})

    async def add_todo_to_project(self, *, project_id: str, todo_id: str) -> Project:
        """Make a todo a member of the project. Adding twice is a no-op.

        A todo that belonged to another project is removed from it first.

        Raises:
            NotFoundError: If the project or the todo does not exist
        """
        with span("project_service.add_todo_to_project"):
            project = await self._require(project_id)
            todo = await self._require_todo(todo_id)

            if todo_id in project.todo_ids:
                return project

            if todo.project_id and todo.project_id != project_id:
                previous = await self.get_by_id(project_id=todo.project_id)
                if previous is not None:
                    await self.remove_todo_from_project(project_id=previous.id, todo_id=todo_id)

            await self._todos.update(todo_id=todo_id, changes={"project_id": project_id})
            await self._apply(project_id, lambda current: {"todo_ids": [*current.todo_ids, todo_id]})
            await self.update_project_progress(project_id=project_id)

            logger.info("Added todo to project", extra={"project_id": project_id, "todo_id": todo_id})
            return await self._require(project_id)

    async def remove_todo_from_project(self, *, project_id: str, todo_id: str) -> Project:
        """Remove a todo from the project.

        The todo's projectId is only cleared when it still points at this project.

        Raises:
            NotFoundError: If the project does not exist
        """
        with span("project_service.remove_todo_from_project"):
            project = await self._require(project_id)
            if todo_id not in project.todo_ids:
                return project

            todo = await self._todos.get_by_id(todo_id=todo_id)
            if todo is not None and todo.project_id == project_id:
                await self._todos.update(todo_id=todo_id, changes={"project_id": None})

            await self._apply(
                project_id, lambda current: {"todo_ids": [tid for tid in current.todo_ids if tid != todo_id]}
            )
            await self.update_project_progress(project_id=project_id)

            logger.info("Removed todo from project", extra={"project_id": project_id, "todo_id": todo_id})
            return await self._require(project_id)

    async def update_project_progress(self, *, project_id: str) -> int:
        """Recompute progress as the rounded percentage of completed member todos.

        Returns:
            The new progress (0 for a project without todos)

        Raises:
            NotFoundError: If the project does not exist
        """
        with span("project_service.update_project_progress"):
            project = await self._require(project_id)
            members = set(project.todo_ids)
            completed = sum(
                1
                for todo in await self._todos.get_by_project(project_id=project_id)
                if todo.id in members and todo.status == TodoStatus.COMPLETED
            )
            progress = percent(completed, len(project.todo_ids))

            if progress != project.progress:
                await self._apply(project_id, lambda _: {"progress": progress})
                logger.debug("Project progress updated", extra={"project_id": project_id, "progress": progress})
            return progress

    async def get_project_todos(self, *, project_id: str) -> list[Todo]:
        return await self._todos.get_by_project(project_id=project_id)

    async def add_milestone(self, *, project_id: str, data: MilestoneCreate | dict[str, Any]) -> Project:
        """Append a milestone to the project."""
        with span("project_service.add_milestone"):
            payload = parse_input(MilestoneCreate, data)
            milestone = _new_child(payload, now_iso())
            return await self._apply(project_id, self._add_child("milestones", milestone))

    async def update_milestone(
        self, *, project_id: str, milestone_id: str, changes: MilestoneUpdate | dict[str, Any]
    ) -> Project:
        """Update a milestone; marking it completed stamps completedAt.

        Raises:
            NotFoundError: If the project or milestone does not exist
        """
        with span("project_service.update_milestone"):
            fields = changes_of(parse_input(MilestoneUpdate, changes))
            if fields.get("completed") and "completed_at" not in fields:
                fields["completed_at"] = now_iso()
            elif fields.get("completed") is False:
                fields["completed_at"] = None
            return await self._apply(project_id, self._update_child("milestones", "Milestone", milestone_id, fields))

    async def delete_milestone(self, *, project_id: str, milestone_id: str) -> Project:
        with span("project_service.delete_milestone"):
            return await self._apply(project_id, self._delete_child("milestones", "Milestone", milestone_id))

    async def add_resource(self, *, project_id: str, data: ResourceCreate | dict[str, Any]) -> Project:
        """Attach a file, link or note to the project."""
        with span("project_service.add_resource"):
            resource = _new_child(parse_input(ResourceCreate, data), now_iso())
            return await self._apply(project_id, self._add_child("resources", resource))

    async def update_resource(
        self, *, project_id: str, resource_id: str, changes: ResourceUpdate | dict[str, Any]
    ) -> Project:
        with span("project_service.update_resource"):
            fields = changes_of(parse_input(ResourceUpdate, changes))
            return await self._apply(project_id, self._update_child("resources", "Resource", resource_id, fields))

    async def delete_resource(self, *, project_id: str, resource_id: str) -> Project:
        with span("project_service.delete_resource"):
            return await self._apply(project_id, self._delete_child("resources", "Resource", resource_id))

    async def add_risk(self, *, project_id: str, data: RiskCreate | dict[str, Any]) -> Project:
        """Add an entry to the project's risk register."""
        with span("project_service.add_risk"):
            risk = _new_child(parse_input(RiskCreate, data), now_iso())
            return await self._apply(project_id, self._add_child("risks", risk))

    async def update_risk(self, *, project_id: str, risk_id: str, changes: RiskUpdate | dict[str, Any]) -> Project:
        with span("project_service.update_risk"):
            fields = changes_of(parse_input(RiskUpdate, changes))
            return await self._apply(project_id, self._update_child("risks", "Risk", risk_id, fields))

    async def delete_risk(self, *, project_id: str, risk_id: str) -> Project:
        with span("project_service.delete_risk"):
            return await self._apply(project_id, self._delete_child("risks", "Risk", risk_id))

    @staticmethod
    def _add_child(field: str, child: dict[str, Any]) -> ProjectMutation:
        def mutate(project: Project) -> dict[str, Any]:
            return {field: [*_children(project, field), child]}

        return mutate

    @staticmethod
    def _update_child(field: str, label: str, child_id: str, fields: dict[str, Any]) -> ProjectMutation:
        def mutate(project: Project) -> dict[str, Any]:
            children = _children(project, field)
            index = _child_index(children, child_id, label)
            children[index] = {**children[index], **fields, "id": child_id, "updated_at": now_iso()}
            return {field: children}

        return mutate

    @staticmethod
    def _delete_child(field: str, label: str, child_id: str) -> ProjectMutation:
        def mutate(project: Project) -> dict[str, Any]:
            children = _children(project, field)
            del children[_child_index(children, child_id, label)]
            return {field: children}

        return mutate
