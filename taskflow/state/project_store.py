"""Project state: cached projects and per-status views."""

from typing import Any

from taskflow.domain.project import (
    MilestoneCreate,
    MilestoneUpdate,
    Project,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    ResourceCreate,
    ResourceUpdate,
    RiskCreate,
    RiskUpdate,
)
from taskflow.services.project_service import ProjectService
from taskflow.state.base import CollectionStore


class ProjectStore(CollectionStore[Project]):
    """Cached projects for a UI."""

    label = "projects"

    def __init__(self, project_service: ProjectService) -> None:
        super().__init__()
        self._service = project_service

    async def _fetch(self) -> list[Project]:
        return await self._service.get_all()

    @property
    def projects(self) -> list[Project]:
        return self.items

    def with_status(self, status: ProjectStatus) -> list[Project]:
        return [project for project in self._items if project.status == status]

    @property
    def active(self) -> list[Project]:
        return self.with_status(ProjectStatus.ACTIVE)

    @property
    def planning(self) -> list[Project]:
        return self.with_status(ProjectStatus.PLANNING)

    @property
    def on_hold(self) -> list[Project]:
        return self.with_status(ProjectStatus.ON_HOLD)

    @property
    def completed(self) -> list[Project]:
        return self.with_status(ProjectStatus.COMPLETED)

    @property
    def archived(self) -> list[Project]:
        return self.with_status(ProjectStatus.ARCHIVED)

    def get(self, project_id: str) -> Project | None:
        return next((project for project in self._items if project.id == project_id), None)

    async def create_project(self, data: ProjectCreate | dict[str, Any]) -> Project:
        return await self._mutate("Failed to create project", lambda: self._service.create(data=data))

    async def update_project(self, project_id: str, changes: ProjectUpdate | dict[str, Any]) -> Project:
        return await self._mutate(
            "Failed to update project", lambda: self._service.update(project_id=project_id, changes=changes)
        )

    async def delete_project(self, project_id: str) -> None:
        await self._mutate("Failed to delete project", lambda: self._service.delete(project_id=project_id))

    async def update_project_status(self, project_id: str, status: ProjectStatus) -> Project:
        return await self._mutate(
            "Failed to update project status",
            lambda: self._service.update(project_id=project_id, changes={"status": status}),
        )

    async def add_todo_to_project(self, project_id: str, todo_id: str) -> Project:
        return await self._mutate(
            "Failed to add todo to project",
            lambda: self._service.add_todo_to_project(project_id=project_id, todo_id=todo_id),
        )

    async def remove_todo_from_project(self, project_id: str, todo_id: str) -> Project:
        return await self._mutate(
            "Failed to remove todo from project",
            lambda: self._service.remove_todo_from_project(project_id=project_id, todo_id=todo_id),
        )

    async def update_project_progress(self, project_id: str) -> int:
        return await self._mutate(
            "Failed to update project progress",
            lambda: self._service.update_project_progress(project_id=project_id),
        )

    async def add_milestone(self, project_id: str, data: MilestoneCreate | dict[str, Any]) -> Project:
        return await self._mutate(
            "Failed to add milestone", lambda: self._service.add_milestone(project_id=project_id, data=data)
        )

    async def update_milestone(
        self, project_id: str, milestone_id: str, changes: MilestoneUpdate | dict[str, Any]
    ) -> Project:
        return await self._mutate(
            "Failed to update milestone",
            lambda: self._service.update_milestone(project_id=project_id, milestone_id=milestone_id, changes=changes),
        )

    async def delete_milestone(self, project_id: str, milestone_id: str) -> Project:
        return await self._mutate(
            "Failed to delete milestone",
            lambda: self._service.delete_milestone(project_id=project_id, milestone_id=milestone_id),
        )

    async def add_resource(self, project_id: str, data: ResourceCreate | dict[str, Any]) -> Project:
        return await self._mutate(
            "Failed to add resource", lambda: self._service.add_resource(project_id=project_id, data=data)
        )

    async def update_resource(
        self, project_id: str, resource_id: str, changes: ResourceUpdate | dict[str, Any]
    ) -> Project:
        return await self._mutate(
            "Failed to update resource",
            lambda: self._service.update_resource(project_id=project_id, resource_id=resource_id, changes=changes),
        )

    async def delete_resource(self, project_id: str, resource_id: str) -> Project:
        return await self._mutate(
            "Failed to delete resource",
            lambda: self._service.delete_resource(project_id=project_id, resource_id=resource_id),
        )

    async def add_risk(self, project_id: str, data: RiskCreate | dict[str, Any]) -> Project:
        return await self._mutate(
            "Failed to add risk", lambda: self._service.add_risk(project_id=project_id, data=data)
        )

    async def update_risk(self, project_id: str, risk_id: str, changes: RiskUpdate | dict[str, Any]) -> Project:
        return await self._mutate(
            "Failed to update risk",
            lambda: self._service.update_risk(project_id=project_id, risk_id=risk_id, changes=changes),
        )

    async def delete_risk(self, project_id: str, risk_id: str) -> Project:
        return await self._mutate(
            "Failed to delete risk", lambda: self._service.delete_risk(project_id=project_id, risk_id=risk_id)
        )
