"""Project routes; access follows the parent portfolio."""

from __future__ import annotations

from fastapi import APIRouter, status

from spatial_showcase.api.dependencies import CurrentIdentity, OptionalIdentity, Services
from spatial_showcase.api.schemas.common import MessageResponse
from spatial_showcase.api.schemas.projects import (
    ProjectCreateRequest,
    ProjectEnvelope,
    ProjectListEnvelope,
    ProjectResponse,
    ProjectUpdateRequest,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "/portfolio/{portfolio_id}",
    response_model=ProjectListEnvelope,
    summary="List projects in a portfolio",
)
async def list_projects(
    portfolio_id: str, identity: OptionalIdentity, services: Services
) -> ProjectListEnvelope:
    projects = await services.content.list_projects(identity, portfolio_id)
    return ProjectListEnvelope(projects=[ProjectResponse.model_validate(p) for p in projects])


@router.get("/{project_id}", response_model=ProjectEnvelope, summary="Get a project")
async def get_project(
    project_id: str, identity: OptionalIdentity, services: Services
) -> ProjectEnvelope:
    project = await services.content.get_project(identity, project_id)
    return ProjectEnvelope(project=ProjectResponse.model_validate(project))


@router.post(
    "",
    response_model=ProjectEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
async def create_project(
    request: ProjectCreateRequest, identity: CurrentIdentity, services: Services
) -> ProjectEnvelope:
    project = await services.content.create_project(
        identity,
        request.portfolio_id,
        title=request.title,
        description=request.description,
        order_index=request.order_index,
        panel_count=request.panel_count,
    )
    return ProjectEnvelope(project=ProjectResponse.model_validate(project))


@router.put("/{project_id}", response_model=ProjectEnvelope, summary="Update a project")
async def update_project(
    project_id: str,
    request: ProjectUpdateRequest,
    identity: CurrentIdentity,
    services: Services,
) -> ProjectEnvelope:
    project = await services.content.update_project(
        identity, project_id, request.model_dump(exclude_unset=True)
    )
    return ProjectEnvelope(project=ProjectResponse.model_validate(project))


@router.delete("/{project_id}", response_model=MessageResponse, summary="Delete a project")
async def delete_project(
    project_id: str, identity: CurrentIdentity, services: Services
) -> MessageResponse:
    await services.content.delete_project(identity, project_id)
    return MessageResponse(message="Project deleted successfully")
