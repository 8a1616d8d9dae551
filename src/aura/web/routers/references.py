"""Saved event drafts of the signed-in user."""

from fastapi import APIRouter

from aura.core.modules.reference.models import Reference, ReferenceData
from aura.web.deps import AppDep, AuthTokenDep
from aura.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["references"])


@router.get(
    "/references",
    summary="List references",
    description="Get the caller's references, newest first.",
    operation_id="listReferences",
    responses={
        200: {"description": "List of references"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_references(app: AppDep, auth_token: AuthTokenDep) -> list[Reference]:
    return await app.list_references(auth_token)


@router.post(
    "/references",
    summary="Create reference",
    description="Save an event draft. Participant names and avatars are taken from their profiles.",
    operation_id="createReference",
    status_code=201,
    responses={
        201: {"description": "Reference created successfully"},
        400: {"model": ErrorResponse, "description": "More participants than the capacity"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Participant not found"},
    },
)
async def create_reference(request: ReferenceData, app: AppDep, auth_token: AuthTokenDep) -> Reference:
    return await app.create_reference(auth_token, request)


@router.get(
    "/references/{reference_id}",
    summary="Get reference",
    operation_id="getReference",
    responses={
        200: {"description": "Reference details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Reference not found"},
    },
)
async def get_reference(reference_id: str, app: AppDep, auth_token: AuthTokenDep) -> Reference:
    return await app.get_reference(auth_token, reference_id)


@router.put(
    "/references/{reference_id}",
    summary="Update reference",
    description="Replace every field of a reference. Only its owner can change it.",
    operation_id="updateReference",
    responses={
        200: {"description": "Reference updated"},
        400: {"model": ErrorResponse, "description": "More participants than the capacity"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Reference or participant not found"},
    },
)
async def update_reference(reference_id: str, request: ReferenceData, app: AppDep, auth_token: AuthTokenDep) -> Reference:
    return await app.update_reference(auth_token, reference_id, request)


@router.delete(
    "/references/{reference_id}",
    summary="Delete reference",
    operation_id="deleteReference",
    status_code=204,
    responses={
        204: {"description": "Reference deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Reference not found"},
    },
)
async def delete_reference(reference_id: str, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_reference(auth_token, reference_id)
