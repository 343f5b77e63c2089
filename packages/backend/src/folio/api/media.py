"""Image, track, and project API routes.

Learn: FastAPI routers define HTTP endpoints. Each route function
receives dependencies (db session) via Depends() and delegates
to the service layer. Reads are public and degrade to [] when the
database is unreachable; writes are admin-only.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from folio.api.degrade import read_or_empty
from folio.auth.dependencies import require_admin
from folio.db.engine import get_db
from folio.schemas.media import (
    ImageCreate,
    ImageRead,
    ImageUpdate,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    TrackCreate,
    TrackRead,
    TrackUpdate,
)
from folio.services.media_service import MediaService

router = APIRouter()

_admin = [Depends(require_admin)]


def _svc(db: AsyncSession = Depends(get_db)) -> MediaService:
    return MediaService(db)


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{what} not found")


# ─── Images ─────────────────────────────────────────────

@router.get("/images", response_model=list[ImageRead])
async def list_images(svc: MediaService = Depends(_svc)):
    return await read_or_empty(svc.list_images, [], what="images")


@router.post("/images", response_model=ImageRead, status_code=201, dependencies=_admin)
async def create_image(body: ImageCreate, svc: MediaService = Depends(_svc)):
    return await svc.create_image(**body.model_dump())


@router.patch("/images/{image_id}", response_model=ImageRead, dependencies=_admin)
async def update_image(image_id: str, body: ImageUpdate, svc: MediaService = Depends(_svc)):
    image = await svc.update_image(image_id, **body.model_dump(exclude_none=True))
    if not image:
        raise _not_found("Image")
    return image


@router.delete("/images/{image_id}", dependencies=_admin)
async def delete_image(image_id: str, svc: MediaService = Depends(_svc)):
    if not await svc.delete_image(image_id):
        raise _not_found("Image")
    return {"success": True}


# ─── Tracks ─────────────────────────────────────────────

@router.get("/tracks", response_model=list[TrackRead])
async def list_tracks(svc: MediaService = Depends(_svc)):
    return await read_or_empty(svc.list_tracks, [], what="tracks")


@router.post("/tracks", response_model=TrackRead, status_code=201, dependencies=_admin)
async def create_track(body: TrackCreate, svc: MediaService = Depends(_svc)):
    return await svc.create_track(**body.model_dump())


@router.patch("/tracks/{track_id}", response_model=TrackRead, dependencies=_admin)
async def update_track(track_id: str, body: TrackUpdate, svc: MediaService = Depends(_svc)):
    track = await svc.update_track(track_id, **body.model_dump(exclude_none=True))
    if not track:
        raise _not_found("Track")
    return track


@router.delete("/tracks/{track_id}", dependencies=_admin)
async def delete_track(track_id: str, svc: MediaService = Depends(_svc)):
    if not await svc.delete_track(track_id):
        raise _not_found("Track")
    return {"success": True}


# ─── Projects ───────────────────────────────────────────

@router.get("/projects", response_model=list[ProjectRead])
async def list_projects(svc: MediaService = Depends(_svc)):
    """List projects, assigning positions to any that have none yet."""
    return await read_or_empty(svc.backfill_project_order, [], what="projects")


@router.post("/projects", response_model=ProjectRead, status_code=201, dependencies=_admin)
async def create_project(body: ProjectCreate, svc: MediaService = Depends(_svc)):
    return await svc.create_project(**body.model_dump())


@router.patch("/projects/{project_id}", response_model=ProjectRead, dependencies=_admin)
async def update_project(
    project_id: str, body: ProjectUpdate, svc: MediaService = Depends(_svc)
):
    project = await svc.update_project(project_id, **body.model_dump(exclude_unset=True))
    if not project:
        raise _not_found("Project")
    return project


@router.delete("/projects/{project_id}", dependencies=_admin)
async def delete_project(project_id: str, svc: MediaService = Depends(_svc)):
    if not await svc.delete_project(project_id):
        raise _not_found("Project")
    return {"success": True}
