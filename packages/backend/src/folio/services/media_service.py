"""Media service — business logic for images, tracks, and projects.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database. The realtime
collections reuse the same list_* queries, so the stream always carries
exactly what the GET endpoints return.
"""

from typing import Any, Optional, TypeVar

from sqlalchemy import func, nulls_last, select
from sqlalchemy.ext.asyncio import AsyncSession

from folio.db.models import Base, Image, Project, Track

ModelT = TypeVar("ModelT", bound=Base)


class MediaService:
    """CRUD for the three ordered media collections."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Shared helpers ─────────────────────────────────

    async def _next_order(self, model: type[Base]) -> int:
        """max(order) + 1, or 0 for an empty table."""
        result = await self.db.execute(select(func.max(model.order)))
        current = result.scalar()
        return 0 if current is None else current + 1

    async def _create(self, model: type[ModelT], fields: dict[str, Any]) -> ModelT:
        if fields.get("order") is None:
            fields["order"] = await self._next_order(model)
        obj = model(**fields)
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def _update(
        self, model: type[ModelT], obj_id: str, fields: dict[str, Any]
    ) -> Optional[ModelT]:
        obj = await self.db.get(model, obj_id)
        if obj is None:
            return None
        for name, value in fields.items():
            setattr(obj, name, value)
        await self.db.commit()
        return obj

    async def _delete(self, model: type[Base], obj_id: str) -> bool:
        obj = await self.db.get(model, obj_id)
        if obj is None:
            return False
        await self.db.delete(obj)
        await self.db.commit()
        return True

    # ─── Images ─────────────────────────────────────────

    async def list_images(self) -> list[Image]:
        result = await self.db.execute(
            select(Image).order_by(Image.order.asc(), Image.created_at.asc())
        )
        return list(result.scalars().all())

    async def create_image(self, **fields) -> Image:
        return await self._create(Image, fields)

    async def update_image(self, image_id: str, **fields) -> Optional[Image]:
        return await self._update(Image, image_id, fields)

    async def delete_image(self, image_id: str) -> bool:
        return await self._delete(Image, image_id)

    # ─── Tracks ─────────────────────────────────────────

    async def list_tracks(self) -> list[Track]:
        result = await self.db.execute(
            select(Track).order_by(Track.order.asc(), Track.created_at.asc())
        )
        return list(result.scalars().all())

    async def create_track(self, **fields) -> Track:
        return await self._create(Track, fields)

    async def update_track(self, track_id: str, **fields) -> Optional[Track]:
        return await self._update(Track, track_id, fields)

    async def delete_track(self, track_id: str) -> bool:
        return await self._delete(Track, track_id)

    # ─── Projects ───────────────────────────────────────

    async def list_projects(self) -> list[Project]:
        """Ordered projects first, then unordered ones, newest first within ties."""
        result = await self.db.execute(
            select(Project).order_by(
                nulls_last(Project.order.asc()), Project.created_at.desc()
            )
        )
        return list(result.scalars().all())

    async def backfill_project_order(self) -> list[Project]:
        """Give projects without an order the next free positions, in list order.

        Learn: legacy rows predate manual ordering. Rather than a one-off
        migration, the public listing assigns them positions after the
        current maximum and persists that, so the admin panel sees a
        complete ordering.
        """
        projects = await self.list_projects()
        unordered = [p for p in projects if p.order is None]
        if not unordered:
            return projects

        next_order = max((p.order for p in projects if p.order is not None), default=-1) + 1
        for offset, project in enumerate(unordered):
            project.order = next_order + offset
        await self.db.commit()
        return projects

    async def create_project(self, **fields) -> Project:
        return await self._create(Project, fields)

    async def update_project(self, project_id: str, **fields) -> Optional[Project]:
        return await self._update(Project, project_id, fields)

    async def delete_project(self, project_id: str) -> bool:
        return await self._delete(Project, project_id)
