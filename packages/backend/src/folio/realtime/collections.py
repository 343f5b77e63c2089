"""The collections pushed over /api/v1/realtime.

Each fetch opens its own short-lived session (AsyncSession is not safe
to share between concurrent tasks) and returns the same JSON shape as the
matching GET endpoint.
"""

from folio.db.engine import Database
from folio.realtime.broadcaster import TrackedCollection
from folio.schemas.comment import CommentRead
from folio.schemas.media import ImageRead, ProjectRead, TrackRead
from folio.schemas.stats import ViewCountRead
from folio.services.comment_service import CommentService
from folio.services.media_service import MediaService
from folio.services.stats_service import StatsService


def _by_id_and_version(record):
    return (record["id"], record["updated_at"])


def _by_count(record):
    return (record["count"], record["last_updated"])


def default_collections(database: Database) -> list[TrackedCollection]:
    async def images():
        async with database.session() as db:
            rows = await MediaService(db).list_images()
            return [ImageRead.model_validate(r).model_dump(mode="json") for r in rows]

    async def tracks():
        async with database.session() as db:
            rows = await MediaService(db).list_tracks()
            return [TrackRead.model_validate(r).model_dump(mode="json") for r in rows]

    async def projects():
        async with database.session() as db:
            rows = await MediaService(db).list_projects()
            return [ProjectRead.model_validate(r).model_dump(mode="json") for r in rows]

    async def comments():
        async with database.session() as db:
            rows = await CommentService(db).list_comments()
            return [CommentRead.model_validate(r).model_dump(mode="json") for r in rows]

    async def view_count():
        async with database.session() as db:
            row = await StatsService(db).get_view_count()
            if row is None:
                return ViewCountRead().model_dump(mode="json")
            return ViewCountRead.model_validate(row).model_dump(mode="json")

    return [
        TrackedCollection("images", images, _by_id_and_version),
        TrackedCollection("tracks", tracks, _by_id_and_version),
        TrackedCollection("projects", projects, _by_id_and_version),
        TrackedCollection("comments", comments, _by_id_and_version),
        TrackedCollection("view_count", view_count, _by_count),
    ]
