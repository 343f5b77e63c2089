"""Comment and reaction API routes.

Posting comments and reacting is open to visitors; editing and deleting
comments is admin-only.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from folio.api.degrade import read_or_empty
from folio.auth.dependencies import require_admin
from folio.db.engine import get_db
from folio.schemas.comment import (
    CommentCreate,
    CommentRead,
    CommentUpdate,
    ReactionResult,
    ReactionToggle,
)
from folio.services.comment_service import CommentService, UnknownReactionType

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


@router.get("/comments", response_model=list[CommentRead])
async def list_comments(svc: CommentService = Depends(_svc)):
    """Newest first, with reactions."""
    return await read_or_empty(svc.list_comments, [], what="comments")


@router.post("/comments", response_model=CommentRead, status_code=201)
async def create_comment(body: CommentCreate, svc: CommentService = Depends(_svc)):
    return await svc.create_comment(body.text)


@router.patch(
    "/comments/{comment_id}",
    response_model=CommentRead,
    dependencies=[Depends(require_admin)],
)
async def update_comment(
    comment_id: str, body: CommentUpdate, svc: CommentService = Depends(_svc)
):
    comment = await svc.update_comment(comment_id, body.text)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


@router.delete("/comments/{comment_id}", dependencies=[Depends(require_admin)])
async def delete_comment(comment_id: str, svc: CommentService = Depends(_svc)):
    if not await svc.delete_comment(comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")
    return {"success": True}


@router.post("/comments/{comment_id}/reactions", response_model=ReactionResult)
async def toggle_reaction(
    comment_id: str, body: ReactionToggle, svc: CommentService = Depends(_svc)
):
    """Add the visitor's reaction, or remove it if they already reacted."""
    try:
        action = await svc.toggle_reaction(comment_id, body.user_id, body.type)
    except UnknownReactionType as e:
        raise HTTPException(status_code=400, detail=str(e))
    if action is None:
        raise HTTPException(status_code=404, detail="Comment not found")
    return {"action": action}
