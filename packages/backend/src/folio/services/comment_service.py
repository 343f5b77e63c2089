"""Comment service — visitor comments and emoji reaction toggles."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from folio.db.models import Comment, CommentReaction
from folio.schemas.comment import REACTION_TYPES


class UnknownReactionType(ValueError):
    pass


def normalize_reaction_type(value: str) -> str:
    """Map "like"/"likes" etc. to the counter column name."""
    try:
        return REACTION_TYPES[value.strip().lower()]
    except KeyError:
        raise UnknownReactionType(f"Invalid reaction type: {value}") from None


class CommentService:
    """Business logic for comments and reactions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_comments(self) -> list[Comment]:
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.reactions))
            .order_by(Comment.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_comment(self, comment_id: str) -> Optional[Comment]:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .options(selectinload(Comment.reactions))
        )
        return result.scalars().first()

    async def create_comment(self, text: str) -> Comment:
        comment = Comment(text=text, likes=0, fires=0, hearts=0, laughs=0, wows=0)
        comment.reactions = []
        self.db.add(comment)
        await self.db.commit()
        return comment

    async def update_comment(self, comment_id: str, text: str) -> Optional[Comment]:
        comment = await self.get_comment(comment_id)
        if comment is None:
            return None
        comment.text = text
        await self.db.commit()
        return comment

    async def delete_comment(self, comment_id: str) -> bool:
        comment = await self.get_comment(comment_id)
        if comment is None:
            return False
        await self.db.delete(comment)
        await self.db.commit()
        return True

    async def toggle_reaction(
        self, comment_id: str, user_id: str, reaction_type: str
    ) -> Optional[str]:
        """Add the reaction if absent, remove it if present.

        Returns "added" / "removed", or None when the comment does not exist.
        Raises UnknownReactionType for an unrecognized type.

        Learn: the counter on Comment is denormalized for cheap listing.
        It moves together with the reaction row in one commit, and never
        drops below zero even if the two ever drift apart. When two
        identical toggles race, the loser rolls back and reports the state
        the winner left behind.
        """
        column = normalize_reaction_type(reaction_type)

        comment = await self.get_comment(comment_id)
        if comment is None:
            return None

        result = await self.db.execute(
            select(CommentReaction).where(
                CommentReaction.comment_id == comment_id,
                CommentReaction.user_id == user_id,
                CommentReaction.type == column,
            )
        )
        existing = result.scalars().first()

        current = getattr(comment, column)
        if existing is not None:
            await self.db.delete(existing)
            setattr(comment, column, max(0, current - 1))
            action = "removed"
        else:
            self.db.add(
                CommentReaction(comment_id=comment_id, user_id=user_id, type=column)
            )
            setattr(comment, column, current + 1)
            action = "added"

        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent identical click inserted the row first
            await self.db.rollback()
            return "added"
        return action
