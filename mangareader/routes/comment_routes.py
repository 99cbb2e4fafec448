from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mangareader.database import get_async_session
from mangareader.deps.admin import require_user
from mangareader.models.comment_model import Comment
from mangareader.models.manga_model import Manga
from mangareader.models.user_model import User
from mangareader.schemas.comment_schemas import (
    CommentCreatedOut,
    CommentListOut,
    CommentOut,
    CreateCommentIn,
)
from mangareader.utils.token_utils import Identity

router = APIRouter(prefix="/comment", tags=["comments"])


# ------------------------------
# helpers
# ------------------------------
def _comment_to_out(c: Comment, author: User) -> CommentOut:
    return CommentOut(
        id=c.id,
        body=c.body,
        created_at=c.created_at,
        updated_at=c.updated_at,
        author={"username": author.username, "image": author.image or ""},
    )


async def _manga_by_slug(db: AsyncSession, slug: str) -> Manga:
    result = await db.execute(select(Manga).where(Manga.slug == slug))
    manga = result.scalars().first()
    if not manga:
        raise HTTPException(status_code=404, detail="Manga not found")
    return manga


async def _comments_for(db: AsyncSession, manga_id: int) -> List[CommentOut]:
    """Newest first; equal timestamps fall back to id."""
    result = await db.execute(
        select(Comment, User)
        .join(User, User.id == Comment.author_id)
        .where(Comment.manga_id == manga_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return [_comment_to_out(c, u) for (c, u) in result.all()]


# ------------------------------
# Routes
# ------------------------------
@router.post(
    "/create/{manga_slug}",
    response_model=CommentCreatedOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment_to_manga(
    manga_slug: str,
    payload: CreateCommentIn,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_async_session),
):
    commenter = await db.get(User, identity.user_id)
    if not commenter:
        raise HTTPException(status_code=404, detail="Commenter not found")

    manga = await _manga_by_slug(db, manga_slug)

    body = payload.comments.body.strip()
    if not body:
        raise HTTPException(status_code=400, detail="Comment body is required")

    comment = Comment(body=body, author_id=commenter.id, manga_id=manga.id)
    db.add(comment)
    await db.commit()

    return {
        "message": "Comment added successfully",
        "comments": _comment_to_out(comment, commenter),
    }


@router.get("/get/{manga_slug}", response_model=CommentListOut, response_model_exclude_none=True)
async def get_comments_from_manga(manga_slug: str, db: AsyncSession = Depends(get_async_session)):
    manga = await _manga_by_slug(db, manga_slug)
    return {"comments": await _comments_for(db, manga.id)}


@router.delete("/delete/{manga_slug}/{comment_id}", response_model=CommentListOut)
async def delete_comment_from_manga(
    manga_slug: str,
    comment_id: int,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_async_session),
):
    commenter = await db.get(User, identity.user_id)
    if not commenter:
        raise HTTPException(status_code=404, detail="User not found")

    manga = await _manga_by_slug(db, manga_slug)

    comment = await db.get(Comment, comment_id)
    if not comment or comment.manga_id != manga.id:
        raise HTTPException(status_code=404, detail="Comment not found")

    if comment.author_id != commenter.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author of the comment can delete the comment",
        )

    await db.delete(comment)
    await db.commit()

    return {
        "message": "Comment has been successfully deleted!!!",
        "comments": await _comments_for(db, manga.id),
    }
