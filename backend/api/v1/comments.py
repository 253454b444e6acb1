"""Comment edit and delete endpoints.

Comments are created and listed under ``/posts/{post_id}/comments``; once
created they are addressed by their own id.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user_id, get_db, parse_comment_id
from core import EntityId
from services.comments import delete_comment, update_comment
from services.errors import NotFoundError
from services.users import load_author_summaries

from .schemas import CommentMutationResponse, CommentRequest, CommentResponse, MessageResponse

router = APIRouter(prefix="/comments", tags=["comments"])


@router.put("/{comment_id}", response_model=CommentMutationResponse)
async def update_comment_endpoint(
    payload: CommentRequest,
    comment_id: EntityId = Depends(parse_comment_id),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> CommentMutationResponse:
    comment = await update_comment(
        session,
        comment_id=comment_id,
        user_id=user_id,
        content=payload.content,
    )
    # Missing and foreign comments share one response.
    if comment is None:
        raise NotFoundError("Comment not found or you are not authorized to edit it")

    authors = await load_author_summaries(session, [user_id])
    return CommentMutationResponse(
        message="Comment updated successfully",
        comment=CommentResponse.from_comment(comment, authors.get(user_id)),
    )


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment_endpoint(
    comment_id: EntityId = Depends(parse_comment_id),
    session: AsyncSession = Depends(get_db),
    user_id: EntityId = Depends(get_current_user_id),
) -> MessageResponse:
    if not await delete_comment(session, comment_id=comment_id, user_id=user_id):
        raise NotFoundError("Comment not found or you are not authorized to delete it")
    return MessageResponse(message="Comment deleted successfully")
