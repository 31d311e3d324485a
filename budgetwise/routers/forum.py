"""
Forum Router
Community posts, comments and likes
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from budgetwise.db.store import KeyValueStore
from budgetwise.models.forum import CommentCreate, ForumPostCreate, ForumPostPublic
from budgetwise.routers.budgets import get_store
from budgetwise.utils.forum import (
    ForumBoard,
    ForumPermissionError,
    InvalidPostError,
    PostNotFoundError,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def get_forum(store: KeyValueStore = Depends(get_store)) -> ForumBoard:
    return ForumBoard(store)


@router.get("/posts", response_model=List[ForumPostPublic])
def list_posts(forum: ForumBoard = Depends(get_forum)):
    return forum.list_posts()


@router.post("/posts", response_model=ForumPostPublic, status_code=status.HTTP_201_CREATED)
def create_post(post: ForumPostCreate, forum: ForumBoard = Depends(get_forum)):
    try:
        return forum.create_post(post.title, post.body, post.author_id, post.author_name)
    except InvalidPostError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/posts/{post_id}/comments", response_model=ForumPostPublic)
def add_comment(post_id: str, comment: CommentCreate, forum: ForumBoard = Depends(get_forum)):
    try:
        return forum.add_comment(post_id, comment.text, comment.author_name)
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")
    except InvalidPostError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/posts/{post_id}/like", response_model=ForumPostPublic)
def like_post(post_id: str, forum: ForumBoard = Depends(get_forum)):
    try:
        return forum.like_post(post_id)
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: str,
    x_user_id: Optional[str] = Header(default=None),
    forum: ForumBoard = Depends(get_forum),
):
    """
    The caller identifies itself with the X-User-Id header, matched against the post's author_id.
    """
    try:
        forum.delete_post(post_id, x_user_id)
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")
    except ForumPermissionError as e:
        logger.warning(f"Rejected delete of post {post_id}: {e}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return None
