"""
Community forum posts with comments and likes, kept in the key-value store.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from budgetwise.db.store import KeyValueStore

logger = logging.getLogger(__name__)

POSTS_KEY = "forum_posts_v1"


class PostNotFoundError(LookupError):
    """Raised when a forum post id does not exist."""


class ForumPermissionError(PermissionError):
    """Raised when someone other than the author tries to delete a post."""


class InvalidPostError(ValueError):
    """Raised for a post or comment without content."""


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class ForumBoard:
    """Posts are stored oldest first and listed newest first."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _posts(self) -> List[Dict[str, Any]]:
        posts = self.store.read(POSTS_KEY, [])
        return posts if isinstance(posts, list) else []

    def _find(self, posts: List[Dict[str, Any]], post_id: str) -> Dict[str, Any]:
        for post in posts:
            if post.get("id") == post_id:
                return post
        raise PostNotFoundError(f"Post {post_id} not found")

    def list_posts(self) -> List[Dict[str, Any]]:
        return list(reversed(self._posts()))

    def get_post(self, post_id: str) -> Dict[str, Any]:
        return self._find(self._posts(), post_id)

    def create_post(
        self,
        title: str,
        body: str = "",
        author_id: Optional[str] = None,
        author_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        title = _clean(title)
        if not title:
            raise InvalidPostError("Post title is required")

        post = {
            "id": f"p_{uuid4().hex[:12]}",
            "title": title,
            "body": str(body or ""),
            "author_id": _clean(author_id),
            "author_name": _clean(author_name),
            "created_at": datetime.utcnow().isoformat(),
            "likes": 0,
            "comments": [],
        }
        posts = self._posts()
        posts.append(post)
        self.store.write(POSTS_KEY, posts)
        logger.info(f"Created forum post {post['id']}")
        return post

    def add_comment(self, post_id: str, text: str, author_name: Optional[str] = None) -> Dict[str, Any]:
        text = _clean(text)
        if not text:
            raise InvalidPostError("Comment text is required")

        posts = self._posts()
        post = self._find(posts, post_id)
        post.setdefault("comments", []).append(
            {
                "text": text,
                "author_name": _clean(author_name),
                "created_at": datetime.utcnow().isoformat(),
            }
        )
        self.store.write(POSTS_KEY, posts)
        return post

    def like_post(self, post_id: str) -> Dict[str, Any]:
        posts = self._posts()
        post = self._find(posts, post_id)
        post["likes"] = int(post.get("likes") or 0) + 1
        self.store.write(POSTS_KEY, posts)
        return post

    def delete_post(self, post_id: str, user_id: Optional[str]) -> None:
        """
        Only the author may delete a post; anonymous posts cannot be deleted.
        """
        posts = self._posts()
        post = self._find(posts, post_id)
        author_id = post.get("author_id")
        if not author_id or not user_id or author_id != user_id:
            raise ForumPermissionError("Unauthorized to delete post")

        self.store.write(POSTS_KEY, [p for p in posts if p.get("id") != post_id])
        logger.info(f"Deleted forum post {post_id}")
