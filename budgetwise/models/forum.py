from typing import List, Optional

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    text: str = Field(min_length=1)
    author_name: Optional[str] = None


class Comment(BaseModel):
    text: str
    author_name: Optional[str] = None
    created_at: str


class ForumPostCreate(BaseModel):
    title: str = Field(min_length=1)
    body: str = ""
    author_id: Optional[str] = None
    author_name: Optional[str] = None


class ForumPostPublic(BaseModel):
    id: str
    title: str
    body: str = ""
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    created_at: str
    likes: int = 0
    comments: List[Comment] = Field(default_factory=list)
