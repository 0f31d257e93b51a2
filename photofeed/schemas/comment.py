from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from photofeed.schemas.user import UserBrief


class CommentIn(BaseModel):
    content: Optional[str] = None


class CommentOut(BaseModel):
    id: int
    post_id: int
    parent_id: Optional[int] = None
    commenter: str
    content: str
    like_count: int = 0
    reply_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
    user: UserBrief
    liked: Optional[bool] = None

    class Config:
        from_attributes = True


class CommentLikeOut(BaseModel):
    liker: str
    created_at: datetime
    user: UserBrief

    class Config:
        from_attributes = True
