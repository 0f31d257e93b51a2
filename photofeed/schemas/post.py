from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from photofeed.schemas.user import UserBrief


class PhotoOut(BaseModel):
    id: int
    photo: str
    url: Optional[str] = None

    class Config:
        from_attributes = True


class PostOut(BaseModel):
    id: int
    created_by: str
    content: Optional[str] = None
    status: str
    like_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
    photos: List[PhotoOut] = []
    # only set when the request carried an identity
    liked: Optional[bool] = None

    class Config:
        from_attributes = True


class LikeOut(BaseModel):
    liker: str
    created_at: datetime
    user: UserBrief

    class Config:
        from_attributes = True
