from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
from photofeed.db.base import Base

POST_STATUSES = ("public", "private", "locked")

class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    created_by = Column(String(30), ForeignKey("users.username", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=True)
    status = Column(Enum(*POST_STATUSES, name="post_status"), nullable=False, default="public")
    like_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="posts")
    photos = relationship("PostPhoto", back_populates="post", cascade="all, delete-orphan",
                          order_by="PostPhoto.id", passive_deletes=True)
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)


class PostPhoto(Base):
    __tablename__ = "post_photos"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    photo = Column(String, nullable=False)

    post = relationship("Post", back_populates="photos")
