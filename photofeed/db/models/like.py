from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from photofeed.db.base import Base

class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("liker", "post_id", name="uq_like_liker_post"),)

    id = Column(Integer, primary_key=True, index=True)
    liker = Column(String(30), ForeignKey("users.username", ondelete="CASCADE"), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="likes")
    post = relationship("Post", back_populates="likes")


class CommentLike(Base):
    __tablename__ = "comment_likes"
    __table_args__ = (UniqueConstraint("liker", "comment_id", name="uq_comment_like_liker_comment"),)

    id = Column(Integer, primary_key=True, index=True)
    liker = Column(String(30), ForeignKey("users.username", ondelete="CASCADE"), nullable=False)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="comment_likes")
    comment = relationship("Comment", back_populates="likes")
