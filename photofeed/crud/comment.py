import logging
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from photofeed.core.exceptions import AppError, NotFoundError, ValidationError
from photofeed.core.pagination import Page
from photofeed.db.models.comment import Comment
from photofeed.db.models.like import CommentLike
from photofeed.db.models.post import Post
from photofeed.db.models.user import User
from photofeed.schemas.comment import CommentLikeOut, CommentOut

MAX_COMMENT_LENGTH = 1000


def clean_comment(content: Optional[str]) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("missing parameters")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"content must be at most {MAX_COMMENT_LENGTH} characters")
    return content


def _reply_counts(db: Session, comment_ids: List[int]) -> Dict[int, int]:
    if not comment_ids:
        return {}
    rows = db.query(Comment.parent_id, func.count(Comment.id))\
        .filter(Comment.parent_id.in_(comment_ids))\
        .group_by(Comment.parent_id)\
        .all()
    return {parent_id: count for parent_id, count in rows}


def _liked_ids(db: Session, comment_ids: List[int], user: Optional[User]) -> Optional[set]:
    if user is None:
        return None
    if not comment_ids:
        return set()
    rows = db.query(CommentLike.comment_id).filter(
        CommentLike.comment_id.in_(comment_ids),
        CommentLike.liker == user.username
    ).all()
    return {comment_id for (comment_id,) in rows}


def shape_comments(db: Session, comments: List[Comment], user: Optional[User] = None) -> List[CommentOut]:
    ids = [comment.id for comment in comments]
    reply_counts = _reply_counts(db, ids)
    liked_ids = _liked_ids(db, ids, user)
    shaped = []
    for comment in comments:
        out = CommentOut.model_validate(comment)
        out.reply_count = reply_counts.get(comment.id, 0)
        out.liked = None if liked_ids is None else comment.id in liked_ids
        shaped.append(out)
    return shaped


def _save(db: Session, comment: Comment, action: str) -> None:
    try:
        db.add(comment)
        db.commit()
        db.refresh(comment)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {str(e)}")
        raise AppError(f"failed to {action} comment")


def create_comment(db: Session, post_id: int, user: User, content: Optional[str]) -> CommentOut:
    content = clean_comment(content)

    if not db.query(Post.id).filter(Post.id == post_id).first():
        raise NotFoundError("post not found")

    comment = Comment(commenter=user.username, post_id=post_id, content=content, like_count=0)
    _save(db, comment, "create")
    return shape_comments(db, [comment], user)[0]


def get_comments(db: Session, post: Post, page: Page, user: Optional[User] = None) -> List[CommentOut]:
    comments = db.query(Comment)\
        .options(joinedload(Comment.user))\
        .filter(Comment.post_id == post.id, Comment.parent_id.is_(None))\
        .order_by(Comment.id.asc())\
        .offset(page.offset)\
        .limit(page.limit)\
        .all()
    return shape_comments(db, comments, user)


def update_comment(db: Session, comment: Comment, user: User, content: Optional[str]) -> CommentOut:
    comment.content = clean_comment(content)
    comment.updated_at = datetime.utcnow()
    _save(db, comment, "update")
    return shape_comments(db, [comment], user)[0]


def delete_comment(db: Session, comment: Comment) -> str:
    try:
        db.delete(comment)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {str(e)}")
        raise AppError("failed to delete comment")
    return "deleted"


def reply_comment(db: Session, comment: Comment, user: User, content: Optional[str]) -> CommentOut:
    content = clean_comment(content)
    # replies stay one level deep, a reply to a reply joins its thread
    parent_id = comment.parent_id or comment.id
    reply = Comment(
        commenter=user.username,
        post_id=comment.post_id,
        parent_id=parent_id,
        content=content,
        like_count=0,
    )
    _save(db, reply, "create")
    return shape_comments(db, [reply], user)[0]


def get_replies(db: Session, comment: Comment, page: Page, user: Optional[User] = None) -> List[CommentOut]:
    parent_id = comment.parent_id or comment.id
    replies = db.query(Comment)\
        .options(joinedload(Comment.user))\
        .filter(Comment.parent_id == parent_id)\
        .order_by(Comment.id.asc())\
        .offset(page.offset)\
        .limit(page.limit)\
        .all()
    return shape_comments(db, replies, user)


def count_comment_likes(db: Session, comment_id: int) -> int:
    return db.query(func.count(CommentLike.id)).filter(CommentLike.comment_id == comment_id).scalar() or 0


def toggle_comment_like(db: Session, comment_id: int, user: User) -> str:
    comment = db.query(Comment)\
        .filter(Comment.id == comment_id)\
        .with_for_update()\
        .populate_existing()\
        .first()
    if not comment:
        raise NotFoundError("comment not found")

    existing_like = db.query(CommentLike).filter(
        CommentLike.liker == user.username,
        CommentLike.comment_id == comment_id
    ).first()

    try:
        if existing_like:
            db.delete(existing_like)
            result = "unliked"
        else:
            db.add(CommentLike(liker=user.username, comment_id=comment_id))
            result = "liked"
        db.flush()
        comment.like_count = count_comment_likes(db, comment_id)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logging.warning(f"Duplicate like by {user.username} on comment {comment_id}: {str(e)}")
        return "liked"
    return result


def get_comment_likes(db: Session, comment: Comment, page: Page) -> List[CommentLikeOut]:
    likes = db.query(CommentLike)\
        .options(joinedload(CommentLike.user))\
        .filter(CommentLike.comment_id == comment.id)\
        .order_by(CommentLike.created_at.asc(), CommentLike.id.asc())\
        .offset(page.offset)\
        .limit(page.limit)\
        .all()
    return [CommentLikeOut.model_validate(like) for like in likes]
