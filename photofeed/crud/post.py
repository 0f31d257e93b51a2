import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from photofeed.core.exceptions import AppError, NotFoundError, ValidationError
from photofeed.core.pagination import Page
from photofeed.core.storage import PhotoStorage
from photofeed.db.models.like import Like
from photofeed.db.models.post import Post, PostPhoto, POST_STATUSES
from photofeed.db.models.user import User
from photofeed.schemas.post import LikeOut, PhotoOut, PostOut

MAX_CONTENT_LENGTH = 2200
POSTS_FOLDER = "posts"


def shape_post(post: Post, storage: PhotoStorage, liked: Optional[bool] = None) -> PostOut:
    return PostOut(
        id=post.id,
        created_by=post.created_by,
        content=post.content,
        status=post.status,
        like_count=post.like_count or 0,
        created_at=post.created_at,
        updated_at=post.updated_at,
        photos=[
            PhotoOut(id=photo.id, photo=photo.photo, url=storage.url_for(photo.photo))
            for photo in post.photos
        ],
        liked=liked,
    )


def clean_content(content: Optional[str]) -> Optional[str]:
    if content is None:
        return None
    content = content.strip()
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError(f"content must be at most {MAX_CONTENT_LENGTH} characters")
    return content or None


def check_status(status: Optional[str]) -> None:
    if status is not None and status not in POST_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(POST_STATUSES)}")


def select_photos(post: Post, remove_photos: Optional[str]) -> List[PostPhoto]:
    """Photos of ``post`` named in a comma separated id list, unknown ids are ignored."""
    if not remove_photos:
        return []
    wanted = set()
    for raw_id in remove_photos.split(","):
        try:
            wanted.add(int(raw_id.strip()))
        except ValueError:
            continue
    return [photo for photo in post.photos if photo.id in wanted]


def has_liked(db: Session, post_id: int, user: Optional[User]) -> Optional[bool]:
    if user is None:
        return None
    return db.query(Like.id).filter(Like.post_id == post_id, Like.liker == user.username).first() is not None


async def create_post(
    db: Session,
    storage: PhotoStorage,
    user: User,
    content: Optional[str] = None,
    uploads: Optional[List[bytes]] = None,
    status: Optional[str] = None,
) -> PostOut:
    uploads = uploads or []
    content = clean_content(content)
    if not (uploads or content):
        raise ValidationError("missing parameters")
    check_status(status)

    # files are on disk before any row points at them
    photo_paths = await storage.save_many(uploads, POSTS_FOLDER, storage.photo_max_dimension)

    try:
        post = Post(
            created_by=user.username,
            content=content,
            status=status or "public",
            like_count=0,
        )
        post.photos = [PostPhoto(photo=path) for path in photo_paths]
        db.add(post)
        db.commit()
        db.refresh(post)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {str(e)}")
        storage.remove_many(photo_paths)
        raise AppError("failed to create post")

    return shape_post(post, storage, liked=False)


async def update_post(
    db: Session,
    storage: PhotoStorage,
    post: Post,
    user: Optional[User] = None,
    content: Optional[str] = None,
    remove_photos: Optional[str] = None,
    uploads: Optional[List[bytes]] = None,
    status: Optional[str] = None,
) -> PostOut:
    uploads = uploads or []
    content = clean_content(content)
    # must have at least one of data to update
    if not (content or remove_photos or uploads or status):
        raise ValidationError("missing parameters")
    check_status(status)

    removed = select_photos(post, remove_photos)
    removed_paths = [photo.photo for photo in removed]
    new_paths = await storage.save_many(uploads, POSTS_FOLDER, storage.photo_max_dimension)

    try:
        if content:
            post.content = content
        if status:
            post.status = status
        for photo in removed:
            post.photos.remove(photo)
        post.photos.extend(PostPhoto(photo=path) for path in new_paths)
        post.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(post)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {str(e)}")
        storage.remove_many(new_paths)
        raise AppError("failed to update post")

    # rows are gone, a file that cannot be unlinked is only logged
    storage.remove_many(removed_paths)
    return shape_post(post, storage, liked=has_liked(db, post.id, user))


def delete_post(db: Session, storage: PhotoStorage, post: Post) -> str:
    photo_paths = [photo.photo for photo in post.photos]
    try:
        db.delete(post)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {str(e)}")
        raise AppError("failed to delete post")
    storage.remove_many(photo_paths)
    return "deleted"


def get_post(db: Session, storage: PhotoStorage, post: Post, user: Optional[User] = None) -> PostOut:
    return shape_post(post, storage, liked=has_liked(db, post.id, user))


def count_likes(db: Session, post_id: int) -> int:
    return db.query(func.count(Like.id)).filter(Like.post_id == post_id).scalar() or 0


def toggle_like(db: Session, post_id: int, user: User) -> str:
    # lock the post row so concurrent toggles on it run one after another
    post = db.query(Post)\
        .filter(Post.id == post_id)\
        .with_for_update()\
        .populate_existing()\
        .first()
    if not post:
        raise NotFoundError("post not found")

    existing_like = db.query(Like).filter(
        Like.liker == user.username,
        Like.post_id == post_id
    ).first()

    try:
        if existing_like:
            db.delete(existing_like)
            result = "unliked"
        else:
            db.add(Like(liker=user.username, post_id=post_id))
            result = "liked"
        db.flush()
        # counter always mirrors the rows
        post.like_count = count_likes(db, post_id)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # the same like was inserted by a concurrent request first
        logging.warning(f"Duplicate like by {user.username} on post {post_id}: {str(e)}")
        return "liked"
    return result


def get_likes(db: Session, post: Post, page: Page) -> List[LikeOut]:
    likes = db.query(Like)\
        .options(joinedload(Like.user))\
        .filter(Like.post_id == post.id)\
        .order_by(Like.created_at.asc(), Like.id.asc())\
        .offset(page.offset)\
        .limit(page.limit)\
        .all()
    return [LikeOut.model_validate(like) for like in likes]
