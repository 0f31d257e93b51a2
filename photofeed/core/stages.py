from typing import Optional
from sqlalchemy.orm import selectinload
from photofeed.core.exceptions import NotFoundError, PermissionDeniedError
from photofeed.db.models.comment import Comment
from photofeed.db.models.post import Post


def _int_param(ctx, name: str) -> Optional[int]:
    value = ctx.path_param(name)
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# Finders attach whatever they find and never fail the request,
# the matching check_* stage decides what a miss means.

def find_post(ctx) -> None:
    post_id = _int_param(ctx, "post_id")
    if post_id is None:
        ctx.post = None
        return
    ctx.post = ctx.db.query(Post)\
        .options(selectinload(Post.photos))\
        .filter(Post.id == post_id)\
        .first()


def find_comment(ctx) -> None:
    comment_id = _int_param(ctx, "comment_id")
    if comment_id is None or ctx.post is None:
        ctx.comment = None
        return
    ctx.comment = ctx.db.query(Comment).filter(
        Comment.id == comment_id,
        Comment.post_id == ctx.post.id
    ).first()


# Checkers

def check_post_exist(ctx) -> None:
    if ctx.post is None:
        raise NotFoundError("post not found")


def check_comment_exist(ctx) -> None:
    if ctx.comment is None:
        raise NotFoundError("comment not found")


def check_post_status_permission(ctx) -> None:
    check_post_exist(ctx)
    post = ctx.post
    if ctx.user is not None and ctx.user.username == post.created_by:
        return
    if post.status == "private":
        raise PermissionDeniedError("post is private")
    if post.status == "locked" and not ctx.is_read:
        raise PermissionDeniedError("post is locked")


# Owners

def owner_post(ctx) -> None:
    if ctx.user is None or ctx.post.created_by != ctx.user.username:
        raise PermissionDeniedError("you are not the owner of this post")


def owner_comment(ctx) -> None:
    if ctx.user is None or ctx.comment.commenter != ctx.user.username:
        raise PermissionDeniedError("you are not the owner of this comment")
