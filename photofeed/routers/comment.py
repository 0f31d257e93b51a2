from fastapi import APIRouter, Depends, status
from typing import List
from photofeed.core.pagination import COMMENTS_RANGE, LIKES_RANGE, Page, paginate
from photofeed.core.pipeline import RequestContext, pipeline
from photofeed.core.responses import Envelope, success
from photofeed.core.security import authorize, identify
from photofeed.core.stages import (
    check_comment_exist,
    check_post_exist,
    check_post_status_permission,
    find_comment,
    find_post,
    owner_comment,
)
from photofeed.crud import comment as crud
from photofeed.schemas.comment import CommentIn, CommentLikeOut, CommentOut

router = APIRouter()

# every route settles the post before it touches the comment
POST_STAGES = (find_post, check_post_exist, check_post_status_permission)
COMMENT_STAGES = (find_comment, check_comment_exist)


# create comment
@router.post("", status_code=status.HTTP_201_CREATED, response_model=Envelope[CommentOut])
def create_comment(
    post_id: int,
    comment_in: CommentIn,
    ctx: RequestContext = Depends(pipeline(authorize, *POST_STAGES)),
):
    return success(crud.create_comment(ctx.db, ctx.post.id, ctx.user, comment_in.content))


# get post comments
@router.get("", response_model=Envelope[List[CommentOut]])
def get_post_comments(
    post_id: int,
    page: Page = Depends(paginate(COMMENTS_RANGE)),
    ctx: RequestContext = Depends(pipeline(identify, *POST_STAGES)),
):
    return success(crud.get_comments(ctx.db, ctx.post, page, ctx.user))


# update comment
@router.patch("/{comment_id}", response_model=Envelope[CommentOut])
def update_comment(
    post_id: int,
    comment_id: int,
    comment_in: CommentIn,
    ctx: RequestContext = Depends(pipeline(authorize, *POST_STAGES, *COMMENT_STAGES, owner_comment)),
):
    return success(crud.update_comment(ctx.db, ctx.comment, ctx.user, comment_in.content))


# delete comment
@router.delete("/{comment_id}", response_model=Envelope[str])
def delete_comment(
    post_id: int,
    comment_id: int,
    ctx: RequestContext = Depends(pipeline(authorize, *POST_STAGES, *COMMENT_STAGES, owner_comment)),
):
    return success(crud.delete_comment(ctx.db, ctx.comment))


# reply comment
@router.post("/{comment_id}/reply", status_code=status.HTTP_201_CREATED, response_model=Envelope[CommentOut])
def reply_comment(
    post_id: int,
    comment_id: int,
    comment_in: CommentIn,
    ctx: RequestContext = Depends(pipeline(authorize, *POST_STAGES, *COMMENT_STAGES)),
):
    return success(crud.reply_comment(ctx.db, ctx.comment, ctx.user, comment_in.content))


# get reply comment
@router.get("/{comment_id}/replies", response_model=Envelope[List[CommentOut]])
def get_reply_comments(
    post_id: int,
    comment_id: int,
    page: Page = Depends(paginate(COMMENTS_RANGE)),
    ctx: RequestContext = Depends(pipeline(identify, *POST_STAGES, *COMMENT_STAGES)),
):
    return success(crud.get_replies(ctx.db, ctx.comment, page, ctx.user))


# like comment
@router.post("/{comment_id}/like", response_model=Envelope[str])
def like_comment(
    post_id: int,
    comment_id: int,
    ctx: RequestContext = Depends(pipeline(authorize, *POST_STAGES, *COMMENT_STAGES)),
):
    return success(crud.toggle_comment_like(ctx.db, ctx.comment.id, ctx.user))


# get comment likes
@router.get("/{comment_id}/likes", response_model=Envelope[List[CommentLikeOut]])
def get_comment_likes(
    post_id: int,
    comment_id: int,
    page: Page = Depends(paginate(LIKES_RANGE)),
    ctx: RequestContext = Depends(pipeline(identify, *POST_STAGES, *COMMENT_STAGES)),
):
    return success(crud.get_comment_likes(ctx.db, ctx.comment, page))
