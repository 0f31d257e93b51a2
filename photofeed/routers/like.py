from fastapi import APIRouter, Depends
from typing import List
from photofeed.core.pagination import LIKES_RANGE, Page, paginate
from photofeed.core.pipeline import RequestContext, pipeline
from photofeed.core.responses import Envelope, success
from photofeed.core.security import authorize, identify
from photofeed.core.stages import check_post_exist, check_post_status_permission, find_post
from photofeed.crud import post as crud
from photofeed.schemas.post import LikeOut

router = APIRouter()


#like or unlike, whichever the current state is not
@router.post("/{post_id}/like", response_model=Envelope[str])
def toggle_like(
    post_id: int,
    ctx: RequestContext = Depends(pipeline(
        authorize, find_post, check_post_exist, check_post_status_permission,
    )),
):
    return success(crud.toggle_like(ctx.db, ctx.post.id, ctx.user))


#users who liked a post, oldest like first
@router.get("/{post_id}/likes", response_model=Envelope[List[LikeOut]])
def get_likes(
    post_id: int,
    page: Page = Depends(paginate(LIKES_RANGE)),
    ctx: RequestContext = Depends(pipeline(
        identify, find_post, check_post_exist, check_post_status_permission,
    )),
):
    return success(crud.get_likes(ctx.db, ctx.post, page))
