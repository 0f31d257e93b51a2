from fastapi import APIRouter, Depends, UploadFile, File, Form, status
from typing import List, Optional
from photofeed.core.pipeline import RequestContext, pipeline
from photofeed.core.responses import Envelope, success
from photofeed.core.security import authorize, identify
from photofeed.core.stages import (
    check_post_exist,
    check_post_status_permission,
    find_post,
    owner_post,
)
from photofeed.core.storage import PhotoStorage, get_storage
from photofeed.core.uploads import read_images
from photofeed.crud import post as crud
from photofeed.schemas.post import PostOut

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Envelope[PostOut])
async def create_post(
    content: Optional[str] = Form(None),
    post_status: Optional[str] = Form(None, alias="status"),
    photos: Optional[List[UploadFile]] = File(None),
    ctx: RequestContext = Depends(pipeline(authorize)),
    storage: PhotoStorage = Depends(get_storage),
):
    uploads = await read_images(photos)
    post = await crud.create_post(ctx.db, storage, ctx.user, content, uploads, post_status)
    return success(post)


@router.get("/{post_id}", response_model=Envelope[PostOut])
def get_post(
    post_id: int,
    ctx: RequestContext = Depends(pipeline(
        identify, find_post, check_post_exist, check_post_status_permission,
    )),
    storage: PhotoStorage = Depends(get_storage),
):
    return success(crud.get_post(ctx.db, storage, ctx.post, ctx.user))


#update post, owner only
@router.patch("/{post_id}", response_model=Envelope[PostOut])
async def update_post(
    post_id: int,
    content: Optional[str] = Form(None),
    remove_photos: Optional[str] = Form(None),
    post_status: Optional[str] = Form(None, alias="status"),
    photos: Optional[List[UploadFile]] = File(None),
    ctx: RequestContext = Depends(pipeline(
        authorize, find_post, check_post_exist, check_post_status_permission, owner_post,
    )),
    storage: PhotoStorage = Depends(get_storage),
):
    uploads = await read_images(photos)
    post = await crud.update_post(
        ctx.db, storage, ctx.post,
        user=ctx.user,
        content=content,
        remove_photos=remove_photos,
        uploads=uploads,
        status=post_status,
    )
    return success(post)


#delete post
@router.delete("/{post_id}", response_model=Envelope[str])
def delete_post(
    post_id: int,
    ctx: RequestContext = Depends(pipeline(
        authorize, find_post, check_post_exist, check_post_status_permission, owner_post,
    )),
    storage: PhotoStorage = Depends(get_storage),
):
    return success(crud.delete_post(ctx.db, storage, ctx.post))
