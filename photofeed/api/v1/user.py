from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Optional
from sqlalchemy.orm import Session
from photofeed.core.pipeline import RequestContext, pipeline
from photofeed.core.responses import Envelope, success
from photofeed.core.security import authorize
from photofeed.core.storage import PhotoStorage, get_storage
from photofeed.core.uploads import read_image
from photofeed.crud import user as crud
from photofeed.db.session import get_db
from photofeed.schemas.user import PasswordUpdate, UserOut


router = APIRouter()


# update profile fields and avatar of the current user
@router.patch("/info", response_model=Envelope[UserOut])
async def update_user(
    full_name: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    ctx: RequestContext = Depends(pipeline(authorize)),
    storage: PhotoStorage = Depends(get_storage),
):
    avatar_data = await read_image(avatar)
    user = await crud.update_user(ctx.db, storage, ctx.user, full_name=full_name, bio=bio, avatar=avatar_data)
    return success(user)


@router.patch("/password", response_model=Envelope[str])
def update_password(
    password_in: PasswordUpdate,
    ctx: RequestContext = Depends(pipeline(authorize)),
):
    return success(crud.update_password(ctx.db, ctx.user, password_in.current_password, password_in.new_password))


# public profile
@router.get("/{username}", response_model=Envelope[UserOut])
def get_user(
    username: str,
    db: Session = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage),
):
    return success(crud.get_user(db, storage, username))
