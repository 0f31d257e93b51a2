from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from photofeed.core.responses import Envelope, success
from photofeed.core.storage import PhotoStorage, get_storage
from photofeed.crud import user as crud
from photofeed.db.session import get_db
from photofeed.schemas.token import Token
from photofeed.schemas.user import UserCreate, UserOut


router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=Envelope[UserOut])
def register(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage),
):
    return success(crud.register(db, storage, user_in))


@router.post("/login", response_model=Envelope[Token])
def login(db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    return success(crud.login(db, form_data.username, form_data.password))
