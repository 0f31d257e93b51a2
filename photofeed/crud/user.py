import logging
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from photofeed.core.exceptions import AppError, AuthError, NotFoundError, ValidationError
from photofeed.core.security import create_access_token, hash_password, verify_password
from photofeed.core.storage import PhotoStorage
from photofeed.db.models.user import User
from photofeed.schemas.token import Token
from photofeed.schemas.user import UserCreate, UserOut

AVATARS_FOLDER = "avatars"
MAX_BIO_LENGTH = 500


def shape_user(user: User, storage: PhotoStorage) -> UserOut:
    out = UserOut.model_validate(user)
    out.avatar_url = storage.url_for(user.avatar)
    return out


def register(db: Session, storage: PhotoStorage, user_in: UserCreate) -> UserOut:
    taken = db.query(User).filter(
        or_(User.username == user_in.username, User.email == user_in.email)
    ).first()
    if taken:
        if taken.username == user_in.username:
            raise ValidationError("username already taken")
        raise ValidationError("email already registered")

    new_user = User(
        username=user_in.username,
        email=user_in.email,
        full_name=user_in.full_name.strip(),
        password=hash_password(user_in.password),
    )
    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {str(e)}")
        raise AppError("failed to register user")
    return shape_user(new_user, storage)


def login(db: Session, username: str, password: str) -> Token:
    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(password, user.password):
        raise AuthError("incorrect username or password")
    access_token = create_access_token({"sub": user.username})
    return Token(access_token=access_token, token_type="bearer", username=user.username)


def get_user(db: Session, storage: PhotoStorage, username: str) -> UserOut:
    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise NotFoundError("user not found")
    return shape_user(user, storage)


async def update_user(
    db: Session,
    storage: PhotoStorage,
    user: User,
    full_name: Optional[str] = None,
    bio: Optional[str] = None,
    avatar: Optional[bytes] = None,
) -> UserOut:
    if full_name is None and bio is None and avatar is None:
        raise ValidationError("missing parameters")

    if full_name is not None:
        full_name = full_name.strip()
        if not full_name or len(full_name) > 100:
            raise ValidationError("full name must be between 1 and 100 characters")
    if bio is not None and len(bio) > MAX_BIO_LENGTH:
        raise ValidationError(f"bio must be at most {MAX_BIO_LENGTH} characters")

    new_avatar = None
    if avatar is not None:
        new_avatar = await storage.save(avatar, AVATARS_FOLDER, storage.avatar_max_dimension)

    old_avatar = user.avatar
    try:
        if full_name is not None:
            user.full_name = full_name
        if bio is not None:
            user.bio = bio.strip() or None
        if new_avatar:
            user.avatar = new_avatar
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {str(e)}")
        if new_avatar:
            storage.remove(new_avatar)
        raise AppError("failed to update profile")

    # Delete old image after successful update
    if new_avatar and old_avatar:
        storage.remove(old_avatar)

    return shape_user(user, storage)


def update_password(db: Session, user: User, current_password: str, new_password: str) -> str:
    if not verify_password(current_password, user.password):
        raise ValidationError("incorrect password")
    try:
        user.password = hash_password(new_password)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {str(e)}")
        raise AppError("failed to update password")
    return "password updated"
