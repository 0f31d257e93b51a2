from passlib.context import CryptContext
from jose import jwt, JWTError
from datetime import datetime, timedelta
from typing import Optional
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from photofeed.core.config import get_settings
from photofeed.core.exceptions import AuthError
from photofeed.db.models.user import User

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# auto_error is off so anonymous requests still reach the identify stage
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def hash_password(password: str):
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[str]:
    """Return the username a token was issued for, or None."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    username = payload.get("sub")
    if not isinstance(username, str):
        return None
    return username


def resolve_user(db: Session, token: Optional[str]) -> Optional[User]:
    if not token:
        return None
    username = decode_access_token(token)
    if username is None:
        return None
    return db.query(User).filter(User.username == username).first()


# Identity stages

def authorize(ctx) -> None:
    user = resolve_user(ctx.db, ctx.token)
    if user is None:
        raise AuthError()
    ctx.user = user


def identify(ctx) -> None:
    ctx.user = resolve_user(ctx.db, ctx.token)
