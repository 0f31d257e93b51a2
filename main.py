import logging
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from photofeed.api.v1 import auth, user
from photofeed.core.config import get_settings
from photofeed.core.exceptions import register_exception_handlers
from photofeed.db.base import Base
from photofeed.db.session import engine, ensure_database, SQLALCHEMY_DATABASE_URL
from photofeed.routers import post
from photofeed.routers import comment
from photofeed.routers import like

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

ensure_database(SQLALCHEMY_DATABASE_URL)
Base.metadata.create_all(bind=engine)

app = FastAPI(title="photofeed")

register_exception_handlers(app)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(user.router, prefix="/api/users", tags=["Users"])
app.include_router(post.router, prefix="/api/posts", tags=["Posts"])
app.include_router(like.router, prefix="/api/posts", tags=["Likes"])
app.include_router(comment.router, prefix="/api/posts/{post_id}/comments", tags=["Comments"])

app.mount("/static", StaticFiles(directory=settings.static_root, check_dir=False), name="static")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.log_level == "DEBUG")
