"""
Per-route request pipelines.

A route declares its stages in order::

    ctx: RequestContext = Depends(pipeline(authorize, find_post, check_post_exist, owner_post))

Each stage receives the shared :class:`RequestContext`, attaches what it
found (identity, post, comment) and returns, or raises an ``AppError`` which
stops the chain before any later stage or the controller runs.
"""
from typing import Callable, Optional
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from photofeed.core.security import oauth2_scheme
from photofeed.db.models.comment import Comment
from photofeed.db.models.post import Post
from photofeed.db.models.user import User
from photofeed.db.session import get_db


class RequestContext:
    def __init__(self, request: Request, db: Session, token: Optional[str] = None):
        self.request = request
        self.db = db
        self.token = token
        self.user: Optional[User] = None
        self.post: Optional[Post] = None
        self.comment: Optional[Comment] = None

    def path_param(self, name: str) -> Optional[str]:
        return self.request.path_params.get(name)

    @property
    def is_read(self) -> bool:
        return self.request.method in ("GET", "HEAD")


Stage = Callable[[RequestContext], None]


def pipeline(*stages: Stage):
    def run_pipeline(
        request: Request,
        db: Session = Depends(get_db),
        token: Optional[str] = Depends(oauth2_scheme),
    ) -> RequestContext:
        ctx = RequestContext(request, db, token)
        for stage in stages:
            stage(ctx)
        return ctx

    run_pipeline.__name__ = "pipeline_" + "_".join(stage.__name__ for stage in stages)
    return run_pipeline
