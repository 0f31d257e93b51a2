"""Pipeline composition and the individual stages, without HTTP."""

from types import SimpleNamespace

import pytest

from photofeed.core.exceptions import AuthError, NotFoundError, PermissionDeniedError
from photofeed.core.pipeline import RequestContext, pipeline
from photofeed.core.security import authorize, create_access_token, identify
from photofeed.core.stages import (
    check_comment_exist,
    check_post_exist,
    check_post_status_permission,
    find_post,
    owner_comment,
    owner_post,
)
from photofeed.db.models.post import Post
from photofeed.db.models.user import User


def fake_request(method="GET", **path_params):
    return SimpleNamespace(method=method, path_params=path_params)


def make_ctx(method="GET", db=None, token=None, **path_params):
    return RequestContext(fake_request(method, **path_params), db, token)


@pytest.fixture
def stored_user(db):
    user = User(username="erin", email="erin@example.com", full_name="Erin", password="x")
    db.add(user)
    db.commit()
    return user


def test_stages_run_in_order_and_stop_at_first_failure():
    calls = []

    def first(ctx):
        calls.append("first")

    def failing(ctx):
        calls.append("failing")
        raise PermissionDeniedError("stop")

    def never(ctx):
        calls.append("never")

    run = pipeline(first, failing, never)

    with pytest.raises(PermissionDeniedError):
        run(request=fake_request(), db=None, token=None)
    assert calls == ["first", "failing"]


def test_pipeline_returns_enriched_context():
    def attach(ctx):
        ctx.post = "attached"

    ctx = pipeline(attach)(request=fake_request(), db=None, token=None)

    assert isinstance(ctx, RequestContext)
    assert ctx.post == "attached"


def test_authorize_without_token():
    with pytest.raises(AuthError):
        authorize(make_ctx(db=None, token=None))


def test_authorize_with_garbage_token(db):
    with pytest.raises(AuthError):
        authorize(make_ctx(db=db, token="garbage"))


def test_authorize_attaches_user(db, stored_user):
    ctx = make_ctx(db=db, token=create_access_token({"sub": "erin"}))

    authorize(ctx)

    assert ctx.user.username == "erin"


def test_identify_is_best_effort(db):
    ctx = make_ctx(db=db, token="garbage")

    identify(ctx)

    assert ctx.user is None


def test_find_post_never_fails(db):
    missing = make_ctx(db=db, post_id="123")
    not_a_number = make_ctx(db=db, post_id="abc")

    find_post(missing)
    find_post(not_a_number)

    assert missing.post is None
    assert not_a_number.post is None
    with pytest.raises(NotFoundError):
        check_post_exist(missing)


def test_check_comment_exist():
    with pytest.raises(NotFoundError):
        check_comment_exist(make_ctx())


@pytest.mark.parametrize("status, method, viewer, allowed", [
    ("public", "GET", None, True),
    ("public", "POST", "bob", True),
    ("private", "GET", None, False),
    ("private", "GET", "bob", False),
    ("private", "POST", "alice", True),
    ("locked", "GET", "bob", True),
    ("locked", "POST", "bob", False),
    ("locked", "DELETE", "alice", True),
])
def test_post_status_permission(status, method, viewer, allowed):
    ctx = make_ctx(method=method)
    ctx.post = Post(id=1, created_by="alice", status=status)
    ctx.user = User(username=viewer) if viewer else None

    if allowed:
        check_post_status_permission(ctx)
    else:
        with pytest.raises(PermissionDeniedError):
            check_post_status_permission(ctx)


def test_owner_checks():
    ctx = make_ctx(method="PATCH")
    ctx.user = User(username="bob")
    ctx.post = Post(id=1, created_by="alice")
    ctx.comment = SimpleNamespace(commenter="bob")

    with pytest.raises(PermissionDeniedError):
        owner_post(ctx)
    owner_comment(ctx)
