"""Route table of the demonstration app.

Every endpoint exercises one framework capability: routing, cookie
authentication and authorization, response caching, model binding and
validation, HTML views, static files, uploads, and configuration.

Serve it with ``python -m sampleapp`` or ``okapi run sampleapp.app:app``.
"""

import secrets
import uuid
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from okapi import App, AppConfig, HttpContext, Response, load_settings
from okapi.auth import (
    COOKIE_SCHEME,
    Claim,
    ClaimTypes,
    CookieAuthConfig,
    CookieAuthentication,
    Identity,
    authorize_user,
    requires_authentication,
    requires_role,
    sign_in,
    sign_out_handler,
)
from okapi.binding import bind_model, try_bind_query, validate_model
from okapi.caching import (
    Public,
    ResponseCachingMiddleware,
    no_response_caching,
    public_response_caching,
    response_caching,
)
from okapi.handlers import (
    bad_request,
    chain,
    endpoint,
    html_view,
    json,
    set_status,
    text,
    warbler,
    xml,
)
from okapi.http.forms import FormData
from okapi.pipeline import Handler, Next
from okapi.static import StaticFiles

from sampleapp.models import Car, Person
from sampleapp.views import person_view

SETTINGS_FILE = Path(__file__).with_name("appsettings.json")
TEMPLATE_DIR = Path(__file__).with_name("templates")
WEB_ROOT = Path(__file__).with_name("wwwroot")
ISSUER = "http://localhost:5000"


def now() -> str:
    return datetime.now().strftime("%m/%d/%Y %H:%M:%S")


# -- authorization --

access_denied = chain(set_status(401), text("Access Denied"))

must_be_user = requires_authentication(access_denied)

must_be_admin = chain(
    requires_authentication(access_denied),
    requires_role("Admin", access_denied),
)

must_be_john = chain(
    requires_authentication(access_denied),
    authorize_user(lambda user: user.has_claim(ClaimTypes.NAME, "John"), access_denied),
)


async def login(ctx: HttpContext, next: Next) -> Response:
    claims = [
        Claim(ClaimTypes.NAME, "John", ISSUER),
        Claim(ClaimTypes.SURNAME, "Doe", ISSUER),
        Claim(ClaimTypes.ROLE, "Admin", ISSUER),
    ]
    sign_in(ctx, Identity.create(claims, COOKIE_SCHEME))
    return await text("Successfully logged in")(ctx, next)


async def user_name(ctx: HttpContext, next: Next) -> Response:
    return await text(ctx.user.name or "")(ctx, next)


def show_user(ctx: HttpContext, id: int) -> str:  # noqa: A002
    return f"User Id: {id}"


# -- configuration --


async def configured(ctx: HttpContext, next: Next) -> Response:
    return await text(ctx.settings.get("HelloMessage", ""))(ctx, next)


# -- uploads --


def file_names(form: FormData) -> str:
    return "".join(f"\n{upload.filename}" for upload in form.uploads)


async def upload(ctx: HttpContext, next: Next) -> Response:
    if not ctx.request.has_form_content_type:
        return await bad_request("bad request")(ctx, next)
    form = await ctx.request.form()
    return await text(file_names(form))(ctx, next)


async def upload_unchecked(ctx: HttpContext, next: Next) -> Response:
    # No content-type check: a non-form body fails in form() and becomes a 500
    form = await ctx.request.form()
    return await text(file_names(form))(ctx, next)


# -- caching --


def fresh_id(ctx: HttpContext) -> Handler:  # noqa: ARG001
    return text(str(uuid.uuid4()))


# -- faults --


async def fail(ctx: HttpContext, next: Next) -> Response:  # noqa: ARG001
    raise RuntimeError("Something went wrong!")


def create_app(
    settings_path: str | Path | None = SETTINGS_FILE,
    *,
    environ: Mapping[str, str] | None = None,
) -> App:
    """Build the demonstration app.

    Settings come from *settings_path* overlaid with ``OKAPI_`` prefixed
    variables from *environ* (the process environment by default).
    """
    settings = load_settings(settings_path, environ=environ)
    config = AppConfig(
        secret_key=settings.get("Auth:SecretKey") or secrets.token_urlsafe(32),
        log_level=settings.get("Logging:Level", "error"),
        template_dir=TEMPLATE_DIR,
        settings=settings,
    )
    app = App(config)

    @app.error_handler(500)
    def server_error(ctx: HttpContext, exc: Exception) -> Response:
        return Response(str(exc), status=500)

    app.add_middleware(StaticFiles(WEB_ROOT))
    app.add_middleware(
        CookieAuthentication(
            CookieAuthConfig(
                secret_key=config.secret_key,
                scheme=COOKIE_SCHEME,
                expire_seconds=7 * 24 * 3600,
                sliding_expiration=True,
                httponly=True,
                secure_policy="same_as_request",
            )
        )
    )
    app.add_middleware(ResponseCachingMiddleware())

    app.get("/", text("index"))
    app.get("/ping", text("pong"))
    app.get("/error", fail)
    app.get("/login", login)
    app.get("/logout", sign_out_handler(), text("Successfully logged out."))
    app.get("/user", must_be_user, user_name)
    app.get("/john-only", must_be_john, user_name)
    app.get("/user/{id:int}", must_be_admin, endpoint(show_user))
    app.get("/person", html_view(person_view(Person("Html Node"))))
    # Evaluated once, here; /everytime defers to each request
    app.get("/once", text(now()))
    app.get("/everytime", warbler(lambda ctx: text(now())))
    app.get("/configured", configured)
    app.get("/upload", upload)
    app.get("/upload2", upload_unchecked)
    app.get("/cache/1", public_response_caching(30), warbler(fresh_id))
    app.get(
        "/cache/2",
        response_caching(Public(30), vary_by_query_keys=["key1", "key2"]),
        warbler(fresh_id),
    )
    app.get("/cache/3", no_response_caching(), warbler(fresh_id))

    app.add_route("/car", bind_model(Car, json))
    app.add_route("/car2", try_bind_query(Car, bad_request, validate_model(xml)))

    app.fallback(bad_request("Not found"))
    return app


app = create_app()
