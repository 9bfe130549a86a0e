import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from codeclub.core.config import settings
from codeclub.db import base  # noqa: F401  registers every model on Base.metadata
from codeclub.db.base_class import Base
from codeclub.db import session as db_session
from codeclub.api.v2.api import api_router
from codeclub.crud import user_crud

from sqladmin import Admin
from sqladmin.authentication import AuthenticationBackend
from codeclub.admin import ADMIN_VIEWS

# --- Logging ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CodeClub API V2",
    openapi_url="/api/v2/openapi.json",
)


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value:
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _build_cors_origins() -> list[str]:
    origins = {_sanitize_origin(origin) for origin in settings.BACKEND_CORS_ORIGINS}
    allow_origins = sorted(origin for origin in origins if origin)
    logger.info("CORS origins: %s", allow_origins)
    return allow_origins


# --- Middlewares ---
app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_build_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)


# --- Back office ---
class AdminAuth(AuthenticationBackend):
    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = str(form.get("username") or "")
        password = str(form.get("password") or "")

        with db_session.SessionLocal() as db:
            user = user_crud.authenticate(db, username, password)
            is_admin = bool(user and user.is_admin)
            username = user.username if user else username

        if is_admin:
            request.session.update({"token": "admin_logged_in", "user": username})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return "token" in request.session


admin = Admin(
    app,
    db_session.async_engine,
    authentication_backend=AdminAuth(secret_key=settings.SECRET_KEY),
    base_url="/admin",
    title="CodeClub back office",
)
for view in ADMIN_VIEWS:
    admin.add_view(view)

app.include_router(api_router, prefix="/api/v2")


@app.on_event("startup")
async def startup():
    logger.info("Creating database tables if needed...")
    async with db_session.async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready.")

    with db_session.SessionLocal() as db:
        user_crud.ensure_default_admin(db)


@app.get("/")
def read_root():
    return {"message": "Welcome to CodeClub API V2!"}
