"""
FastAPI application entrypoint.
Run with: uvicorn smansys.main:app --reload --port 5000   (or: python -m smansys.main)

API base path: routes are mounted under settings.api_prefix (default /api).
  - Auth:      POST /auth/register, POST /auth/login, GET /auth/me, POST /auth/logout
  - Dashboard: GET /dashboard, GET /dashboard/analytics (manager/admin)
  - Profile:   GET|PUT /profile, PUT /profile/password, POST|DELETE /profile/avatar
  - Students:  GET|POST /students, GET|PUT|DELETE /students/{id} (manager/admin)

Every error response is {"error": ..., "message"?: ..., "details"?: [...]}.
"""
import logging
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from smansys.config import DEFAULT_SECRET_KEY, settings
from smansys.errors import SmansysError
from smansys.api.auth import router as auth_router
from smansys.api.dashboard import router as dashboard_router
from smansys.api.profile import router as profile_router
from smansys.api.students import router as students_router

logger = logging.getLogger("smansys.main")

app = FastAPI(
    title="Smansys API",
    description="School management: auth, profiles, role-gated dashboard analytics, student records.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list or ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "PUT", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(dashboard_router, prefix=settings.api_prefix)
app.include_router(profile_router, prefix=settings.api_prefix)
app.include_router(students_router, prefix=settings.api_prefix)


@app.exception_handler(SmansysError)
def handle_app_error(request: Request, exc: SmansysError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"error": "Validation Error", "details": details}),
    )


@app.exception_handler(StarletteHTTPException)
def handle_http_error(request: Request, exc: StarletteHTTPException):
    body = {"error": _reason(exc.status_code)}
    if exc.detail:
        body["message"] = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    message = "Something went wrong"
    if settings.debug and not settings.is_production:
        message = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content={"error": "Internal Server Error", "message": message})


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


@app.on_event("startup")
def startup():
    """Configure logging, refuse a default SECRET_KEY in production, create SQLite tables."""
    logging.basicConfig(
        level=getattr(logging, (settings.log_level or "INFO").upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )
    if settings.is_production and (settings.secret_key or "").strip() == DEFAULT_SECRET_KEY:
        logger.critical("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
        raise RuntimeError("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
    if settings.storage_backend == "memory":
        from smansys.store import get_memory_store
        get_memory_store()
        return
    from smansys.database import init_sqlite_db
    init_sqlite_db()
    logger.info("Storage: %s", settings.database_url.split("@")[-1])


@app.get("/")
def root():
    """API info and documentation links."""
    return {
        "name": "Smansys API",
        "version": app.version,
        "docs": {"swagger": "/docs", "redoc": "/redoc"},
        "health": "/health",
        "apiPrefix": settings.api_prefix,
    }


@app.get("/health")
def health():
    """Health check (JSON)."""
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


def run():
    import uvicorn
    uvicorn.run("smansys.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
