"""
LawDesk API
===========

FastAPI application for the legal practice backend.

Endpoints:
- /api/auth/*          - Register, login, profile, change password, sign out
- /api/admin/*         - User and law firm management (admin only)
- /api/upload, /api/documents, /api/uploads/* - Case documents
- /api/get-case-arguments, /api/delete-case-arguments - Extracted arguments
- /api/cases, /api/clients, /api/team-member, /api/appointments - Practice records
- /api/hearing-schedule - Hearing dates
- /api/law-firm/*      - Law firm directory
- /api/ai/*            - OCR, speech, formatting and chat proxies
- /health              - Health check

Every response body is `{"status": bool, "message": str, "data": ...}`.

Run with:
    uvicorn lawdesk.api:app --host 0.0.0.0 --port 8000
"""

import logging
from datetime import datetime

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .db.session import get_db, get_db_session, init_db
from .db.models import TeamMember, UserRole
from .auth import (
    AuthContext,
    get_auth_context,
    get_auth_service,
    issue_token,
    user_to_dict,
)
from .errors import ServiceError
from .middleware import SecurityHeadersMiddleware
from .schemas import (
    ChangePasswordRequest,
    HealthResponse,
    LoginRequest,
    RegisterRequest,
    envelope,
)
from .ai import get_enrichment_client, get_media_client
from .api_admin import router as admin_router
from .api_upload import router as documents_router
from .api_practice import (
    appointments_router,
    cases_router,
    clients_router,
    hearings_router,
    team_router,
    team_member_to_dict,
)
from .api_law_firm import router as law_firm_router
from .api_ai import router as ai_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# FastAPI App
# =============================================================================

settings = get_settings()

app = FastAPI(
    title="LawDesk API",
    description="Legal practice management: accounts, cases, clients, documents and AI helpers",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

CORS_ALLOW_ORIGINS = settings.cors_origins()
logger.info(f"CORS allow origins: {CORS_ALLOW_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)

app.include_router(admin_router, prefix="/api/admin")
app.include_router(documents_router, prefix="/api")
app.include_router(cases_router, prefix="/api/cases")
app.include_router(clients_router, prefix="/api/clients")
app.include_router(team_router, prefix="/api/team-member")
app.include_router(appointments_router, prefix="/api/appointments")
app.include_router(hearings_router, prefix="/api/hearing-schedule")
app.include_router(law_firm_router, prefix="/api/law-firm")
app.include_router(ai_router, prefix="/api/ai")


# =============================================================================
# Lifecycle
# =============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    settings = get_settings()
    logger.info(f"Starting LawDesk API v{settings.service_version}")

    try:
        init_db()
    except Exception:
        logger.exception("Database initialization failed")
        raise

    for warning in settings.validate_config():
        logger.warning(f"Config: {warning}")

    if settings.admin_email and settings.admin_password:
        with get_db_session() as db:
            admin = get_auth_service(db).ensure_admin(
                settings.admin_email, settings.admin_password, settings.admin_username
            )
            logger.info(f"Bootstrap admin ready: {admin.id}")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    await get_media_client().close()
    await get_enrichment_client().close()
    logger.info("LawDesk API stopped")


# =============================================================================
# Error handling
# =============================================================================

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(exc.message, exc.data, status=False),
    )


@app.exception_handler(StarletteHTTPException)
async def api_http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(message, status=False),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def api_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors without echoing the submitted input."""
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=envelope("Invalid request", {"errors": errors}, status=False),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler - always return valid JSON"""
    logger.exception(f"Unhandled exception on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=envelope("Internal server error", status=False),
    )


# =============================================================================
# Health
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        version=get_settings().service_version,
        timestamp=datetime.now(),
    )


# =============================================================================
# Auth Endpoints (JWT)
# =============================================================================

@app.post("/api/auth/register", tags=["Auth"], status_code=201)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a citizen, law firm or corporate account.
    Returns a token so the client is signed in right away.
    """
    user = get_auth_service(db).register(
        role=request.role,
        username=request.username,
        email=request.email,
        password=request.password,
        confirm_password=request.confirm_password,
        law_firm_name=request.law_firm_name,
        company_name=request.company_name,
    )
    return envelope(
        f"{user.role.value} registered successfully",
        {"token": issue_token(user.id, user.role), "user": user_to_dict(user)},
    )


@app.post("/api/auth/login", tags=["Auth"])
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password. Returns a JWT access token."""
    user = get_auth_service(db).authenticate_user(request.email, request.password)
    return envelope(
        "Login successful",
        {"token": issue_token(user.id, user.role), "user": user_to_dict(user)},
    )


@app.get("/api/auth/profile", tags=["Auth"])
async def profile(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """Current user, plus the firm owner's team entry for law firms"""
    user = get_auth_service(db).get_user(auth.user_id)
    data = user_to_dict(user)
    if user.role == UserRole.LAW_FIRM:
        owner_entry = db.query(TeamMember).filter(
            TeamMember.created_by == user.id,
            TeamMember.email == user.email,
        ).first()
        data["teamMemberDetails"] = team_member_to_dict(owner_entry) if owner_entry else None
    return envelope("Profile fetched successfully", data)


@app.patch("/api/auth/change-password", tags=["Auth"])
async def change_password(
    request: ChangePasswordRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    get_auth_service(db).change_password(
        auth.user_id, request.current_password, request.new_password, request.confirm_password
    )
    return envelope("Password changed successfully")


@app.post("/api/auth/signout", tags=["Auth"])
async def signout(auth: AuthContext = Depends(get_auth_context)):
    """
    Sign out.

    Tokens are stateless; the client discards its copy and the token stays
    valid until it expires.
    """
    logger.info(f"User {auth.user_id} signed out")
    return envelope("Signed out successfully")


# =============================================================================
# Main (for direct execution)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lawdesk.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
