"""
Authentication Module with JWT Support
======================================

Credential store, token service and the FastAPI auth gates.

Roles:
- citizen / law_firm / corporate: self-service accounts
- admin: user management (validate, suspend, create, delete)

Authorization Flow:
1. Read `Authorization: Bearer <jwt>` (missing -> 401)
2. Verify signature, type and expiry (failure -> 403)
3. Load the user by the token subject (missing -> 404, unvalidated -> 403)
4. Admin routes additionally require role == admin (-> 403)
"""

import logging
from typing import Optional
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, Header, Request
from passlib.context import CryptContext
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .config import get_settings
from .db.models import LawFirmProfile, User, TeamMember, UserRole, SELF_SERVICE_ROLES
from .db.session import get_db
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TOKEN_TYPE_ACCESS = "access"


# =============================================================================
# PASSWORD HASHING
# =============================================================================

# bcrypt only looks at the first 72 bytes; longer passwords are rejected.
MAX_PASSWORD_BYTES = 72

_pwd_context = None


def is_password_too_long(password: str) -> bool:
    """Return True if password exceeds bcrypt 72-byte limit."""
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def get_pwd_context() -> CryptContext:
    global _pwd_context
    if _pwd_context is None:
        _pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=get_settings().bcrypt_rounds,
        )
    return _pwd_context


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash"""
    if not plain_password or not hashed_password:
        return False
    if is_password_too_long(plain_password):
        logger.warning("Auth failed: password exceeds bcrypt 72-byte limit")
        return False
    try:
        return get_pwd_context().verify(plain_password, hashed_password)
    except ValueError as e:
        logger.warning(f"Auth failed: invalid password format ({e})")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password"""
    if is_password_too_long(password):
        raise ValidationError(f"Password too long (max {MAX_PASSWORD_BYTES} bytes)")
    return get_pwd_context().hash(password)


# =============================================================================
# JWT TOKEN HANDLING
# =============================================================================

def issue_token(user_id: str, role, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token for a user.

    A zero or negative JWT_ACCESS_TOKEN_EXPIRE_MINUTES issues tokens without
    an `exp` claim.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": user_id,
        "role": getattr(role, "value", role),
        "type": TOKEN_TYPE_ACCESS,
        "iat": now,
    }
    if expires_delta is None and settings.jwt_access_token_expire_minutes > 0:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    if expires_delta is not None:
        to_encode["exp"] = now + expires_delta
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Decode and validate an access token; raises InvalidTokenError."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        logger.warning(f"Invalid JWT token: {e.__class__.__name__}")
        raise InvalidTokenError()

    if not payload.get("sub") or payload.get("type") != TOKEN_TYPE_ACCESS:
        logger.warning("Invalid JWT token: missing subject or wrong type")
        raise InvalidTokenError()
    return payload


# =============================================================================
# AUTH CONTEXT
# =============================================================================

@dataclass
class AuthContext:
    """Identity attached to an authenticated request"""
    user_id: str
    username: str
    email: str
    role: UserRole
    validated: bool

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "AuthContext":
        return cls(
            user_id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            validated=bool(user.validated),
        )


def user_to_dict(user: User) -> dict:
    """Public view of a user row (never includes the password hash)."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "law_firm_name": user.law_firm_name,
        "company_name": user.company_name,
        "validated": bool(user.validated),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


# =============================================================================
# AUTH SERVICE (SQLAlchemy-based)
# =============================================================================

class AuthService:
    """Credential store backed by the users table"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def register(
        self,
        role: Optional[str],
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        confirm_password: Optional[str],
        law_firm_name: Optional[str] = None,
        company_name: Optional[str] = None,
        allowed_roles=SELF_SERVICE_ROLES,
    ) -> User:
        """Validate and persist a new account."""
        if not all([role, username, email, password, confirm_password]):
            raise ValidationError("All fields are required")

        try:
            user_role = UserRole(role)
        except ValueError:
            raise ValidationError("Invalid role")
        if user_role not in allowed_roles:
            raise ValidationError("Invalid role")

        if password != confirm_password:
            raise ValidationError("Passwords do not match")
        if is_password_too_long(password):
            raise ValidationError(f"Password too long (max {MAX_PASSWORD_BYTES} bytes)")

        law_firm_name = (law_firm_name or "").strip() or None
        company_name = (company_name or "").strip() or None
        if user_role == UserRole.LAW_FIRM and not law_firm_name:
            raise ValidationError("Law firm name is required for law firms")
        if user_role == UserRole.CORPORATE and not company_name:
            raise ValidationError("Company name is required for corporates")

        email = email.strip().lower()
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise ValidationError("Invalid email address")
        if self.find_by_email(email):
            raise ConflictError("Email already registered")

        user = User(
            role=user_role,
            username=username.strip(),
            email=email,
            password_hash=get_password_hash(password),
            law_firm_name=law_firm_name if user_role == UserRole.LAW_FIRM else None,
            company_name=company_name if user_role == UserRole.CORPORATE else None,
            validated=True,
        )
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Email already registered")

        try:
            if user_role == UserRole.LAW_FIRM:
                self._create_firm_records(user)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create account records for {user_role.value}: {e}")
            raise StorageError("Failed to create account")
        self.db.refresh(user)

        logger.info(f"Registered user {user.id} ({user.role.value})")
        return user

    def _create_firm_records(self, user: User):
        """Directory profile plus the owner's own team entry."""
        self.db.add(LawFirmProfile(
            law_firm_name=user.law_firm_name,
            operating_since=str(datetime.now(timezone.utc).year),
            contact_email=user.email,
            lawyer_type="Law Firm",
            created_by=user.id,
        ))
        self.db.add(TeamMember(
            name=user.username,
            email=user.email,
            lawyer_type="Owner",
            created_by=user.id,
        ))
        self.db.flush()

    def authenticate_user(self, email: Optional[str], password: Optional[str]) -> User:
        """Check credentials; raises on failure, returns the user row."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.find_by_email(email)
        if not user:
            logger.warning("Auth failed: unknown email")
            raise AuthenticationError("User not found")
        if not verify_password(password, user.password_hash):
            logger.warning(f"Auth failed: wrong password for user {user.id}")
            raise AuthenticationError("Incorrect password")
        if not user.validated:
            logger.warning(f"Auth failed: user {user.id} is not validated")
            raise AuthorizationError("Account is not validated")
        return user

    def get_auth_context(self, user_id: str) -> AuthContext:
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.validated:
            raise AuthorizationError("Account is not validated")
        return AuthContext.from_user(user)

    def set_validated(self, user_id: str, validated: bool = True) -> User:
        """Flip the validated flag; idempotent."""
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.validated != validated:
            user.validated = validated
            self.db.commit()
            self.db.refresh(user)
        return user

    def change_password(self, user_id: str, current: Optional[str], new: Optional[str],
                        confirm: Optional[str]) -> None:
        if not current or not new or not confirm:
            raise ValidationError("All fields are required")
        if new != confirm:
            raise ValidationError("Passwords do not match")

        user = self.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(current, user.password_hash):
            raise AuthenticationError("Incorrect password")

        user.password_hash = get_password_hash(new)
        self.db.commit()
        logger.info(f"Password changed for user {user.id}")

    def ensure_admin(self, email: str, password: str, username: str = "admin") -> User:
        """Create the bootstrap admin if no account uses that email yet."""
        existing = self.find_by_email(email)
        if existing:
            if existing.role != UserRole.ADMIN:
                logger.warning(f"Bootstrap admin email belongs to a {existing.role.value} account")
            return existing
        return self.register(
            role=UserRole.ADMIN.value,
            username=username,
            email=email,
            password=password,
            confirm_password=password,
            allowed_roles=tuple(UserRole),
        )


def get_auth_service(db: Session) -> AuthService:
    return AuthService(db)


# =============================================================================
# FASTAPI DEPENDENCIES
# =============================================================================

def get_auth_context(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Resolve the bearer token to the current user."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationError("Unauthorized")

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError("Unauthorized")

    payload = verify_token(token)
    auth = get_auth_service(db).get_auth_context(payload["sub"])
    request.state.auth = auth
    return auth


def require_admin(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Restrict a route to admin accounts."""
    if not auth.is_admin:
        logger.warning(f"Admin access denied for user {auth.user_id}")
        raise AuthorizationError("Access denied: Admin rights required")
    return auth
