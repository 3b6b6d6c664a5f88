"""
Admin API Endpoints
===================

User and law firm management for admin accounts. Every route requires
role == admin.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .auth import AuthContext, get_auth_service, require_admin, user_to_dict
from .api_law_firm import profile_to_dict
from .api_practice import team_member_to_dict
from .db.models import LawFirmProfile, TeamMember, User, UserRole
from .db.session import get_db
from .errors import NotFoundError, ValidationError
from .schemas import FirmUsersRequest, RegisterRequest, UserStatusUpdate, envelope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, pattern="^(active|inactive)$"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Paginated user list.

    status=active|inactive filters on the validated flag; search matches
    username or email (case-insensitive).
    """
    query = db.query(User)
    if status:
        query = query.filter(User.validated == (status == "active"))
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.username.ilike(pattern), User.email.ilike(pattern)))

    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return envelope("Users fetched successfully", {
        "users": [user_to_dict(u) for u in users],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": (total + limit - 1) // limit,
        },
    })


@router.post("/users", status_code=201)
async def create_user(
    request: RegisterRequest,
    auth: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create an account of any role, including admin"""
    user = get_auth_service(db).register(
        role=request.role,
        username=request.username,
        email=request.email,
        password=request.password,
        confirm_password=request.confirm_password,
        law_firm_name=request.law_firm_name,
        company_name=request.company_name,
        allowed_roles=tuple(UserRole),
    )
    logger.info(f"Admin {auth.user_id} created user {user.id} ({user.role.value})")
    return envelope("User created successfully", user_to_dict(user))


@router.patch("/users/{user_id}")
async def update_user_status(
    user_id: str,
    request: UserStatusUpdate,
    auth: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Suspend (validated=false) or re-activate an account"""
    if user_id == auth.user_id and request.status == "suspended":
        raise ValidationError("You cannot suspend your own account")

    user = get_auth_service(db).set_validated(user_id, request.status == "active")
    logger.info(f"Admin {auth.user_id} set user {user_id} to {request.status}")
    message = "User activated successfully" if request.status == "active" else "User suspended successfully"
    return envelope(message, user_to_dict(user))


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    auth: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if user_id == auth.user_id:
        raise ValidationError("You cannot delete your own account")

    user = get_auth_service(db).get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    db.delete(user)
    db.commit()
    logger.info(f"Admin {auth.user_id} deleted user {user_id}")
    return envelope("User deleted successfully", {"id": user_id})


@router.patch("/validate-user/{user_id}")
async def validate_user(
    user_id: str,
    auth: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Mark an account as validated; repeating the call is harmless"""
    user = get_auth_service(db).set_validated(user_id, True)
    logger.info(f"Admin {auth.user_id} validated user {user_id}")
    return envelope(f"{user.role.value} validated successfully", user_to_dict(user))


# =============================================================================
# LAW FIRMS
# =============================================================================

def _firm_profile(db: Session, firm_id: str) -> LawFirmProfile:
    profile = db.query(LawFirmProfile).filter(LawFirmProfile.id == firm_id).first()
    if not profile:
        raise NotFoundError("Law firm not found")
    return profile


@router.get("/law-firms/{firm_id}")
async def get_law_firm(
    firm_id: str,
    db: Session = Depends(get_db),
):
    """Directory profile with its owner account"""
    profile = _firm_profile(db, firm_id)
    data = profile_to_dict(profile)
    data["owner"] = {"id": profile.owner.id, "username": profile.owner.username, "email": profile.owner.email}
    return envelope("Law firm fetched successfully", data)


@router.post("/law-firms/{firm_id}/users", status_code=201)
async def add_users_to_law_firm(
    firm_id: str,
    request: FirmUsersRequest,
    auth: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Add existing accounts to a firm's team as members.

    Members sign in with their own account password. Accounts already on
    the team are skipped.
    """
    profile = _firm_profile(db, firm_id)
    user_ids = list(dict.fromkeys(request.user_ids))
    users = db.query(User).filter(User.id.in_(user_ids)).all()
    if len(users) != len(user_ids):
        raise ValidationError("Some users not found")

    on_team = {
        email for (email,) in
        db.query(TeamMember.email).filter(TeamMember.created_by == profile.created_by).all()
    }
    added = []
    for user in users:
        if user.email in on_team:
            continue
        member = TeamMember(
            name=user.username,
            email=user.email,
            lawyer_type="Member",
            password_hash=user.password_hash,
            created_by=profile.created_by,
        )
        db.add(member)
        added.append(member)
    db.commit()

    logger.info(f"Admin {auth.user_id} added {len(added)} user(s) to law firm {firm_id}")
    return envelope("Users added to law firm successfully", {
        "firmId": firm_id,
        "added": [team_member_to_dict(m) for m in added],
    })
