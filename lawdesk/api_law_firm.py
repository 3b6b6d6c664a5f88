"""
Law Firm Directory Endpoints
============================

Public profiles of law firm accounts. Registration as a law firm creates a
starter profile; the owner fills it in through add/update.

- GET  /get-law-firms                  id + name of every law firm account
- GET  /get-all-law-firms              every profile, newest first
- GET  /get-law-firm-details/{userId}  profile of one firm (by owner id)
- POST /add-law-firm-details           create the caller's profile
- PUT  /update-law-firm-details        replace the caller's profile
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import AuthContext, get_auth_context
from .db.models import LawFirmProfile, User, UserRole
from .db.session import get_db
from .errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .schemas import LawFirmProfileRequest, envelope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Law Firms"])


def profile_to_dict(profile: LawFirmProfile) -> dict:
    """Profile in the same nested shape the web client submits"""
    address = profile.address or {}
    case_details = profile.case_details or {}
    return {
        "id": profile.id,
        "createdBy": profile.created_by,
        "lawFirmDetails": {
            "lawFirmName": profile.law_firm_name,
            "operatingSince": profile.operating_since,
            "yearsOfExperience": profile.years_of_experience,
            "specialization": profile.specialization,
            "contactInfo": {
                "email": profile.contact_email,
                "mobile": profile.contact_mobile,
                "address": {
                    "line1": address.get("line1"),
                    "line2": address.get("line2"),
                    "city": address.get("city"),
                    "state": address.get("state"),
                    "country": address.get("country"),
                    "postalCode": address.get("postal_code"),
                },
            },
        },
        "professionalDetails": {
            "lawyerType": profile.lawyer_type,
            "caseDetails": {
                "caseSolvedCount": case_details.get("case_solved_count", 0),
                "caseBasedBillRate": case_details.get("case_based_bill_rate"),
                "timeBasedBillRate": case_details.get("time_based_bill_rate"),
                "previousCases": [
                    {"caseType": c.get("case_type"), "caseDescription": c.get("case_description")}
                    for c in case_details.get("previous_cases", [])
                ],
            },
        },
        "createdAt": profile.created_at.isoformat() if profile.created_at else None,
        "updatedAt": profile.updated_at.isoformat() if profile.updated_at else None,
    }


def apply_profile(profile: LawFirmProfile, request: LawFirmProfileRequest) -> LawFirmProfile:
    """Copy a validated request onto a profile row."""
    details = request.law_firm_details
    contact = details.contact_info if details else None
    name = ((details.law_firm_name if details else None) or "").strip()
    email = ((contact.email if contact else None) or "").strip().lower()
    if not name or not email:
        raise ValidationError("Law firm name and contact email are required")

    professional = request.professional_details
    cases = professional.case_details if professional else None

    profile.law_firm_name = name
    profile.operating_since = details.operating_since
    profile.years_of_experience = details.years_of_experience
    profile.specialization = details.specialization
    profile.contact_email = email
    profile.contact_mobile = contact.mobile
    profile.address = contact.address.model_dump() if contact.address else {}
    profile.lawyer_type = professional.lawyer_type if professional else None
    profile.case_details = cases.model_dump() if cases else {}
    return profile


def _require_law_firm(auth: AuthContext):
    if auth.role != UserRole.LAW_FIRM:
        raise AuthorizationError("Only law firm accounts have a directory profile")


@router.get("/get-law-firms")
async def get_law_firms(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    firms = (
        db.query(User)
        .filter(User.role == UserRole.LAW_FIRM)
        .order_by(User.law_firm_name.asc())
        .all()
    )
    return envelope("Law firms fetched successfully", [
        {"id": f.id, "law_firm_name": f.law_firm_name} for f in firms
    ])


@router.get("/get-all-law-firms")
async def get_all_law_firms(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    profiles = db.query(LawFirmProfile).order_by(LawFirmProfile.created_at.desc()).all()
    return envelope("Law firms fetched successfully", [profile_to_dict(p) for p in profiles])


@router.get("/get-law-firm-details/{user_id}")
async def get_law_firm_details(
    user_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    profile = db.query(LawFirmProfile).filter(LawFirmProfile.created_by == user_id).first()
    if not profile:
        raise NotFoundError("Law firm details not found")
    return envelope("Law firm details fetched successfully", profile_to_dict(profile))


@router.post("/add-law-firm-details", status_code=201)
async def add_law_firm_details(
    request: LawFirmProfileRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    _require_law_firm(auth)
    if db.query(LawFirmProfile).filter(LawFirmProfile.created_by == auth.user_id).first():
        raise ConflictError("Law firm details already exist")

    profile = apply_profile(LawFirmProfile(created_by=auth.user_id), request)
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Law firm details already exist")
    db.refresh(profile)
    logger.info(f"User {auth.user_id} added law firm profile {profile.id}")
    return envelope("Law firm details added successfully", profile_to_dict(profile))


@router.put("/update-law-firm-details")
async def update_law_firm_details(
    request: LawFirmProfileRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    _require_law_firm(auth)
    profile = db.query(LawFirmProfile).filter(LawFirmProfile.created_by == auth.user_id).first()
    if not profile:
        raise NotFoundError("Law firm details not found")

    apply_profile(profile, request)
    db.commit()
    db.refresh(profile)
    return envelope("Law firm details updated successfully", profile_to_dict(profile))
