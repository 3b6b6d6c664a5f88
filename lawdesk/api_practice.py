"""
Practice Records API Endpoints
==============================

Cases, clients, team members, appointments and hearing schedules. Records
belong to the account that created them; reads and deletes are scoped to
that owner, so another account's record id answers 404. The team directory
of a law firm is readable by any signed-in user.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import AuthContext, get_auth_context, get_password_hash
from .db.models import (
    Appointment,
    AppointmentStatus,
    Case,
    Client,
    HearingSchedule,
    TeamMember,
    User,
    UserRole,
)
from .db.session import get_db
from .errors import ConflictError, NotFoundError
from .schemas import (
    AppointmentCreate,
    AppointmentStatusUpdate,
    CaseCreate,
    CaseTimerUpdate,
    ClientCreate,
    HearingScheduleCreate,
    TeamMemberCreate,
    envelope,
)

logger = logging.getLogger(__name__)

cases_router = APIRouter(tags=["Cases"])
clients_router = APIRouter(tags=["Clients"])
team_router = APIRouter(tags=["Team Members"])
appointments_router = APIRouter(tags=["Appointments"])
hearings_router = APIRouter(tags=["Hearing Schedules"])


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# SERIALIZERS
# =============================================================================

def case_to_dict(case: Case) -> dict:
    return {
        "id": case.id,
        "title": case.title,
        "startingDate": _iso(case.starting_date),
        "caseType": case.case_type,
        "client": case.client,
        "oppositeClient": case.opposite_client,
        "caseWitness": case.case_witness,
        "caseDescription": case.case_description,
        "documents": list(case.documents or []),
        "timer": case.timer,
        "isRunning": case.is_running,
        "createdBy": case.created_by,
        "createdAt": _iso(case.created_at),
    }


def client_to_dict(client: Client) -> dict:
    return {
        "id": client.id,
        "name": client.name,
        "dateOfBirth": _iso(client.date_of_birth),
        "gender": client.gender,
        "email": client.email,
        "mobile": client.mobile,
        "address": client.address,
        "profilePhoto": client.profile_photo,
        "createdAt": _iso(client.created_at),
    }


def team_member_to_dict(member: TeamMember) -> dict:
    """Team member without its password hash"""
    return {
        "id": member.id,
        "name": member.name,
        "email": member.email,
        "mobile": member.mobile,
        "gender": member.gender,
        "dateOfBirth": _iso(member.date_of_birth),
        "yearsOfExperience": member.years_of_experience,
        "address": member.address or {},
        "lawyerType": member.lawyer_type,
        "governmentId": member.government_id,
        "degreeType": member.degree_type,
        "degreeInstitution": member.degree_institution,
        "specialization": member.specialization,
        "createdAt": _iso(member.created_at),
    }


def appointment_to_dict(appointment: Appointment) -> dict:
    return {
        "id": appointment.id,
        "clientId": appointment.client_id,
        "clientName": appointment.client.name if appointment.client else None,
        "lawyerId": appointment.lawyer_id,
        "lawyerName": appointment.lawyer.name if appointment.lawyer else None,
        "appointmentDate": _iso(appointment.appointment_date),
        "appointmentTime": appointment.appointment_time,
        "caseNotes": appointment.case_notes,
        "status": appointment.status.value,
        "createdAt": _iso(appointment.created_at),
    }


# =============================================================================
# CASES
# =============================================================================

def _own_case(db: Session, auth: AuthContext, case_id: str) -> Case:
    case = db.query(Case).filter(Case.id == case_id, Case.created_by == auth.user_id).first()
    if not case:
        raise NotFoundError("Case not found")
    return case


@cases_router.post("/add-case", status_code=201)
async def add_case(
    request: CaseCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    case = Case(
        title=request.title,
        starting_date=request.starting_date,
        case_type=request.case_type,
        client=request.client,
        opposite_client=request.opposite_client,
        case_witness=request.case_witness,
        case_description=request.case_description,
        documents=list(request.documents),
        created_by=auth.user_id,
    )
    db.add(case)
    db.commit()
    db.refresh(case)
    logger.info(f"User {auth.user_id} created case {case.id}")
    return envelope("Case added successfully", case_to_dict(case))


@cases_router.get("/get-cases")
async def get_cases(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    cases = (
        db.query(Case)
        .filter(Case.created_by == auth.user_id)
        .order_by(Case.created_at.desc())
        .all()
    )
    return envelope("Cases fetched successfully", [case_to_dict(c) for c in cases])


@cases_router.get("/get-case/{case_id}")
async def get_case(
    case_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    return envelope("Case fetched successfully", case_to_dict(_own_case(db, auth, case_id)))


@cases_router.put("/update-case-timer/{case_id}")
async def update_case_timer(
    case_id: str,
    request: CaseTimerUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """Store the elapsed seconds and whether the timer is running"""
    case = _own_case(db, auth, case_id)
    case.timer = request.timer
    case.is_running = request.is_running
    db.commit()
    db.refresh(case)
    return envelope("Case timer updated successfully", case_to_dict(case))


@cases_router.delete("/delete-case/{case_id}")
async def delete_case(
    case_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    case = _own_case(db, auth, case_id)
    db.delete(case)
    db.commit()
    logger.info(f"User {auth.user_id} deleted case {case_id}")
    return envelope("Case deleted successfully", {"id": case_id})


# =============================================================================
# CLIENTS
# =============================================================================

@clients_router.post("/add-client", status_code=201)
async def add_client(
    request: ClientCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    client = Client(
        name=request.name,
        date_of_birth=request.date_of_birth,
        gender=request.gender,
        email=request.email,
        mobile=request.mobile,
        address=request.address,
        profile_photo=request.profile_photo,
        created_by=auth.user_id,
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    return envelope("Client added successfully", client_to_dict(client))


@clients_router.get("/get-client")
async def get_clients(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    clients = (
        db.query(Client)
        .filter(Client.created_by == auth.user_id)
        .order_by(Client.created_at.desc())
        .all()
    )
    return envelope("Clients fetched successfully", [client_to_dict(c) for c in clients])


@clients_router.delete("/delete-client/{client_id}")
async def delete_client(
    client_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    client = db.query(Client).filter(
        Client.id == client_id,
        Client.created_by == auth.user_id,
    ).first()
    if not client:
        raise NotFoundError("Client not found")
    db.delete(client)
    db.commit()
    return envelope("Client deleted successfully", {"id": client_id})


# =============================================================================
# TEAM MEMBERS
# =============================================================================

def _own_team_member(db: Session, auth: AuthContext, member_id: str) -> TeamMember:
    member = db.query(TeamMember).filter(
        TeamMember.id == member_id,
        TeamMember.created_by == auth.user_id,
    ).first()
    if not member:
        raise NotFoundError("Team member not found")
    return member


def _team_page(db: Session, owner_id: str, page: int, limit: int) -> dict:
    query = db.query(TeamMember).filter(TeamMember.created_by == owner_id)
    total = query.count()
    members = (
        query.order_by(TeamMember.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "teamMembers": [team_member_to_dict(m) for m in members],
        "pagination": {"total": total, "page": page, "limit": limit},
    }


@team_router.post("/add-team-member", status_code=201)
async def add_team_member(
    request: TeamMemberCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    email = request.email.strip().lower()
    if db.query(TeamMember).filter(TeamMember.created_by == auth.user_id, TeamMember.email == email).first():
        raise ConflictError("Team member with this email already exists")

    member = TeamMember(
        name=request.name,
        email=email,
        mobile=request.mobile,
        gender=request.gender,
        date_of_birth=request.date_of_birth,
        years_of_experience=request.years_of_experience,
        address=request.address.model_dump() if request.address else {},
        lawyer_type=request.lawyer_type,
        government_id=request.government_id,
        degree_type=request.degree_type,
        degree_institution=request.degree_institution,
        specialization=request.specialization,
        password_hash=get_password_hash(request.password),
        created_by=auth.user_id,
    )
    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Team member with this email already exists")
    db.refresh(member)
    logger.info(f"User {auth.user_id} added team member {member.id}")
    return envelope("Team member added successfully", team_member_to_dict(member))


@team_router.get("/get-team-members")
async def get_team_members(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    return envelope("Team members fetched successfully", _team_page(db, auth.user_id, page, limit))


@team_router.get("/get-team-members-by-law-firm/{law_firm_id}")
async def get_team_members_by_law_firm(
    law_firm_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """Team directory of any law firm account (by owner user id)"""
    firm = db.query(User).filter(User.id == law_firm_id, User.role == UserRole.LAW_FIRM).first()
    if not firm:
        raise NotFoundError("Law firm not found")
    return envelope("Team members fetched successfully", _team_page(db, firm.id, page, limit))


@team_router.get("/get-team-member-details/{member_id}")
async def get_team_member_details(
    member_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    member = _own_team_member(db, auth, member_id)
    return envelope("Team member fetched successfully", team_member_to_dict(member))


@team_router.delete("/delete-team-member/{member_id}")
async def delete_team_member(
    member_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    member = _own_team_member(db, auth, member_id)
    db.delete(member)
    db.commit()
    return envelope("Team member deleted successfully", {"id": member_id})


# =============================================================================
# APPOINTMENTS
# =============================================================================

def _own_appointment(db: Session, auth: AuthContext, appointment_id: str) -> Appointment:
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.law_firm_id == auth.user_id,
    ).first()
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


@appointments_router.post("", status_code=201)
async def create_appointment(
    request: AppointmentCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """Book a meeting between one of the caller's clients and team members"""
    client = db.query(Client).filter(
        Client.id == request.client_id,
        Client.created_by == auth.user_id,
    ).first()
    if not client:
        raise NotFoundError("Client not found")
    _own_team_member(db, auth, request.lawyer_id)

    appointment = Appointment(
        client_id=request.client_id,
        lawyer_id=request.lawyer_id,
        law_firm_id=auth.user_id,
        appointment_date=request.appointment_date,
        appointment_time=request.appointment_time,
        case_notes=request.case_notes,
        status=AppointmentStatus.PENDING,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return envelope("Appointment created successfully", appointment_to_dict(appointment))


@appointments_router.get("")
async def list_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    query = db.query(Appointment).filter(Appointment.law_firm_id == auth.user_id)
    if status:
        query = query.filter(Appointment.status == status)
    appointments = query.order_by(Appointment.appointment_date.asc()).all()
    return envelope("Appointments fetched successfully", [appointment_to_dict(a) for a in appointments])


@appointments_router.patch("/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: str,
    request: AppointmentStatusUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    appointment = _own_appointment(db, auth, appointment_id)
    appointment.status = request.status
    db.commit()
    db.refresh(appointment)
    return envelope("Appointment status updated successfully", appointment_to_dict(appointment))


@appointments_router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    appointment = _own_appointment(db, auth, appointment_id)
    db.delete(appointment)
    db.commit()
    return envelope("Appointment deleted successfully", {"id": appointment_id})


# =============================================================================
# HEARING SCHEDULES
# =============================================================================

def hearing_to_dict(hearing: HearingSchedule) -> dict:
    return {
        "id": hearing.id,
        "caseId": hearing.case_id,
        "caseName": hearing.case_name,
        "date": _iso(hearing.hearing_date),
        "time": hearing.hearing_time,
        "createdAt": _iso(hearing.created_at),
    }


@hearings_router.post("", status_code=201)
async def create_hearing_schedule(
    request: HearingScheduleCreate,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    case = _own_case(db, auth, request.case_id)
    hearing = HearingSchedule(
        user_id=auth.user_id,
        case_id=case.id,
        case_name=(request.case_name or "").strip() or case.title,
        hearing_date=request.date,
        hearing_time=request.time,
    )
    db.add(hearing)
    db.commit()
    db.refresh(hearing)
    return envelope("Hearing schedule created successfully", hearing_to_dict(hearing))


@hearings_router.get("")
async def list_hearing_schedules(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """The caller's hearings, soonest first"""
    hearings = (
        db.query(HearingSchedule)
        .filter(HearingSchedule.user_id == auth.user_id)
        .order_by(HearingSchedule.hearing_date.asc())
        .all()
    )
    return envelope("Hearing schedules fetched successfully", [hearing_to_dict(h) for h in hearings])


@hearings_router.delete("/{hearing_id}")
async def delete_hearing_schedule(
    hearing_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    hearing = db.query(HearingSchedule).filter(
        HearingSchedule.id == hearing_id,
        HearingSchedule.user_id == auth.user_id,
    ).first()
    if not hearing:
        raise NotFoundError("Hearing schedule not found")
    db.delete(hearing)
    db.commit()
    return envelope("Hearing schedule deleted successfully", {"id": hearing_id})
