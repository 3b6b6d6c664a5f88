"""
SQLAlchemy Models for Database
==============================

Schema for the legal practice backend:
- Users (credentials, roles, validation flag)
- Practice records (cases, clients, team members, appointments, hearing schedules)
- Law firm directory profiles
- Document tag sets keyed by case id
- Cached case arguments from the enrichment service

Supports both PostgreSQL and SQLite via SQLAlchemy.
"""

import enum
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Boolean, DateTime, Enum, ForeignKey,
    Index, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base
import uuid

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, enum.Enum):
    """Account roles"""
    CITIZEN = "citizen"
    LAW_FIRM = "law_firm"
    CORPORATE = "corporate"
    ADMIN = "admin"


# Roles a visitor may pick on the public registration form
SELF_SERVICE_ROLES = (UserRole.CITIZEN, UserRole.LAW_FIRM, UserRole.CORPORATE)


class AppointmentStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"


# =============================================================================
# USERS
# =============================================================================

class User(Base):
    """Registered account"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    role = Column(Enum(UserRole), nullable=False)
    username = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    law_firm_name = Column(String(255), nullable=True)  # role == law_firm only
    company_name = Column(String(255), nullable=True)  # role == corporate only
    validated = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    cases = relationship("Case", back_populates="owner", cascade="all, delete-orphan")
    clients = relationship("Client", back_populates="owner", cascade="all, delete-orphan")
    team_members = relationship("TeamMember", back_populates="owner", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="law_firm", cascade="all, delete-orphan")
    law_firm_profile = relationship(
        "LawFirmProfile", back_populates="owner", uselist=False, cascade="all, delete-orphan"
    )
    hearing_schedules = relationship("HearingSchedule", back_populates="owner", cascade="all, delete-orphan")


# =============================================================================
# PRACTICE RECORDS
# =============================================================================

class Case(Base):
    """Legal case"""
    __tablename__ = "cases"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    starting_date = Column(DateTime, nullable=False)
    case_type = Column(String(100), nullable=False)
    client = Column(String(255), nullable=False)
    opposite_client = Column(String(255), nullable=True)
    case_witness = Column(String(255), nullable=True)
    case_description = Column(Text, nullable=True)
    documents = Column(JSON, default=list)
    timer = Column(Integer, default=0, nullable=False)  # seconds
    is_running = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_case_owner_created", "created_by", "created_at"),
    )

    owner = relationship("User", back_populates="cases")
    hearings = relationship("HearingSchedule", back_populates="case", cascade="all, delete-orphan")


class Client(Base):
    """Client of a practice"""
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    date_of_birth = Column(DateTime, nullable=False)
    gender = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    mobile = Column(String(50), nullable=False)
    address = Column(Text, nullable=False)
    profile_photo = Column(String(1024), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    owner = relationship("User", back_populates="clients")
    appointments = relationship("Appointment", back_populates="client", cascade="all, delete-orphan")


class TeamMember(Base):
    """Lawyer or staff member working for a law firm account"""
    __tablename__ = "team_members"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    mobile = Column(String(50), nullable=True)
    gender = Column(String(50), nullable=True)
    date_of_birth = Column(DateTime, nullable=True)
    years_of_experience = Column(Integer, default=0)
    address = Column(JSON, default=dict)  # {line1, line2, city, state, country, postal_code}
    lawyer_type = Column(String(100), nullable=True)  # Owner / Member / Associate ...
    government_id = Column(String(100), nullable=True)
    degree_type = Column(String(100), nullable=True)
    degree_institution = Column(String(255), nullable=True)
    specialization = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Unique per firm, not globally
    __table_args__ = (
        UniqueConstraint("created_by", "email", name="uq_team_member_firm_email"),
    )

    owner = relationship("User", back_populates="team_members")
    appointments = relationship("Appointment", back_populates="lawyer", cascade="all, delete-orphan")


class Appointment(Base):
    """Client meeting with a team member"""
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    lawyer_id = Column(String(36), ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False)
    law_firm_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    appointment_date = Column(DateTime, nullable=False)
    appointment_time = Column(String(20), nullable=False)  # e.g. "3:00 PM"
    case_notes = Column(Text, nullable=True)
    status = Column(Enum(AppointmentStatus), default=AppointmentStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    client = relationship("Client", back_populates="appointments")
    lawyer = relationship("TeamMember", back_populates="appointments")
    law_firm = relationship("User", back_populates="appointments")


class HearingSchedule(Base):
    """Court hearing date on a user's calendar"""
    __tablename__ = "hearing_schedules"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    case_id = Column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    case_name = Column(String(255), nullable=False)
    hearing_date = Column(DateTime, nullable=False)
    hearing_time = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_hearing_user_date", "user_id", "hearing_date"),
    )

    owner = relationship("User", back_populates="hearing_schedules")
    case = relationship("Case", back_populates="hearings")


# =============================================================================
# LAW FIRM DIRECTORY
# =============================================================================

class LawFirmProfile(Base):
    """Public profile of a law firm account (one per owner)

    Payment details are not stored.
    """
    __tablename__ = "law_firm_profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    law_firm_name = Column(String(255), nullable=False)
    operating_since = Column(String(10), nullable=True)
    years_of_experience = Column(Integer, default=0)
    specialization = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=False)
    contact_mobile = Column(String(50), nullable=True)
    address = Column(JSON, default=dict)
    lawyer_type = Column(String(100), nullable=True)
    case_details = Column(JSON, default=dict)  # {case_solved_count, *_bill_rate, previous_cases}
    created_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="law_firm_profile")


# =============================================================================
# DOCUMENT METADATA
# =============================================================================

class CaseTagSet(Base):
    """Free-text tags attached to a case's uploaded documents.

    case_id is the caller-supplied document folder key and is deliberately
    not a foreign key to cases.id.
    """
    __tablename__ = "case_tags"

    case_id = Column(String(128), primary_key=True)
    tags = Column(JSON, default=list, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CaseArguments(Base):
    """Arguments text extracted for a case (one row per case id)"""
    __tablename__ = "case_arguments"

    case_id = Column(String(128), primary_key=True)
    arguments = Column(Text, nullable=False)
    session_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
