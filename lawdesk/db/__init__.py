"""
Database Package - SQLAlchemy
=============================

Persistence layer for users, practice records and document metadata.
"""

from .models import (
    Base,
    User, Case, Client, TeamMember, Appointment, HearingSchedule, LawFirmProfile,
    CaseTagSet, CaseArguments,
    UserRole, AppointmentStatus, SELF_SERVICE_ROLES,
)
from .session import get_db, get_db_session, init_db, get_engine, reset_engine

__all__ = [
    # Base
    "Base",
    # Users & practice
    "User", "Case", "Client", "TeamMember", "Appointment", "HearingSchedule",
    # Law firm directory
    "LawFirmProfile",
    # Documents
    "CaseTagSet", "CaseArguments",
    # Enums
    "UserRole", "AppointmentStatus", "SELF_SERVICE_ROLES",
    # Session
    "get_db", "get_db_session", "init_db", "get_engine", "reset_engine",
]
