"""
Pydantic Schemas for LawDesk API
================================

Request bodies and the shared response envelope.

Every response body has the shape:

    {"status": true|false, "message": "...", "data": {...}}

Request fields accept both snake_case and the camelCase names used by the
web client (e.g. `confirmPassword`, `startingDate`).
"""

from typing import List, Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, EmailStr

from .db.models import AppointmentStatus


def envelope(message: str, data: Any = None, status: bool = True) -> dict:
    """Build the standard response body"""
    return {"status": status, "message": message, "data": data if data is not None else {}}


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime


# =============================================================================
# AUTH
# =============================================================================

class RegisterRequest(ApiModel):
    """Registration form.

    Fields are optional at the schema level so missing values produce the
    service's own validation messages instead of a generic schema error.
    """
    role: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")
    law_firm_name: Optional[str] = Field(None, alias="lawFirmName")
    company_name: Optional[str] = Field(None, alias="companyName")


class LoginRequest(ApiModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ChangePasswordRequest(ApiModel):
    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")


# =============================================================================
# ADMIN
# =============================================================================

class UserStatusUpdate(ApiModel):
    """Suspend or re-activate an account"""
    status: str = Field(..., pattern="^(active|suspended)$")


# =============================================================================
# PRACTICE RECORDS
# =============================================================================

class CaseCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=255)
    starting_date: datetime = Field(..., alias="startingDate")
    case_type: str = Field(..., min_length=1, alias="caseType")
    client: str = Field(..., min_length=1)
    opposite_client: Optional[str] = Field(None, alias="oppositeClient")
    case_witness: Optional[str] = Field(None, alias="caseWitness")
    case_description: Optional[str] = Field(None, alias="caseDescription")
    documents: List[str] = []


class CaseTimerUpdate(ApiModel):
    timer: int = Field(..., ge=0)
    is_running: bool = Field(..., alias="isRunning")


class ClientCreate(ApiModel):
    name: str = Field(..., min_length=1)
    date_of_birth: datetime = Field(..., alias="dateOfBirth")
    gender: str = Field(..., min_length=1)
    email: EmailStr
    mobile: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    profile_photo: Optional[str] = Field(None, alias="profilePhoto")


class Address(ApiModel):
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = Field(None, alias="postalCode")


class TeamMemberCreate(ApiModel):
    """New team member (personal, professional and login details)"""
    name: str = Field(..., min_length=1)
    email: EmailStr
    mobile: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[datetime] = Field(None, alias="dateOfBirth")
    years_of_experience: int = Field(0, ge=0, alias="yearsOfExperience")
    address: Optional[Address] = None
    lawyer_type: Optional[str] = Field(None, alias="lawyerType")
    government_id: Optional[str] = Field(None, alias="governmentId")
    degree_type: Optional[str] = Field(None, alias="degreeType")
    degree_institution: Optional[str] = Field(None, alias="degreeInstitution")
    specialization: Optional[str] = None
    password: str = Field(..., min_length=1)


class AppointmentCreate(ApiModel):
    client_id: str = Field(..., alias="clientId")
    lawyer_id: str = Field(..., alias="lawyerId")
    appointment_date: datetime = Field(..., alias="appointmentDate")
    appointment_time: str = Field(..., min_length=1, alias="appointmentTime")
    case_notes: Optional[str] = Field(None, alias="caseNotes")


class AppointmentStatusUpdate(ApiModel):
    status: AppointmentStatus


class HearingScheduleCreate(ApiModel):
    case_id: str = Field(..., alias="caseId")
    case_name: Optional[str] = Field(None, alias="caseName")
    date: datetime
    time: str = Field(..., min_length=1)


# =============================================================================
# LAW FIRM DIRECTORY
# =============================================================================

class ContactInfo(ApiModel):
    email: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[Address] = None


class LawFirmDetails(ApiModel):
    law_firm_name: Optional[str] = Field(None, alias="lawFirmName")
    operating_since: Optional[str] = Field(None, alias="operatingSince")
    years_of_experience: int = Field(0, ge=0, alias="yearsOfExperience")
    specialization: Optional[str] = None
    contact_info: Optional[ContactInfo] = Field(None, alias="contactInfo")


class PreviousCase(ApiModel):
    case_type: Optional[str] = Field(None, alias="caseType")
    case_description: Optional[str] = Field(None, alias="caseDescription")


class CaseRecord(ApiModel):
    case_solved_count: int = Field(0, ge=0, alias="caseSolvedCount")
    case_based_bill_rate: Optional[str] = Field(None, alias="caseBasedBillRate")
    time_based_bill_rate: Optional[str] = Field(None, alias="timeBasedBillRate")
    previous_cases: List[PreviousCase] = Field([], alias="previousCases")


class ProfessionalDetails(ApiModel):
    lawyer_type: Optional[str] = Field(None, alias="lawyerType")
    case_details: Optional[CaseRecord] = Field(None, alias="caseDetails")


class LawFirmProfileRequest(ApiModel):
    """Directory profile in the web client's nested shape.

    bankAccountDetails is accepted and ignored.
    """
    law_firm_details: Optional[LawFirmDetails] = Field(None, alias="lawFirmDetails")
    professional_details: Optional[ProfessionalDetails] = Field(None, alias="professionalDetails")


class FirmUsersRequest(ApiModel):
    user_ids: List[str] = Field(..., min_length=1, alias="userIds")


# =============================================================================
# AI PROXIES
# =============================================================================

class TextRequest(ApiModel):
    text: Optional[str] = None


class ChatRequest(ApiModel):
    message: Optional[str] = None
