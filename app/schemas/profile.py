from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import EmailStr, Field
from app.models.enums import AdminRoleType, EnrollmentStatus, UserStatus
from app.schemas.common import CamelModel
from app.schemas.plant import PlantSummary
from app.schemas.course import CourseSummary

class ProfileBase(CamelModel):
    plant_id: UUID
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    job_title: Optional[str] = Field(None, max_length=100)
    status: UserStatus = UserStatus.ACTIVE

class ProfileCreate(ProfileBase):
    # omitted ids are filled in by inviting the user through the auth provider
    id: Optional[UUID] = None

class ProfileUpdate(CamelModel):
    plant_id: Optional[UUID] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    job_title: Optional[str] = Field(None, max_length=100)
    status: Optional[UserStatus] = None

class AdminUserUpdate(ProfileUpdate):
    user_id: Optional[UUID] = None

class SelfProfileUpdate(CamelModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    job_title: Optional[str] = Field(None, max_length=100)

class ProfileOut(ProfileBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

class AdminRoleSummary(CamelModel):
    id: UUID
    role: AdminRoleType
    plant_id: Optional[UUID] = None

class ProfileEnrollmentSummary(CamelModel):
    id: UUID
    course_id: UUID
    status: EnrollmentStatus
    enrolled_at: datetime
    completed_at: Optional[datetime] = None
    course: Optional[CourseSummary] = None

class ProfileWithRelations(ProfileOut):
    plant: Optional[PlantSummary] = None
    admin_roles: List[AdminRoleSummary] = []
    enrollments: List[ProfileEnrollmentSummary] = []

class UserStats(CamelModel):
    total_users: int
    active_users: int
    suspended_users: int
    admin_users: int
    total_enrollments: int = 0
    completed_courses: int = 0
    overall_completion_rate: float = 0.0
