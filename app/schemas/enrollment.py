from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import Field
from app.models.enums import EnrollmentStatus
from app.schemas.common import CamelModel
from app.schemas.plant import PlantSummary
from app.schemas.course import CourseSummary

class EnrollmentCreate(CamelModel):
    user_id: UUID
    course_id: UUID
    # defaults to the learner's plant
    plant_id: Optional[UUID] = None
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED

class EnrollmentUpdate(CamelModel):
    enrollment_id: Optional[UUID] = None
    status: Optional[EnrollmentStatus] = None
    completed_at: Optional[datetime] = None

class BulkStatusUpdate(CamelModel):
    enrollment_ids: List[UUID] = Field(..., min_length=1)
    status: EnrollmentStatus

class EnrollmentOut(CamelModel):
    id: UUID
    user_id: UUID
    course_id: UUID
    plant_id: UUID
    status: EnrollmentStatus
    enrolled_at: datetime
    completed_at: Optional[datetime] = None

class EnrollmentProfileSummary(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    email: str

class EnrollmentWithRelations(EnrollmentOut):
    user: Optional[EnrollmentProfileSummary] = None
    course: Optional[CourseSummary] = None
    plant: Optional[PlantSummary] = None

class EnrollmentStats(CamelModel):
    total_enrollments: int
    enrolled: int
    in_progress: int
    completed: int
    completion_rate: float

class BulkUpdateResult(CamelModel):
    updated: int
