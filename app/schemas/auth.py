from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field
from app.schemas.common import CamelModel
from app.schemas.profile import ProfileOut

class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    plant_id: UUID
    job_title: Optional[str] = Field(None, max_length=100)

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None

class RefreshRequest(CamelModel):
    refresh_token: str

class ForgotPasswordRequest(CamelModel):
    email: EmailStr

class ResetPasswordRequest(CamelModel):
    password: str = Field(..., min_length=6)

class SignupResult(CamelModel):
    profile: ProfileOut
    confirmation_required: bool

class CurrentUserOut(CamelModel):
    profile: ProfileOut
    role: str
    permissions: List[str]
    accessible_plants: List[UUID]
    all_plants: bool
