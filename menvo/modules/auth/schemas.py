from pydantic import BaseModel, EmailStr
from typing import Optional, List, Dict, Any

from menvo.config.permissions_config import UserRole
from menvo.modules.auth.guard import GateView
from menvo.modules.auth.lifecycle import LifecycleStage


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str


class RefreshRequest(BaseModel):
    refresh_token: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class SelectRoleRequest(BaseModel):
    role: UserRole


class RoleUpdateResponse(BaseModel):
    user_id: str
    role: UserRole
    stage: LifecycleStage
    gate: GateView
    refresh_required: bool = True


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    role: Optional[UserRole] = None
    user_metadata: Dict[str, Any] = {}
    permissions: List[str]
    stage: LifecycleStage
