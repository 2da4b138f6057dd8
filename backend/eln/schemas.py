import datetime as dt
from typing import Optional, Any, Dict, List, Union
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from uuid import UUID

from .enums import Action


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None
    orcid_id: Optional[str] = None


class UserOut(BaseModel):
    id: UUID
    email: EmailStr
    full_name: Optional[str]
    orcid_id: Optional[str] = None
    is_admin: bool = False
    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TeamCreate(BaseModel):
    name: str


class TeamOut(BaseModel):
    id: UUID
    name: str
    model_config = ConfigDict(from_attributes=True)


class TeamMemberAdd(BaseModel):
    user_id: Optional[UUID] = None
    email: Optional[EmailStr] = None
    role: str = "member"


class CategoryCreate(BaseModel):
    title: str
    color: str = "29aeb9"
    is_default: bool = False
    team_id: Optional[UUID] = None


class CategoryOut(BaseModel):
    id: int
    title: str
    color: Optional[str] = None
    is_default: bool = False
    team_id: Optional[UUID] = None
    model_config = ConfigDict(from_attributes=True)


class StatusCreate(CategoryCreate):
    entity_type: str = "experiments"
    color: str = "bdbdbd"


class StatusOut(CategoryOut):
    entity_type: str


class EntityCreate(BaseModel):
    title: Optional[str] = None
    template: Optional[int] = None
    category_id: Optional[int] = None
    tags: List[str] = []


class EntityPatch(BaseModel):
    action: Action = Action.UPDATE
    title: Optional[str] = None
    body: Optional[str] = None
    date: Optional[dt.date] = None
    metadata: Optional[Union[Dict[str, Any], str]] = None
    category: Optional[int] = None
    status: Optional[int] = None
    rating: Optional[int] = Field(default=None, ge=0, le=5)
    canread: Optional[str] = None
    canwrite: Optional[str] = None
    is_bookable: Optional[bool] = None
    color: Optional[str] = None


class EntitySummaryOut(BaseModel):
    id: int
    title: str
    state: int
    category: Optional[int] = None
    date: Optional[dt.date] = None
    elabid: Optional[str] = None
    userid: UUID
    modified_at: Optional[dt.datetime] = None
    model_config = ConfigDict(from_attributes=True)


class CreatedOut(BaseModel):
    id: int


class LinkAction(BaseModel):
    action: Action = Action.CREATE


class LinkOut(BaseModel):
    itemid: int
    title: Optional[str] = None
    elabid: Optional[str] = None
    category_title: Optional[str] = None
    category_color: Optional[str] = None
    is_bookable: Optional[bool] = None
    link_state: Optional[int] = None


class RelatedOut(BaseModel):
    entityid: int
    title: Optional[str] = None
    category_title: Optional[str] = None
    category_color: Optional[str] = None
    is_bookable: Optional[bool] = None
    link_state: Optional[int] = None


class TagCreate(BaseModel):
    tag: str


class TagOut(BaseModel):
    id: int
    tag: str


class StepCreate(BaseModel):
    body: str


class StepPatch(BaseModel):
    action: Action = Action.UPDATE
    body: Optional[str] = None
    deadline: Optional[dt.datetime] = None


class StepOut(BaseModel):
    id: int
    body: str
    ordering: int
    finished: bool
    finished_time: Optional[dt.datetime] = None
    deadline: Optional[dt.datetime] = None


class CommentCreate(BaseModel):
    comment: str


class CommentOut(BaseModel):
    id: int
    comment: str
    userid: str
    fullname: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    modified_at: Optional[dt.datetime] = None


class UploadOut(BaseModel):
    id: int
    real_name: str
    comment: Optional[str] = None
    content_type: Optional[str] = None
    filesize: int
    hash: Optional[str] = None
    hash_algorithm: Optional[str] = None
    userid: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class AuditLogOut(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    details: Dict[str, Any] = {}
    created_at: dt.datetime
    model_config = ConfigDict(from_attributes=True)


class TeamMemberOut(BaseModel):
    user: UserOut
    role: str
