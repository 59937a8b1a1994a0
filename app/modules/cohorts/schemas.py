from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Tuple
from datetime import date, datetime
from enum import Enum

from app.modules.users.schemas import ProfileResponse


class MemberRole(str, Enum):
    PARTICIPANT = "participant"
    MODERATOR = "moderator"


class EncouragementType(str, Enum):
    ENCOURAGEMENT = "encouragement"
    PRAYER = "prayer"


class CohortCreate(BaseModel):
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class CohortResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CohortMemberResponse(BaseModel):
    user_id: str
    role: MemberRole
    profile: Optional[ProfileResponse] = None


class CohortWithMembersResponse(CohortResponse):
    members: List[CohortMemberResponse] = []


class MembersAdd(BaseModel):
    user_ids: List[str]
    role: MemberRole = MemberRole.PARTICIPANT


class MembersAddResponse(BaseModel):
    added: List[str]
    skipped: List[str]


class EncouragementCreate(BaseModel):
    content: str
    type: EncouragementType = EncouragementType.ENCOURAGEMENT


class EncouragementResponse(BaseModel):
    id: str
    cohort_id: str
    author_id: str
    content: str
    type: EncouragementType
    created_at: Optional[datetime] = None
    author: Optional[ProfileResponse] = None


class CohortFeed(BaseModel):
    """Immutable snapshot of the cohort page: the cohort, its members and the latest encouragements."""
    model_config = ConfigDict(frozen=True)

    cohort: Optional[CohortResponse] = None
    members: Tuple[CohortMemberResponse, ...] = ()
    encouragements: Tuple[EncouragementResponse, ...] = ()

    def with_encouragement(self, encouragement: EncouragementResponse, limit: int) -> "CohortFeed":
        """New snapshot with a confirmed encouragement at the head, newest first"""
        return self.model_copy(update={
            "encouragements": ((encouragement,) + self.encouragements)[:limit]
        })


class AdminCohortsResponse(BaseModel):
    cohorts: List[CohortWithMembersResponse]
    users: List[ProfileResponse]


class CohortSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None


class DashboardResponse(BaseModel):
    cohort: Optional[CohortSummary] = None
    membership_role: Optional[MemberRole] = None


class AdminOverviewResponse(BaseModel):
    user_count: int
    cohort_count: int
    is_admin: bool
