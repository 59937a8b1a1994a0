from fastapi import APIRouter, Depends
from app.core.authorization import Authorizer, STAFF_ROLES
from app.core.cache import SessionCache, get_session_cache
from app.core.dependencies import get_authorizer, get_current_user, get_session_id, get_user_supabase, require_roles
from app.modules.cohorts.schemas import (
    CohortCreate, CohortResponse, CohortFeed, MembersAdd, MembersAddResponse,
    EncouragementCreate, EncouragementResponse, AdminCohortsResponse,
    DashboardResponse, AdminOverviewResponse
)
from app.modules.cohorts.service import CohortService
from supabase import Client
from typing import Dict

router = APIRouter(tags=["cohorts"])


def get_cohort_service(
    supabase: Client = Depends(get_user_supabase),
    cache: SessionCache = Depends(get_session_cache),
    session: str = Depends(get_session_id)
) -> CohortService:
    return CohortService(supabase, cache, session)


@router.get("/cohort", response_model=CohortFeed)
async def get_cohort_feed(
    user_data: Dict = Depends(get_current_user),
    service: CohortService = Depends(get_cohort_service)
):
    """The caller's cohort with members and the latest encouragements"""
    return service.get_feed(user_data["id"])


@router.post("/cohort/encouragements", response_model=EncouragementResponse, status_code=201)
async def post_encouragement(
    data: EncouragementCreate,
    user_data: Dict = Depends(get_current_user),
    service: CohortService = Depends(get_cohort_service)
):
    """Share an encouragement or prayer with the caller's cohort"""
    return service.post_encouragement(user_data["id"], data)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    user_data: Dict = Depends(get_current_user),
    service: CohortService = Depends(get_cohort_service)
):
    return service.get_dashboard(user_data["id"])


@router.get("/admin/overview", response_model=AdminOverviewResponse)
async def get_admin_overview(
    authorizer: Authorizer = Depends(get_authorizer),
    service: CohortService = Depends(get_cohort_service)
):
    """Counts for the admin landing page (admins and moderators)"""
    authorizer.require(*STAFF_ROLES)
    return service.get_overview(is_admin=authorizer.is_admin())


@router.get("/admin/cohorts", response_model=AdminCohortsResponse)
async def list_cohorts(
    user_data: Dict = Depends(require_roles(*STAFF_ROLES)),
    service: CohortService = Depends(get_cohort_service)
):
    """All cohorts with members and all users"""
    return service.list_cohorts_with_members()


@router.post("/admin/cohorts", response_model=CohortResponse, status_code=201)
async def create_cohort(
    cohort_data: CohortCreate,
    user_data: Dict = Depends(require_roles(*STAFF_ROLES)),
    service: CohortService = Depends(get_cohort_service)
):
    """Create a cohort; the creator becomes its moderator"""
    return service.create_cohort(cohort_data, user_data["id"])


@router.post("/admin/cohorts/{cohort_id}/members", response_model=MembersAddResponse, status_code=201)
async def add_members(
    cohort_id: str,
    members_data: MembersAdd,
    user_data: Dict = Depends(require_roles(*STAFF_ROLES)),
    service: CohortService = Depends(get_cohort_service)
):
    """Add users to a cohort"""
    return service.add_members(cohort_id, members_data)


@router.delete("/admin/cohorts/{cohort_id}/members/{user_id}", status_code=204)
async def remove_member(
    cohort_id: str,
    user_id: str,
    user_data: Dict = Depends(require_roles(*STAFF_ROLES)),
    service: CohortService = Depends(get_cohort_service)
):
    """Remove a user from a cohort"""
    service.remove_member(cohort_id, user_id)
    return None
