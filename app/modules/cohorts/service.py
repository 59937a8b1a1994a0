import logging
from supabase import Client
from app.config import settings
from app.core.cache import SessionCache
from app.modules.auth.service import error_message
from app.modules.cohorts.schemas import (
    CohortCreate, CohortResponse, CohortMemberResponse, CohortWithMembersResponse,
    MembersAdd, MembersAddResponse, MemberRole, EncouragementCreate, EncouragementResponse,
    CohortFeed, AdminCohortsResponse, CohortSummary, DashboardResponse, AdminOverviewResponse
)
from app.modules.users.schemas import ProfileResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

MEMBER_WITH_PROFILE = "user_id, role, profile:profiles(*)"
ENCOURAGEMENT_WITH_AUTHOR = "*, author:profiles(*)"


def _member(row: Dict[str, Any]) -> CohortMemberResponse:
    return CohortMemberResponse(
        user_id=row["user_id"],
        role=row["role"],
        profile=row.get("profile")
    )


class CohortService:
    def __init__(self, supabase: Client, cache: SessionCache, session: Optional[str] = None):
        self.supabase = supabase
        self.cache = cache
        self.session = session

    def get_membership(self, user_id: str) -> Optional[Dict[str, Any]]:
        """The caller's cohort membership ({cohort_id, role, cohort}) or None"""
        return self.cache.get_or_load(
            self.session, "membership", user_id,
            lambda: self._load_membership(user_id)
        )

    def _load_membership(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table("cohort_members")\
                .select("cohort_id, role, cohort:cohorts(*)")\
                .eq("user_id", user_id)\
                .order("joined_at", desc=True)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading cohort membership for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return result.data[0] if result.data else None

    def get_cohort_id(self, user_id: str) -> Optional[str]:
        membership = self.get_membership(user_id)
        return membership["cohort_id"] if membership else None

    def get_feed(self, user_id: str) -> CohortFeed:
        """Cohort, members and latest encouragements for the caller's cohort"""
        membership = self.get_membership(user_id)
        if not membership or not membership.get("cohort"):
            return CohortFeed()
        cohort = CohortResponse(**membership["cohort"])
        return self.cache.get_or_load(
            self.session, "feed", cohort.id,
            lambda: self._load_feed(cohort)
        )

    def _load_feed(self, cohort: CohortResponse) -> CohortFeed:
        try:
            members_result = self.supabase.table("cohort_members")\
                .select(MEMBER_WITH_PROFILE)\
                .eq("cohort_id", cohort.id)\
                .execute()
            encouragements_result = self.supabase.table("encouragements")\
                .select(ENCOURAGEMENT_WITH_AUTHOR)\
                .eq("cohort_id", cohort.id)\
                .order("created_at", desc=True)\
                .limit(settings.feed_limit)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading feed for cohort {cohort.id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        return CohortFeed(
            cohort=cohort,
            members=tuple(_member(m) for m in members_result.data or []),
            encouragements=tuple(EncouragementResponse(**e) for e in encouragements_result.data or [])
        )

    def post_encouragement(self, user_id: str, data: EncouragementCreate) -> EncouragementResponse:
        """Post to the caller's cohort; the cached feed is patched only once the write is acknowledged"""
        content = data.content.strip()
        if not content:
            raise HTTPException(status_code=400, detail="Content is required")
        cohort_id = self.get_cohort_id(user_id)
        if not cohort_id:
            raise HTTPException(status_code=400, detail="You are not a member of a cohort")

        try:
            result = self.supabase.table("encouragements").insert({
                "cohort_id": cohort_id,
                "author_id": user_id,
                "content": content,
                "type": data.type.value
            }).execute()
        except Exception as e:
            logger.error(f"Error posting encouragement: {e}")
            raise HTTPException(status_code=400, detail=error_message(e))

        if not result.data:
            raise HTTPException(status_code=400, detail="Failed to post encouragement")

        row = result.data[0]
        try:
            created = self.supabase.table("encouragements")\
                .select(ENCOURAGEMENT_WITH_AUTHOR)\
                .eq("id", row["id"])\
                .limit(1)\
                .execute()
            if created.data:
                row = created.data[0]
        except Exception as e:
            # The write is already acknowledged; serve it without the author embed
            logger.warning(f"Could not reload encouragement {row['id']}: {e}")
        encouragement = EncouragementResponse(**row)

        feed = self.cache.get(self.session, "feed", cohort_id) if self.session else None
        self.cache.invalidate("feed", cohort_id)
        if feed is not None:
            self.cache.put(self.session, "feed", cohort_id, feed.with_encouragement(encouragement, settings.feed_limit))
        return encouragement

    def get_dashboard(self, user_id: str) -> DashboardResponse:
        membership = self.get_membership(user_id)
        if not membership or not membership.get("cohort"):
            return DashboardResponse()
        cohort = membership["cohort"]
        return DashboardResponse(
            cohort=CohortSummary(id=cohort["id"], name=cohort["name"], description=cohort.get("description")),
            membership_role=membership.get("role")
        )

    def get_overview(self, is_admin: bool) -> AdminOverviewResponse:
        """User and cohort counts for the admin landing page"""
        try:
            users = self.supabase.table("profiles").select("id", count="exact").execute()
            cohorts = self.supabase.table("cohorts").select("id", count="exact").execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return AdminOverviewResponse(
            user_count=users.count or 0,
            cohort_count=cohorts.count or 0,
            is_admin=is_admin
        )

    def list_cohorts_with_members(self) -> AdminCohortsResponse:
        """All cohorts newest first with their members, plus every profile for the member picker"""
        try:
            cohorts_result = self.supabase.table("cohorts")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            cohort_ids = [c["id"] for c in cohorts_result.data or []]
            members_by_cohort: Dict[str, List[CohortMemberResponse]] = {cid: [] for cid in cohort_ids}
            if cohort_ids:
                members_result = self.supabase.table("cohort_members")\
                    .select(f"cohort_id, {MEMBER_WITH_PROFILE}")\
                    .in_("cohort_id", cohort_ids)\
                    .execute()
                for row in members_result.data or []:
                    members_by_cohort[row["cohort_id"]].append(_member(row))
            users_result = self.supabase.table("profiles")\
                .select("*")\
                .order("full_name")\
                .execute()
        except Exception as e:
            logger.error(f"Error listing cohorts: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        return AdminCohortsResponse(
            cohorts=[
                CohortWithMembersResponse(**c, members=members_by_cohort[c["id"]])
                for c in cohorts_result.data or []
            ],
            users=[ProfileResponse(**u) for u in users_result.data or []]
        )

    def create_cohort(self, data: CohortCreate, user_id: str) -> CohortResponse:
        """Create a cohort; the creator joins it as moderator"""
        if not data.name.strip():
            raise HTTPException(status_code=400, detail="Name is required")
        try:
            result = self.supabase.table("cohorts").insert({
                "name": data.name.strip(),
                "description": data.description or None,
                "start_date": data.start_date.isoformat() if data.start_date else None,
                "end_date": data.end_date.isoformat() if data.end_date else None,
                "created_by": user_id
            }).execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))

        if not result.data:
            raise HTTPException(status_code=400, detail="Failed to create cohort")
        cohort = CohortResponse(**result.data[0])

        try:
            self.supabase.table("cohort_members").insert({
                "cohort_id": cohort.id,
                "user_id": user_id,
                "role": MemberRole.MODERATOR.value
            }).execute()
        except Exception as e:
            logger.warning(f"Cohort {cohort.id} created but adding creator failed: {e}")
        self.cache.invalidate("membership", user_id)
        logger.info("Cohort %s created by %s", cohort.id, user_id)
        return cohort

    def add_members(self, cohort_id: str, data: MembersAdd) -> MembersAddResponse:
        """Add users to a cohort, skipping anyone who already belongs to a cohort"""
        requested = list(dict.fromkeys(data.user_ids))
        if not requested:
            raise HTTPException(status_code=400, detail="No users selected")
        try:
            cohort_result = self.supabase.table("cohorts")\
                .select("id")\
                .eq("id", cohort_id)\
                .limit(1)\
                .execute()
            if not cohort_result.data:
                raise HTTPException(status_code=404, detail="Cohort not found")

            existing = self.supabase.table("cohort_members")\
                .select("user_id")\
                .in_("user_id", requested)\
                .execute()
            already_placed = {m["user_id"] for m in existing.data or []}
            to_add = [uid for uid in requested if uid not in already_placed]
            if to_add:
                self.supabase.table("cohort_members").insert([
                    {"cohort_id": cohort_id, "user_id": uid, "role": data.role.value}
                    for uid in to_add
                ]).execute()
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))

        for uid in to_add:
            self.cache.invalidate("membership", uid)
        self.cache.invalidate("feed", cohort_id)
        return MembersAddResponse(
            added=to_add,
            skipped=[uid for uid in requested if uid in already_placed]
        )

    def remove_member(self, cohort_id: str, user_id: str) -> bool:
        """Remove a member from a cohort"""
        try:
            result = self.supabase.table("cohort_members")\
                .delete()\
                .eq("cohort_id", cohort_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=error_message(e))

        self.cache.invalidate("membership", user_id)
        self.cache.invalidate("feed", cohort_id)
        return len(result.data or []) > 0
