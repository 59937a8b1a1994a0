from typing import Callable

from fastapi import HTTPException
from supabase import create_client, Client
from app.config import settings


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_user_client(cls, access_token: str) -> Client:
        """Anon-key client acting as the caller; row level security applies to every query."""
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.options.headers["Authorization"] = f"Bearer {access_token}"
        client.postgrest.auth(access_token)
        return client

    @classmethod
    def create_session_client(cls) -> Client:
        """Fresh anon-key client for flows that set or exchange a session (sign-in, callback, set password)."""
        return create_client(settings.supabase_url, settings.supabase_key)

    @classmethod
    def create_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS.

        Built fresh for each privileged request and never cached or handed to the browser.
        """
        if not settings.supabase_service_role_key:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured"
            )
        return create_client(settings.supabase_url, settings.supabase_service_role_key)

    @classmethod
    def reset_client(cls):
        cls._client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_session_supabase() -> Client:
    return SupabaseClient.create_session_client()


def get_service_client_factory() -> Callable[[], Client]:
    """Privileged routes call the factory only after the caller has been verified as admin."""
    return SupabaseClient.create_service_client
