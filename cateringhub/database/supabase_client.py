import logging
from supabase import create_client, Client
from cateringhub.config import settings

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Process-wide Supabase client.

    Authorization is not delegated to RLS through this client: every route
    re-reads the caller's provider membership and filters by provider_id.
    """
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            if not settings.supabase_url or not settings.supabase_key:
                raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def reset_client(cls):
        cls._client = None

    @classmethod
    def check_connection(cls, client: Client = None) -> bool:
        """Cheap round-trip used by the readiness probe."""
        try:
            (client or cls.get_client()).table("providers").select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.warning(f"Supabase readiness check failed: {e}")
            return False


def get_supabase() -> Client:
    return SupabaseClient.get_client()
