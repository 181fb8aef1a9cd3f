"""
Adapters layer - External integrations (Supabase REST API, in-memory mock).
"""

from .mock_store import MockStore
from .postgrest_client import PostgrestClient

__all__ = ["MockStore", "PostgrestClient"]
