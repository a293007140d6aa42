"""
Base class for table access through the Supabase client.

Repositories own their queries and turn rows into Pydantic models; nothing
outside a repository touches ``AsyncClient.table`` directly.
"""

from typing import TypeVar, Generic
from supabase import AsyncClient


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Holds the async Supabase client for a table-backed repository.

    ``T`` is the model the subclass maps rows into, e.g.
    ``ProfileRepository(BaseRepository[Profile])``. Subclasses translate
    postgrest errors into their module's exceptions.
    """

    def __init__(self, db: AsyncClient) -> None:
        self._db = db
