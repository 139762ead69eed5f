"""
Journal sources and session stores.

The engine only needs two collaborators: somewhere to read journal entries
from and somewhere to upsert sessions to. In-memory versions back tests and
local runs; the Mongo versions go through motor.
"""

from datetime import datetime
from typing import Dict, List, Optional, Protocol, Iterable
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import ValidationError

from .models import JournalEntry, CoachingSession
from .documents import SessionDocument, WisdomCoachConfig

logger = logging.getLogger(__name__)


class JournalSource(Protocol):
    async def list_recent_journal_entries(
        self, user_id: str, since: datetime
    ) -> List[JournalEntry]:
        ...


class SessionStore(Protocol):
    async def save_session(self, session: CoachingSession) -> None:
        ...

    async def get_session(self, session_id: str) -> Optional[CoachingSession]:
        ...

    async def list_sessions(self, user_id: str) -> List[CoachingSession]:
        ...

    async def get_active_session(self, user_id: str) -> Optional[CoachingSession]:
        ...


class InMemoryJournalSource:
    """Journal entries held in a dict keyed by user id."""

    def __init__(self, entries: Optional[Dict[str, Iterable[JournalEntry]]] = None):
        self._entries: Dict[str, List[JournalEntry]] = {
            user_id: list(items) for user_id, items in (entries or {}).items()
        }

    def add_entry(self, user_id: str, entry: JournalEntry):
        self._entries.setdefault(user_id, []).append(entry)

    async def list_recent_journal_entries(
        self, user_id: str, since: datetime
    ) -> List[JournalEntry]:
        return [e for e in self._entries.get(user_id, []) if e.created_at >= since]


class InMemorySessionStore:
    """Sessions upserted by id, kept in insertion order."""

    def __init__(self):
        self._sessions: Dict[str, CoachingSession] = {}

    async def save_session(self, session: CoachingSession) -> None:
        self._sessions[session.id] = session

    async def get_session(self, session_id: str) -> Optional[CoachingSession]:
        return self._sessions.get(session_id)

    async def list_sessions(self, user_id: str) -> List[CoachingSession]:
        return [s for s in self._sessions.values() if s.user_id == user_id]

    async def get_active_session(self, user_id: str) -> Optional[CoachingSession]:
        for session in reversed(list(self._sessions.values())):
            if session.user_id == user_id and session.is_active:
                return session
        return None


def created_since_query(user_id: str, since: datetime) -> Dict:
    """
    Journal filter matching ``createdAt`` on or after ``since``.

    Journals may store ``createdAt`` as a BSON date or as an ISO-8601 string;
    Mongo only compares values of the same type, so both forms are queried.
    String comparison is lexicographic and assumes UTC offsets.
    """
    return {
        "userId": user_id,
        "$or": [
            {"createdAt": {"$gte": since}},
            {"createdAt": {"$gte": since.isoformat()}},
        ],
    }


class MongoJournalSource:
    """Reads journal entries from a ``journals`` collection (motor database)."""

    def __init__(self, db, collection: str = "journals"):
        self.collection = db[collection]

    async def list_recent_journal_entries(
        self, user_id: str, since: datetime
    ) -> List[JournalEntry]:
        cursor = self.collection.find(created_since_query(user_id, since), {"_id": 0}).sort("createdAt", 1)
        entries = []
        async for doc in cursor:
            try:
                entries.append(JournalEntry.from_dict(doc))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed journal document {doc.get('id')}: {e}")
        return entries


class MongoSessionStore:
    """Upserts sessions into a ``coaching_sessions`` collection (motor database)."""

    def __init__(self, db, collection: str = "coaching_sessions"):
        self.collection = db[collection]

    async def save_session(self, session: CoachingSession) -> None:
        document = SessionDocument(**session.to_dict())
        await self.collection.update_one(
            {"id": session.id},
            {"$set": document.model_dump()},
            upsert=True,
        )

    async def get_session(self, session_id: str) -> Optional[CoachingSession]:
        doc = await self.collection.find_one({"id": session_id}, {"_id": 0})
        return CoachingSession.from_dict(doc) if doc else None

    async def list_sessions(self, user_id: str) -> List[CoachingSession]:
        cursor = self.collection.find({"userId": user_id}, {"_id": 0}).sort("createdAt", 1)
        return [CoachingSession.from_dict(doc) async for doc in cursor]

    async def get_active_session(self, user_id: str) -> Optional[CoachingSession]:
        doc = await self.collection.find_one(
            {"userId": user_id, "status": "active"},
            {"_id": 0},
            sort=[("createdAt", -1)],
        )
        return CoachingSession.from_dict(doc) if doc else None


class MongoCoachConfigSource:
    """Reads per-user coach configuration from a ``coach_configs`` collection."""

    def __init__(self, db, collection: str = "coach_configs"):
        self.collection = db[collection]

    async def get_config(self, user_id: str) -> Optional[WisdomCoachConfig]:
        doc = await self.collection.find_one({"userId": user_id}, {"_id": 0})
        if not doc:
            return None
        try:
            return WisdomCoachConfig.model_validate(doc)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable coach config for {user_id}: {e}")
            return None


def create_mongo_database(uri: str, database_name: str):
    """Open a motor database handle."""
    client = AsyncIOMotorClient(uri)
    return client[database_name]
