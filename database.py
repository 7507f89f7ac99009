"""
Persistence for friends, contact logs and settings.

MongoDB when DATABASE_URL / DATABASE_NAME are configured, otherwise an
in-memory store with the same contract. Deleting a friend removes its
contact logs first, then the friend itself.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, MongoClient
from pymongo.database import Database

from config import Config
from dates import now_utc
from errors import ConflictError, NotFoundError
from schemas import ContactLog, Friend, Settings

logger = logging.getLogger("reconnect.database")

FRIENDS = "friend"
CONTACT_LOGS = "contactlog"
SETTINGS = "settings"
SETTINGS_ID = "default"


# ------------------------- Mongo helpers -------------------------

def connect(config: Config) -> Optional[Database]:
    if not (config.database_url and config.database_name):
        return None
    client = MongoClient(config.database_url, tz_aware=True)
    return client[config.database_name]


def create_document(database: Database, collection_name: str, data: Dict[str, Any]) -> str:
    """Insert a document stamped with created_at / updated_at and return its id as a string."""
    now = now_utc()
    payload = {**data, "created_at": now, "updated_at": now}
    result = database[collection_name].insert_one(payload)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


# ------------------------- Document mapping -------------------------

_BOOKKEEPING_FIELDS = ("_id", "created_at", "updated_at")


def friend_to_document(friend: Friend) -> Dict[str, Any]:
    doc = friend.model_dump(exclude={"id", "contactLogs"})
    doc["_id"] = friend.id
    return doc


def friend_from_document(doc: Dict[str, Any], logs: Optional[List[ContactLog]] = None) -> Friend:
    fields = {k: v for k, v in doc.items() if k not in _BOOKKEEPING_FIELDS}
    return Friend(id=str(doc["_id"]), contactLogs=logs or [], **fields)


def log_to_document(log: ContactLog) -> Dict[str, Any]:
    doc = log.model_dump(exclude={"id"}, mode="python")
    doc["method"] = log.method.value
    doc["_id"] = log.id
    return doc


def log_from_document(doc: Dict[str, Any]) -> ContactLog:
    fields = {k: v for k, v in doc.items() if k not in _BOOKKEEPING_FIELDS}
    return ContactLog(id=str(doc["_id"]), **fields)


def _newest_first(logs: List[ContactLog]) -> List[ContactLog]:
    return sorted(logs, key=lambda log: log.contactedAt, reverse=True)


# ------------------------- Repositories -------------------------

class FriendRepository(ABC):
    """Durable store of friends and their contact logs."""

    @abstractmethod
    def create(self, friend: Friend) -> Friend: ...

    @abstractmethod
    def update(self, friend: Friend) -> Friend: ...

    @abstractmethod
    def delete(self, friend_id: str) -> None:
        """Delete the friend and all of its contact logs."""

    @abstractmethod
    def append_log(self, log: ContactLog) -> ContactLog: ...

    @abstractmethod
    def get(self, friend_id: str) -> Optional[Friend]:
        """The friend with its contact logs (oldest first), or None."""

    @abstractmethod
    def list_friends(self) -> List[Friend]:
        """All friends with their contact logs, ordered by name."""

    @abstractmethod
    def list_logs(self, friend_id: Optional[str] = None, limit: Optional[int] = None) -> List[ContactLog]:
        """Contact logs newest first, optionally for one friend."""

    @abstractmethod
    def get_settings(self) -> Optional[Settings]: ...

    @abstractmethod
    def save_settings(self, settings: Settings) -> Settings: ...

    def require(self, friend_id: str) -> Friend:
        friend = self.get(friend_id)
        if friend is None:
            raise NotFoundError("Friend not found")
        return friend


class InMemoryFriendRepository(FriendRepository):
    """Keeps copies, so callers only see changes they saved."""

    def __init__(self):
        self._friends: Dict[str, Friend] = {}
        self._logs: Dict[str, List[ContactLog]] = {}
        self._settings: Optional[Settings] = None

    def create(self, friend: Friend) -> Friend:
        if friend.id in self._friends:
            raise ConflictError("Friend already exists")
        stored = friend.model_copy(deep=True, update={"contactLogs": []})
        self._friends[friend.id] = stored
        self._logs[friend.id] = []
        for log in friend.contactLogs:
            self.append_log(log)
        return self.require(friend.id)

    def update(self, friend: Friend) -> Friend:
        if friend.id not in self._friends:
            raise NotFoundError("Friend not found")
        self._friends[friend.id] = friend.model_copy(deep=True, update={"contactLogs": []})
        return self.require(friend.id)

    def delete(self, friend_id: str) -> None:
        self._logs.pop(friend_id, None)
        self._friends.pop(friend_id, None)

    def append_log(self, log: ContactLog) -> ContactLog:
        if log.friendId not in self._friends:
            raise NotFoundError("Friend not found")
        self._logs[log.friendId].append(log)
        return log

    def get(self, friend_id: str) -> Optional[Friend]:
        friend = self._friends.get(friend_id)
        if friend is None:
            return None
        logs = sorted(self._logs.get(friend_id, []), key=lambda log: log.contactedAt)
        return friend.model_copy(deep=True, update={"contactLogs": list(logs)})

    def list_friends(self) -> List[Friend]:
        friends = [self.get(friend_id) for friend_id in self._friends]
        return sorted(friends, key=lambda f: f.name.casefold())

    def list_logs(self, friend_id: Optional[str] = None, limit: Optional[int] = None) -> List[ContactLog]:
        if friend_id is None:
            logs = [log for entries in self._logs.values() for log in entries]
        else:
            logs = list(self._logs.get(friend_id, []))
        logs = _newest_first(logs)
        return logs[:limit] if limit else logs

    def get_settings(self) -> Optional[Settings]:
        return self._settings.model_copy() if self._settings else None

    def save_settings(self, settings: Settings) -> Settings:
        self._settings = settings.model_copy()
        return settings


class MongoFriendRepository(FriendRepository):
    def __init__(self, database: Database):
        self.db = database

    def collection(self, name: str):
        return self.db[name]

    def create(self, friend: Friend) -> Friend:
        if self.collection(FRIENDS).find_one({"_id": friend.id}, {"_id": 1}):
            raise ConflictError("Friend already exists")
        create_document(self.db, FRIENDS, friend_to_document(friend))
        for log in friend.contactLogs:
            self.append_log(log)
        return self.require(friend.id)

    def update(self, friend: Friend) -> Friend:
        doc = friend_to_document(friend)
        doc.pop("_id")
        result = self.collection(FRIENDS).update_one(
            {"_id": friend.id}, {"$set": {**doc, "updated_at": now_utc()}}
        )
        if result.matched_count == 0:
            raise NotFoundError("Friend not found")
        return self.require(friend.id)

    def delete(self, friend_id: str) -> None:
        removed = self.collection(CONTACT_LOGS).delete_many({"friendId": friend_id})
        self.collection(FRIENDS).delete_one({"_id": friend_id})
        logger.debug("Deleted friend %s with %d contact logs", friend_id, removed.deleted_count)

    def append_log(self, log: ContactLog) -> ContactLog:
        if not self.collection(FRIENDS).find_one({"_id": log.friendId}, {"_id": 1}):
            raise NotFoundError("Friend not found")
        create_document(self.db, CONTACT_LOGS, log_to_document(log))
        return log

    def _logs_for(self, friend_id: str) -> List[ContactLog]:
        cursor = self.collection(CONTACT_LOGS).find({"friendId": friend_id}).sort("contactedAt", 1)
        return [log_from_document(doc) for doc in cursor]

    def get(self, friend_id: str) -> Optional[Friend]:
        doc = self.collection(FRIENDS).find_one({"_id": friend_id})
        if doc is None:
            return None
        return friend_from_document(doc, self._logs_for(friend_id))

    def list_friends(self) -> List[Friend]:
        docs = get_documents(self.db, FRIENDS)
        logs_by_friend: Dict[str, List[ContactLog]] = {}
        for doc in self.collection(CONTACT_LOGS).find().sort("contactedAt", 1):
            log = log_from_document(doc)
            logs_by_friend.setdefault(log.friendId, []).append(log)
        friends = [friend_from_document(doc, logs_by_friend.get(str(doc["_id"]))) for doc in docs]
        return sorted(friends, key=lambda f: f.name.casefold())

    def list_logs(self, friend_id: Optional[str] = None, limit: Optional[int] = None) -> List[ContactLog]:
        query = {"friendId": friend_id} if friend_id else {}
        cursor = self.collection(CONTACT_LOGS).find(query).sort("contactedAt", DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return [log_from_document(doc) for doc in cursor]

    def get_settings(self) -> Optional[Settings]:
        doc = self.collection(SETTINGS).find_one({"_id": SETTINGS_ID})
        if not doc:
            return None
        return Settings(**{k: v for k, v in doc.items() if k not in _BOOKKEEPING_FIELDS})

    def save_settings(self, settings: Settings) -> Settings:
        self.collection(SETTINGS).update_one(
            {"_id": SETTINGS_ID},
            {"$set": {**settings.model_dump(), "updated_at": now_utc()}},
            upsert=True,
        )
        return settings


def build_repository(config: Config) -> FriendRepository:
    database = connect(config)
    if database is None:
        logger.warning("DATABASE_URL/DATABASE_NAME not set, using in-memory storage")
        return InMemoryFriendRepository()
    return MongoFriendRepository(database)


def database_status(repository: FriendRepository) -> Dict[str, Any]:
    """Health summary for the /test endpoint."""
    response: Dict[str, Any] = {
        "backend": "running",
        "storage": "memory",
        "database": "not configured",
        "collections": [],
    }
    if not isinstance(repository, MongoFriendRepository):
        return response

    response["storage"] = "mongodb"
    try:
        response["collections"] = repository.db.list_collection_names()
        response["database"] = "connected"
    except Exception as e:
        logger.warning("Database status check failed: %s", e)
        response["database"] = f"error: {str(e)[:80]}"
    return response
