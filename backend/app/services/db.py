# async mongodb client for the backend api
# uses motor for non-blocking operations
# journals and boards are plain keyed records; repositories wrap the two collections

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.config import settings

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Database:
    """async mongodb connection manager"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self):
        """establish connection to mongodb"""
        if self.client is not None:
            return

        logger.info(f"Connecting to MongoDB database: {settings.MONGODB_DATABASE}")
        self.client = AsyncIOMotorClient(settings.MONGODB_URI)
        self.db = self.client[settings.MONGODB_DATABASE]

        # verify connection
        await self.client.admin.command("ping")
        await self.ensure_indexes()
        logger.info("MongoDB connection established")

    async def ensure_indexes(self):
        for collection in (self.journals, self.boards):
            await collection.create_index("id", unique=True)
            await collection.create_index("updated_at")

    async def close(self):
        """close mongodb connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")

    # collection accessors

    @property
    def journals(self):
        return self.db["journals"]

    @property
    def boards(self):
        return self.db["boards"]


class Repository:
    """get / add / update over one collection keyed by our own `id` field.

    every update touches updated_at. records go in and come out as plain
    dicts with snake_case keys; the mongo _id never leaves this class.
    """

    def __init__(self, collection):
        self.collection = collection

    @staticmethod
    def _strip(doc: Optional[dict]) -> Optional[dict]:
        if doc is None:
            return None
        doc = dict(doc)
        doc.pop("_id", None)
        return doc

    async def get(self, record_id: str) -> Optional[dict]:
        return self._strip(await self.collection.find_one({"id": record_id}))

    async def add(self, record: dict) -> dict:
        await self.collection.insert_one(dict(record))
        return record

    async def update(self, record_id: str, fields: dict[str, Any]) -> bool:
        """partial update; returns False when no record has this id"""
        result = await self.collection.update_one(
            {"id": record_id},
            {"$set": {**fields, "updated_at": utc_now()}},
        )
        return result.matched_count > 0

    async def list_recent(self, limit: int = 50) -> list[dict]:
        cursor = self.collection.find({}).sort("updated_at", -1).limit(limit)
        return [self._strip(doc) async for doc in cursor]


class JournalRepository(Repository):
    pass


class BoardRepository(Repository):

    async def update_element_data(self, board_id: str, element_id: str, fields: dict[str, Any]) -> bool:
        """patch one element's data payload in place, matched by element id.

        positional update, so concurrent completions for different elements
        never overwrite each other's writes.
        """
        update = {f"canvas.elements.$.data.{key}": value for key, value in fields.items()}
        update["updated_at"] = utc_now()
        result = await self.collection.update_one(
            {"id": board_id, "canvas.elements.id": element_id},
            {"$set": update},
        )
        return result.matched_count > 0

    async def push_element(self, board_id: str, element: dict[str, Any]) -> bool:
        """append one element without rewriting its siblings"""
        result = await self.collection.update_one(
            {"id": board_id},
            {"$push": {"canvas.elements": element}, "$set": {"updated_at": utc_now()}},
        )
        return result.matched_count > 0

    async def pull_element(self, board_id: str, element_id: str) -> bool:
        result = await self.collection.update_one(
            {"id": board_id},
            {"$pull": {"canvas.elements": {"id": element_id}}, "$set": {"updated_at": utc_now()}},
        )
        return result.matched_count > 0


# singleton instance
db = Database()


async def get_db() -> Database:
    """dependency injection for database access"""
    return db
