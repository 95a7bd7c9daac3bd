"""MongoDB database connection using Motor (async driver)."""
import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.config import settings

logger = structlog.get_logger()


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and make sure lookup indexes exist."""
        self.client = AsyncIOMotorClient(settings.mongodb_url)
        self.db = self.client[settings.mongodb_db_name]
        await ensure_indexes(self.db)
        logger.info("mongodb_connected", db_name=settings.mongodb_db_name)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("mongodb_disconnected")


async def ensure_indexes(db) -> None:
    """Create the indexed lookups the goal services rely on."""
    await db["goals"].create_index([("userId", 1), ("year", 1), ("quarter", 1)])
    await db["goals"].create_index(
        [("userId", 1), ("year", 1), ("quarter", 1), ("parentId", 1)]
    )
    await db["goals"].create_index(
        [
            ("userId", 1),
            ("year", 1),
            ("quarter", 1),
            ("adhoc.weekNumber", 1),
            ("adhoc.dayOfWeek", 1),
        ]
    )
    await db["goal_states"].create_index(
        [("userId", 1), ("year", 1), ("quarter", 1), ("weekNumber", 1)]
    )
    await db["goal_states"].create_index(
        [
            ("userId", 1),
            ("year", 1),
            ("quarter", 1),
            ("weekNumber", 1),
            ("daily.dayOfWeek", 1),
        ]
    )
    await db["goal_states"].create_index([("goalId", 1)])


# Global database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db
