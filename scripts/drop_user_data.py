"""Drop all goals and week states for a specific user."""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings

COLLECTIONS = ["goals", "goal_states"]


async def drop_user_data(mongodb_url: str, user_id: str):
    """Delete all documents owned by a user."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[settings.mongodb_db_name]

    for collection_name in COLLECTIONS:
        result = await db[collection_name].delete_many({"userId": user_id})
        print(f"Deleted {result.deleted_count} documents from {collection_name}")

    client.close()
    print("Done!")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python drop_user_data.py <mongodb_url> <user_id>")
        sys.exit(1)

    asyncio.run(drop_user_data(sys.argv[1], sys.argv[2]))
