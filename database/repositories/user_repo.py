"""User repository, limited to the account that owns synced feeds."""
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from shared.config import settings
from shared.exceptions import StoreError
from shared.utils import get_utc_now


class UserRepository:
    """Repository for the system account."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.users

    async def ensure_system_user(self, user_id: str = None) -> str:
        """Insert the system account if it does not exist yet. Returns its ID."""
        user_id = user_id or settings.system_user_id
        try:
            await self.collection.update_one(
                {"_id": user_id},
                {
                    "$setOnInsert": {
                        "name": "System",
                        "is_guest": False,
                        "created_at": get_utc_now()
                    }
                },
                upsert=True
            )
        except DuplicateKeyError:
            # Inserted concurrently by another pass.
            pass
        except PyMongoError as e:
            raise StoreError(f"Failed to ensure system user {user_id}: {e}") from e
        return user_id
