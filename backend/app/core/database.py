"""
MongoDB Database Connection
"""
from motor.motor_asyncio import AsyncIOMotorClient
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None

database = Database()

async def get_database():
    """Get database instance"""
    return database.client[settings.MONGODB_DB_NAME]

async def create_indexes(db):
    """Create the indexes the API relies on (uniqueness and idempotency)"""
    # Users collection indexes
    await db.users.create_index("userId", unique=True)
    await db.users.create_index("email", unique=True)
    await db.users.create_index("role")
    await db.users.create_index("createdAt")

    # Loans collection indexes
    await db.loans.create_index("loanId", unique=True)
    await db.loans.create_index("managerEmail")
    await db.loans.create_index("createdBy")
    await db.loans.create_index("createdAt")

    # Applications collection indexes
    await db.applications.create_index("applicationId", unique=True)
    await db.applications.create_index("loanId")
    await db.applications.create_index("email")
    await db.applications.create_index("status")
    await db.applications.create_index("createdAt")

    # Payments: one record per provider transaction
    await db.payments.create_index("transactionId", unique=True)
    await db.payments.create_index("customerEmail")

async def init_db():
    """Initialize database connection"""
    try:
        database.client = AsyncIOMotorClient(settings.MONGODB_URL)
        # Test connection
        await database.client.admin.command('ping')
        logger.info("Connected to MongoDB")

        await create_indexes(database.client[settings.MONGODB_DB_NAME])
        logger.info("Database indexes created")

    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        raise

async def close_db():
    """Close database connection"""
    if database.client:
        database.client.close()
        logger.info("Disconnected from MongoDB")
