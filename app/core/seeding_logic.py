from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from app.models.department import Department
from app.models.user import UserRole
from app.services.auth_service import get_user_by_email, create_user
from app.services.department_service import get_department_by_name
from app.core.database import AsyncSessionLocal
from app.core.config import settings

# ----------------------------------------------------------------
# 1. DEFINE STATIC DATA
# ----------------------------------------------------------------

DEPARTMENTS_DATA = [
    {"name": "Computer Science", "description": "Computer Science Department"},
    {"name": "Library", "description": "Central Library"},
    {"name": "Administration", "description": "Administrative Services"},
]


# ----------------------------------------------------------------
# 2. SEEDING FUNCTIONS
# ----------------------------------------------------------------

async def seed_all(session_factory=AsyncSessionLocal):
    """Master function to run all seeding logic. Safe to run on every boot."""
    async with session_factory() as session:
        try:
            await seed_admin_user(session)
            if settings.SEED_DEFAULT_DEPARTMENTS:
                await seed_departments(session)

            await session.commit()
            logger.success("Seeding complete.")
        except Exception as e:
            logger.error(f"Seeding failed: {e}")
            await session.rollback()


async def seed_admin_user(session: AsyncSession):
    if not settings.SUPER_ADMIN_EMAIL or not settings.SUPER_ADMIN_PASSWORD:
        logger.warning("Missing Super Admin credentials in settings. Skipping.")
        return

    existing = await get_user_by_email(session, settings.SUPER_ADMIN_EMAIL)
    if existing:
        logger.info("Super Admin already exists. Skipping.")
        return

    logger.info(f"Seeding Super Admin: {settings.SUPER_ADMIN_EMAIL}")
    await create_user(
        session=session,
        name=settings.SUPER_ADMIN_NAME,
        email=settings.SUPER_ADMIN_EMAIL,
        password=settings.SUPER_ADMIN_PASSWORD,
        role=UserRole.SuperAdmin,
    )
    logger.success("Super Admin created successfully.")


async def seed_departments(session: AsyncSession):
    for d in DEPARTMENTS_DATA:
        if not await get_department_by_name(session, d["name"]):
            logger.info(f"Creating Department: {d['name']}")
            session.add(Department(name=d["name"], description=d["description"]))
    await session.flush()
