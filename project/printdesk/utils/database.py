# printdesk/utils/database.py

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.future import select
from printdesk.config import settings
from printdesk.utils.security import hash_password

# ────────────── Base for models ──────────────
Base = declarative_base()

# ────────────── Database URL ──────────────
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# ────────────── Async engine ──────────────
engine = create_async_engine(
    SQLALCHEMY_DATABASE_URL,
    echo=settings.LOG_PRINT_DB.lower() in ("1", "true", "yes")
)

# ────────────── Async session ──────────────
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# ────────────── Database bootstrap ──────────────
async def init_db() -> bool:
    """
    Creates all tables (if they do not exist yet) and makes sure at least one
    administrator account exists.

    When no admin is found, one is created from AUTH_LOGIN / AUTH_PASSWORD
    with a hashed password. Returns True when the admin was created.
    """
    # Register every model on Base.metadata before create_all
    from printdesk.models import user, customer, order, payment, template, finance  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    from printdesk.models.user import User
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.is_admin.is_(True)))
        if result.scalars().first() is not None:
            return False

        admin_user = User(
            name="Administrator",
            login=settings.AUTH_LOGIN,
            password=hash_password(settings.AUTH_PASSWORD),
            is_admin=True
        )
        session.add(admin_user)
        await session.commit()
        return True
