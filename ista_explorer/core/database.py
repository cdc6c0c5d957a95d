from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from ista_explorer.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

# Sessions are only used for reads, nothing is ever committed through them
AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False
)
