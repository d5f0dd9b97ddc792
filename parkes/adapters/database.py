import logging
from contextlib import asynccontextmanager
from typing import Any, Union
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from parkes.config import adapters

logger = logging.getLogger(__name__)


# One engine, shared by every RestHandler pointed at it
class DatabaseAdapter:
    engine: Union[AsyncEngine, None] = None

    def __init__(
        self,
        connection_uri: str = "",
        pool_size: int = 4,
        max_overflow: int = 64,
        echo: bool = False,
        **engine_args: Any,
    ):
        # sqlite does not use a queue pool, so it rejects the pool sizing args
        if not connection_uri.startswith("sqlite"):
            engine_args.setdefault("pool_size", pool_size)
            engine_args.setdefault("max_overflow", max_overflow)
            engine_args.setdefault("pool_pre_ping", True)

        self.engine = create_async_engine(connection_uri, echo=echo, **engine_args)
        self.asyncSession = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, **engine_args: Any) -> "DatabaseAdapter":
        """The adapter described by the PARKES_DATABASE_* settings"""
        return cls(
            connection_uri=adapters.DATABASE_URI,
            pool_size=adapters.DATABASE_POOL_SIZE,
            max_overflow=adapters.DATABASE_MAX_OVERFLOW,
            echo=adapters.DATABASE_ECHO,
            **engine_args,
        )

    # Use it as:
    #
    # async with adapter.getSession() as session:
    #
    # Callers don't commit or roll back their own work. The commit happens
    # here once the block exits cleanly; if the block raises, the rollback
    # happens and the error is re-raised.
    @asynccontextmanager
    async def getSession(self):
        async with self.asyncSession() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def createTables(self, metadata=SQLModel.metadata) -> None:
        async with self.engine.begin() as connection:
            await connection.run_sync(metadata.create_all)
        logger.info(f"Created tables: {', '.join(metadata.tables.keys())}")

    async def dispose(self) -> None:
        await self.engine.dispose()
