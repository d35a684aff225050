"""
数据库配置模块

使用 SQLAlchemy 2.0 异步模式，表结构由 SQLModel 元数据统一管理
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Awaitable, Callable, Optional
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlmodel import SQLModel

from .config import settings


# 创建异步引擎
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,  # 开发环境打印 SQL
    future=True,
)

# 创建异步会话工厂
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# 所有表模型共享的元数据
metadata = SQLModel.metadata


# 提交后回调在 session.info 中的键
AFTER_COMMIT_KEY = "after_commit"


def after_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """登记提交后回调：事务提交后执行，回滚时丢弃"""
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)


async def run_after_commit(session: AsyncSession) -> None:
    """执行已登记的提交后回调，单个回调失败只记录日志"""
    for callback in session.info.pop(AFTER_COMMIT_KEY, []):
        try:
            await callback()
        except Exception:
            logger.exception("提交后回调执行失败")


@asynccontextmanager
async def transaction_scope(
    session_factory: Optional[async_sessionmaker] = None
) -> AsyncIterator[AsyncSession]:
    """
    一个会话、一个事务

    正常结束时提交并执行提交后回调；任何异常都回滚并丢弃回调，
    因此业务层抛出的异常会撤销同一事务内已执行的写操作，也不会留下通知。
    """
    async with (session_factory or AsyncSessionLocal)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            session.info.pop(AFTER_COMMIT_KEY, None)
            await session.rollback()
            raise
        await run_after_commit(session)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    数据库会话依赖注入

    每个请求一个事务，见 transaction_scope。

    使用方式:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with transaction_scope() as session:
        yield session


async def init_db():
    """初始化数据库（创建所有表）"""
    import app.models  # noqa: F401  注册表模型

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def close_db():
    """关闭数据库连接"""
    await engine.dispose()
