"""
CRUD 基类模块 - SQLModel 简化版

直接使用 SQLModel 对象，无需 model_dump() 转换。
所有读路径统一排除 removed_at 非空的软删除记录。
"""
from typing import Generic, TypeVar, Type, Optional, List, Any, Dict
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.models.base import utcnow

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SQLModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=SQLModel)


class CRUDBase(Generic[ModelType]):
    """
    CRUD 基类 - 简化版

    直接操作 SQLModel 对象，减少样板代码
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _active(self, query):
        """追加软删除过滤条件"""
        return query.where(self.model.removed_at.is_(None))

    async def get(self, db: AsyncSession, id: str, *, fresh: bool = False) -> Optional[ModelType]:
        """
        根据 ID 获取单条记录

        fresh=True 时强制用数据库当前值覆盖会话中的缓存对象，
        用于条件更新之后重新读取。
        """
        query = self._active(select(self.model).where(self.model.id == id))
        if fresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        order_by: Any = None
    ) -> List[ModelType]:
        """获取多条记录（分页）"""
        query = self._active(select(self.model))
        if order_by is not None:
            query = query.order_by(order_by)
        else:
            query = query.order_by(self.model.created_at.desc())
        query = query.offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count(self, db: AsyncSession) -> int:
        """获取总记录数"""
        result = await db.execute(
            self._active(select(func.count()).select_from(self.model))
        )
        return result.scalar() or 0

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: CreateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """
        创建记录

        SQLModel 可以直接从 Schema 创建 Model
        """
        # 如果传入的是 dict，直接使用；否则转换
        if isinstance(obj_in, dict):
            db_obj = self.model(**obj_in)
        else:
            db_obj = self.model.model_validate(obj_in)

        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """
        更新记录

        支持传入 Schema 或 dict
        """
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            if value is not None:
                setattr(db_obj, field, value)
        db_obj.updated_at = utcnow()

        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def conditional_update(
        self,
        db: AsyncSession,
        *conditions,
        values: Dict[str, Any],
    ) -> int:
        """
        单条原子条件更新（check-and-set）

        UPDATE ... SET values WHERE conditions AND removed_at IS NULL，
        返回受影响行数，由调用方根据行数判断谓词是否仍然成立。
        """
        stmt = (
            update(self.model)
            .where(*conditions, self.model.removed_at.is_(None))
            .values(**values, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount or 0

    async def soft_delete(self, db: AsyncSession, *, id: str) -> bool:
        """软删除记录（设置 removed_at）"""
        affected = await self.conditional_update(
            db, self.model.id == id, values={"removed_at": utcnow()}
        )
        return affected > 0
