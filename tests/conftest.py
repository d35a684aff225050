"""
测试配置文件

提供测试用的 fixtures：内存数据库、测试客户端、通知记录器、测试数据工厂等
"""
from typing import AsyncGenerator, List, Optional
from dataclasses import dataclass, field

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  注册表模型
from app.core.database import get_db, metadata, transaction_scope
from app.main import create_app
from app.services.notifications import NotificationSink, get_notifier


# 使用内存 SQLite 作为测试数据库
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

EMPLOYER_ID = "employer-1"
CANDIDATE_ID = "candidate-1"
ADMIN_ID = "admin-1"


class RecordingNotificationSink(NotificationSink):
    """
    测试用通知投递器

    事务提交后只记录事件，不写数据库；fail=True 时模拟投递故障。
    """

    def __init__(self):
        super().__init__(enabled=True)
        self.events: List[dict] = []
        self.fail = False

    async def deliver(self, target_user_id, title, message, event_type, meta=None) -> None:
        if self.fail:
            raise RuntimeError("notification channel down")
        self.events.append({
            "user_id": target_user_id,
            "title": title,
            "message": message,
            "event_type": event_type,
            "meta": meta or {},
        })

    def of_type(self, event_type: str) -> List[dict]:
        return [e for e in self.events if e["event_type"] == event_type]


# ========== 测试数据工厂 ==========

@dataclass
class DataFactory:
    """
    测试数据工厂类

    集中管理测试数据创建，避免各测试文件重复代码
    字段变更时只需修改此处
    """
    client: AsyncClient
    _counter: int = field(default=0, repr=False)

    def _next_id(self) -> str:
        """生成唯一后缀，避免数据冲突"""
        self._counter += 1
        return str(self._counter)

    @staticmethod
    def headers(actor_id: str, role: str) -> dict:
        """网关注入的身份请求头"""
        return {"X-User-Id": actor_id, "X-User-Role": role}

    def employer(self, actor_id: str = EMPLOYER_ID) -> dict:
        return self.headers(actor_id, "employer")

    def candidate(self, actor_id: str = CANDIDATE_ID) -> dict:
        return self.headers(actor_id, "candidate")

    def admin(self, actor_id: str = ADMIN_ID) -> dict:
        return self.headers(actor_id, "admin")

    async def create_post(
        self,
        owner_id: str = EMPLOYER_ID,
        approve: bool = True,
        **overrides
    ) -> dict:
        """雇主发布岗位；approve=True 时由管理员审核通过，使岗位开放申请"""
        data = {
            "title": f"测试岗位{self._next_id()}",
            "hourly_rate": 20.0,
            **overrides
        }
        resp = await self.client.post("/api/v1/job-posts", json=data, headers=self.employer(owner_id))
        assert resp.status_code == 200, f"创建岗位失败: {resp.text}"
        post = resp.json()["data"]
        if approve:
            resp = await self.client.patch(
                f"/api/v1/job-posts/{post['id']}/status",
                json={"admin_approval": "approved"},
                headers=self.admin(),
            )
            assert resp.status_code == 200, f"审核岗位失败: {resp.text}"
            post = resp.json()["data"]
        return post

    async def get_post(self, posting_id: str) -> dict:
        resp = await self.client.get(f"/api/v1/job-posts/{posting_id}", headers=self.admin())
        assert resp.status_code == 200, f"获取岗位失败: {resp.text}"
        return resp.json()["data"]

    async def complete_profile(self, candidate_id: str = CANDIDATE_ID, **overrides) -> dict:
        """候选人完善档案（默认全部完成）"""
        data = {
            "has_education": True,
            "has_experience": True,
            "has_skills": True,
            "has_resume": True,
            **overrides
        }
        resp = await self.client.put("/api/v1/profiles/me", json=data, headers=self.candidate(candidate_id))
        assert resp.status_code == 200, f"更新档案失败: {resp.text}"
        return resp.json()["data"]

    async def apply(self, posting_id: str, candidate_id: str = CANDIDATE_ID) -> dict:
        """投递申请"""
        resp = await self.client.post(
            "/api/v1/applications",
            json={"posting_id": posting_id},
            headers=self.candidate(candidate_id),
        )
        assert resp.status_code == 200, f"投递申请失败: {resp.text}"
        return resp.json()["data"]

    async def decide(
        self,
        application_id: str,
        decision: str = "approved",
        employer_id: str = EMPLOYER_ID,
        **overrides
    ) -> dict:
        """雇主审批申请"""
        resp = await self.client.post(
            f"/api/v1/applications/{application_id}/decision",
            json={"decision": decision, **overrides},
            headers=self.employer(employer_id),
        )
        assert resp.status_code == 200, f"审批申请失败: {resp.text}"
        return resp.json()["data"]

    async def create_application(
        self,
        candidate_id: str = CANDIDATE_ID,
        posting_id: Optional[str] = None,
        decision: Optional[str] = None,
        **post_overrides
    ) -> dict:
        """创建申请，自动创建依赖的岗位和档案；decision 不为空时同时完成审批"""
        if posting_id is None:
            post = await self.create_post(**post_overrides)
            posting_id = post["id"]
        await self.complete_profile(candidate_id)
        application = await self.apply(posting_id, candidate_id)
        if decision is not None:
            application = await self.decide(application["id"], decision)
        return application

    async def submit_task(
        self,
        application_id: str,
        candidate_id: str = CANDIDATE_ID,
        **overrides
    ) -> dict:
        """提交任务（默认 09:00 - 12:30）"""
        data = {
            "application_id": application_id,
            "title": f"测试任务{self._next_id()}",
            "description": "测试用任务描述",
            "start_time": "09:00",
            "end_time": "12:30",
            **overrides
        }
        resp = await self.client.post("/api/v1/tasks", json=data, headers=self.candidate(candidate_id))
        assert resp.status_code == 200, f"提交任务失败: {resp.text}"
        return resp.json()["data"]

    async def decide_task(
        self,
        task_id: str,
        approval_status: Optional[str] = "approved",
        employer_id: str = EMPLOYER_ID,
        **overrides
    ) -> dict:
        """雇主审批任务"""
        data = {**overrides}
        if approval_status is not None:
            data["approval_status"] = approval_status
        resp = await self.client.post(
            f"/api/v1/tasks/{task_id}/decision",
            json=data,
            headers=self.employer(employer_id),
        )
        assert resp.status_code == 200, f"审批任务失败: {resp.text}"
        return resp.json()["data"]

    async def set_paid(
        self,
        application_id: str,
        is_paid: bool = True,
        employer_id: str = EMPLOYER_ID
    ) -> dict:
        """设置结算标记，返回完整响应体"""
        resp = await self.client.put(
            f"/api/v1/payments/applications/{application_id}/paid-flag",
            json={"is_paid": is_paid},
            headers=self.employer(employer_id),
        )
        assert resp.status_code == 200, f"结算失败: {resp.text}"
        return resp.json()


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """
    每个测试函数独立的内存数据库

    测试前创建表，测试后删除表并释放引擎，确保测试隔离
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """为直接调用服务层的测试提供数据库会话"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def notifier() -> RecordingNotificationSink:
    """记录本次测试发出的所有通知"""
    return RecordingNotificationSink()


@pytest_asyncio.fixture(scope="function")
async def client(
    session_factory: async_sessionmaker,
    notifier: RecordingNotificationSink,
) -> AsyncGenerator[AsyncClient, None]:
    """
    提供测试用的 HTTP 客户端

    覆盖 get_db 依赖：每个请求一个会话、一个事务，与生产行为一致
    """
    app = create_app()

    async def override_get_db():
        async with transaction_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    # 创建异步测试客户端
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    # 清理依赖覆盖
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def factory(client: AsyncClient) -> DataFactory:
    """提供测试数据工厂实例"""
    return DataFactory(client=client)
