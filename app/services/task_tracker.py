"""
任务提交服务

候选人针对已通过审批的申请提交工时任务。
申请的审批状态在每次提交时重新读取，不信任更早读到的值。
"""
from typing import List, Optional, Tuple

from fastapi import Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthorizationException, NotFoundException, StateConflictException
from app.core.identity import Actor, Role
from app.crud import application_crud, task_crud
from app.models.application import Application, ApplicationStatus, ApprovalStatus
from app.models.base import utcnow
from app.models.task import Task, TaskSubmit
from .application_lifecycle import check_view_access
from .collaborators import JobPostGateway
from .metrics import derive_reported_hours, parse_time_value


class TaskTracker:
    """任务提交与查询"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.posts = JobPostGateway(db)

    async def _application_or_404(self, application_id: str) -> Application:
        application = await application_crud.get(self.db, application_id, fresh=True)
        if not application:
            raise NotFoundException(f"应聘申请不存在: {application_id}")
        return application

    async def task_or_404(self, task_id: str, *, fresh: bool = False) -> Task:
        task = await task_crud.get(self.db, task_id, fresh=fresh)
        if not task:
            raise NotFoundException(f"任务不存在: {task_id}")
        return task

    async def submit(self, actor: Actor, data: TaskSubmit) -> Task:
        """提交任务，计算工时和进度状态"""
        actor.require_role(Role.CANDIDATE, message="仅候选人可以提交任务")

        application = await self._application_or_404(data.application_id)
        if application.candidate_id != actor.actor_id:
            raise AuthorizationException("不能为他人的申请提交任务")
        if application.application_status != ApplicationStatus.APPLIED.value:
            raise StateConflictException("申请已撤回，不能提交任务")
        if application.approval_status != ApprovalStatus.APPROVED.value:
            raise StateConflictException("申请尚未通过雇主审批，不能提交任务")

        today = utcnow().date()
        start_time = parse_time_value(data.start_time, "start_time", today)
        end_time = parse_time_value(data.end_time, "end_time", today)
        reported_hours = derive_reported_hours(
            start_time, end_time, data.hours_worked, max_hours=settings.max_task_hours
        )

        task = await task_crud.create_task(self.db, obj_in={
            "application_id": application.id,
            "title": data.title,
            "description": data.description,
            "attachment_ref": data.attachment_ref,
            "start_time": start_time,
            "end_time": end_time,
            "reported_hours": reported_hours,
            "progress_percent": data.progress_percent if data.progress_percent is not None else 0,
        })
        logger.info(
            f"候选人 {actor.actor_id} 提交任务 {task.id}（申请 {application.id}，{reported_hours} 小时）"
        )
        return task

    async def update_progress(self, actor: Actor, task_id: str, progress_percent: float) -> Task:
        """更新待审批任务的进度"""
        actor.require_role(Role.CANDIDATE, message="仅候选人可以更新任务进度")

        task = await self.task_or_404(task_id)
        application = await self._application_or_404(task.application_id)
        if application.candidate_id != actor.actor_id:
            raise AuthorizationException("不能修改他人的任务")

        if not await task_crud.update_progress(self.db, id=task_id, progress_percent=progress_percent):
            raise StateConflictException("任务已审批，不能再修改进度")
        return await self.task_or_404(task_id, fresh=True)

    async def _check_access(self, actor: Actor, application: Application) -> None:
        owner_id = await self.posts.get_owner(application.posting_id)
        check_view_access(actor, application, owner_id)

    async def get_task(self, actor: Actor, task_id: str) -> Task:
        """获取任务详情"""
        task = await self.task_or_404(task_id)
        application = await self._application_or_404(task.application_id)
        await self._check_access(actor, application)
        return task

    async def list_tasks(
        self,
        actor: Actor,
        application_id: str,
        *,
        approval_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Task], int]:
        """获取某申请下的任务"""
        application = await self._application_or_404(application_id)
        await self._check_access(actor, application)
        items = await task_crud.get_by_application(
            self.db, application_id, approval_status=approval_status, skip=skip, limit=limit
        )
        total = await task_crud.count_by_application(
            self.db, application_id, approval_status=approval_status
        )
        return items, total


def get_task_tracker(db: AsyncSession = Depends(get_db)) -> TaskTracker:
    """任务服务依赖注入"""
    return TaskTracker(db)
