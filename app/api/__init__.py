"""
API 路由模块
"""
from fastapi import APIRouter

from .v1 import job_posts, profiles, applications, tasks, payments, notifications

# 创建主路由
api_router = APIRouter()

# 注册各模块路由
api_router.include_router(
    job_posts.router,
    prefix="/job-posts",
    tags=["岗位"]
)
api_router.include_router(
    profiles.router,
    prefix="/profiles",
    tags=["候选人档案"]
)
api_router.include_router(
    applications.router,
    prefix="/applications",
    tags=["应聘申请"]
)
api_router.include_router(
    tasks.router,
    prefix="/tasks",
    tags=["工作任务"]
)
api_router.include_router(
    payments.router,
    prefix="/payments",
    tags=["结算"]
)
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["站内通知"]
)
