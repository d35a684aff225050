"""
API v1 路由模块
"""
from . import job_posts, profiles, applications, tasks, payments, notifications

__all__ = [
    "job_posts",
    "profiles",
    "applications",
    "tasks",
    "payments",
    "notifications",
]
