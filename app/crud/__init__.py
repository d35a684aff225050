"""
CRUD 操作模块
"""
from .job_post import job_post_crud
from .profile import profile_crud
from .application import application_crud
from .task import task_crud
from .payment import payment_crud
from .notification import notification_crud

__all__ = [
    "job_post_crud",
    "profile_crud",
    "application_crud",
    "task_crud",
    "payment_crud",
    "notification_crud",
]
