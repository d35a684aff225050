"""
SQLModel 模型模块

使用 SQLModel 统一 ORM Model 和 Pydantic Schema
"""
from .base import SQLModelBase, TimestampMixin, SoftDeleteMixin
from .job_post import JobPost, JobPostCreate, JobPostStatusUpdate, JobPostResponse, JobPostStatus, AdminApproval
from .profile import CandidateProfile, CandidateProfileUpdate, CandidateProfileResponse
from .application import (
    Application, ApplicationCreate, ApprovalDecision, ApplicationResponse,
    ApplicationStatus, ApprovalStatus,
)
from .task import Task, TaskSubmit, TaskProgressUpdate, TaskDecision, TaskResponse, TrackStatus
from .payment import PaymentBatch, PaidFlagUpdate, PaymentBatchResponse, SettlementResult, PaymentSummary
from .notification import Notification, NotificationResponse, NotificationType

__all__ = [
    # Base
    "SQLModelBase",
    "TimestampMixin",
    "SoftDeleteMixin",
    # JobPost
    "JobPost",
    "JobPostCreate",
    "JobPostStatusUpdate",
    "JobPostResponse",
    "JobPostStatus",
    "AdminApproval",
    # Profile
    "CandidateProfile",
    "CandidateProfileUpdate",
    "CandidateProfileResponse",
    # Application
    "Application",
    "ApplicationCreate",
    "ApprovalDecision",
    "ApplicationResponse",
    "ApplicationStatus",
    "ApprovalStatus",
    # Task
    "Task",
    "TaskSubmit",
    "TaskProgressUpdate",
    "TaskDecision",
    "TaskResponse",
    "TrackStatus",
    # Payment
    "PaymentBatch",
    "PaidFlagUpdate",
    "PaymentBatchResponse",
    "SettlementResult",
    "PaymentSummary",
    # Notification
    "Notification",
    "NotificationResponse",
    "NotificationType",
]
