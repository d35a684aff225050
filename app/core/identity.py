"""
身份上下文模块

身份认证由上游网关完成，本服务只读取网关注入的请求头，
并将其转换为显式的 Actor 对象传入每个业务操作。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import Header

from .exceptions import AuthorizationException, UnauthenticatedException


class Role(str, Enum):
    """调用方角色"""
    CANDIDATE = "candidate"
    EMPLOYER = "employer"
    ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class Actor:
    """已验证的调用方 (actor_id, role)"""
    actor_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_role(self, *roles: Role, message: Optional[str] = None) -> None:
        """角色不在允许列表内时拒绝"""
        if self.role not in roles:
            allowed = "、".join(r.value for r in roles)
            raise AuthorizationException(message or f"仅限 {allowed} 执行该操作")

    def require_owner_or_admin(self, owner_id: Optional[str], message: Optional[str] = None) -> None:
        """仅允许资源所属雇主或管理员"""
        if self.is_admin:
            return
        if self.role != Role.EMPLOYER or owner_id != self.actor_id:
            raise AuthorizationException(message or "仅限岗位所属雇主或管理员执行该操作")


async def get_current_actor(
    x_user_id: Optional[str] = Header(None, description="网关注入的用户ID"),
    x_user_role: Optional[str] = Header(None, description="网关注入的用户角色"),
) -> Actor:
    """从请求头解析调用方身份"""
    if not x_user_id or not x_user_id.strip():
        raise UnauthenticatedException()
    try:
        role = Role((x_user_role or "").strip().lower())
    except ValueError:
        raise UnauthenticatedException(f"无效的用户角色: {x_user_role}")
    return Actor(actor_id=x_user_id.strip(), role=role)
