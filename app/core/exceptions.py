"""
异常处理模块

定义业务异常和全局异常处理器

每个业务异常都带有机器可读的 kind，错误响应的 data.kind 字段
让调用方区分“不存在”和“存在但状态不允许”等情况。
"""
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from loguru import logger
from sqlalchemy.exc import InterfaceError, OperationalError

from .response import error_response


class AppException(Exception):
    """应用基础异常"""

    kind: str = "internal"

    def __init__(
        self,
        message: str = "服务器内部错误",
        code: int = 500,
        data: dict = None
    ):
        self.message = message
        self.code = code
        self.data = data
        super().__init__(self.message)

    def payload(self) -> dict:
        """错误响应中的 data 部分"""
        return {"kind": self.kind, **(self.data or {})}


class ValidationException(AppException):
    """输入格式错误或取值越界"""

    kind = "validation"

    def __init__(self, message: str = "请求参数错误", data: dict = None):
        super().__init__(message=message, code=400, data=data)


class UnauthenticatedException(AppException):
    """缺少身份上下文"""

    kind = "unauthenticated"

    def __init__(self, message: str = "缺少有效的身份信息"):
        super().__init__(message=message, code=401)


class AuthorizationException(AppException):
    """角色或归属权限不足"""

    kind = "authorization"

    def __init__(self, message: str = "无权执行该操作"):
        super().__init__(message=message, code=403)


class NotFoundException(AppException):
    """资源不存在异常"""

    kind = "not_found"

    def __init__(self, message: str = "资源不存在"):
        super().__init__(message=message, code=404)


class StateConflictException(AppException):
    """资源存在，但当前状态不允许该操作"""

    kind = "state_conflict"

    def __init__(self, message: str = "当前状态不允许该操作", data: dict = None):
        super().__init__(message=message, code=409, data=data)


class TransientStorageException(AppException):
    """存储层基础设施故障，只读或幂等操作可重试"""

    kind = "transient_storage"

    def __init__(self, message: str = "存储服务暂时不可用，请稍后重试"):
        super().__init__(message=message, code=503)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """应用异常处理器"""
    logger.warning(f"AppException[{exc.kind}]: {exc.message} | Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.code,
        content=error_response(message=exc.message, code=exc.code, data=exc.payload())
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTP 异常处理器"""
    logger.warning(f"HTTPException: {exc.detail} | Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message=str(exc.detail), code=exc.status_code)
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """请求验证异常处理器"""
    errors = exc.errors()
    error_messages = []
    for error in errors:
        loc = " -> ".join(str(l) for l in error["loc"])
        error_messages.append(f"{loc}: {error['msg']}")

    message = "; ".join(error_messages)
    logger.warning(f"ValidationError: {message} | Path: {request.url.path}")

    return JSONResponse(
        status_code=422,
        content=error_response(
            message="请求参数验证失败",
            code=422,
            data={
                "kind": ValidationException.kind,
                "errors": [
                    {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
                    for e in errors
                ],
            }
        )
    )


async def storage_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """存储层故障处理器"""
    logger.error(f"Storage failure: {exc} | Path: {request.url.path}")
    return await app_exception_handler(request, TransientStorageException())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """通用异常处理器"""
    logger.exception(f"Unhandled Exception: {exc} | Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_response(message="服务器内部错误", code=500)
    )


STORAGE_ERRORS = (OperationalError, InterfaceError)
