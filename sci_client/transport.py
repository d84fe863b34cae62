"""
HTTP 传输层

使用 httpx 实现，处理 SAP Cloud Identity Services 的接口差异：
- SCIM 接口 (application/scim+json) 和普通接口 (application/json) 的错误格式不同
- custom schemas 拼接到请求体同一个 JSON 对象中
- 列出 identity providers 为空时接口返回 404
- 创建 application / identity provider 只返回 location 头
"""

import base64
import logging
import re
from typing import Any

import httpx

from .custom_schemas import parse_custom_schemas
from .models import ApplicationErrorResponse, ScimError
from .wire import WireError, WireRecord, canonical_json

logger = logging.getLogger(__name__)

SCIM_HEADER = "application/scim+json"
JSON_HEADER = "application/json"

# 列表为空时 GET 返回的 404 错误信息
_EMPTY_RESPONSE_ERROR = re.compile(r"Unable to find (.+)")
_EMPTY_RESOURCES = {"identity providers."}


class ClientError(Exception):
    """API 请求错误"""
    def __init__(self, message: str, status_code: int | None = None, error: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.error = error


def basic_authorization(username: str, password: str) -> str:
    """Basic 认证头"""
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"


def fetch_oauth_token(
    tenant_url: str,
    client_id: str,
    client_secret: str,
    timeout: float = 30.0,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """
    用 client credentials 获取 access token

    Raises:
        ClientError: 请求失败或响应中没有 access_token
    """
    token_url = tenant_url.rstrip("/") + "/oauth2/token"
    with httpx.Client(timeout=timeout, transport=transport) as client:
        try:
            resp = client.post(token_url, data={
                "grant_type": "client_credentials",
                "client_id": client_id,
                "client_secret": client_secret,
            })
        except httpx.HTTPError as e:
            raise ClientError(f"failed to send token request: {e}") from e

    if resp.status_code != 200:
        raise ClientError(
            f"token request failed with status {resp.status_code}: {resp.text}",
            status_code=resp.status_code,
        )

    try:
        token = resp.json().get("access_token")
    except (ValueError, AttributeError) as e:
        raise ClientError(f"failed to parse token response: {e}") from e

    if not token:
        raise ClientError("empty access token in response")
    return token


class Transport:
    """
    租户 API 的 HTTP 客户端

    一个实例对应一个 httpx.Client；不做重试。
    """

    def __init__(
        self,
        tenant_url: str,
        authorization: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        初始化

        Args:
            tenant_url: 租户 URL，如 https://<tenant>.accounts.ondemand.com
            authorization: Authorization 头的值 (Basic ... / Bearer ...)
            timeout: 请求超时时间
            transport: 自定义 httpx transport (测试用)
        """
        headers = {
            "Accept": "*/*",
            "DataServiceVersion": "2.0",
        }
        if authorization:
            headers["Authorization"] = authorization

        self.client = httpx.Client(
            base_url=tenant_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self):
        """关闭连接"""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # ============ 请求体 ============

    @staticmethod
    def encode_body(body: WireRecord | dict | None, custom_schemas: str = "") -> bytes | None:
        """
        编码请求体，custom schemas 合并到同一个 JSON 对象中

        请求对象去掉结尾的 "}"，custom schemas 去掉开头的 "{"，中间用 "," 连接
        """
        if body is None:
            return None

        payload = body.to_dict() if isinstance(body, WireRecord) else body
        encoded = canonical_json(payload)

        if custom_schemas:
            # 只接受 {schema id: {...}} 形式
            if parse_custom_schemas(custom_schemas):
                extra = custom_schemas.strip()
                if payload:
                    encoded = encoded[:-1] + "," + extra[1:]
                else:
                    encoded = extra

        return encoded.encode("utf-8")

    # ============ 请求 ============

    def execute(
        self,
        method: str,
        path: str,
        body: WireRecord | dict | None = None,
        custom_schemas: str = "",
        req_header: str = SCIM_HEADER,
        headers: list[str] | None = None,
    ) -> tuple[Any, dict[str, str]]:
        """
        发送请求

        Args:
            method: HTTP 方法
            path: 相对租户 URL 的路径
            body: 请求体
            custom_schemas: 合并到请求体的 custom schemas
            req_header: Content-Type (SCIM_HEADER / JSON_HEADER)
            headers: 需要返回的响应头

        Returns:
            (解码后的 JSON 或 None, {响应头: 值})

        Raises:
            ClientError: 请求失败
        """
        content = self.encode_body(body, custom_schemas)
        logger.debug("%s %s", method, path)

        try:
            resp = self.client.request(
                method,
                path,
                content=content,
                headers={"Content-Type": req_header},
            )
        except httpx.HTTPError as e:
            raise ClientError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            return self._handle_error(resp, req_header), {}

        captured = {h: resp.headers.get(h, "") for h in headers or []}

        if not resp.content:
            return None, captured

        try:
            return resp.json(), captured
        except ValueError as e:
            raise ClientError(f"invalid JSON in response: {e}", status_code=resp.status_code) from e

    def _handle_error(self, resp: httpx.Response, req_header: str) -> Any:
        """
        解析错误响应

        Returns:
            列表为空的 404 返回空对象

        Raises:
            ClientError: 其他错误
        """
        try:
            data = resp.json()
        except ValueError:
            data = None

        if "scim" in req_header:
            try:
                error = ScimError.from_dict(data)
            except WireError:
                error = None
            if error is None or error.detail is None:
                raise ClientError(f"responded with unknown error : {resp.status_code}", status_code=resp.status_code)
            raise ClientError(error.detail, status_code=resp.status_code, error=error)

        try:
            error = ApplicationErrorResponse.from_dict(data).error
        except WireError:
            error = None
        if error is None or error.message is None:
            raise ClientError(f"responded with unknown error : {resp.status_code}", status_code=resp.status_code)

        match = _EMPTY_RESPONSE_ERROR.search(error.message)
        if resp.status_code == 404 and error.code == 404 and match and match.group(1) in _EMPTY_RESOURCES:
            logger.debug("no %s found, returning an empty list", match.group(1).rstrip("."))
            return {}

        raise ClientError(str(error), status_code=resp.status_code, error=error)
