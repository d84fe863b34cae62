"""
SAP Cloud Identity Services 客户端

每种资源一个客户端，共用同一个 Transport：
- users: SCIM，支持 custom schemas
- groups / schemas: SCIM
- applications / corporate_idps: JSON 接口，创建只返回 location 头
"""

import logging

from .config import ClientConfig
from .custom_schemas import validate_custom_schemas_response
from .models import (
    Application,
    ApplicationsResponse,
    Group,
    GroupsResponse,
    IdentityProvider,
    IdentityProvidersResponse,
    Schema,
    SchemasResponse,
    User,
    UsersResponse,
)
from .transport import (
    JSON_HEADER,
    ClientError,
    Transport,
    basic_authorization,
    fetch_oauth_token,
)
from .wire import get_custom_schemas, unmarshal_response

logger = logging.getLogger(__name__)


def _id_from_location(location: str) -> str:
    """location 头的最后一段是新资源的 id"""
    resource_id = location.rstrip("/").rsplit("/", 1)[-1]
    if not resource_id:
        raise ClientError(f"no resource id in location header: {location!r}")
    return resource_id


def _require_id(resource_id: str | None, kind: str):
    if not resource_id:
        raise ClientError(f"{kind} id is required for update")


# ============ Users ============

class UsersClient:
    """
    /scim/Users/

    返回值中的 custom schemas 是 User 没有声明的顶层字段 (JSON 字符串，没有时为 "")
    """

    PATH = "/scim/Users/"

    def __init__(self, transport: Transport):
        self.transport = transport

    def get_all(self) -> tuple[UsersResponse, dict[int, str]]:
        """
        列出所有用户

        Returns:
            (UsersResponse, {Resources 下标: custom schemas})，只包含有 custom schemas 的用户
        """
        res, _ = self.transport.execute("GET", self.PATH)
        users, _ = unmarshal_response(UsersResponse, res)

        custom_schemas = {}
        for index, resource in enumerate(res.get("Resources") or []):
            extra = get_custom_schemas(User, resource)
            if extra:
                custom_schemas[index] = extra

        return users, custom_schemas

    def get(self, user_id: str) -> tuple[User, str]:
        res, _ = self.transport.execute("GET", f"{self.PATH}{user_id}")
        return unmarshal_response(User, res, retrieve_custom_schemas=True)

    def create(self, user: User, custom_schemas: str = "") -> tuple[User, str]:
        """
        创建用户

        custom_schemas 和 user 合并为同一个请求体；
        服务端返回后确认 custom schemas 被保留

        Raises:
            ClientError: 请求失败
            CustomSchemaError: 响应中的 custom schemas 和请求不一致
        """
        res, _ = self.transport.execute("POST", self.PATH, user, custom_schemas)
        return self._decode_written(res, custom_schemas)

    def update(self, user: User, custom_schemas: str = "") -> tuple[User, str]:
        """更新用户 (PUT，user.id 必填)"""
        _require_id(user.id, "user")
        res, _ = self.transport.execute("PUT", f"{self.PATH}{user.id}", user, custom_schemas)
        return self._decode_written(res, custom_schemas)

    def delete(self, user_id: str):
        self.transport.execute("DELETE", f"{self.PATH}{user_id}")

    def _decode_written(self, res, custom_schemas: str) -> tuple[User, str]:
        user, returned = unmarshal_response(User, res, retrieve_custom_schemas=True)
        if custom_schemas:
            validate_custom_schemas_response(res, custom_schemas)
        return user, returned


# ============ Groups ============

class GroupsClient:
    """/scim/Groups/"""

    PATH = "/scim/Groups/"

    def __init__(self, transport: Transport):
        self.transport = transport

    def get_all(self) -> GroupsResponse:
        res, _ = self.transport.execute("GET", self.PATH)
        return unmarshal_response(GroupsResponse, res)[0]

    def get(self, group_id: str) -> Group:
        res, _ = self.transport.execute("GET", f"{self.PATH}{group_id}")
        return unmarshal_response(Group, res)[0]

    def create(self, group: Group) -> Group:
        res, _ = self.transport.execute("POST", self.PATH, group)
        return unmarshal_response(Group, res)[0]

    def update(self, group: Group) -> Group:
        _require_id(group.id, "group")
        res, _ = self.transport.execute("PUT", f"{self.PATH}{group.id}", group)
        return unmarshal_response(Group, res)[0]

    def delete(self, group_id: str):
        self.transport.execute("DELETE", f"{self.PATH}{group_id}")


# ============ Schemas ============

class SchemasClient:
    """/scim/Schemas/ (没有更新接口)"""

    PATH = "/scim/Schemas/"

    def __init__(self, transport: Transport):
        self.transport = transport

    def get_all(self) -> SchemasResponse:
        res, _ = self.transport.execute("GET", self.PATH)
        return unmarshal_response(SchemasResponse, res)[0]

    def get(self, schema_id: str) -> Schema:
        res, _ = self.transport.execute("GET", f"{self.PATH}{schema_id}")
        return unmarshal_response(Schema, res)[0]

    def create(self, schema: Schema) -> Schema:
        res, _ = self.transport.execute("POST", self.PATH, schema)
        return unmarshal_response(Schema, res)[0]

    def delete(self, schema_id: str):
        self.transport.execute("DELETE", f"{self.PATH}{schema_id}")


# ============ Applications ============

class ApplicationsClient:
    """
    /Applications/v1/

    创建和更新都不返回资源，需要再 GET 一次
    """

    PATH = "/Applications/v1/"

    def __init__(self, transport: Transport):
        self.transport = transport

    def get_all(self) -> ApplicationsResponse:
        res, _ = self.transport.execute("GET", self.PATH, req_header=JSON_HEADER)
        return unmarshal_response(ApplicationsResponse, res)[0]

    def get(self, app_id: str) -> Application:
        res, _ = self.transport.execute("GET", f"{self.PATH}{app_id}", req_header=JSON_HEADER)
        return unmarshal_response(Application, res)[0]

    def create(self, app: Application) -> Application:
        _, headers = self.transport.execute(
            "POST", self.PATH, app, req_header=JSON_HEADER, headers=["location"]
        )
        app_id = _id_from_location(headers.get("location", ""))
        logger.debug("application created: %s", app_id)
        return self.get(app_id)

    def update(self, app: Application) -> Application:
        _require_id(app.id, "application")
        self.transport.execute("PUT", f"{self.PATH}{app.id}", app, req_header=JSON_HEADER)
        return self.get(app.id)

    def delete(self, app_id: str):
        self.transport.execute("DELETE", f"{self.PATH}{app_id}", req_header=JSON_HEADER)


# ============ Corporate Identity Providers ============

class CorporateIdPsClient:
    """
    /IdentityProviders/v1/

    服务端没有更新接口；没有任何 identity provider 时列表返回空
    """

    PATH = "/IdentityProviders/v1/"

    def __init__(self, transport: Transport):
        self.transport = transport

    def get_all(self) -> IdentityProvidersResponse:
        res, _ = self.transport.execute("GET", self.PATH, req_header=JSON_HEADER)
        return unmarshal_response(IdentityProvidersResponse, res)[0]

    def get(self, idp_id: str) -> IdentityProvider:
        res, _ = self.transport.execute("GET", f"{self.PATH}{idp_id}", req_header=JSON_HEADER)
        return unmarshal_response(IdentityProvider, res)[0]

    def create(self, idp: IdentityProvider) -> IdentityProvider:
        _, headers = self.transport.execute(
            "POST", self.PATH, idp, req_header=JSON_HEADER, headers=["location"]
        )
        idp_id = _id_from_location(headers.get("location", ""))
        logger.debug("identity provider created: %s", idp_id)
        return self.get(idp_id)

    def delete(self, idp_id: str):
        self.transport.execute("DELETE", f"{self.PATH}{idp_id}", req_header=JSON_HEADER)


# ============ 组合客户端 ============

class IdentityClient:
    """
    SAP Cloud Identity Services 客户端

    用法:
        with IdentityClient.from_config(load_config()) as client:
            users, custom_schemas = client.users.get_all()
    """

    def __init__(self, transport: Transport):
        self.transport = transport
        self.users = UsersClient(transport)
        self.groups = GroupsClient(transport)
        self.schemas = SchemasClient(transport)
        self.applications = ApplicationsClient(transport)
        self.corporate_idps = CorporateIdPsClient(transport)

    @classmethod
    def from_config(cls, config: ClientConfig, transport=None) -> "IdentityClient":
        """
        根据配置创建客户端

        配置了 client_id/client_secret 时使用 OAuth，否则使用 Basic 认证
        """
        if config.client_id and config.client_secret:
            logger.debug("authenticating with client credentials")
            token = fetch_oauth_token(
                config.tenant_url,
                config.client_id,
                config.client_secret,
                timeout=config.timeout,
                transport=transport,
            )
            authorization = f"Bearer {token}"
        elif config.username and config.password:
            logger.debug("authenticating with basic auth")
            authorization = basic_authorization(config.username, config.password)
        else:
            authorization = None

        return cls(Transport(
            config.tenant_url,
            authorization=authorization,
            timeout=config.timeout,
            transport=transport,
        ))

    def close(self):
        """关闭连接"""
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def validate_member(self, member_id: str):
        """
        确认组成员存在 (用户或组)

        Raises:
            ClientError: 成员不存在
        """
        try:
            self.users.get(member_id)
            return
        except ClientError:
            pass

        try:
            self.groups.get(member_id)
        except ClientError as e:
            raise ClientError(f"member {member_id} is not found", status_code=e.status_code) from e

