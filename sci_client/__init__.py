"""
SAP Cloud Identity Services Client

Users / Groups / Schemas (SCIM)、Applications、Corporate Identity Providers 的 Python 客户端，
支持 User 的 custom schemas。
"""

from .models import (
    User,
    UsersResponse,
    Name,
    Email,
    PhoneNumber,
    Address,
    SAPExtension,
    Group,
    GroupsResponse,
    GroupMember,
    GroupExtension,
    Schema,
    SchemasResponse,
    SchemaAttribute,
    Application,
    ApplicationsResponse,
    AuthenticationSchema,
    IdentityProvider,
    IdentityProvidersResponse,
    ScimError,
    ApplicationError,
    RecordValidationError,
    DEFAULT_USER_SCHEMAS,
    DEFAULT_GROUP_SCHEMAS,
    missing_default_schemas,
)

from .wire import (
    WireRecord,
    WireError,
    NilResponseError,
    DecodeError,
    StripError,
    unmarshal_response,
    get_custom_schemas,
)
from .custom_schemas import (
    CustomSchemaError,
    InvalidCustomSchemasError,
    SchemaNotFoundError,
    AttributeMissingError,
    MismatchError,
    validate_custom_schemas_response,
)
from .transport import Transport, ClientError, SCIM_HEADER, JSON_HEADER
from .client import IdentityClient
from .config import ClientConfig, ConfigError, load_config

__all__ = [
    # Client
    "IdentityClient",
    "Transport",
    "ClientError",
    "SCIM_HEADER",
    "JSON_HEADER",
    # Config
    "ClientConfig",
    "ConfigError",
    "load_config",
    # Models
    "User",
    "UsersResponse",
    "Name",
    "Email",
    "PhoneNumber",
    "Address",
    "SAPExtension",
    "Group",
    "GroupsResponse",
    "GroupMember",
    "GroupExtension",
    "Schema",
    "SchemasResponse",
    "SchemaAttribute",
    "Application",
    "ApplicationsResponse",
    "AuthenticationSchema",
    "IdentityProvider",
    "IdentityProvidersResponse",
    "ScimError",
    "ApplicationError",
    "RecordValidationError",
    "DEFAULT_USER_SCHEMAS",
    "DEFAULT_GROUP_SCHEMAS",
    "missing_default_schemas",
    # Wire
    "WireRecord",
    "WireError",
    "NilResponseError",
    "DecodeError",
    "StripError",
    "unmarshal_response",
    "get_custom_schemas",
    # Custom schemas
    "CustomSchemaError",
    "InvalidCustomSchemasError",
    "SchemaNotFoundError",
    "AttributeMissingError",
    "MismatchError",
    "validate_custom_schemas_response",
]
