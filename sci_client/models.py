"""
SAP Cloud Identity Services 数据模型

字段名和 API 的 JSON key 一致 (camelCase)，所有字段都可以为 None，
to_dict 只输出有值的字段。

资源:
- Users / Groups / Schemas: SCIM 接口 (/scim/...)
- Applications: /Applications/v1/
- Corporate Identity Providers: /IdentityProviders/v1/

User 中没有声明的顶层字段属于 custom schemas，由 client 单独处理。
"""

from dataclasses import dataclass
from typing import Any

from .wire import WireRecord, wire


class RecordValidationError(ValueError):
    """请求数据验证错误"""
    pass


USER_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:User"
SAP_USER_SCHEMA = "urn:ietf:params:scim:schemas:extension:sap:2.0:User"
GROUP_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:Group"
GROUP_EXTENSION_SCHEMA = "urn:sap:cloud:scim:schemas:extension:custom:2.0:Group"
SCHEMA_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:Schema"
APPLICATION_AUTH_SCHEMA = "urn:sap:identity:application:schemas:extension:sci:1.0:Authentication"

DEFAULT_USER_SCHEMAS = (USER_SCHEMA, SAP_USER_SCHEMA)
DEFAULT_GROUP_SCHEMAS = (GROUP_SCHEMA, GROUP_EXTENSION_SCHEMA)


def missing_default_schemas(schemas: list[str] | None, defaults: tuple[str, ...]) -> list[str]:
    """返回 schemas 中缺少的默认 schema"""
    present = set(schemas or [])
    return [s for s in defaults if s not in present]


# ============ 通用 ============

@dataclass
class Meta(WireRecord):
    """资源元数据 (只读)"""
    description: str | None = None
    created: str | None = None
    lastModified: str | None = None
    location: str | None = None
    resourceType: str | None = None
    version: str | None = None


# ============ User ============

@dataclass
class Name(WireRecord):
    familyName: str | None = None
    givenName: str | None = None
    formatted: str | None = None
    middleName: str | None = None
    honorificPrefix: str | None = None
    honorificSuffix: str | None = None


@dataclass
class Email(WireRecord):
    value: str | None = None
    type: str | None = None
    display: str | None = None
    primary: bool | None = None


@dataclass
class PhoneNumber(WireRecord):
    value: str | None = None
    type: str | None = None
    display: str | None = None
    primary: bool | None = None


@dataclass
class Photo(WireRecord):
    value: str | None = None
    type: str | None = None
    display: str | None = None
    primary: bool | None = None


@dataclass
class Address(WireRecord):
    formatted: str | None = None
    primary: bool | None = None
    country: str | None = None
    locality: str | None = None
    postalCode: str | None = None
    region: str | None = None
    streetAddress: str | None = None
    type: str | None = None


@dataclass
class Entitlement(WireRecord):
    value: str | None = None
    type: str | None = None
    primary: bool | None = None


@dataclass
class Role(WireRecord):
    value: str | None = None
    type: str | None = None
    primary: bool | None = None


@dataclass
class CorporateGroup(WireRecord):
    value: str | None = None


@dataclass
class SAPExtension(WireRecord):
    """
    SAP 用户扩展 (urn:ietf:params:scim:schemas:extension:sap:2.0:User)

    可写: sendMail, mailVerified, status
    其余由服务端维护
    """
    sourceSystem: int | None = None
    sourceSystemId: str | None = None
    applicationId: str | None = None
    emailTemplateSetId: str | None = None
    sendMail: bool | None = None
    targetUrl: str | None = None
    mailVerified: bool | None = None
    userId: str | None = None
    status: str | None = None
    totpEnabled: bool | None = None
    webAuthEnabled: bool | None = None
    mfaEnabled: bool | None = None
    corporateGroups: list[CorporateGroup] | None = None


@dataclass
class User(WireRecord):
    """
    SCIM User 资源

    必填: userName, emails
    企业扩展 (enterprise:2.0:User) 没有声明，和其他扩展一样作为 custom schemas 处理
    """
    id: str | None = None
    externalId: str | None = None
    meta: Meta | None = None
    schemas: list[str] | None = None
    userName: str | None = None
    password: str | None = None
    name: Name | None = None
    displayName: str | None = None
    nickName: str | None = None
    profileUrl: str | None = None
    title: str | None = None
    userType: str | None = None
    preferredLanguage: str | None = None
    locale: str | None = None
    timeZone: str | None = None
    active: bool | None = None
    emails: list[Email] | None = None
    phoneNumbers: list[PhoneNumber] | None = None
    photos: list[Photo] | None = None
    addresses: list[Address] | None = None
    entitlements: list[Entitlement] | None = None
    roles: list[Role] | None = None
    sapExtension: SAPExtension | None = wire(SAP_USER_SCHEMA)

    def validate(self):
        """验证必填字段"""
        if not self.userName:
            raise RecordValidationError("userName is required")
        if not self.emails:
            raise RecordValidationError("emails is required")
        for email in self.emails:
            if not email.value:
                raise RecordValidationError("email value is required")


@dataclass
class UsersResponse(WireRecord):
    schemas: list[str] | None = None
    Resources: list[User] | None = None
    totalResults: int | None = None
    itemsPerPage: int | None = None
    startIndex: int | None = None
    startId: str | None = None
    nextId: str | None = None


# ============ Group ============

@dataclass
class GroupMember(WireRecord):
    """组成员，value 是用户或组的 id"""
    value: str | None = None
    type: str | None = None


@dataclass
class GroupExtension(WireRecord):
    """组扩展 (urn:sap:cloud:scim:schemas:extension:custom:2.0:Group)"""
    name: str | None = None
    description: str | None = None


@dataclass
class Group(WireRecord):
    """
    SCIM Group 资源

    必填: displayName
    """
    id: str | None = None
    meta: Meta | None = None
    schemas: list[str] | None = None
    displayName: str | None = None
    members: list[GroupMember] | None = None
    groupExtension: GroupExtension | None = wire(GROUP_EXTENSION_SCHEMA)

    def validate(self):
        if not self.displayName:
            raise RecordValidationError("displayName is required")


@dataclass
class GroupsResponse(WireRecord):
    Resources: list[Group] | None = None
    schemas: list[str] | None = None
    totalResults: int | None = None
    itemsPerPage: int | None = None


# ============ Schema ============

@dataclass
class SchemaAttribute(WireRecord):
    name: str | None = None
    type: str | None = None
    multivalued: bool | None = None
    description: str | None = None
    required: bool | None = None
    canonicalValues: list[str] | None = None
    caseExact: bool | None = None
    mutability: str | None = None
    returned: str | None = None
    uniqueness: str | None = None
    referenceTypes: list[str] | None = None


@dataclass
class Schema(WireRecord):
    """
    SCIM Schema 资源 (custom schema 的定义)

    必填: id (urn:sap:cloud:scim:schemas:extension:custom:2.0:<name>), name
    """
    id: str | None = None
    name: str | None = None
    description: str | None = None
    meta: Meta | None = None
    schemas: list[str] | None = None
    attributes: list[SchemaAttribute] | None = None

    def validate(self):
        if not self.id:
            raise RecordValidationError("schema id is required")
        if not self.name:
            raise RecordValidationError("schema name is required")


@dataclass
class SchemasResponse(WireRecord):
    Resources: list[Schema] | None = None
    schemas: list[str] | None = None
    totalResults: int | None = None


# ============ Corporate Identity Provider ============

@dataclass
class Saml2SsoEndpoint(WireRecord):
    bindingName: str | None = None
    isDefault: bool | None = None
    location: str | None = None


@dataclass
class Saml2SloEndpoint(WireRecord):
    bindingName: str | None = None
    isDefault: bool | None = None
    location: str | None = None
    responseLocation: str | None = None


@dataclass
class SigningCertificate(WireRecord):
    base64Certificate: str | None = None
    dn: str | None = None
    isDefault: bool | None = None
    validFrom: str | None = None
    validTo: str | None = None


@dataclass
class IdpAssertionAttribute(WireRecord):
    name: str | None = None
    value: str | None = None


@dataclass
class Saml2Configuration(WireRecord):
    allowCreate: str | None = None
    assertionAttributes: list[IdpAssertionAttribute] | None = None
    certificatesForSigning: list[SigningCertificate] | None = None
    defaultNameIdFormat: str | None = None
    digestAlgorithm: str | None = None
    includeScoping: bool | None = None
    samlMetadataUrl: str | None = None
    sloEndpoints: list[Saml2SloEndpoint] | None = None
    ssoEndpoints: list[Saml2SsoEndpoint] | None = None


@dataclass
class OidcAdditionalConfig(WireRecord):
    enforceIssuerCheck: bool | None = None
    enforceNonce: bool | None = None
    omitIDTokenHintForLogout: bool | None = None


@dataclass
class OidcConfiguration(WireRecord):
    additionalConfig: OidcAdditionalConfig | None = None
    authorizationEndpoint: str | None = None
    clientId: str | None = None
    clientSecret: str | None = None
    discoveryUrl: str | None = None
    endSessionEndpoint: str | None = None
    isClientSecretConfigured: bool | None = None
    issuer: str | None = None
    jwkSetPlain: str | None = None
    jwksUri: str | None = None
    pkceEnabled: bool | None = None
    scopes: list[str] | None = None
    subjectNameIdentifier: str | None = None
    tokenEndpoint: str | None = None
    tokenEndpointAuthMethod: str | None = None
    userInfoEndpoint: str | None = None


@dataclass
class LoginHintConfiguration(WireRecord):
    loginHintType: str | None = None
    sendMethod: str | None = None


@dataclass
class IdentityFederation(WireRecord):
    allowLocalUsersOnly: bool | None = None
    applyLocalIdPAuthnChecks: bool | None = None
    requiredGroups: list[str] | None = None
    useLocalUserStore: bool | None = None


@dataclass
class IdentityProvider(WireRecord):
    """
    企业身份提供方

    必填: displayName
    type: sapSSO / microsoftADFS / saml2 / openIdConnect
    """
    id: str | None = None
    displayName: str | None = None
    name: str | None = None
    type: str | None = None
    companyId: str | None = None
    automaticRedirect: bool | None = None
    forwardAllSsoRequests: bool | None = None
    logoutUrl: str | None = None
    identityFederation: IdentityFederation | None = None
    loginHintConfiguration: LoginHintConfiguration | None = None
    oidcConfiguration: OidcConfiguration | None = None
    saml2Configuration: Saml2Configuration | None = None

    def validate(self):
        if not self.displayName:
            raise RecordValidationError("displayName is required")


@dataclass
class IdentityProvidersResponse(WireRecord):
    identityProviders: list[IdentityProvider] | None = None
    itemsPerPage: int | None = None
    nextCursor: str | None = None
    totalResults: int | None = None


# ============ Application ============

@dataclass
class AssertionAttribute(WireRecord):
    assertionAttributeName: str | None = None
    userAttributeName: str | None = None
    inherited: bool | None = None


@dataclass
class AdvancedAssertionAttribute(WireRecord):
    attributeName: str | None = None
    attributeValue: str | None = None
    inherited: bool | None = None


@dataclass
class AuthenticationRule(WireRecord):
    """条件认证规则"""
    userType: str | None = None
    userGroup: str | None = None
    userEmailDomain: str | None = None
    identityProviderId: str | None = None
    ipNetworkRange: str | None = None


@dataclass
class Saml2AcsEndpoint(WireRecord):
    bindingName: str | None = None
    location: str | None = None
    index: int | None = None
    isDefault: bool | None = None


@dataclass
class EncryptionCertificate(WireRecord):
    dn: str | None = None
    base64Certificate: str | None = None
    validFrom: str | None = None
    validTo: str | None = None


@dataclass
class SamlConfiguration(WireRecord):
    samlMetadataUrl: str | None = None
    defaultNameIdFormat: str | None = None
    acsEndpoints: list[Saml2AcsEndpoint] | None = None
    sloEndpoints: list[Saml2SloEndpoint] | None = None
    signSLOMessages: bool | None = None
    requireSignedSLOMessages: bool | None = None
    requireSignedAuthnRequest: bool | None = None
    signAssertions: bool | None = None
    signAuthnResponses: bool | None = None
    responseElementsToEncrypt: str | None = None
    certificatesForSigning: list[SigningCertificate] | None = None
    certificateForEncryption: EncryptionCertificate | None = None
    digestAlgorithm: str | None = None


@dataclass
class AuthenticationSchema(WireRecord):
    """
    应用认证配置
    (urn:sap:identity:application:schemas:extension:sci:1.0:Authentication)
    """
    ssoType: str | None = None
    subjectNameIdentifier: str | None = None
    subjectNameIdentifierFunction: str | None = None
    assertionAttributes: list[AssertionAttribute] | None = None
    advancedAssertionAttributes: list[AdvancedAssertionAttribute] | None = None
    defaultAuthenticatingIdpId: str | None = None
    conditionalAuthentication: list[AuthenticationRule] | None = None
    saml2Configuration: SamlConfiguration | None = None


@dataclass
class Application(WireRecord):
    """
    应用

    必填: name
    """
    id: str | None = None
    name: str | None = None
    description: str | None = None
    parentApplicationId: str | None = None
    multiTenantApp: bool | None = None
    schemas: list[str] | None = None
    authenticationSchema: AuthenticationSchema | None = wire(APPLICATION_AUTH_SCHEMA)

    def validate(self):
        if not self.name:
            raise RecordValidationError("application name is required")


@dataclass
class ApplicationsResponse(WireRecord):
    totalResults: int | None = None
    itemsPerPage: int | None = None
    nextCursor: str | None = None
    applications: list[Application] | None = None


# ============ 错误响应 ============

@dataclass
class ScimError(WireRecord):
    """SCIM 接口的错误响应"""
    detail: str | None = None
    schemas: list[str] | None = None
    # 有的接口返回字符串，有的返回数字
    status: Any = None


@dataclass
class ErrorDetail(WireRecord):
    message: str | None = None


@dataclass
class ApplicationError(WireRecord):
    """非 SCIM 接口的错误响应 ({"error": {...}})"""
    code: int | None = None
    message: str | None = None
    details: list[ErrorDetail] | None = None

    def __str__(self) -> str:
        msg = self.message or "Unknown error"
        for detail in self.details or []:
            msg += f" : {detail.message}"
        return msg


@dataclass
class ApplicationErrorResponse(WireRecord):
    error: ApplicationError | None = None
