"""
Custom schemas 校验

User 记录之外的扩展属性以 JSON 字符串形式随请求发送：

    {"<schema id>": {"<attribute>": <value>, "<nested>": {...}}, ...}

服务端最多允许一层嵌套。创建/更新之后，用 validate_custom_schemas_response
确认响应中保留了请求发送的每个属性；服务端额外返回的属性会被忽略。
"""

import json
import logging
from enum import Enum
from typing import Any

from .wire import DecodeError, canonical_json

logger = logging.getLogger(__name__)

# schema id 之下允许的嵌套层数
MAX_NESTED_LEVELS = 1


class JSONKind(str, Enum):
    """JSON 值的种类"""
    STRING = "string"
    NUMBER = "number"
    BOOL = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"

    @classmethod
    def of(cls, value: Any) -> "JSONKind":
        if value is None:
            return cls.NULL
        # bool 是 int 的子类，必须先判断
        if isinstance(value, bool):
            return cls.BOOL
        if isinstance(value, (int, float)):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.STRING
        if isinstance(value, dict):
            return cls.OBJECT
        if isinstance(value, list):
            return cls.ARRAY
        raise TypeError(f"not a JSON value: {type(value).__name__}")

    def render(self, value: Any) -> str:
        """错误信息中的值格式"""
        if self is JSONKind.STRING:
            return value
        if self is JSONKind.NUMBER:
            return f"{float(value):.2f}"
        if self is JSONKind.BOOL:
            return "true" if value else "false"
        return canonical_json(value)

    def equal(self, a: Any, b: Any) -> bool:
        """
        按种类比较，数组和对象逐个元素递归

        true 和 1 种类不同，不相等
        """
        if self is JSONKind.NUMBER:
            return float(a) == float(b)
        if self is JSONKind.ARRAY:
            return len(a) == len(b) and all(_same_value(x, y) for x, y in zip(a, b))
        if self is JSONKind.OBJECT:
            return a.keys() == b.keys() and all(_same_value(v, b[k]) for k, v in a.items())
        return a == b


def _same_value(a: Any, b: Any) -> bool:
    kind = JSONKind.of(a)
    return kind is JSONKind.of(b) and kind.equal(a, b)


# ============ 错误 ============

class CustomSchemaError(ValueError):
    """custom schemas 错误"""
    pass


class InvalidCustomSchemasError(CustomSchemaError):
    """custom schemas 不是 {schema id: {...}} 形式的 JSON"""
    pass


class SchemaNotFoundError(CustomSchemaError):
    """请求的 schema id 不在响应中"""
    def __init__(self, schema_id: str):
        super().__init__(schema_id)
        self.schema_id = schema_id

    def __str__(self) -> str:
        return f"{self.schema_id} not found in the returned response"


class AttributeMissingError(CustomSchemaError):
    """请求的属性不在响应中"""
    def __init__(self, path: tuple[str, ...]):
        super().__init__(path)
        self.path = path

    @property
    def attribute(self) -> str:
        return ".".join(self.path)

    def __str__(self) -> str:
        return (
            f"mismatch between response and request for attribute {self.attribute}, "
            "attribute not found in response"
        )


class MismatchError(CustomSchemaError):
    """请求和响应中的属性值不同"""
    def __init__(self, path: tuple[str, ...], sent: Any, received: Any):
        super().__init__(path, sent, received)
        self.path = path
        self.sent = sent
        self.received = received

    @property
    def attribute(self) -> str:
        return ".".join(self.path)

    def __str__(self) -> str:
        sent = JSONKind.of(self.sent).render(self.sent)
        received = JSONKind.of(self.received).render(self.received)
        return (
            f"mismatch between response and request in attribute {self.attribute}, "
            f'request sent: "{sent}" but response received: "{received}"'
        )


# ============ 解析 ============

def parse_custom_schemas(custom_schemas: str) -> dict[str, dict]:
    """
    解析 custom schemas 字符串

    Raises:
        InvalidCustomSchemasError: 不是合法 JSON，或不是 {schema id: object} 结构
    """
    try:
        parsed = json.loads(custom_schemas)
    except ValueError as e:
        raise InvalidCustomSchemasError(f"custom schemas must be valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise InvalidCustomSchemasError(
            f"custom schemas must be a JSON object, got {JSONKind.of(parsed).value}"
        )
    for schema_id, attributes in parsed.items():
        if not isinstance(attributes, dict):
            raise InvalidCustomSchemasError(
                f"custom schema {schema_id} must be a JSON object, got {JSONKind.of(attributes).value}"
            )
    return parsed


# ============ 校验 ============

def validate_custom_schemas_response(res: Any, custom_schemas: str) -> bool:
    """
    确认请求发送的 custom schemas 在响应中原样保留

    Args:
        res: 已解码的响应
        custom_schemas: 请求发送的 custom schemas 字符串

    Returns:
        True

    Raises:
        SchemaNotFoundError / AttributeMissingError / MismatchError: 响应和请求不一致
        InvalidCustomSchemasError: custom schemas 字符串无效
        DecodeError: 响应不是 JSON 对象
    """
    if not custom_schemas:
        return True

    try:
        body = canonical_json(res)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"response is not valid JSON: {e}") from e

    # 服务端原样返回时，去掉外层大括号后应当是响应的子串
    inner = custom_schemas.strip()[1:-1]
    # 空白或 "{}" 不走快速路径，由 parse_custom_schemas 判断是否合法
    if inner and inner in body:
        logger.debug("custom schemas returned verbatim")
        return True

    requested = parse_custom_schemas(custom_schemas)

    if not isinstance(res, dict):
        raise DecodeError(f"response must be a JSON object, got {JSONKind.of(res).value}")

    logger.debug("custom schemas not returned verbatim, comparing %d schema(s)", len(requested))
    return compare(requested, res)


def compare(requested: dict[str, dict], res: dict) -> bool:
    """逐个 schema id 比较请求和响应"""
    for schema_id, attributes in requested.items():
        if schema_id not in res:
            raise SchemaNotFoundError(schema_id)

        received = res[schema_id]
        if JSONKind.of(received) is not JSONKind.OBJECT:
            raise MismatchError((schema_id,), attributes, received)

        compare_attributes(schema_id, attributes, received)

    return True


def compare_attributes(key: str, sent: dict, received: dict) -> bool:
    """
    比较一个 schema 下的属性

    Args:
        key: 属性路径前缀 (通常是 schema id)，为空时不加前缀
        sent: 请求发送的属性
        received: 响应中的属性

    Returns:
        True

    Raises:
        AttributeMissingError: 属性不在响应中
        MismatchError: 类型或值不同 (遇到第一个不同就停止)
    """
    path = (key,) if key else ()
    _compare_level(path, sent, received, MAX_NESTED_LEVELS)
    return True


def _compare_level(path: tuple[str, ...], sent: dict, received: dict, nested_levels: int) -> None:
    for attr, sent_value in sent.items():
        attr_path = (*path, attr)

        if attr not in received:
            raise AttributeMissingError(attr_path)

        received_value = received[attr]
        kind = JSONKind.of(sent_value)

        if kind is not JSONKind.of(received_value):
            raise MismatchError(attr_path, sent_value, received_value)

        if kind is JSONKind.OBJECT and nested_levels > 0:
            _compare_level(attr_path, sent_value, received_value, nested_levels - 1)
        elif not kind.equal(sent_value, received_value):
            raise MismatchError(attr_path, sent_value, received_value)
