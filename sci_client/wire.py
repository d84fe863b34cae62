"""
记录编解码

所有资源记录都是 dataclass，继承 WireRecord：
- 属性名默认就是 wire key (和 API 一样用 camelCase)
- wire key 和属性名不同时 (如 $ref、URN 扩展) 用 wire("...") 声明
- 每个类型声明的 wire key 集合第一次使用时计算并缓存

unmarshal_response / get_custom_schemas 用这些声明把 API 响应解码为记录，
并把记录没有声明的字段剥离出来，作为 custom schemas 字符串返回。
"""

import json
import logging
import types
import typing
from dataclasses import dataclass, field, fields
from functools import cache
from typing import Any, Self, TypeVar

logger = logging.getLogger(__name__)


class WireError(ValueError):
    """响应解码错误"""
    pass


class NilResponseError(WireError):
    """响应为空"""
    def __init__(self, message: str = "response is empty"):
        super().__init__(message)


class DecodeError(WireError):
    """响应结构和目标类型不匹配"""
    pass


class StripError(WireError):
    """custom schemas 剩余部分无法序列化"""
    pass


def wire(key: str, default=None):
    """声明 wire key 和属性名不同的字段"""
    return field(default=default, metadata={"wire": key})


def canonical_json(value: Any) -> str:
    """紧凑、按键排序的 JSON 文本"""
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


# ============ 字段表 ============

@dataclass(frozen=True)
class WireField:
    name: str
    key: str
    hint: Any


@cache
def _wire_fields(record_type: type) -> tuple[WireField, ...]:
    hints = typing.get_type_hints(record_type)
    return tuple(
        WireField(name=f.name, key=f.metadata.get("wire", f.name), hint=hints[f.name])
        for f in fields(record_type)
    )


class WireRecord:
    """
    资源记录基类

    子类必须是 dataclass，且所有字段都有默认值 (通常为 None)，
    这样服务端返回的任何部分字段都能解码。
    """

    @classmethod
    def declared_fields(cls) -> frozenset[str]:
        """类型声明的 wire key 集合"""
        return frozenset(f.key for f in _wire_fields(cls))

    def to_dict(self) -> dict:
        """转换为请求格式，只包含有值的字段"""
        d = {}
        for f in _wire_fields(type(self)):
            value = getattr(self, f.name)
            if value is not None:
                d[f.key] = _encode(value)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """
        从响应解析

        未声明的 key 会被忽略；类型不符时抛出 DecodeError
        """
        if not isinstance(data, dict):
            raise DecodeError(f"cannot decode {cls.__name__} from {json_type_name(data)}")
        kwargs = {}
        for f in _wire_fields(cls):
            if f.key in data:
                kwargs[f.name] = _decode(f.hint, data[f.key], f"{cls.__name__}.{f.name}")
        return cls(**kwargs)


def _encode(value: Any) -> Any:
    if isinstance(value, WireRecord):
        return value.to_dict()
    if isinstance(value, list):
        return [_encode(v) for v in value]
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    return value


def _decode(hint: Any, value: Any, where: str) -> Any:
    if hint is Any:
        return value

    origin = typing.get_origin(hint)

    # X | None
    if origin in (typing.Union, types.UnionType):
        if value is None:
            return None
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) != 1:
            raise DecodeError(f"unsupported field type {hint!r} for {where}")
        return _decode(args[0], value, where)

    if value is None:
        return None

    if origin is list or hint is list:
        if not isinstance(value, list):
            raise DecodeError(f"cannot decode {where}: expected array, got {json_type_name(value)}")
        item_hint = (typing.get_args(hint) or (Any,))[0]
        return [_decode(item_hint, v, f"{where}[{i}]") for i, v in enumerate(value)]

    if origin is dict or hint is dict:
        if not isinstance(value, dict):
            raise DecodeError(f"cannot decode {where}: expected object, got {json_type_name(value)}")
        return value

    if isinstance(hint, type) and issubclass(hint, WireRecord):
        if not isinstance(value, dict):
            raise DecodeError(f"cannot decode {where}: expected object, got {json_type_name(value)}")
        return hint.from_dict(value)

    if hint is bool:
        if isinstance(value, bool):
            return value
    elif hint is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif hint is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif hint is str:
        if isinstance(value, str):
            return value
    else:
        raise DecodeError(f"unsupported field type {hint!r} for {where}")

    raise DecodeError(f"cannot decode {where}: expected {hint.__name__}, got {json_type_name(value)}")


# ============ 响应解码 ============

R = TypeVar("R", bound=WireRecord)


def unmarshal_response(record_type: type[R], res: Any, retrieve_custom_schemas: bool = False) -> tuple[R, str]:
    """
    把响应解码为 record_type

    Args:
        record_type: 目标记录类型
        res: 已解码的 JSON 响应
        retrieve_custom_schemas: 是否同时提取未声明的字段

    Returns:
        (记录, custom schemas 字符串；没有时为 "")

    Raises:
        NilResponseError: 响应为空
        DecodeError: 响应结构和类型不匹配
        StripError: 剩余字段无法序列化
    """
    if res is None:
        raise NilResponseError()

    # 序列化再解析，得到和调用方互不影响的副本
    try:
        payload = json.loads(json.dumps(res))
    except (TypeError, ValueError) as e:
        raise DecodeError(f"response is not valid JSON: {e}") from e

    record = record_type.from_dict(payload)

    custom_schemas = ""
    if retrieve_custom_schemas:
        custom_schemas = get_custom_schemas(record_type, payload)

    return record, custom_schemas


def get_custom_schemas(record_type: type[WireRecord], res: Any) -> str:
    """
    删除 record_type 声明的顶层字段，返回剩余部分的 JSON

    只比较顶层 key，大小写敏感。不修改 res。
    没有剩余字段时返回 ""。
    """
    if not isinstance(res, dict):
        raise DecodeError(f"cannot strip {record_type.__name__} fields from {json_type_name(res)}")

    declared = record_type.declared_fields()
    remainder = {k: v for k, v in res.items() if k not in declared}

    if not remainder:
        return ""

    logger.debug("custom schemas found in %s response: %s", record_type.__name__, sorted(remainder))
    try:
        return canonical_json(remainder)
    except (TypeError, ValueError) as e:
        raise StripError(f"cannot serialize custom schemas: {e}") from e
