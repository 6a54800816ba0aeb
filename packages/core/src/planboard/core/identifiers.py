"""任务标识符规范化

客户端传入的任务标识符形态不确定：
- 完整 UUID：``2f565bf9-70c7-5c41-93e7-c6c4cde32312``
- 复合 ID（历史 seeding 缺陷产生）：``<uuid>-<suffix>``
- UUID 前缀（整段）：``2f565bf9`` / ``2f565bf9-70c7``
- 任意不透明字符串（如 source_id ``sf-42``）

规范化使用显式的正则语法提取 UUID，不做按 ``-`` 位置切片，
避免把非 UUID 的标识符错误截断。
"""

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .config import get_max_task_id_length

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

# 开头是完整 UUID，可选地跟一个以 "-" 分隔的后缀
_LEADING_UUID = re.compile(
    rf"^(?P<uuid>{UUID_PATTERN.pattern})(?:-(?P<suffix>.+))?$",
    re.IGNORECASE,
)

# 由 UUID 开头若干整段组成的前缀（至少第一段）
_UUID_PREFIX = re.compile(r"^[0-9a-f]{8}(?:-[0-9a-f]{4}){0,3}$", re.IGNORECASE)

_ALLOWED_CHARS = re.compile(r"^[A-Za-z0-9._:~-]+$")


class IdKind(StrEnum):
    """规范化结果类型"""

    UUID = "uuid"
    PREFIX = "prefix"


class CanonicalId(BaseModel):
    """规范化后的标识符"""

    model_config = ConfigDict(frozen=True)

    value: str = Field(description="小写的 UUID 或 UUID 前缀")
    kind: IdKind
    suffix: str | None = Field(default=None, description="复合 ID 中被丢弃的后缀")

    @property
    def like_pattern(self) -> str:
        """匹配以该值为整段前缀的 ID（LIKE 模式）

        只含十六进制字符和 "-"，无需转义。
        """
        return f"{self.value}-%"


def malformed_reason(raw_id: str | None) -> str | None:
    """返回标识符结构非法的原因；合法时返回 None"""
    if raw_id is None or raw_id.strip() == "":
        return "empty identifier"
    if raw_id != raw_id.strip():
        return "surrounding whitespace"
    if len(raw_id) > get_max_task_id_length():
        return "identifier too long"
    if not _ALLOWED_CHARS.match(raw_id):
        return "unsupported characters"
    return None


def is_well_formed(raw_id: str | None) -> bool:
    return malformed_reason(raw_id) is None


def is_valid_uuid(value: str | None) -> bool:
    """判断是否为完整 UUID（不允许后缀）"""
    if not value:
        return False
    return UUID_PATTERN.fullmatch(value) is not None


def canonicalize(raw_id: str) -> CanonicalId | None:
    """从可能带修饰的标识符中提取规范 UUID 或 UUID 前缀

    Returns:
        CanonicalId；无法识别出任何 UUID 结构时返回 None
    """
    if not is_well_formed(raw_id):
        return None

    match = _LEADING_UUID.match(raw_id)
    if match:
        return CanonicalId(
            value=match.group("uuid").lower(),
            kind=IdKind.UUID,
            suffix=match.group("suffix"),
        )

    if _UUID_PREFIX.match(raw_id):
        return CanonicalId(value=raw_id.lower(), kind=IdKind.PREFIX)

    return None


def make_compound_id(uuid: str, suffix: str) -> str:
    """构造 ``<uuid>-<suffix>`` 形式的复合 ID"""
    if not is_valid_uuid(uuid):
        raise ValueError(f"not a UUID: {uuid!r}")
    return f"{uuid}-{suffix}"
