"""枚举定义

包含 TaskOrigin 任务来源、Stage 工作流阶段、LookupMethod 标识符解析路径。
"""

from enum import StrEnum


class TaskOrigin(StrEnum):
    """任务来源（provenance），创建后不可通过普通更新修改"""

    # 从 Success Factor 模板克隆
    FACTOR = "factor"
    # 用户手工创建
    CUSTOM = "custom"
    # 其他工具产生的任务
    HEURISTIC = "heuristic"
    POLICY = "policy"
    FRAMEWORK = "framework"


class Stage(StrEnum):
    """工作流阶段"""

    IDENTIFICATION = "identification"
    DEFINITION = "definition"
    DELIVERY = "delivery"
    CLOSURE = "closure"


class LookupMethod(StrEnum):
    """任务标识符解析命中的策略"""

    EXACT = "exact"
    SOURCE_ID = "source-id"
    CANONICAL_ID = "canonical-id"
    CANONICAL_SOURCE_ID = "canonical-source-id"
    PREFIX = "prefix"
    # 未命中
    NOT_FOUND = "not-found"
    MALFORMED = "malformed"


# 代表命中的解析策略
FOUND_METHODS: frozenset[LookupMethod] = frozenset(
    {
        LookupMethod.EXACT,
        LookupMethod.SOURCE_ID,
        LookupMethod.CANONICAL_ID,
        LookupMethod.CANONICAL_SOURCE_ID,
        LookupMethod.PREFIX,
    }
)

# 删除等破坏性操作只接受指向唯一行的解析结果
EXACT_METHODS: frozenset[LookupMethod] = frozenset(
    {LookupMethod.EXACT, LookupMethod.CANONICAL_ID}
)


def is_valid_stage(value: str) -> bool:
    """判断字符串是否为合法阶段（大小写不敏感）"""
    try:
        Stage(value.lower())
    except ValueError:
        return False
    return True
