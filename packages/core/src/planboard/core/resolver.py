"""任务标识符解析器

把客户端传入的、形态不确定的标识符解析为项目内唯一的任务行。
解析顺序（全部在 ProjectTaskScope 内执行，永远不会越出项目）：

1. 结构校验，非法返回 MALFORMED
2. 主键精确匹配 -> EXACT
3. factor 任务 source_id 精确匹配 -> SOURCE_ID
4. UUID 形态：用提取出的 UUID 忽略大小写重复 2、3 -> CANONICAL_ID / CANONICAL_SOURCE_ID
5. 以规范值为整段前缀匹配 id（PREFIX 形态再匹配 factor source_id）-> PREFIX
6. 都未命中 -> NOT_FOUND

多个候选时取 created_at 最新的一条。
"""

from typing import Protocol

import structlog

from .identifiers import CanonicalId, IdKind, canonicalize, malformed_reason
from .models.enums import LookupMethod
from .models.lookup import TaskLookup
from .models.task import Task
from .store.protocols import TaskScope

log = structlog.get_logger()


class ScopeFactory(Protocol):
    """能按 project_id 派生 TaskScope 的对象（SqliteTaskStore）"""

    def scope(self, project_id: str) -> TaskScope: ...


class TaskIdResolver:
    """任务标识符解析器

    不持有任何项目状态，每次 resolve 都重新派生作用域。
    """

    def __init__(self, task_store: ScopeFactory) -> None:
        self._task_store = task_store

    async def resolve(self, project_id: str, raw_id: str) -> TaskLookup:
        """在 project_id 内解析 raw_id"""
        return await resolve_in_scope(self._task_store.scope(project_id), raw_id)


async def resolve_in_scope(scope: TaskScope, raw_id: str) -> TaskLookup:
    """在给定作用域内解析标识符

    找不到与格式错误都以 TaskLookup 返回；存储层异常原样抛出。
    """
    reason = malformed_reason(raw_id)
    if reason is not None:
        log.info(
            "task_resolution_failed",
            project_id=scope.project_id,
            task_ref=raw_id,
            method=LookupMethod.MALFORMED.value,
            reason=reason,
        )
        return _lookup(scope, raw_id or "", LookupMethod.MALFORMED)

    canonical = canonicalize(raw_id)
    lookup = await _match_direct(scope, raw_id, raw_id, canonical=None)
    if lookup is None and canonical is not None:
        lookup = await _match_canonical(scope, raw_id, canonical)

    if lookup is None:
        lookup = _lookup(
            scope,
            raw_id,
            LookupMethod.NOT_FOUND,
            canonical_id=canonical.value if canonical else None,
        )
        log.info(
            "task_resolution_failed",
            project_id=scope.project_id,
            task_ref=raw_id,
            method=lookup.method.value,
            canonical_id=lookup.canonical_id,
        )
        return lookup

    log.info(
        "task_resolved",
        project_id=scope.project_id,
        task_ref=raw_id,
        task_id=lookup.task.id if lookup.task else None,
        method=lookup.method.value,
        candidate_count=lookup.candidate_count,
    )
    return lookup


async def _match_direct(
    scope: TaskScope,
    raw_id: str,
    value: str,
    canonical: str | None,
) -> TaskLookup | None:
    """主键精确匹配，再按 factor source_id 精确匹配"""
    if canonical is None:
        id_method, source_method = LookupMethod.EXACT, LookupMethod.SOURCE_ID
    else:
        id_method, source_method = (
            LookupMethod.CANONICAL_ID,
            LookupMethod.CANONICAL_SOURCE_ID,
        )

    nocase = canonical is not None
    task = await scope.get(value, nocase=nocase)
    if task is not None:
        return _lookup(scope, raw_id, id_method, task, canonical, candidate_count=1)

    candidates = await scope.find_factor_by_source_id(value, nocase=nocase)
    if candidates:
        return _pick_newest(scope, raw_id, source_method, candidates, canonical)
    return None


async def _match_canonical(
    scope: TaskScope,
    raw_id: str,
    canonical: CanonicalId,
) -> TaskLookup | None:
    """规范值匹配与前缀匹配"""
    # 存量行可能保存大写 UUID，规范值比较时忽略大小写
    if canonical.kind == IdKind.UUID:
        lookup = await _match_direct(scope, raw_id, canonical.value, canonical.value)
        if lookup is not None:
            return lookup

    candidates = await scope.find_by_id_like(canonical.like_pattern)
    if not candidates and canonical.kind == IdKind.PREFIX:
        candidates = await scope.find_factor_by_source_like(canonical.like_pattern)
    if candidates:
        return _pick_newest(
            scope, raw_id, LookupMethod.PREFIX, candidates, canonical.value
        )
    return None


def _pick_newest(
    scope: TaskScope,
    raw_id: str,
    method: LookupMethod,
    candidates: list[Task],
    canonical: str | None,
) -> TaskLookup:
    # 候选已按新建在前排序
    if len(candidates) > 1:
        log.warning(
            "factor_task_duplicate_candidates",
            project_id=scope.project_id,
            task_ref=raw_id,
            method=method.value,
            candidate_ids=[t.id for t in candidates],
            chosen_id=candidates[0].id,
        )
    return _lookup(
        scope,
        raw_id,
        method,
        candidates[0],
        canonical,
        candidate_count=len(candidates),
    )


def _lookup(
    scope: TaskScope,
    raw_id: str,
    method: LookupMethod,
    task: Task | None = None,
    canonical_id: str | None = None,
    candidate_count: int = 0,
) -> TaskLookup:
    return TaskLookup(
        project_id=scope.project_id,
        raw_id=raw_id,
        method=method,
        task=task,
        canonical_id=canonical_id,
        candidate_count=candidate_count,
    )
