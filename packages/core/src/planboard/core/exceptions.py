"""planboard Core 异常体系

每个异常携带稳定的 code，HTTP 层据此映射状态码与错误体。
普通的"找不到任务"由解析器以 TaskLookup 返回，只有需要中断调用链时才抛出。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models.seeding import SeedReport


class PlanboardError(Exception):
    """Core 包基础异常"""

    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskNotFoundError(PlanboardError):
    """项目内不存在匹配的任务（404）

    永远不会触发跨项目回退查找。
    """

    code = "TASK_NOT_FOUND"

    def __init__(self, project_id: str, task_ref: str) -> None:
        super().__init__(f"Task {task_ref} not found in project {project_id}")
        self.project_id = project_id
        self.task_ref = task_ref


class MalformedIdentifierError(PlanboardError):
    """任务标识符结构非法（400），属于客户端 bug 而非资源缺失"""

    code = "INVALID_TASK_ID"

    def __init__(self, raw_id: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"Malformed task identifier {raw_id!r}{detail}")
        self.raw_id = raw_id
        self.reason = reason


class InexactTaskReferenceError(PlanboardError):
    """引用只能经 source_id 或前缀匹配到任务，不足以执行破坏性操作（400）"""

    code = "TASK_REFERENCE_NOT_EXACT"

    def __init__(self, project_id: str, task_ref: str, method: str) -> None:
        super().__init__(
            f"Task reference {task_ref} in project {project_id} matched by {method}; "
            "use the task id"
        )
        self.project_id = project_id
        self.task_ref = task_ref
        self.method = method


class TaskConflictError(PlanboardError):
    """已解析的任务在写入前消失，或写入与自然键冲突（409）

    调用方可以选择重新执行 resolve -> apply 全流程。
    """

    code = "TASK_UPDATE_CONFLICT"

    def __init__(self, project_id: str, task_id: str, reason: str) -> None:
        super().__init__(f"Task {task_id} in project {project_id}: {reason}")
        self.project_id = project_id
        self.task_id = task_id
        self.reason = reason


class ProjectNotFoundError(PlanboardError):
    """项目不存在（404）"""

    code = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project with id {project_id} does not exist")
        self.project_id = project_id


class SeedingPartialFailureError(PlanboardError):
    """部分模板任务克隆失败

    不会回滚已成功的插入；seeding 可重复执行。
    """

    code = "SEEDING_PARTIAL_FAILURE"

    def __init__(self, report: "SeedReport") -> None:
        super().__init__(
            f"{len(report.failures)} factor task(s) failed to seed "
            f"in project {report.project_id}"
        )
        self.report = report
