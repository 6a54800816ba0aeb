"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、任务 ID 长度限制、任务默认字段等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("PLANBOARD_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "PLANBOARD_DB_PATH",
        str(_get_base_dir() / "sqlite" / "planboard.db"),
    )


def get_max_task_id_length() -> int:
    """获取任务标识符最大长度（超过视为格式错误）"""
    return int(os.environ.get("PLANBOARD_MAX_TASK_ID_LENGTH", "200"))


# 克隆出的 factor 任务初始 status
SEEDED_TASK_STATUS: str = "pending"

# 自定义任务默认 status
DEFAULT_TASK_STATUS: str = "To Do"

# 任务文本最大长度
TASK_TEXT_MAX_LENGTH: int = 2000
