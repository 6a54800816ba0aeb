"""CLI 入口模块 -- python -m planboard.core <command>

支持的命令：
  load-factors <file.json>  导入 Success Factor 模板目录
  backfill-factor-tasks     为所有项目补齐 factor 任务
  dedupe-factor-tasks       清理重复的 factor 任务并创建唯一索引
"""

import asyncio
import json
import sys
from pathlib import Path

from .config import get_db_path

_USAGE = """用法: python -m planboard.core <command>
命令:
  load-factors <file.json>  导入 Success Factor 模板目录
  backfill-factor-tasks     为所有项目补齐 factor 任务
  dedupe-factor-tasks       清理重复的 factor 任务并创建唯一索引"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "load-factors":
        if len(sys.argv) < 3:
            print("用法: python -m planboard.core load-factors <file.json>")
            sys.exit(1)
        asyncio.run(load_factors(Path(sys.argv[2])))
    elif command == "backfill-factor-tasks":
        ok = asyncio.run(backfill_factor_tasks())
        if not ok:
            sys.exit(1)
    elif command == "dedupe-factor-tasks":
        asyncio.run(dedupe_factor_tasks())
    else:
        print(f"未知命令: {command}")
        print("可用命令: load-factors, backfill-factor-tasks, dedupe-factor-tasks")
        sys.exit(1)


async def load_factors(path: Path) -> None:
    """执行模板目录导入"""
    from .maintenance import load_factor_catalog
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    print(f"导入文件: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    store_group = await create_store_group(db_path)

    try:
        count = await load_factor_catalog(store_group.conn, store_group.factor_store, data)
        print(f"导入完成，写入 {count} 条模板任务")
    finally:
        await store_group.conn.close()


async def backfill_factor_tasks() -> bool:
    """执行 factor 任务补齐

    Returns:
        所有项目均无失败项时为 True
    """
    from .seeding import backfill_all_projects
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    print("开始补齐 factor 任务...")

    store_group = await create_store_group(db_path)

    try:
        reports = await backfill_all_projects(store_group)
    finally:
        await store_group.conn.close()

    inserted = sum(r.inserted for r in reports)
    failed = [r for r in reports if not r.ok]
    print(f"处理 {len(reports)} 个项目，新增 {inserted} 条任务")
    for report in failed:
        for failure in report.failures:
            print(
                f"  失败: project={report.project_id} factor={failure.factor_id} "
                f"stage={failure.stage} {failure.error_type}: {failure.message}"
            )
    return not failed


async def dedupe_factor_tasks() -> None:
    """执行重复 factor 任务清理"""
    from .maintenance import dedupe_factor_tasks as run_dedupe
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    print("开始清理重复 factor 任务...")

    store_group = await create_store_group(db_path)

    try:
        report = await run_dedupe(
            store_group.conn,
            store_group.project_store,
            store_group.task_store,
        )
    finally:
        await store_group.conn.close()

    print(
        f"扫描 {report.projects_scanned} 个项目，"
        f"{report.duplicate_groups} 组重复，删除 {len(report.deleted_task_ids)} 条"
    )
    print("唯一索引已就绪" if report.index_created else "唯一索引仍未创建")


if __name__ == "__main__":
    main()
