"""记忆模块：把描述 → 结构化查询的映射持久化到 JSON 文件"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import ValidationError

from .models import LocatorQuery

logger = logging.getLogger(__name__)

SNAPSHOT_DIR_NAME = "locator-snapshots"


def snapshot_path_for_test(title: str, root: Optional[Union[str, Path]] = None) -> Path:
    """
    按测试名生成快照文件路径：<root>/locator-snapshots/<title>.json（空白替换为 -）。
    """
    base = Path(root) if root is not None else Path.cwd()
    name = re.sub(r"\s+", "-", title.strip())
    return base / SNAPSHOT_DIR_NAME / f"{name}.json"


class SnapshotCache:
    """
    定位快照缓存。

    - 读取失败（文件不存在、内容损坏）时返回空映射，不抛异常
    - 写入失败只记录日志
    - 无锁：并发写入同一文件时后写者覆盖先写者，条目可重新生成
    - path 为 None 时缓存关闭
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def _read_raw(self) -> Dict[str, dict]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"⚠ 读取定位快照失败 {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"⚠ 定位快照格式错误 {self.path}: 顶层不是对象")
            return {}
        return data

    def read(self) -> Dict[str, LocatorQuery]:
        """读取全部快照，跳过无法通过校验的条目。"""
        snapshots = {}
        for description, entry in self._read_raw().items():
            try:
                snapshots[description] = LocatorQuery.from_snapshot(entry)
            except (ValidationError, AttributeError, TypeError) as e:
                logger.warning(f"⚠ 忽略无效快照 \"{description}\": {e}")
        return snapshots

    def get(self, description: str) -> Optional[LocatorQuery]:
        return self.read().get(description)

    def write(self, description: str, query: LocatorQuery) -> None:
        """新增或覆盖一条快照（后写者覆盖）。"""
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            snapshots = self._read_raw()
            snapshots[description] = query.to_snapshot()
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.write_text(json.dumps(snapshots, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"⚠ 保存定位快照失败 {self.path}: {e}")
