"""任务结束时回调给调用方的进度快照。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from image_resizer.core.models import TaskResult, TaskStatus


@dataclass(slots=True, frozen=True)
class ProgressUpdate:
    """``completed`` 个任务已结束；``source_path``/``outcome`` 指最近结束的那个。

    整批结束时额外发出一次 ``finished=True`` 的快照，此时不带具体文件。
    """

    total: int
    completed: int
    source_path: Optional[Path] = None
    outcome: Optional[TaskStatus] = None
    finished: bool = False

    @classmethod
    def for_result(cls, result: TaskResult, completed: int, total: int) -> "ProgressUpdate":
        return cls(total=total, completed=completed, source_path=result.source_path, outcome=result.status)

    @classmethod
    def batch_finished(cls, total: int) -> "ProgressUpdate":
        return cls(total=total, completed=total, finished=True)
