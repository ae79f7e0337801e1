"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class TaskStatus(str, Enum):
    """单个文件任务的状态，终态不可再变。"""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass(slots=True)
class TaskResult:
    """记录单个文件的处理结果（用于报告/日志）。"""

    source_path: Path
    status: TaskStatus
    output_path: Optional[Path] = None
    error: Optional[BaseException] = None

    @property
    def message(self) -> Optional[str]:
        if self.error is None:
            return None
        text = str(self.error)
        return f"{type(self.error).__name__}: {text}" if text else type(self.error).__name__


@dataclass(slots=True)
class BatchReport:
    """批处理的汇总结果，只由收集线程追加。"""

    outcomes: list[TaskResult] = field(default_factory=list)

    def add(self, outcome: TaskResult) -> None:
        self.outcomes.append(outcome)

    @property
    def succeeded(self) -> list[Path]:
        """成功完成的源文件路径，顺序为完成顺序。"""

        return [item.source_path for item in self.outcomes if item.status is TaskStatus.SUCCEEDED]

    @property
    def failed(self) -> list[TaskResult]:
        return [item for item in self.outcomes if item.status is TaskStatus.FAILED]

    @property
    def canceled(self) -> list[TaskResult]:
        return [item for item in self.outcomes if item.status is TaskStatus.CANCELED]

    def all_outcomes(self) -> list[TaskResult]:
        """返回所有结果记录，方便生成报告。"""

        return list(self.outcomes)
