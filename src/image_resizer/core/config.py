"""缩放任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from image_resizer.core.exceptions import InvalidConfigurationError


@dataclass(slots=True)
class ResizeJobConfig:
    """单次批量缩放任务的配置集合。

    scale 不做校验：缩放后宽高截断为 0 时由编解码器自行报错。
    """

    source_dir: Path
    output_dir: Path
    scale: float
    concurrent: bool = True
    max_workers: Optional[int] = None  # None 表示每个文件一个线程
    jpeg_quality: int = 100

    def validate(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise InvalidConfigurationError(f"max_workers 必须大于 0: {self.max_workers}")
        if not 1 <= self.jpeg_quality <= 100:
            raise InvalidConfigurationError(f"jpeg_quality 必须位于 1~100: {self.jpeg_quality}")
