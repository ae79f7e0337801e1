"""输出目录准备、清理与写入模块。"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

LOGGER = logging.getLogger(__name__)

OUTPUT_SUFFIX = ".jpg"


class DestinationManager:
    """负责输出目录的创建、清理以及 JPEG 文件落盘。

    输出目录是扁平的：不同子目录下同名的源文件会写到同一个目标，
    后写入者覆盖先写入者。
    """

    def __init__(self, output_dir: Union[str, Path]) -> None:
        self.output_dir = Path(output_dir).resolve()

    def prepare(self) -> Path:
        """确保输出目录存在，已有文件保持不动。"""

        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def clean(self) -> int:
        """删除输出目录下的所有文件（递归），目录本身保留。"""

        if not self.output_dir.exists():
            self.output_dir.mkdir(parents=True)
            return 0

        removed = 0
        for dirpath, dirnames, filenames in os.walk(self.output_dir):
            base = Path(dirpath)
            # 指向目录的符号链接出现在 dirnames 中，只删除链接本身
            links = [name for name in dirnames if (base / name).is_symlink()]
            dirnames[:] = [name for name in dirnames if name not in links]
            for name in [*filenames, *links]:
                (base / name).unlink()
                removed += 1
        LOGGER.info("已清理输出目录 %s，删除 %d 个文件", self.output_dir, removed)
        return removed

    def destination_for(self, source_path: Path) -> Path:
        """根据源文件名（去掉扩展名）计算输出路径。"""

        return self.output_dir / f"{source_path.stem}{OUTPUT_SUFFIX}"

    def write_bytes(self, destination: Path, data: bytes) -> Path:
        """先写入同目录的临时文件，再原子替换目标文件。"""

        fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.stem}-", suffix=".tmp", dir=destination.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_path, destination)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        return destination


def prepare_destination(output_dir: Union[str, Path]) -> Path:
    """创建输出目录（含父目录）。"""

    return DestinationManager(output_dir).prepare()


def clean(output_dir: Union[str, Path]) -> int:
    """清空输出目录下的所有文件，返回删除数量。"""

    return DestinationManager(output_dir).clean()
