"""文件扫描与筛选逻辑。"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, Union

LOGGER = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def _iter_candidate_files(root: Path) -> Iterator[Path]:
    """递归遍历目录下的所有文件，遍历错误直接向上抛出。"""

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        base = Path(dirpath)
        for name in filenames:
            candidate = base / name
            if candidate.is_file():
                yield candidate


def find_images(root: Union[str, Path]) -> list[Path]:
    """递归扫描源目录，返回扩展名匹配的图片路径。

    扩展名比较不区分大小写；结果为绝对路径并按字符串字典序排序，
    保证同一目录多次扫描得到相同顺序。
    """

    resolved_root = Path(root).resolve()
    if not resolved_root.exists():
        raise FileNotFoundError(f"源目录不存在: {resolved_root}")
    if not resolved_root.is_dir():
        raise NotADirectoryError(f"源路径不是目录: {resolved_root}")

    collected = [
        candidate
        for candidate in _iter_candidate_files(resolved_root)
        if candidate.suffix.lower() in IMAGE_EXTENSIONS
    ]
    collected.sort(key=str)
    LOGGER.debug("在 %s 下发现 %d 个图片文件", resolved_root, len(collected))
    return collected
