"""单个文件的缩放工作单元。"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from image_resizer.core.exceptions import TaskCanceled
from image_resizer.core.models import TaskStatus
from image_resizer.core.output_manager import DestinationManager
from image_resizer.processing.codec import DEFAULT_CODEC, JPEG_MAX_QUALITY, ImageCodec

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ResizeTask:
    """描述单个图片缩放任务。"""

    source_path: Path
    output_dir: Path
    scale: float
    quality: int = JPEG_MAX_QUALITY


def compute_target_size(size: tuple[int, int], scale: float) -> tuple[int, int]:
    """按比例计算目标宽高，向零截断（与整型收窄一致）。"""

    width, height = size
    return int(width * scale), int(height * scale)


def process_one(
    source_path: Union[str, Path],
    output_dir: Union[str, Path],
    scale: float,
    codec: ImageCodec = DEFAULT_CODEC,
    quality: int = JPEG_MAX_QUALITY,
) -> Path:
    """解码、缩放、编码并写出一个文件，返回输出路径。

    解码或编码失败时不会写入任何文件；异常原样向上抛出。
    """

    source_path = Path(source_path)
    manager = DestinationManager(output_dir)
    destination = manager.destination_for(source_path)

    image: Optional[Image.Image] = None
    resized: Optional[Image.Image] = None
    try:
        image = codec.decode(source_path)
        target_size = compute_target_size(image.size, scale)
        resized = codec.resize(image, *target_size)
        data = codec.encode(resized, quality=quality)
    finally:
        _close_if_needed(image, resized)

    manager.write_bytes(destination, data)
    LOGGER.debug("已写出 %s -> %s %s", source_path.name, destination.name, target_size)
    return destination


def run_task(
    task: ResizeTask,
    cancel_event: Optional[threading.Event] = None,
    codec: ImageCodec = DEFAULT_CODEC,
) -> Path:
    """在工作线程中执行任务；开始前检查一次取消信号。"""

    if cancel_event is not None and cancel_event.is_set():
        LOGGER.debug("%s: %s -> %s", task.source_path.name, TaskStatus.PENDING.value, TaskStatus.CANCELED.value)
        raise TaskCanceled(f"任务已取消: {task.source_path}")

    LOGGER.debug("%s: %s -> %s", task.source_path.name, TaskStatus.PENDING.value, TaskStatus.RUNNING.value)
    return process_one(task.source_path, task.output_dir, task.scale, codec=codec, quality=task.quality)


def _close_if_needed(*images: Optional[Image.Image]) -> None:
    for img in images:
        if img is not None:
            img.close()
