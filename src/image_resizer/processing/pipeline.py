"""处理流水线：扫描、准备输出目录、顺序或并发执行缩放任务。"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional, Union

from image_resizer.core.config import ResizeJobConfig
from image_resizer.core.exceptions import InvalidConfigurationError, TaskCanceled
from image_resizer.core.models import BatchReport, TaskResult, TaskStatus
from image_resizer.core.output_manager import DestinationManager
from image_resizer.core.progress import ProgressUpdate
from image_resizer.core.scanner import find_images
from image_resizer.processing.codec import DEFAULT_CODEC, JPEG_MAX_QUALITY, ImageCodec
from image_resizer.processing.worker import ResizeTask, process_one, run_task

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]
PathLike = Union[str, Path]


def resize_all(
    source_dir: PathLike,
    output_dir: PathLike,
    scale: float,
    *,
    codec: ImageCodec = DEFAULT_CODEC,
    quality: int = JPEG_MAX_QUALITY,
    progress_callback: ProgressCallback = None,
) -> list[Path]:
    """顺序处理全部图片，任一文件出错立即中止并原样抛出异常。"""

    sources = find_images(source_dir)
    destination = DestinationManager(output_dir).prepare()
    total = len(sources)
    LOGGER.info("顺序处理 %d 个图片文件 -> %s", total, destination)

    processed: list[Path] = []
    for source in sources:
        written = process_one(source, destination, scale, codec=codec, quality=quality)
        processed.append(source)
        if progress_callback:
            result = TaskResult(source_path=source, status=TaskStatus.SUCCEEDED, output_path=written)
            progress_callback(ProgressUpdate.for_result(result, len(processed), total))

    if progress_callback:
        progress_callback(ProgressUpdate.batch_finished(total))
    return processed


def resize_all_concurrently(
    source_dir: PathLike,
    output_dir: PathLike,
    scale: float,
    cancel_event: Optional[threading.Event] = None,
    *,
    max_workers: Optional[int] = None,
    codec: ImageCodec = DEFAULT_CODEC,
    quality: int = JPEG_MAX_QUALITY,
    progress_callback: ProgressCallback = None,
) -> BatchReport:
    """并发处理全部图片。

    每个文件是独立任务，失败或取消只影响自身；函数等待全部任务结束后返回。
    ``max_workers`` 为 None 时每个文件一个线程，否则使用有界线程池。
    """

    if max_workers is not None and max_workers < 1:
        raise InvalidConfigurationError(f"max_workers 必须大于 0: {max_workers}")

    sources = find_images(source_dir)
    destination = DestinationManager(output_dir).prepare()
    total = len(sources)
    report = BatchReport()
    LOGGER.info("并发处理 %d 个图片文件 -> %s", total, destination)

    if total == 0:
        if progress_callback:
            progress_callback(ProgressUpdate.batch_finished(0))
        return report

    tasks = [ResizeTask(source_path=source, output_dir=destination, scale=scale, quality=quality) for source in sources]
    workers = max_workers if max_workers is not None else total

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="resize") as executor:
        future_map = {executor.submit(run_task, task, cancel_event, codec): task for task in tasks}
        for future in as_completed(future_map):
            task = future_map[future]
            outcome = _collect_outcome(task, future)
            report.add(outcome)
            if progress_callback:
                progress_callback(ProgressUpdate.for_result(outcome, len(report.outcomes), total))

    LOGGER.info(
        "处理完成：成功 %d 个，失败 %d 个，取消 %d 个",
        len(report.succeeded),
        len(report.failed),
        len(report.canceled),
    )
    if progress_callback:
        progress_callback(ProgressUpdate.batch_finished(total))
    return report


def process_batch(
    config: ResizeJobConfig,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: ProgressCallback = None,
    codec: ImageCodec = DEFAULT_CODEC,
) -> BatchReport:
    """按配置执行批处理；顺序模式下错误直接抛出。"""

    config.validate()

    if config.concurrent:
        return resize_all_concurrently(
            config.source_dir,
            config.output_dir,
            config.scale,
            cancel_event,
            max_workers=config.max_workers,
            codec=codec,
            quality=config.jpeg_quality,
            progress_callback=progress_callback,
        )

    processed = resize_all(
        config.source_dir,
        config.output_dir,
        config.scale,
        codec=codec,
        quality=config.jpeg_quality,
        progress_callback=progress_callback,
    )
    manager = DestinationManager(config.output_dir)
    return BatchReport(
        outcomes=[
            TaskResult(source_path=source, status=TaskStatus.SUCCEEDED, output_path=manager.destination_for(source))
            for source in processed
        ]
    )


def _collect_outcome(task: ResizeTask, future) -> TaskResult:
    try:
        output_path = future.result()
    except TaskCanceled as exc:
        LOGGER.debug("任务已取消：%s", task.source_path.name)
        return TaskResult(source_path=task.source_path, status=TaskStatus.CANCELED, error=exc)
    except Exception as exc:  # noqa: BLE001
        LOGGER.warning("任务执行失败：%s: %s", task.source_path, exc)
        return TaskResult(source_path=task.source_path, status=TaskStatus.FAILED, error=exc)
    LOGGER.debug("%s: %s -> %s", task.source_path.name, TaskStatus.RUNNING.value, TaskStatus.SUCCEEDED.value)
    return TaskResult(source_path=task.source_path, status=TaskStatus.SUCCEEDED, output_path=output_path)

