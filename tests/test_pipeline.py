"""测试顺序与并发批处理流程。"""

from __future__ import annotations

import csv
import threading
from pathlib import Path

import pytest
from PIL import Image

from image_resizer.core.config import ResizeJobConfig
from image_resizer.core.exceptions import DecodeError, InvalidConfigurationError
from image_resizer.core.models import TaskStatus
from image_resizer.core.progress import ProgressUpdate
from image_resizer.core.report import write_csv_report
from image_resizer.core.scanner import find_images
from image_resizer.processing.codec import PillowCodec
from image_resizer.processing.pipeline import process_batch, resize_all, resize_all_concurrently


def _make_sources(source: Path, names: list[str], size: tuple[int, int] = (40, 20)) -> list[Path]:
    source.mkdir(parents=True, exist_ok=True)
    paths = []
    for name in names:
        path = source / name
        Image.new("RGB", size, "blue").save(path)
        paths.append(path.resolve())
    return paths


def _jpg_names(output: Path) -> set[str]:
    return {path.name for path in output.iterdir() if path.is_file()}


def test_resize_all_processes_every_file_in_order(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    expected = _make_sources(source, ["b.png", "a.jpg", "c.jpeg"])

    processed = resize_all(source, output, 0.5)

    assert processed == sorted(expected, key=str)
    assert _jpg_names(output) == {"a.jpg", "b.jpg", "c.jpg"}
    with Image.open(output / "b.jpg") as img:
        assert img.size == (20, 10)


def test_resize_all_aborts_on_first_corrupt_file(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    _make_sources(source, ["a.png", "d.png"])
    (source / "b.png").write_text("not an image")
    _make_sources(source, ["c.png"])

    with pytest.raises(DecodeError):
        resize_all(source, output, 0.5)

    assert _jpg_names(output) == {"a.jpg"}


def test_concurrent_batch_isolates_single_failure(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    good = _make_sources(source, [f"img{idx}.png" for idx in range(5)])
    (source / "broken.jpg").write_text("not an image")

    report = resize_all_concurrently(source, output, 0.5)

    assert len(report.succeeded) == len(good)
    assert set(report.succeeded) == set(good)
    assert len(report.failed) == 1
    failure = report.failed[0]
    assert failure.source_path.name == "broken.jpg"
    assert isinstance(failure.error, DecodeError)
    assert failure.message is not None and "DecodeError" in failure.message
    assert _jpg_names(output) == {f"img{idx}.jpg" for idx in range(5)}


def test_concurrent_batch_with_bounded_pool(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    good = _make_sources(source, [f"img{idx}.png" for idx in range(7)])

    report = resize_all_concurrently(source, output, 0.25, max_workers=2)

    assert set(report.succeeded) == set(good)
    assert report.failed == []
    assert all(outcome.output_path is not None and outcome.output_path.exists() for outcome in report.outcomes)


def test_concurrent_batch_rejects_invalid_worker_count(tmp_path: Path) -> None:
    with pytest.raises(InvalidConfigurationError):
        resize_all_concurrently(tmp_path, tmp_path / "output", 0.5, max_workers=0)


def test_preset_cancellation_cancels_every_task(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    sources = _make_sources(source, ["a.png", "b.png", "c.png"])
    event = threading.Event()
    event.set()

    report = resize_all_concurrently(source, output, 0.5, event)

    assert report.succeeded == []
    assert len(report.canceled) == len(sources)
    assert all(outcome.status is TaskStatus.CANCELED for outcome in report.outcomes)
    assert output.is_dir()
    assert _jpg_names(output) == set()


class CancelOnDecodeCodec(PillowCodec):
    """第一次解码时触发取消信号的编解码器。"""

    def __init__(self, event: threading.Event) -> None:
        self.event = event

    def decode(self, path: Path) -> Image.Image:
        self.event.set()
        return super().decode(path)


def test_cancellation_during_batch_lets_running_task_finish(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    sources = _make_sources(source, [f"img{idx}.png" for idx in range(5)])
    event = threading.Event()
    updates: list[ProgressUpdate] = []

    report = resize_all_concurrently(
        source,
        output,
        0.5,
        event,
        max_workers=1,
        codec=CancelOnDecodeCodec(event),
        progress_callback=updates.append,
    )

    assert len(report.succeeded) == 1
    assert len(report.canceled) == len(sources) - 1
    assert report.failed == []
    assert _jpg_names(output) == {report.succeeded[0].stem + ".jpg"}
    outcomes = [update.outcome for update in updates if not update.finished]
    assert outcomes.count(TaskStatus.CANCELED) == len(sources) - 1


def test_same_basename_in_different_directories_collides(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    (source / "one").mkdir(parents=True)
    (source / "two").mkdir(parents=True)
    Image.new("RGB", (40, 40), (255, 0, 0)).save(source / "one" / "photo.png")
    Image.new("RGB", (40, 40), (0, 0, 255)).save(source / "two" / "photo.png")

    report = resize_all_concurrently(source, output, 0.5)

    assert len(report.succeeded) == 2
    assert _jpg_names(output) == {"photo.jpg"}
    with Image.open(output / "photo.jpg") as img:
        assert img.size == (20, 20)
        r, g, b = img.getpixel((10, 10))
    is_red = r > 200 and b < 50
    is_blue = b > 200 and r < 50
    assert is_red or is_blue
    assert g < 50


def test_empty_source_returns_empty_report(tmp_path: Path) -> None:
    source = tmp_path / "input"
    source.mkdir()
    updates: list[ProgressUpdate] = []

    report = resize_all_concurrently(source, tmp_path / "output", 0.5, progress_callback=updates.append)

    assert report.outcomes == []
    assert (tmp_path / "output").is_dir()
    assert updates == [ProgressUpdate(total=0, completed=0, finished=True)]


def test_missing_source_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        resize_all_concurrently(tmp_path / "missing", tmp_path / "output", 0.5)
    with pytest.raises(FileNotFoundError):
        resize_all(tmp_path / "missing", tmp_path / "output", 0.5)


def test_progress_reaches_total(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_sources(source, ["a.png", "b.png", "c.png"])
    updates: list[ProgressUpdate] = []

    resize_all_concurrently(source, tmp_path / "output", 0.5, progress_callback=updates.append)

    per_file = [update for update in updates if not update.finished]
    assert [update.completed for update in per_file] == [1, 2, 3]
    assert {update.source_path.name for update in per_file} == {"a.png", "b.png", "c.png"}
    assert all(update.outcome is TaskStatus.SUCCEEDED for update in per_file)
    assert updates[-1] == ProgressUpdate(total=3, completed=3, finished=True)


def test_degenerate_scale_is_recorded_as_failure(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_sources(source, ["tiny.png"], size=(10, 10))

    report = resize_all_concurrently(source, tmp_path / "output", 0.01)

    assert report.succeeded == []
    assert len(report.failed) == 1


def test_process_batch_sequential_and_concurrent(tmp_path: Path) -> None:
    source = tmp_path / "input"
    sources = _make_sources(source, ["a.png", "b.png"])

    sequential = process_batch(
        ResizeJobConfig(source_dir=source, output_dir=tmp_path / "seq", scale=0.5, concurrent=False)
    )
    concurrent = process_batch(
        ResizeJobConfig(source_dir=source, output_dir=tmp_path / "par", scale=0.5, max_workers=1)
    )

    assert sequential.succeeded == sources
    assert all(outcome.output_path is not None and outcome.output_path.exists() for outcome in sequential.outcomes)
    assert set(concurrent.succeeded) == set(sources)


def test_process_batch_validates_config(tmp_path: Path) -> None:
    with pytest.raises(InvalidConfigurationError):
        process_batch(ResizeJobConfig(source_dir=tmp_path, output_dir=tmp_path / "out", scale=0.5, jpeg_quality=0))


def test_csv_report_lists_every_outcome(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_sources(source, ["a.png"])
    (source / "bad.png").write_text("not an image")
    output = tmp_path / "output"

    report = resize_all_concurrently(source, output, 0.5)
    report_path = write_csv_report(report, tmp_path / "reports" / "report.csv")

    with report_path.open("r", encoding="utf-8", newline="") as handle:
        rows = {Path(row["source_path"]).name: row for row in csv.DictReader(handle)}

    assert rows["a.png"]["status"] == "succeeded"
    assert rows["a.png"]["output_path"].endswith("a.jpg")
    assert rows["bad.png"]["status"] == "failed"
    assert "DecodeError" in rows["bad.png"]["message"]
    # 报告写在输出目录之外，不影响 JPEG 列表。
    assert find_images(output) == [(output / "a.jpg").resolve()]
