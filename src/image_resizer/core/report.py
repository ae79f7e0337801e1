"""报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path

from image_resizer.core.models import BatchReport

HEADER = ["source_path", "output_path", "status", "message"]


def write_csv_report(report: BatchReport, report_path: Path) -> Path:
    """将处理结果写入 CSV 报告。"""

    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for record in report.all_outcomes():
            writer.writerow(
                [
                    str(record.source_path),
                    str(record.output_path) if record.output_path else "",
                    record.status.value,
                    record.message or "",
                ]
            )
    return report_path
