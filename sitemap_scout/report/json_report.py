# sitemap_scout/report/json_report.py

"""
JSON report generation for SitemapScout.

Serializes a CrawlReport to a file.
"""
import json
from pathlib import Path

from sitemap_scout.aggregator import CrawlReport


def render_json(report: CrawlReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *report* as JSON at the given path.

    :param report: CrawlReport of a finished crawl
    :param output_path: path of the JSON file
    :param pretty: indent the output by 2 spaces
    :return: Path of the written file

    Example:
    ```python
    from sitemap_scout.report.json_report import render_json
    report_path = render_json(report, 'reports/report.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    # highest priority first
    data = report.to_dict(sort_by_priority=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)

    return output
