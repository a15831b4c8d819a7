# File: sitemap_scout/report/html_report.py
"""sitemap_scout.report.html_report: HTML report rendering with Jinja2."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from sitemap_scout.aggregator import CrawlReport

#: Templates shipped with the package.
DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


def render_html(
    report: CrawlReport,
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Render the HTML report from a template and save it at the given path.

    Args:
        report: CrawlReport of a finished crawl.
        template_dir: directory with ``report.html.j2``; ``None`` uses the bundled one.
        output_path: path of the resulting HTML file.

    Returns:
        Path of the saved HTML file.

    Example:
    ```python
    from sitemap_scout.report.html_report import render_html
    html_path = render_html(report, template_dir=None, output_path='reports/report.html')
    ```
    """
    template_dir = Path(template_dir) if template_dir is not None else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template("report.html.j2")

    records = sorted(report.records, key=lambda r: (-r.priority, r.url))
    context: dict[str, Any] = {
        "summary": report.summary(),
        "records": records,
        "frequencies": Counter(r.change_frequency.value for r in records).most_common(),
        "stale": [r for r in records if r.is_stale],
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
