# File: blog_migrator/report/summary_report.py
"""blog_migrator.report.summary_report: plain-text comparison summary rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from blog_migrator.compare.reconciler import ReconciliationResult

#: Templates shipped with the package.
DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
SUMMARY_TEMPLATE = "summary.txt.j2"


def render_summary(
    result: ReconciliationResult,
    timestamp: str,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Render the comparison summary and save it to *output_path*.

    Args:
        result: matched / migrate / new-only partitions.
        timestamp: run stamp shown in the header.
        output_path: path of the resulting ``.txt`` file.
        template_dir: directory holding ``summary.txt.j2``; the bundled one by default.

    Returns:
        Path of the saved summary.
    """
    template_dir = Path(template_dir) if template_dir is not None else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=False,
        undefined=StrictUndefined,
    )
    template = env.get_template(SUMMARY_TEMPLATE)

    context: dict[str, Any] = {
        "timestamp": timestamp,
        "matched": result.matched,
        "migrate": result.migrate,
        "new_only": result.new_only,
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
