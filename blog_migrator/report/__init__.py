"""blog_migrator.report: CSV files and the comparison summary used by the CLI."""

from __future__ import annotations

from blog_migrator.report.csv_report import read_rows, write_records, write_rows
from blog_migrator.report.summary_report import render_summary

__all__ = ["read_rows", "write_records", "write_rows", "render_summary"]
