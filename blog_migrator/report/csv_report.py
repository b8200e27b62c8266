# blog_migrator/report/csv_report.py

"""
CSV adapters: the crawl output file and the rows of earlier crawl files.

Files are written in one go once every row is known, so an interrupted run
never leaves a half-written CSV behind.
"""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from blog_migrator.crawler.models import RECORD_COLUMNS, PageRecord


def write_rows(
    rows: Iterable[Dict[str, object]],
    fieldnames: Sequence[str],
    output_path: Union[Path, str],
) -> Path:
    """
    Write *rows* with the given header to *output_path*.

    :return: Path of the written file
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    tmp = output.with_name(output.name + ".part")
    with tmp.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(fieldnames), extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)
    tmp.replace(output)
    return output


def write_records(records: Iterable[PageRecord], output_path: Union[Path, str]) -> Path:
    """Save crawl records with the fixed import columns."""
    return write_rows((r.as_row() for r in records), RECORD_COLUMNS, output_path)


def read_rows(path: Union[Path, str]) -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Read a CSV file with a header line.

    :return: (column names, rows as dicts)
    :raises ValueError: if the file has no ``pagetitle`` column
    """
    with Path(path).open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        rows = [dict(row) for row in reader]
        fieldnames = list(reader.fieldnames or [])
    if "pagetitle" not in fieldnames:
        raise ValueError(f"{path} has no 'pagetitle' column")
    return fieldnames, rows
