"""Factory catalog import from CSV/Excel files.

Rows stay loosely typed (`RawRow`) only until column detection succeeds;
after that each row is narrowed into a validated `CatalogEntry` or rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import pandas as pd
from pydantic import ValidationError

from labormap.canonical.normalize import normalize_text
from labormap.ingestion.columns import ColumnMapping, detect_columns
from labormap.models import CatalogEntry, LinkStatus
from labormap.rules.admission import RuleSet, calculate_internal_code
from labormap.rules.classification import ClassificationRule, classify

logger = logging.getLogger(__name__)

RawRow = dict[str, Union[str, int, float]]

TRUTHY_FLAGS = {"YES", "Y", "SI", "SÍ", "TRUE", "1", "X"}


@dataclass
class ImportResult:
    """Outcome of narrowing raw rows into catalog entries."""

    entries: list[CatalogEntry] = field(default_factory=list)
    loaded: int = 0
    rejected: int = 0
    rejection_reasons: dict[str, int] = field(default_factory=dict)
    mapping: Optional[ColumnMapping] = None

    def reject(self, reason: str) -> None:
        self.rejected += 1
        self.rejection_reasons[reason] = self.rejection_reasons.get(reason, 0) + 1


def read_catalog_file(path: Path, sheet_name: Optional[str] = None) -> tuple[list[str], list[RawRow]]:
    """Read a CSV or Excel file into headers and raw rows.

    Args:
        path: Path to a .csv, .xlsx or .xls file
        sheet_name: Sheet for Excel files (default: first sheet)

    Returns:
        Tuple of (headers in file order, rows keyed by header)

    Raises:
        ValueError: If the file extension is not supported
    """
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    elif suffix in [".xlsx", ".xls"]:
        df = pd.read_excel(path, sheet_name=sheet_name or 0, dtype=str, engine="openpyxl")
        df = df.fillna("")
    else:
        raise ValueError(f"Unsupported file format: {suffix}")

    logger.info(f"Loaded {len(df)} rows from {path}")

    headers = [str(col) for col in df.columns]
    df.columns = headers
    rows: list[RawRow] = df.to_dict(orient="records")
    return headers, rows


def _cell(row: RawRow, column: Optional[str]) -> str:
    if not column:
        return ""
    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


def _parse_hours(raw: str) -> Optional[float]:
    if not raw:
        return None
    try:
        hours = float(raw.replace(",", "."))
    except ValueError:
        return None
    return hours if hours >= 0 else None


def _parse_flag(raw: str) -> Optional[bool]:
    if not raw:
        return None
    return normalize_text(raw) in TRUTHY_FLAGS


def import_catalog_rows(
    headers: list[str],
    rows: list[RawRow],
    rule_set: RuleSet,
    classification_rules: list[ClassificationRule] | None = None,
) -> ImportResult:
    """Detect columns, then narrow each raw row into a `CatalogEntry`.

    Kind and hours defaults come from the active admission rule, the internal
    code from its strategy, and the category from keyword classification when
    the file has no category column.

    Raises:
        ColumnDetectionError: If no factory code column can be identified
    """
    mapping = detect_columns(headers)
    logger.info(f"Detected column mapping: {mapping.as_dict()}")

    rule = rule_set.active
    result = ImportResult(mapping=mapping)

    for idx, row in enumerate(rows):
        code = _cell(row, mapping.code)
        if not code:
            result.reject("missing_code")
            continue

        description = _cell(row, mapping.description)
        category = _cell(row, mapping.category) or None
        if category is None and classification_rules:
            match = classify(description, classification_rules)
            category = match.category if match else None

        hours = _parse_hours(_cell(row, mapping.hours))
        series = _cell(row, mapping.series) or None
        model = _cell(row, mapping.model) or series

        try:
            entry = CatalogEntry(
                factory_code=code,
                kind=rule.default_category,
                internal_code=calculate_internal_code(code, rule),
                description=description,
                vehicle_series=series,
                vehicle_model=model,
                category=category,
                standard_hours=hours if hours is not None else rule.default_hours,
                is_battery_repair=_parse_flag(_cell(row, mapping.battery)),
                status=LinkStatus.LINKED,
            )
        except ValidationError as e:
            logger.warning(f"Row {idx + 2} rejected: {e}")
            result.reject("validation_failed")
            continue

        result.entries.append(entry)
        result.loaded += 1

    logger.info(
        f"Catalog import completed: {result.loaded} loaded, {result.rejected} rejected"
    )
    return result
