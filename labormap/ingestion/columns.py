"""Heuristic column detection for factory catalog imports.

Given the headers of a spreadsheet with unknown layout, infer which columns
hold the factory code, description, vehicle series, model and hours.

Detection is first-match over ordered candidate lists, never scored, so the
same header set always yields the same mapping.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from labormap.canonical.normalize import normalize_header
from labormap.exceptions import ColumnDetectionError

logger = logging.getLogger(__name__)

# Synonyms are stored in normalized form (upper-case, alphanumeric only)
CODE_SYNONYMS = [
    "REPAIRITEMCODE",
    "LABORCODE",
    "LABOURCODE",
    "OPERATIONCODE",
    "FACTORYCODE",
    "BYDCODE",
    "CODIGOBYD",
    "CODIGO",
    "CODE",
]
GENERIC_CODE_TOKENS = ["CODE", "COD"]

# Headers containing any of these are never picked as the factory code column
VEHICLE_TOKENS = ["VEHICLE", "VEHICULO", "SERIES", "SERIE", "MODEL", "MODELO"]

DESCRIPTION_SYNONYMS = [
    "REPAIRITEMNAME",
    "DESCRIPTION",
    "DESCRIPCION",
    "OPERATIONNAME",
    "ITEMNAME",
    "DESC",
    "NOMBRE",
    "NAME",
]
SERIES_SYNONYMS = ["VEHICLESERIES", "SERIES", "SERIE"]
MODEL_SYNONYMS = ["VEHICLEMODEL", "VEHICLECODE", "MODELO", "MODEL"]
HOURS_SYNONYMS = [
    "STANDARDLABORHOURS",
    "STANDARDLABOURHOURS",
    "STANDARDHOURS",
    "LABORHOURS",
    "HOURS",
    "HORAS",
    "HRS",
]
CATEGORY_SYNONYMS = ["MAINCATEGORY", "CATEGORY", "CATEGORIA"]
BATTERY_SYNONYMS = ["BATTERYPACKREPAIR", "BATTERYREPAIR", "HIGHVOLTAGE", "BATTERY"]


@dataclass(frozen=True)
class ColumnMapping:
    """Semantic field -> header name. Only `code` is mandatory."""

    code: str
    description: str | None = None
    series: str | None = None
    model: str | None = None
    hours: str | None = None
    category: str | None = None
    battery: str | None = None

    def as_dict(self) -> dict[str, str]:
        return {field: header for field, header in asdict(self).items() if header}


def _find_exact(
    normalized: list[str], synonyms: list[str], skip: set[int]
) -> int | None:
    for synonym in synonyms:
        for idx, norm in enumerate(normalized):
            if idx not in skip and norm == synonym:
                return idx
    return None


def _find_substring(
    normalized: list[str], synonyms: list[str], skip: set[int]
) -> int | None:
    for synonym in synonyms:
        for idx, norm in enumerate(normalized):
            if idx not in skip and synonym in norm:
                return idx
    return None


def _detect_code(normalized: list[str]) -> int | None:
    vehicle_like = {
        idx
        for idx, norm in enumerate(normalized)
        if any(token in norm for token in VEHICLE_TOKENS)
    }
    for finder, synonyms in (
        (_find_exact, CODE_SYNONYMS),
        (_find_substring, CODE_SYNONYMS),
        (_find_substring, GENERIC_CODE_TOKENS),
    ):
        idx = finder(normalized, synonyms, vehicle_like)
        if idx is not None:
            return idx
    return None


def detect_columns(headers: list[str]) -> ColumnMapping:
    """Infer the column mapping from a list of headers.

    Args:
        headers: Column headers as they appear in the file

    Returns:
        ColumnMapping with the detected header names

    Raises:
        ColumnDetectionError: If no factory code column can be identified
    """
    headers = [str(h) for h in headers]
    normalized = [normalize_header(h) for h in headers]

    code_idx = _detect_code(normalized)
    if code_idx is None:
        raise ColumnDetectionError("code", headers)

    skip_code = {code_idx}
    desc_idx = _find_exact(normalized, DESCRIPTION_SYNONYMS, skip_code)
    if desc_idx is None:
        desc_idx = _find_substring(normalized, DESCRIPTION_SYNONYMS, skip_code)
    if desc_idx is None and code_idx + 1 < len(headers):
        # Layouts without a description header keep it right after the code
        desc_idx = code_idx + 1

    def optional(synonyms: list[str]) -> str | None:
        idx = _find_substring(normalized, synonyms, set())
        return headers[idx] if idx is not None else None

    mapping = ColumnMapping(
        code=headers[code_idx],
        description=headers[desc_idx] if desc_idx is not None else None,
        series=optional(SERIES_SYNONYMS),
        model=optional(MODEL_SYNONYMS),
        hours=optional(HOURS_SYNONYMS),
        category=optional(CATEGORY_SYNONYMS),
        battery=optional(BATTERY_SYNONYMS),
    )
    logger.debug(f"Detected column mapping: {mapping.as_dict()}")
    return mapping
