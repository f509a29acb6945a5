from collections import Counter
from typing import Dict, List, Optional

from .columns import classify
from .config import AnalyticsConfig
from .grouping import find_class_column
from .sheet import Sheet


def check_header(sheet: Sheet) -> bool:
    return len(sheet.columns) > 0 and all(str(col).strip() for col in sheet.columns)


def check_row_lengths(sheet: Sheet) -> int:
    width = len(sheet.columns)
    return sum(1 for row in sheet.rows if len(row) != width)


def check_duplicate_headers(sheet: Sheet) -> List[str]:
    counts = Counter(sheet.columns)
    return sorted(col for col, count in counts.items() if count > 1)


def run_invariants(sheet: Sheet, config: Optional[AnalyticsConfig] = None) -> List[Dict[str, object]]:
    """Diagnostic checks on an ingested sheet; the engine itself never requires them."""

    results = []

    results.append(
        {
            "name": "header_present",
            "ok": check_header(sheet),
            "detail": f"{len(sheet.columns)} columns",
        }
    )

    ragged = check_row_lengths(sheet)
    results.append({"name": "row_lengths", "ok": ragged == 0, "detail": ragged})

    numeric = classify(sheet, config)
    results.append(
        {
            "name": "numeric_columns",
            "ok": len(numeric) > 0,
            "detail": ", ".join(col.name for col in numeric) if numeric else "none detected",
        }
    )

    class_idx = find_class_column(sheet.columns, config)
    results.append(
        {
            "name": "class_column",
            "ok": class_idx != -1,
            "detail": sheet.columns[class_idx] if class_idx != -1 else "not found",
        }
    )

    duplicates = check_duplicate_headers(sheet)
    results.append(
        {
            "name": "duplicate_headers",
            "ok": not duplicates,
            "detail": ", ".join(duplicates) if duplicates else "none",
        }
    )

    return results
