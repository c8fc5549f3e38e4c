"""
Catalog Importer - loads features or a la carte options from a spreadsheet.

Accepts CSV, JSON (records) or Excel. List columns (points, useCases) are
pipe-separated in CSV/Excel. Every row is validated; invalid rows are
reported and skipped.
"""
import hashlib
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
from pydantic import ValidationError

from ..engine.models import to_document
from ..engine.validation import (
    ALA_CARTE_OPTIONS,
    FEATURES,
    format_validation_error,
    parse_record,
)
from ..services.catalog_store import DocumentStore


LIST_COLUMNS = ('points', 'useCases')
INT_COLUMNS = ('column', 'position')
BOOL_COLUMNS = ('isNew', 'isPublished', 'publishToAlaCarte', 'alaCarteIsNew')
LIST_SEPARATOR = '|'


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def read_table(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == '.csv':
        return pd.read_csv(path, dtype={'id': str})
    if suffix == '.json':
        return pd.read_json(path, orient='records', dtype={'id': str})
    if suffix in ('.xlsx', '.xls'):
        return pd.read_excel(path, dtype={'id': str})
    raise ValueError(f"Unsupported file type: {path.suffix}")


def _is_missing(value) -> bool:
    if isinstance(value, (list, tuple)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def row_to_record(row: dict) -> dict:
    """Turn a spreadsheet row into a raw store record."""
    record = {}
    for key, value in row.items():
        key = str(key).strip()
        if _is_missing(value):
            continue
        if isinstance(value, str):
            value = value.strip()
            if value == '':
                continue
        if key in LIST_COLUMNS and isinstance(value, str):
            value = [part.strip() for part in value.split(LIST_SEPARATOR) if part.strip()]
        elif key in INT_COLUMNS and isinstance(value, float) and value.is_integer():
            value = int(value)
        elif key in BOOL_COLUMNS and isinstance(value, str):
            value = value.lower() in ('true', '1', 'yes', 'on')
        elif key in ('price', 'cost', 'alaCartePrice') and isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                pass
        elif hasattr(value, 'item'):
            # numpy scalar -> python scalar
            value = value.item()
        record[key] = value
    for key in LIST_COLUMNS:
        if key == 'points' or key in record:
            record.setdefault(key, [])
    return record


async def import_catalog(
    store: Optional[DocumentStore],
    path: Path,
    collection: str = FEATURES,
    dry_run: bool = False,
    verbose: bool = True,
) -> dict:
    """
    Import one collection from a file.

    Documents are written by id with merge, so re-running the import updates
    rather than duplicates.

    Returns:
        Import report dictionary
    """
    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "collection": collection,
        "dry_run": dry_run,
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": [],
    }

    if collection not in (FEATURES, ALA_CARTE_OPTIONS):
        report["errors"].append(f"Unsupported collection: {collection}")
        report["status"] = "failed"
        return report

    path = Path(path)
    if not path.exists():
        msg = f"CRITICAL ERROR: {path} not found."
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    report["input_files"]["source"] = {"path": str(path), "hash": get_file_hash(path)}

    try:
        df = read_table(path)
    except Exception as e:
        msg = f"ERROR: Failed to read {path}. {e}"
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    df.columns = [str(c).strip() for c in df.columns]
    duplicates = int(df['id'].duplicated().sum()) if 'id' in df.columns else 0
    if duplicates:
        df = df.drop_duplicates('id', keep='first')
        report["warnings"].append(f"Removed {duplicates} duplicate ids (kept first row)")

    valid_items = []
    for index, row in enumerate(df.to_dict(orient='records')):
        record = row_to_record(row)
        try:
            valid_items.append(parse_record(collection, record).to_domain())
        except ValidationError as e:
            report["errors"].append(f"Row {index + 1} ({record.get('id')}): {format_validation_error(e)}")

    report["metrics"] = {
        "rows": int(len(df)) + duplicates,
        "duplicates_removed": duplicates,
        "valid": len(valid_items),
        "invalid": len(report["errors"]),
        "written": 0,
    }

    if not dry_run:
        if store is None:
            report["errors"].append("Document store is not configured; nothing written.")
            report["status"] = "failed"
            return report
        for item in valid_items:
            await store.set_document(collection, item.id, to_document(item), merge=True)
            report["metrics"]["written"] += 1

    report["status"] = "success" if not report["errors"] else "partial"

    if verbose:
        verb = "Validated" if dry_run else "Imported"
        print(f"{verb} {len(valid_items)} of {report['metrics']['rows']} rows into {collection}.")
        for err in report["errors"]:
            print(f"  ERROR: {err}")

    return report

