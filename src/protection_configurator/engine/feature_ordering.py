"""
Feature Ordering Engine - column/position ordering and tier derivation.

The admin board and the customer storefront both order items through
`sort_features`, so admins always see the order customers see.

Tier membership is derived from each feature's column at read time:
- Gold:     column 1
- Elite:    column 2
- Platinum: column 3
Column 4 holds the popular add-ons and belongs to no tier.

Everything here is pure. Malformed metadata (out-of-range columns, negative or
non-numeric positions) is treated as absent instead of raising.
"""
import math
import re
from dataclasses import replace
from typing import Iterable, Optional

from .models import PositionUpdate


MIN_COLUMN = 1
MAX_COLUMN = 4
ADDON_COLUMN = 4
UNASSIGNED = 'unassigned'
BUCKETS = (1, 2, 3, 4, UNASSIGNED)

TIER_COLUMNS = {
    'gold': (1,),
    'elite': (2,),
    'platinum': (3,),
}

_MISSING = math.inf


def _as_int(value) -> Optional[int]:
    """Return value as an int if it is an integral number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def column_of(item) -> Optional[int]:
    """The item's column if it is an integer in 1..4, else None (unassigned)."""
    column = _as_int(getattr(item, 'column', None))
    if column is None or not MIN_COLUMN <= column <= MAX_COLUMN:
        return None
    return column


def position_of(item) -> Optional[int]:
    """The item's position if it is a non-negative integer, else None."""
    position = _as_int(getattr(item, 'position', None))
    if position is None or position < 0:
        return None
    return position


def _sort_key(item) -> tuple:
    column = column_of(item)
    position = position_of(item)
    return (
        _MISSING if column is None else column,
        _MISSING if position is None else position,
        str(getattr(item, 'id', '')),
    )


def compare_features(a, b) -> int:
    """
    Total order: column ascending, then position ascending, then id ascending.

    Missing column or position sorts after every present value.
    Returns -1, 0 or 1.
    """
    key_a, key_b = _sort_key(a), _sort_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def sort_features(features: Iterable) -> list:
    """Return a new list sorted by `compare_features`. The input is not mutated."""
    return sorted(features, key=_sort_key)


def normalize_positions(features: Iterable) -> list:
    """Reassign positions to 0, 1, 2, ... in the given order."""
    return [replace(item, position=index) for index, item in enumerate(features)]


def group_features_by_column(features: Iterable) -> dict:
    """
    Partition items into buckets 1, 2, 3, 4 and 'unassigned'.

    Each bucket is sorted with `sort_features`.
    """
    grouped = {bucket: [] for bucket in BUCKETS}
    for item in features:
        column = column_of(item)
        grouped[UNASSIGNED if column is None else column].append(item)
    return {bucket: sort_features(items) for bucket, items in grouped.items()}


def normalize_grouped_positions(grouped: dict) -> dict:
    """Apply `normalize_positions` to each bucket independently."""
    return {bucket: normalize_positions(grouped.get(bucket, [])) for bucket in BUCKETS}


def to_position_updates(grouped: dict) -> list[PositionUpdate]:
    """
    Flatten a grouped board into position update descriptors.

    Items without a position get their index within the bucket. Items in the
    unassigned bucket clear their stored column.
    """
    updates = []
    for bucket in BUCKETS:
        for index, item in enumerate(grouped.get(bucket, [])):
            position = position_of(item)
            updates.append(PositionUpdate(
                id=item.id,
                position=index if position is None else position,
                column=None if bucket == UNASSIGNED else bucket,
                connector=getattr(item, 'connector', None),
                unassign=bucket == UNASSIGNED,
            ))
    return updates


def move_feature(grouped: dict, feature_id: str, to_bucket, to_index: int) -> dict:
    """
    Commit a drag-and-drop move and return the renormalized board.

    `to_index` is clamped to the target bucket. An unknown id or bucket
    leaves the board as it was (renormalized).
    """
    board = {bucket: list(grouped.get(bucket, [])) for bucket in BUCKETS}
    if to_bucket not in board:
        return normalize_grouped_positions(board)

    moved = None
    for bucket in BUCKETS:
        for index, item in enumerate(board[bucket]):
            if item.id == feature_id:
                moved = board[bucket].pop(index)
                break
        if moved is not None:
            break

    if moved is None:
        return normalize_grouped_positions(board)

    target = board[to_bucket]
    index = max(0, min(int(to_index), len(target)))
    target.insert(index, replace(moved, column=None if to_bucket == UNASSIGNED else to_bucket))
    return normalize_grouped_positions(board)


def get_tier_column(tier_name: str) -> Optional[int]:
    """Map a tier name to its column (case-insensitive). Unknown names return None."""
    columns = get_tier_columns(tier_name)
    return columns[0] if columns else None


def get_tier_columns(tier_name: str) -> list[int]:
    """Columns that make up a tier. Unknown names return an empty list."""
    if not isinstance(tier_name, str):
        return []
    return list(TIER_COLUMNS.get(tier_name.strip().lower(), ()))


def derive_tier_features(tier_name: str, features: Iterable) -> list:
    """
    Derive a tier's feature list from column assignments.

    Features in the tier's columns, in `sort_features` order, deduplicated by
    case-insensitive name keeping the first occurrence. All other fields,
    connector included, are left as they are.
    """
    columns = set(get_tier_columns(tier_name))
    if not columns:
        return []

    members = sort_features(f for f in features if column_of(f) in columns)

    seen = set()
    derived = []
    for feature in members:
        key = str(feature.name).strip().lower()
        if key in seen:
            continue
        seen.add(key)
        derived.append(feature)
    return derived


def get_popular_addons(features: Iterable) -> list:
    """Column 4 items in display order."""
    return sort_features(f for f in features if column_of(f) == ADDON_COLUMN)


def _tier_rank(name: str) -> int:
    n = str(name).strip().lower()
    if re.search(r'\belite\b', n):
        return 1
    if re.search(r'\bplatinum\b', n):
        return 2
    if re.search(r'\bgold\b', n):
        return 3
    return 99


def sort_packages_for_display(packages: Iterable) -> list:
    """Customer-facing package order: Elite, Platinum, Gold, then the rest."""
    return sorted(packages, key=lambda pkg: _tier_rank(pkg.name))


def column_order_value(column) -> int:
    """A la carte catalog order: Elite (2), Platinum (3), Gold (1), Featured (4)."""
    return {2: 1, 3: 2, 1: 3, 4: 4}.get(_as_int(column), 999)


def is_curated_option(option) -> bool:
    return getattr(option, 'is_published', None) is True


def select_main_page_addons(options: Iterable, addon_ids: Iterable[str]) -> list:
    """Published options listed in `addon_ids`, in that order."""
    by_id = {opt.id: opt for opt in options if is_curated_option(opt)}
    return [by_id[addon_id] for addon_id in addon_ids if addon_id in by_id]
