"""Engine subpackage - pure ordering, validation and pricing logic."""
from .models import (
    Feature,
    AlaCarteOption,
    PackageTier,
    CustomerInfo,
    PriceOverride,
    PositionUpdate,
)
from .feature_ordering import (
    sort_features,
    group_features_by_column,
    derive_tier_features,
    get_popular_addons,
)
from .pricing import calculate_summary, format_currency

__all__ = [
    'Feature', 'AlaCarteOption', 'PackageTier', 'CustomerInfo', 'PriceOverride',
    'PositionUpdate', 'sort_features', 'group_features_by_column',
    'derive_tier_features', 'get_popular_addons', 'calculate_summary',
    'format_currency',
]
