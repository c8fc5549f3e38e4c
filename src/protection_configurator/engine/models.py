"""
Data models for the protection configurator.

Uses frozen dataclasses: every engine function returns new values and never
mutates its inputs.
"""
from dataclasses import dataclass, field, fields
from typing import Optional


CONNECTOR_AND = 'AND'
CONNECTOR_OR = 'OR'
CONNECTORS = (CONNECTOR_AND, CONNECTOR_OR)

# Python attribute -> document store field
DOCUMENT_FIELD_NAMES = {
    'use_cases': 'useCases',
    'image_url': 'imageUrl',
    'thumbnail_url': 'thumbnailUrl',
    'video_url': 'videoUrl',
    'publish_to_ala_carte': 'publishToAlaCarte',
    'ala_carte_price': 'alaCartePrice',
    'ala_carte_warranty': 'alaCarteWarranty',
    'ala_carte_is_new': 'alaCarteIsNew',
    'is_new': 'isNew',
    'is_published': 'isPublished',
    'source_feature_id': 'sourceFeatureId',
}


def to_document(item) -> dict:
    """Convert a catalog dataclass to a store document (camelCase, no id, no None values)."""
    doc = {}
    for f in fields(item):
        if f.name == 'id':
            continue
        value = getattr(item, f.name)
        if value is None:
            continue
        if isinstance(value, tuple):
            value = list(value)
        doc[DOCUMENT_FIELD_NAMES.get(f.name, f.name)] = value
    return doc


@dataclass(frozen=True)
class Feature:
    """A purchasable benefit that may be bundled into package tiers."""
    id: str
    name: str
    description: str = ''
    points: tuple = ()
    use_cases: tuple = ()
    price: float = 0.0
    cost: float = 0.0  # Internal; may exceed price
    warranty: Optional[str] = None
    column: Optional[int] = None  # 1-4, None = unassigned
    position: Optional[int] = None
    connector: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None

    # A la carte publishing
    publish_to_ala_carte: Optional[bool] = None
    ala_carte_price: Optional[float] = None
    ala_carte_warranty: Optional[str] = None
    ala_carte_is_new: Optional[bool] = None

    @property
    def effective_connector(self) -> str:
        return self.connector if self.connector in CONNECTORS else CONNECTOR_AND


@dataclass(frozen=True)
class AlaCarteOption:
    """A standalone purchasable item, surfaced in its own catalog."""
    id: str
    name: str
    description: str = ''
    points: tuple = ()
    use_cases: tuple = ()
    price: float = 0.0
    cost: float = 0.0
    warranty: Optional[str] = None
    column: Optional[int] = None
    position: Optional[int] = None
    connector: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    is_new: Optional[bool] = None
    is_published: Optional[bool] = None  # Unpublished options stay out of customer catalogs
    source_feature_id: Optional[str] = None

    @property
    def effective_connector(self) -> str:
        return self.connector if self.connector in CONNECTORS else CONNECTOR_AND


@dataclass(frozen=True)
class PackageTier:
    """
    A named, priced bundle.

    `features` is always derived from the feature collection at read time
    and is never written back to the store.
    """
    id: str
    name: str
    price: float
    cost: float
    tier_color: str = ''
    is_recommended: bool = False
    features: tuple = ()


@dataclass(frozen=True)
class CustomerInfo:
    """Display/print input for the agreement view."""
    name: str
    year: str
    make: str
    model: str

    @property
    def vehicle(self) -> str:
        return " ".join(part for part in (self.year, self.make, self.model) if part)


@dataclass(frozen=True)
class PriceOverride:
    """Optional per-item price/cost overlay. None means use the stored value."""
    price: Optional[float] = None
    cost: Optional[float] = None


@dataclass(frozen=True)
class PositionUpdate:
    """A bulk reordering descriptor persisted verbatim by the data access layer."""
    id: str
    position: int
    column: Optional[int] = None
    connector: Optional[str] = None
    unassign: bool = False  # Clear the stored column

    def to_update_dict(self) -> dict:
        data = {'position': self.position}
        if self.unassign:
            data['column'] = None
        elif self.column is not None:
            data['column'] = self.column
        if self.connector is not None:
            data['connector'] = self.connector
        return data


@dataclass(frozen=True)
class Pick2Config:
    """Fixed-price bundle of exactly `max_selections` a la carte items."""
    enabled: bool = False
    max_selections: int = 2
    price: float = 0.0


@dataclass
class CatalogSnapshot:
    """Best-effort read of the three catalog collections."""
    packages: list = field(default_factory=list)
    features: list = field(default_factory=list)
    ala_carte_options: list = field(default_factory=list)
    source: str = 'store'  # "store" or "fallback"
