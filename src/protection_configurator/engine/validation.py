"""
Validation Layer - schema checks for raw document store records.

Policy is filter, don't fail: an invalid record is logged and dropped, and the
rest of the collection is still processed.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .feature_ordering import get_tier_columns
from .models import AlaCarteOption, CustomerInfo, Feature, PackageTier, PriceOverride

logger = logging.getLogger(__name__)


FEATURES = 'features'
ALA_CARTE_OPTIONS = 'ala_carte_options'
PACKAGES = 'packages'


def _check_media_url(value: Optional[str]) -> Optional[str]:
    if value is None or value == '':
        return value
    if not value.startswith(('http://', 'https://')):
        raise ValueError('must be a valid http(s) URL')
    return value


class _CatalogItemRecord(BaseModel):
    """Fields shared by features and a la carte options."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    points: list[str] = Field(default_factory=list)
    use_cases: list[str] = Field(default_factory=list, alias='useCases')
    # Zero is allowed: bundled features show price 0
    price: float = Field(ge=0, strict=True, allow_inf_nan=False)
    cost: float = Field(ge=0, strict=True, allow_inf_nan=False)
    warranty: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias='imageUrl')
    thumbnail_url: Optional[str] = Field(default=None, alias='thumbnailUrl')
    video_url: Optional[str] = Field(default=None, alias='videoUrl')
    column: Optional[int] = Field(default=None, ge=1, le=4, strict=True)
    position: Optional[int] = Field(default=None, ge=0, strict=True)
    connector: Optional[Literal['AND', 'OR']] = None

    @field_validator('image_url', 'thumbnail_url', 'video_url')
    @classmethod
    def check_media_urls(cls, value: Optional[str]) -> Optional[str]:
        return _check_media_url(value)

    def common_fields(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'points': tuple(self.points),
            'use_cases': tuple(self.use_cases),
            'price': float(self.price),
            'cost': float(self.cost),
            'warranty': self.warranty,
            'column': self.column,
            'position': self.position,
            'connector': self.connector,
            'image_url': self.image_url or None,
            'thumbnail_url': self.thumbnail_url or None,
            'video_url': self.video_url or None,
        }


class FeatureRecord(_CatalogItemRecord):
    publish_to_ala_carte: Optional[bool] = Field(default=None, alias='publishToAlaCarte')
    ala_carte_price: Optional[float] = Field(default=None, ge=0, strict=True, alias='alaCartePrice')
    ala_carte_warranty: Optional[str] = Field(default=None, alias='alaCarteWarranty')
    ala_carte_is_new: Optional[bool] = Field(default=None, alias='alaCarteIsNew')

    def to_domain(self) -> Feature:
        return Feature(
            **self.common_fields(),
            publish_to_ala_carte=self.publish_to_ala_carte,
            ala_carte_price=self.ala_carte_price,
            ala_carte_warranty=self.ala_carte_warranty,
            ala_carte_is_new=self.ala_carte_is_new,
        )


class AlaCarteOptionRecord(_CatalogItemRecord):
    is_new: Optional[bool] = Field(default=None, alias='isNew')
    is_published: Optional[bool] = Field(default=None, alias='isPublished')
    source_feature_id: Optional[str] = Field(default=None, alias='sourceFeatureId')

    def to_domain(self) -> AlaCarteOption:
        return AlaCarteOption(
            **self.common_fields(),
            is_new=self.is_new,
            is_published=self.is_published,
            source_feature_id=self.source_feature_id,
        )


class PackageRecord(BaseModel):
    """
    A stored package. Only the tier's own pricing/display metadata is read;
    legacy `featureIds` lists are ignored.
    """
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    price: float = Field(ge=0, strict=True, allow_inf_nan=False)
    cost: float = Field(ge=0, strict=True, allow_inf_nan=False)
    tier_color: str = Field(min_length=1)
    is_recommended: Optional[bool] = None

    @model_validator(mode='before')
    @classmethod
    def fold_recommended(cls, data: Any) -> Any:
        # `isRecommended` is the current field, `is_recommended` the legacy one
        if isinstance(data, dict) and data.get('isRecommended') is not None:
            data = dict(data)
            data['is_recommended'] = data['isRecommended']
        return data

    def to_domain(self, features: Iterable = ()) -> PackageTier:
        return PackageTier(
            id=self.id,
            name=self.name,
            price=float(self.price),
            cost=float(self.cost),
            tier_color=self.tier_color,
            is_recommended=bool(self.is_recommended),
            features=tuple(features),
        )


class PriceOverrideRecord(BaseModel):
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    cost: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class CustomerInfoRecord(BaseModel):
    name: str = Field(min_length=1)
    year: str = Field(min_length=4)
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)


SCHEMAS = {
    FEATURES: FeatureRecord,
    ALA_CARTE_OPTIONS: AlaCarteOptionRecord,
    PACKAGES: PackageRecord,
}


def format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into `field: message` pairs."""
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
        for err in exc.errors()
    )


def parse_record(kind: str, record: Any):
    """Validate one raw record. Returns the pydantic record; raises ValidationError."""
    return SCHEMAS[kind].model_validate(record)


def validate_records(kind: str, records: Iterable[Any], context: Optional[str] = None) -> list:
    """
    Validate raw records of one collection and return the valid ones.

    Features and options come back as domain dataclasses. Packages come back
    as `PackageRecord` so the caller can attach derived features.
    """
    label = context or kind
    valid = []
    for index, record in enumerate(records):
        try:
            parsed = parse_record(kind, record)
        except ValidationError as e:
            record_id = record.get('id') if isinstance(record, dict) else None
            logger.error(
                f"Validation error in {label} for item {index} ({record_id}): "
                f"{format_validation_error(e)}"
            )
            continue
        valid.append(parsed if kind == PACKAGES else parsed.to_domain())
    return valid


def parse_price_overrides(raw: Optional[dict]) -> dict[str, PriceOverride]:
    """Parse an id -> {price?, cost?} mapping, dropping invalid entries."""
    overrides = {}
    for item_id, entry in (raw or {}).items():
        try:
            parsed = PriceOverrideRecord.model_validate(entry)
        except ValidationError as e:
            logger.error(f"Invalid price override for {item_id}: {format_validation_error(e)}")
            continue
        overrides[str(item_id)] = PriceOverride(price=parsed.price, cost=parsed.cost)
    return overrides


def parse_customer_info(raw: Any) -> Optional[CustomerInfo]:
    try:
        parsed = CustomerInfoRecord.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Invalid customer info: {format_validation_error(e)}")
        return None
    return CustomerInfo(name=parsed.name, year=parsed.year, make=parsed.make, model=parsed.model)


@dataclass
class IntegrityReport:
    """Result of checking one stored collection."""
    collection: str
    total: int = 0
    valid: int = 0
    invalid: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    warnings: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.invalid == 0


def verify_collection(kind: str, records: Iterable[Any]) -> IntegrityReport:
    """Validate every record and collect advisory warnings for the valid ones."""
    report = IntegrityReport(collection=kind)

    for record in records:
        report.total += 1
        record_id = str(record.get('id')) if isinstance(record, dict) else '?'
        try:
            parsed = parse_record(kind, record)
        except ValidationError as e:
            report.invalid += 1
            report.errors.append((record_id, format_validation_error(e)))
            continue

        report.valid += 1
        if parsed.price == 0 and parsed.cost == 0:
            report.warnings.append((record_id, "Both price and cost are $0 - verify this is intentional"))
        elif parsed.price < parsed.cost:
            report.warnings.append(
                (record_id, f"Price ${parsed.price:.2f} is below cost ${parsed.cost:.2f}")
            )

        if kind == PACKAGES:
            if isinstance(record, dict) and 'featureIds' in record:
                report.warnings.append(
                    (record_id, "Retired featureIds field present - tier contents come from feature columns")
                )
            if not get_tier_columns(parsed.name):
                report.warnings.append(
                    (record_id, f"Tier name '{parsed.name}' maps to no feature column")
                )
        elif not parsed.image_url and not parsed.thumbnail_url:
            report.warnings.append((record_id, "No images set - consider adding visual content"))

    return report
