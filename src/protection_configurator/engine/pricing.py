"""
Pricing/Summary Calculator - totals for a customer's selection.

Price overrides are an overlay applied at calculation time; stored records are
never changed. Totals accumulate left to right in display order at full float
precision. Rounding happens only in `format_currency`.
"""
from dataclasses import asdict, dataclass, field, replace
from typing import Iterable, Optional

from .feature_ordering import is_curated_option
from .models import Pick2Config, PriceOverride


def effective_price(item, overrides: Optional[dict] = None) -> float:
    """Override price if one is set for the item, else the stored price."""
    override = (overrides or {}).get(item.id)
    if override is not None and override.price is not None:
        return override.price
    return item.price


def effective_cost(item, overrides: Optional[dict] = None) -> float:
    """Override cost if one is set for the item, else the stored cost."""
    override = (overrides or {}).get(item.id)
    if override is not None and override.cost is not None:
        return override.cost
    return item.cost


def apply_overrides(items: Iterable, overrides: Optional[dict] = None) -> list:
    """Return copies of the items with overridden price/cost applied."""
    result = []
    for item in items:
        if item.id in (overrides or {}):
            item = replace(
                item,
                price=effective_price(item, overrides),
                cost=effective_cost(item, overrides),
            )
        result.append(item)
    return result


def has_pricing_overrides(overrides: Optional[dict]) -> bool:
    """True if any entry actually overrides a price or a cost."""
    return any(
        isinstance(o, PriceOverride) and (o.price is not None or o.cost is not None)
        for o in (overrides or {}).values()
    )


def format_currency(value: float) -> str:
    """Format as US dollars with two decimals, e.g. "$3,538.00"."""
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"


@dataclass
class SummaryLine:
    """A single priced line of a quote summary."""
    item_id: str
    name: str
    kind: str  # "package", "addon" or "pick2"
    price: float
    cost: float
    overridden: bool = False


@dataclass
class QuoteSummary:
    """Totals for a package plus a la carte selection."""
    total_price: float = 0.0
    total_cost: float = 0.0
    lines: list[SummaryLine] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_line(self, line: SummaryLine):
        self.lines.append(line)
        self.total_price += line.price
        self.total_cost += line.cost
        if line.price < line.cost:
            self.add_warning(
                f"{line.name} is priced below cost "
                f"({format_currency(line.price)} < {format_currency(line.cost)})"
            )

    def add_warning(self, warning: str):
        if warning not in self.warnings:
            self.warnings.append(warning)

    @property
    def formatted_total(self) -> str:
        return format_currency(self.total_price)

    def to_dict(self) -> dict:
        return {
            "total_price": self.total_price,
            "total_cost": self.total_cost,
            "formatted_total": self.formatted_total,
            "lines": [asdict(line) for line in self.lines],
            "warnings": list(self.warnings),
        }


def pick2_bundle_active(config: Optional[Pick2Config], selected: list) -> bool:
    return bool(config and config.enabled and len(selected) == config.max_selections)


def pick2_summary_text(config: Optional[Pick2Config], selected: list) -> Optional[str]:
    """Progress text for the pick-2 lane: "1/2" until complete, then the item names."""
    if not config or not config.enabled:
        return None
    if len(selected) < config.max_selections:
        return f"{len(selected)}/{config.max_selections}"
    return " + ".join(item.name for item in selected)


def calculate_summary(
    package=None,
    options: Iterable = (),
    overrides: Optional[dict] = None,
    pick2: Optional[Pick2Config] = None,
    pick2_items: Iterable = (),
) -> QuoteSummary:
    """
    Sum the selected package and a la carte options.

    Only published options count. A pick-2 bundle adds its fixed price and
    the summed cost of its items once exactly `max_selections` published
    items are chosen. An item already priced individually is not counted
    again in the bundle.
    """
    summary = QuoteSummary()
    overrides = overrides or {}

    if package is not None:
        summary.add_line(SummaryLine(
            item_id=package.id,
            name=package.name,
            kind="package",
            price=effective_price(package, overrides),
            cost=effective_cost(package, overrides),
            overridden=package.id in overrides,
        ))

    selected_ids = set()
    for option in options:
        if not is_curated_option(option):
            continue
        selected_ids.add(option.id)
        summary.add_line(SummaryLine(
            item_id=option.id,
            name=option.name,
            kind="addon",
            price=effective_price(option, overrides),
            cost=effective_cost(option, overrides),
            overridden=option.id in overrides,
        ))

    chosen = [i for i in pick2_items if is_curated_option(i) and i.id not in selected_ids]
    if pick2_bundle_active(pick2, chosen):
        bundle_cost = 0.0
        for item in chosen:
            bundle_cost += effective_cost(item, overrides)
        summary.add_line(SummaryLine(
            item_id="pick2",
            name=pick2_summary_text(pick2, chosen),
            kind="pick2",
            price=pick2.price,
            cost=bundle_cost,
        ))

    return summary


def gross_margin(summary: QuoteSummary) -> float:
    """Total price minus total cost."""
    return summary.total_price - summary.total_cost
