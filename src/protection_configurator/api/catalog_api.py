"""
Catalog API - FastAPI router for the storefront and the admin board.
"""
import math
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..engine.feature_ordering import (
    MAX_COLUMN,
    MIN_COLUMN,
    UNASSIGNED,
    column_order_value,
    get_popular_addons,
    group_features_by_column,
    is_curated_option,
    position_of,
    select_main_page_addons,
    sort_packages_for_display,
)
from ..engine.models import Pick2Config
from ..engine.pricing import calculate_summary, gross_margin, has_pricing_overrides
from ..engine.validation import parse_price_overrides
from ..services.catalog_store import BatchCommitError, CatalogStoreError
from ..services.telemetry import Pick2Event
from .state import AppState, get_state

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


# Pydantic models for API
class FeatureResponse(BaseModel):
    """A feature or a la carte option as shown to the client."""
    id: str
    name: str
    description: str
    points: list[str]
    use_cases: list[str]
    price: float
    cost: float
    warranty: Optional[str] = None
    column: Optional[int] = None
    position: Optional[int] = None
    connector: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    is_new: Optional[bool] = None


class PackageResponse(BaseModel):
    """Response model for a package with its derived features."""
    id: str
    name: str
    price: float
    cost: float
    tier_color: str
    is_recommended: bool
    features: list[FeatureResponse]


class PackagesResponse(BaseModel):
    source: str
    packages: list[PackageResponse]


class QuoteRequest(BaseModel):
    """Request model for pricing a selection."""
    package_id: Optional[str] = None
    option_ids: list[str] = []
    price_overrides: dict[str, dict] = {}
    pick2_item_ids: list[str] = []
    pick2_price: Optional[float] = None


class FeatureMove(BaseModel):
    feature_id: str
    to_column: Union[int, str]
    to_index: int


class PositionsRequest(BaseModel):
    """Either a whole board (bucket -> ordered ids) or a single move."""
    board: Optional[dict[str, list[str]]] = None
    move: Optional[FeatureMove] = None


class RecommendedRequest(BaseModel):
    package_id: Optional[str] = None


class Pick2EventRequest(BaseModel):
    event_name: str
    count_selected: int
    page: str
    item_id: Optional[str] = None
    preset_label: Optional[str] = None


def _item_response(item) -> FeatureResponse:
    return FeatureResponse(**item.__dict__)


def _package_response(package) -> PackageResponse:
    data = dict(package.__dict__)
    data['features'] = [_item_response(f) for f in package.features]
    return PackageResponse(**data)


def _parse_bucket(value):
    """'unassigned' or a column 1..4 (int or numeric string)."""
    if isinstance(value, str):
        if value.strip().lower() == UNASSIGNED:
            return UNASSIGNED
        try:
            value = int(value)
        except ValueError:
            raise ValueError(f"Unknown column '{value}'")
    if isinstance(value, bool) or not MIN_COLUMN <= value <= MAX_COLUMN:
        raise ValueError(f"Unknown column '{value}'")
    return value


def _store_error(e: CatalogStoreError) -> HTTPException:
    detail = {"error": str(e)}
    if isinstance(e, BatchCommitError):
        detail.update(
            committed_chunks=e.committed_chunks,
            total_chunks=e.total_chunks,
            failed_chunk=e.failed_chunk,
        )
    return HTTPException(status_code=503, detail=detail)


# Endpoints

@router.get("/packages", response_model=PackagesResponse)
async def list_packages(state: AppState = Depends(get_state)):
    """Packages in display order (Elite, Platinum, Gold) with derived features."""
    snapshot = await state.get_catalog()
    return PackagesResponse(
        source=snapshot.source,
        packages=[_package_response(p) for p in sort_packages_for_display(snapshot.packages)],
    )


@router.get("/features/board", response_model=dict[str, list[FeatureResponse]])
async def get_feature_board(state: AppState = Depends(get_state)):
    """Features grouped by column for the admin board."""
    snapshot = await state.get_catalog()
    grouped = group_features_by_column(snapshot.features)
    return {str(bucket): [_item_response(f) for f in items] for bucket, items in grouped.items()}


@router.get("/addons/popular", response_model=list[FeatureResponse])
async def list_popular_addons(state: AppState = Depends(get_state)):
    snapshot = await state.get_catalog()
    return [_item_response(f) for f in get_popular_addons(snapshot.features)]


@router.get("/ala-carte", response_model=list[FeatureResponse])
async def list_ala_carte(main_page: bool = False, state: AppState = Depends(get_state)):
    """Published a la carte options; `main_page` restricts to the configured add-on ids."""
    snapshot = await state.get_catalog()
    if main_page:
        options = select_main_page_addons(snapshot.ala_carte_options, state.settings.main_page_addon_ids)
    else:
        options = sorted(
            (o for o in snapshot.ala_carte_options if is_curated_option(o)),
            key=lambda o: (
                column_order_value(o.column),
                math.inf if position_of(o) is None else position_of(o),
                o.id,
            ),
        )
    return [_item_response(o) for o in options]


@router.post("/quote")
async def quote(request: QuoteRequest, state: AppState = Depends(get_state)):
    """Price a package plus a la carte selection."""
    snapshot = await state.get_catalog()

    package = None
    if request.package_id is not None:
        package = next((p for p in snapshot.packages if p.id == request.package_id), None)
        if package is None:
            raise HTTPException(status_code=404, detail=f"Package '{request.package_id}' not found")

    options_by_id = {o.id: o for o in snapshot.ala_carte_options}
    missing = [i for i in request.option_ids + request.pick2_item_ids if i not in options_by_id]
    if missing:
        raise HTTPException(status_code=404, detail=f"Unknown a la carte option(s): {', '.join(missing)}")

    overlap = sorted(set(request.option_ids) & set(request.pick2_item_ids))
    if overlap:
        raise HTTPException(
            status_code=400,
            detail=f"Option(s) selected both individually and in the pick-2 bundle: {', '.join(overlap)}",
        )

    overrides = parse_price_overrides(request.price_overrides)
    pick2 = None
    if request.pick2_price is not None:
        pick2 = Pick2Config(enabled=True, price=request.pick2_price)

    summary = calculate_summary(
        package=package,
        options=[options_by_id[i] for i in request.option_ids],
        overrides=overrides,
        pick2=pick2,
        pick2_items=[options_by_id[i] for i in request.pick2_item_ids],
    )
    result = summary.to_dict()
    result["gross_margin"] = gross_margin(summary)
    result["has_overrides"] = has_pricing_overrides(overrides)
    result["source"] = snapshot.source
    return result


@router.put("/features/positions")
async def update_feature_positions(request: PositionsRequest, state: AppState = Depends(get_state)):
    """Persist a reordered board, or apply a single drag-and-drop move."""
    service = state.catalog_service
    try:
        if request.move is not None:
            updates = await service.move_feature(
                request.move.feature_id,
                _parse_bucket(request.move.to_column),
                request.move.to_index,
            )
        elif request.board is not None:
            board = {}
            for key, ids in request.board.items():
                board.setdefault(_parse_bucket(key), []).extend(ids)
            updates = await service.reorder_feature_board(board)
        else:
            raise HTTPException(status_code=400, detail="Provide either 'board' or 'move'")
    except ValueError as e:
        status = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status, detail=str(e))
    except CatalogStoreError as e:
        raise _store_error(e)

    await state.reload()
    return {"success": True, "updated": len(updates)}


@router.put("/packages/recommended")
async def set_recommended(request: RecommendedRequest, state: AppState = Depends(get_state)):
    """Mark one package as recommended, or clear the flag with a null id."""
    try:
        await state.catalog_service.set_recommended_package(request.package_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CatalogStoreError as e:
        raise _store_error(e)

    await state.reload()
    return {"success": True, "package_id": request.package_id}


@router.post("/reload")
async def reload_catalog(state: AppState = Depends(get_state)):
    """Re-read the catalog from the document store."""
    snapshot = await state.reload()
    return {
        "source": snapshot.source,
        "packages": len(snapshot.packages),
        "features": len(snapshot.features),
        "ala_carte_options": len(snapshot.ala_carte_options),
    }


@router.post("/telemetry/pick2")
async def record_pick2_event(request: Pick2EventRequest, state: AppState = Depends(get_state)):
    recorded = await state.telemetry.log_pick2_event(
        request.event_name,
        Pick2Event(
            count_selected=request.count_selected,
            page=request.page,
            item_id=request.item_id,
            preset_label=request.preset_label,
        ),
    )
    return {"recorded": recorded}
