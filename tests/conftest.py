import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from protection_configurator.config.settings import Settings, TelemetryConfig
from protection_configurator.services.catalog_store import InMemoryDocumentStore


def feature_record(id, name=None, column=None, position=None, **extra):
    """Raw store record for a feature, as the document store returns it."""
    record = {
        "id": id,
        "name": name or id.replace("-", " ").title(),
        "description": f"{id} description",
        "points": ["One point"],
        "price": 0,
        "cost": 100,
    }
    if column is not None:
        record["column"] = column
    if position is not None:
        record["position"] = position
    record.update(extra)
    return record


def option_record(id, price, cost=50, column=4, position=0, published=True, **extra):
    record = {
        "id": id,
        "name": id.replace("-", " ").title(),
        "description": f"{id} description",
        "points": [],
        "price": price,
        "cost": cost,
        "column": column,
        "position": position,
        "isPublished": published,
    }
    record.update(extra)
    return record


def package_record(id, name, price, cost, color="gray-400", **extra):
    record = {"id": id, "name": name, "price": price, "cost": cost, "tier_color": color}
    record.update(extra)
    return record


@pytest.fixture
def settings(tmp_path):
    """Settings with fast retries and no external store."""
    return Settings(
        project_root=tmp_path,
        retry_delay_seconds=0.0,
        request_timeout_seconds=5.0,
        telemetry=TelemetryConfig(enabled=True, sample_rate=1.0),
    )


@pytest.fixture
def catalog_records():
    return {
        "features": [
            feature_record("rustguard", "RustGuard Pro", column=1, position=0),
            feature_record("toughguard", "ToughGuard Premium", column=1, position=1, connector="OR"),
            feature_record("interior", "Interior Protection", column=2, position=0),
            feature_record("windshield", "Windshield Shield", column=3, position=0),
            feature_record("diamond", "Diamond Shield", column=4, position=1),
            feature_record("ceramic", "Ceramic Coat", column=4, position=0),
            feature_record("draft", "Draft Feature"),
        ],
        "ala_carte_options": [
            option_record("suntek-standard", 795, position=0),
            option_record("doorcups", 195, position=1),
            option_record("screen-defender", 149, position=2),
            option_record("hidden-option", 999, position=3, published=False),
        ],
        "packages": [
            package_record("pkg-gold", "Gold", 2399, 550, "yellow-400", featureIds=["rustguard"]),
            package_record("pkg-elite", "Elite", 3499, 900, isRecommended=False),
            package_record("pkg-platinum", "Platinum", 2899, 750, "blue-400", isRecommended=True),
        ],
    }


@pytest.fixture
def store(catalog_records):
    return InMemoryDocumentStore(catalog_records)
