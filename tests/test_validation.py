import logging

import pytest
from pydantic import ValidationError

from conftest import feature_record, option_record, package_record
from protection_configurator.engine.models import AlaCarteOption, Feature
from protection_configurator.engine.validation import (
    ALA_CARTE_OPTIONS,
    FEATURES,
    PACKAGES,
    PackageRecord,
    parse_customer_info,
    parse_price_overrides,
    parse_record,
    validate_records,
    verify_collection,
)


def test_valid_feature_record_maps_to_domain():
    record = feature_record(
        "rustguard", "RustGuard Pro", column=1, position=0,
        useCases=["Winter salt"], imageUrl="https://img.example.com/a.png", connector="OR",
    )
    [feature] = validate_records(FEATURES, [record])
    assert isinstance(feature, Feature)
    assert feature.use_cases == ("Winter salt",)
    assert feature.image_url == "https://img.example.com/a.png"
    assert feature.connector == "OR"
    assert feature.column == 1


def test_invalid_records_are_dropped_and_logged(caplog):
    records = [
        feature_record("good", column=1, position=0),
        feature_record("negative-price", price=-5),
        feature_record("bad-column", column=7),
        feature_record("bad-position", column=1, position=-1),
        feature_record("bad-connector", connector="XOR"),
        {"id": "no-name", "description": "x", "price": 0, "cost": 0},
        "not a dict",
    ]
    with caplog.at_level(logging.ERROR):
        valid = validate_records(FEATURES, records, context="features")
    assert [f.id for f in valid] == ["good"]
    assert "Validation error in features" in caplog.text
    assert "negative-price" in caplog.text


def test_empty_media_url_is_allowed_and_other_schemes_rejected():
    ok = feature_record("a", imageUrl="", videoUrl="http://video.example.com/v.mp4")
    bad = feature_record("b", thumbnailUrl="ftp://example.com/t.png")
    valid = validate_records(FEATURES, [ok, bad])
    assert [f.id for f in valid] == ["a"]
    assert valid[0].image_url is None


def test_price_must_be_a_number():
    with pytest.raises(ValidationError):
        parse_record(FEATURES, feature_record("a", price="100"))


def test_option_record_maps_publish_flags():
    [option] = validate_records(
        ALA_CARTE_OPTIONS, [option_record("evernew", 899, isNew=True, sourceFeatureId="f-1")]
    )
    assert isinstance(option, AlaCarteOption)
    assert option.is_new is True
    assert option.is_published is True
    assert option.source_feature_id == "f-1"


def test_package_record_ignores_feature_ids_and_folds_recommended():
    records = [
        package_record("p", "Platinum", 2899, 750, featureIds=["a", "b"], isRecommended=True),
        package_record("g", "Gold", 2399, 550, is_recommended=True),
        package_record("e", "Elite", 3499, 900),
    ]
    parsed = validate_records(PACKAGES, records)
    assert all(isinstance(p, PackageRecord) for p in parsed)
    tiers = [p.to_domain() for p in parsed]
    assert [t.is_recommended for t in tiers] == [True, True, False]
    assert all(t.features == () for t in tiers)


def test_package_requires_tier_color():
    assert validate_records(PACKAGES, [package_record("p", "Gold", 1, 1, color="")]) == []


def test_parse_price_overrides_drops_invalid_entries():
    overrides = parse_price_overrides({
        "pkg-gold": {"price": 1200},
        "doorcups": {"cost": 80.5},
        "broken": {"price": -1},
    })
    assert set(overrides) == {"pkg-gold", "doorcups"}
    assert overrides["pkg-gold"].price == 1200
    assert overrides["pkg-gold"].cost is None
    assert overrides["doorcups"].cost == 80.5
    assert parse_price_overrides(None) == {}


def test_parse_customer_info():
    info = parse_customer_info({"name": "Jane Doe", "year": "2024", "make": "Toyota", "model": "RAV4"})
    assert info.vehicle == "2024 Toyota RAV4"
    assert parse_customer_info({"name": "Jane", "year": "24", "make": "Toyota", "model": "RAV4"}) is None
    assert parse_customer_info(None) is None


def test_verify_collection_reports_errors_and_warnings():
    report = verify_collection(FEATURES, [
        feature_record("free", price=0, cost=0),
        feature_record("underwater", price=50, cost=100, imageUrl="https://example.com/i.png"),
        feature_record("broken", price=-1),
    ])
    assert (report.total, report.valid, report.invalid) == (3, 2, 1)
    assert not report.ok
    assert report.errors[0][0] == "broken"
    messages = dict()
    for record_id, message in report.warnings:
        messages.setdefault(record_id, []).append(message)
    assert any("$0" in m for m in messages["free"])
    assert any("below cost" in m for m in messages["underwater"])
    assert any("No images" in m for m in messages["free"])
    assert not any("No images" in m for m in messages["underwater"])


def test_verify_packages_flags_retired_feature_ids_and_unknown_tiers():
    report = verify_collection(PACKAGES, [
        package_record("gold", "Gold", 2399, 550, featureIds=[]),
        package_record("bronze", "Bronze", 999, 100),
    ])
    assert report.ok
    warned = {record_id for record_id, _ in report.warnings}
    assert warned == {"gold", "bronze"}
