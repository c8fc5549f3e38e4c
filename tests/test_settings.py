from protection_configurator.config.settings import DEFAULT_MAIN_PAGE_ADDON_IDS, Settings


def test_defaults_without_environment(tmp_path):
    settings = Settings.load(project_root=tmp_path, environ={})
    assert settings.mongo_url is None
    assert settings.db_name == "protection_configurator"
    assert settings.batch_limit == 500
    assert settings.max_retries == 3
    assert settings.main_page_addon_ids == DEFAULT_MAIN_PAGE_ADDON_IDS
    assert settings.telemetry.enabled is False


def test_environment_overrides(tmp_path):
    settings = Settings.load(project_root=tmp_path, environ={
        "MONGO_URL": "mongodb://localhost:27017",
        "DB_NAME": "dealer",
        "STORE_TIMEOUT_SECONDS": "2.5",
        "MAIN_PAGE_ADDON_IDS": "evernew, doorcups,,",
        "TELEMETRY_ENABLED": "true",
        "TELEMETRY_SAMPLE_RATE": "not-a-number",
    })
    assert settings.mongo_url == "mongodb://localhost:27017"
    assert settings.db_name == "dealer"
    assert settings.request_timeout_seconds == 2.5
    assert settings.main_page_addon_ids == ("evernew", "doorcups")
    assert settings.telemetry.enabled is True
    assert settings.telemetry.sample_rate == 1.0
