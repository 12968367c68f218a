import json
from datetime import date

import pytest

import beacon.config.settings as config_settings
from beacon.config import (
    AppConfig,
    CongressConfig,
    GeminiConfig,
    IngestionConfig,
    KafkaConfig,
    LockConfig,
    StorageConfig,
    estimate_current_congress,
    load_config,
    resolve_config_path,
    save_config,
)


@pytest.fixture(autouse=True)
def isolated_config_locations(tmp_path, monkeypatch):
    monkeypatch.setattr(
        config_settings,
        "_DEFAULT_CONFIG_LOCATIONS",
        (tmp_path / "beacon.json", tmp_path / "config" / "config.json"),
    )


def test_environment_values_are_coerced(monkeypatch):
    monkeypatch.setenv("BEACON_CONGRESS_PAGE_SIZE", "25")
    monkeypatch.setenv("BEACON_CONGRESS_TIMEOUT", "15.5")
    monkeypatch.setenv("BEACON_CONGRESS_ADDITIONAL_CONGRESSES", "117, 116")
    monkeypatch.setenv("BEACON_INGESTION_ENABLE_SUMMARIES", "false")
    monkeypatch.setenv("BEACON_KAFKA_PARTITIONS", "12")
    monkeypatch.setenv("BEACON_LOCK_REDIS_URL", "redis://cache:6379/0")

    config = load_config()

    assert config.congress.page_size == 25 and isinstance(config.congress.page_size, int)
    assert config.congress.timeout == pytest.approx(15.5)
    assert config.congress.additional_congresses == [117, 116]
    assert config.ingestion.enable_summaries is False
    assert config.kafka.partitions == 12
    assert config.lock.redis_url == "redis://cache:6379/0"


def test_defaults_match_service_conventions():
    config = load_config()

    assert config.kafka.topic == "official-accountability-events"
    assert config.kafka.partitions == 6
    assert config.ingestion.lock_namespace == "roster-sync"
    assert config.ingestion.attendance_history_limit == 12
    assert config.lock.redis_url is None


def test_invalid_boolean_environment_value_raises(monkeypatch):
    monkeypatch.setenv("BEACON_STORAGE_ECHO_SQL", "definitely")

    with pytest.raises(ValueError):
        load_config()


def test_file_values_are_loaded_and_environment_wins(tmp_path, monkeypatch):
    target = tmp_path / "explicit.json"
    target.write_text(
        json.dumps({"congress": {"congress_number": 118, "api_key": "FROM-FILE"}}),
        encoding="utf8",
    )
    monkeypatch.setenv("BEACON_CONGRESS_API_KEY", "FROM-ENV")

    config = load_config(target)

    assert config.congress.congress_number == 118
    assert config.congress.api_key == "FROM-ENV"


def test_resolve_config_path_prefers_existing_file(tmp_path):
    first, second = config_settings._DEFAULT_CONFIG_LOCATIONS

    assert resolve_config_path(None) == second

    first.write_text("{}", encoding="utf8")
    assert resolve_config_path(None) == first
    explicit = tmp_path / "other.json"
    assert resolve_config_path(explicit) == explicit


def test_save_config_writes_json(tmp_path):
    target = tmp_path / "settings" / "beacon.json"
    config = AppConfig(
        congress=CongressConfig(api_key="ABC123", page_size=25, additional_congresses=[117]),
        ingestion=IngestionConfig(),
        lock=LockConfig(),
        kafka=KafkaConfig(enabled=False),
        gemini=GeminiConfig(api_key=None, model="gemini-demo"),
        storage=StorageConfig(database_url="sqlite:///demo.db", echo_sql=True),
    )

    saved_path = save_config(config, target)

    assert saved_path == target
    data = json.loads(target.read_text(encoding="utf8"))
    assert data["congress"]["api_key"] == "ABC123"
    assert data["congress"]["additional_congresses"] == [117]
    assert data["kafka"]["enabled"] is False
    assert data["gemini"]["model"] == "gemini-demo"
    assert data["storage"]["echo_sql"] is True


def test_roster_congresses_orders_and_deduplicates():
    config = CongressConfig(congress_number=118, additional_congresses=[119, 117, 118, 0, -1])

    assert config.roster_congresses() == [117, 118, 119]


def test_roster_congresses_falls_back_to_estimate():
    config = CongressConfig()

    assert config.roster_congresses(date(2025, 6, 1)) == [119]


@pytest.mark.parametrize(
    ("today", "expected"),
    [
        (date(2025, 1, 2), 118),
        (date(2025, 1, 3), 119),
        (date(2026, 10, 17), 119),
        (date(2027, 1, 3), 120),
    ],
)
def test_estimate_current_congress(today, expected):
    assert estimate_current_congress(today) == expected
