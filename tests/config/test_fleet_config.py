"""Tests for YAML configuration (fleet_config)."""

from decimal import Decimal

import pytest

from fleet_config import DEFAULT_CONFIG_PATH, get_active_config
from fleet_config.bridges import build_database, build_productivity_rule
from fleet_config.loader import compute_checksum, parse_config


def _write(tmp_path, text):
    path = tmp_path / "fleet.yaml"
    path.write_text(text)
    return path


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    monkeypatch.delenv("FLEET_CONFIG_PATH", raising=False)
    monkeypatch.delenv("FLEET_DATABASE_URL", raising=False)


class TestDefaultConfig:
    def test_packaged_defaults(self):
        """The packaged YAML supplies every default."""
        config = get_active_config()

        assert config.source == str(DEFAULT_CONFIG_PATH)
        assert config.database.url == "sqlite:///fleet.db"
        assert config.database.busy_timeout_seconds == 30.0
        assert config.logging.level == "INFO"
        assert config.reporting.productivity_threshold == Decimal("30000")
        assert config.reporting.profit_label == "Profit"
        assert config.reporting.loss_label == "Loss"
        assert config.fleet.default_truck_status == "Available"
        assert config.checksum

    def test_config_is_frozen(self):
        """Loaded configuration cannot be mutated."""
        config = get_active_config()
        with pytest.raises(AttributeError):
            config.database = None


class TestOverrides:
    def test_explicit_path(self, tmp_path):
        """An explicit path replaces the packaged file."""
        path = _write(
            tmp_path,
            "database:\n  url: sqlite:///other.db\n"
            "reporting:\n  productivity_threshold: 500\n  profit_label: Lucro\n",
        )
        config = get_active_config(path)

        assert config.database.url == "sqlite:///other.db"
        assert config.reporting.productivity_threshold == Decimal("500")
        assert config.reporting.profit_label == "Lucro"
        assert config.reporting.loss_label == "Loss"

    def test_path_from_environment(self, tmp_path, monkeypatch):
        """FLEET_CONFIG_PATH selects the configuration file."""
        path = _write(tmp_path, "database:\n  url: sqlite:///env.db\n")
        monkeypatch.setenv("FLEET_CONFIG_PATH", str(path))
        assert get_active_config().database.url == "sqlite:///env.db"

    def test_database_url_from_environment(self, monkeypatch):
        """FLEET_DATABASE_URL overrides the configured URL."""
        monkeypatch.setenv("FLEET_DATABASE_URL", "sqlite:///override.db")
        assert get_active_config().database.url == "sqlite:///override.db"

    def test_missing_file(self, tmp_path):
        """A missing configuration file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")


class TestValidation:
    @pytest.mark.parametrize(
        "data,fragment",
        [
            ({}, "database.url"),
            ({"database": {"url": ""}}, "database.url"),
            ({"database": {"url": "sqlite://", "echo": "yes"}}, "echo"),
            ({"database": {"url": "sqlite://", "pool_size": -1}}, "pool_size"),
            ({"database": {"url": "sqlite://", "busy_timeout_seconds": "x"}}, "busy_timeout_seconds"),
            ({"database": {"url": "sqlite://"}, "logging": {"level": "LOUD"}}, "logging.level"),
            (
                {"database": {"url": "sqlite://"}, "reporting": {"productivity_threshold": "lots"}},
                "productivity_threshold",
            ),
            ({"database": {"url": "sqlite://"}, "fleet": {"default_truck_status": ""}}, "default_truck_status"),
            ({"database": "sqlite://"}, "database"),
        ],
    )
    def test_invalid_values(self, data, fragment):
        """Invalid sections are rejected with the offending key named."""
        with pytest.raises(ValueError) as exc_info:
            parse_config(data)
        assert fragment in str(exc_info.value)

    def test_top_level_must_be_mapping(self, tmp_path):
        """The document must be a mapping."""
        with pytest.raises(ValueError):
            get_active_config(_write(tmp_path, "- a\n- b\n"))

    def test_checksum_is_deterministic(self):
        """The checksum ignores key order and tracks content."""
        a = {"database": {"url": "sqlite://"}, "logging": {"level": "INFO"}}
        b = {"logging": {"level": "INFO"}, "database": {"url": "sqlite://"}}
        assert compute_checksum(a) == compute_checksum(b)
        assert compute_checksum(a) != compute_checksum({"database": {"url": "x"}})


class TestBridges:
    def test_productivity_rule(self):
        """The reporting section builds a ProductivityRule."""
        config = parse_config(
            {
                "database": {"url": "sqlite://"},
                "reporting": {"productivity_threshold": "100", "loss_label": "Prejuizo"},
            }
        )
        rule = build_productivity_rule(config)
        assert rule.classify(Decimal("99.99")) == "Prejuizo"
        assert rule.classify(Decimal("100")) == "Profit"

    def test_database(self, tmp_path):
        """The database section builds a FleetDatabase."""
        config = parse_config({"database": {"url": f"sqlite:///{tmp_path / 'b.db'}"}})
        database = build_database(config)
        try:
            assert database.is_sqlite
            assert database.ping() is True
        finally:
            database.close()
