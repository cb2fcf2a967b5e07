"""Morph Configuration Tests — CONF-001 through CONF-004."""

import logging

from morph.config import MorphConfig, load_config, find_config


class TestDefaults:
    """CONF-001: No config file means defaults."""

    def test_defaults(self, tmp_path):
        config = load_config(start_dir=str(tmp_path))
        assert config == MorphConfig()
        assert config.validate_ghosts is True
        assert config.verify_ensures is False
        assert config.format == "text"
        assert config.recursion_limit == 10000


class TestFormats:
    """CONF-002: YAML and JSON files."""

    def test_yaml(self, tmp_path):
        (tmp_path / ".morphrc.yml").write_text(
            "validate_ghosts: false\nverify_ensures: true\nlog_level: info\nformat: json\nrecursion_limit: 500\n"
        )
        config = load_config(start_dir=str(tmp_path))
        assert config.validate_ghosts is False
        assert config.verify_ensures is True
        assert config.log_level == "INFO"
        assert config.format == "json"
        assert config.recursion_limit == 500

    def test_json(self, tmp_path):
        path = tmp_path / "morph.config.json"
        path.write_text('{"check_before_run": false}')
        config = load_config(str(path))
        assert config.check_before_run is False

    def test_unknown_keys_and_bad_values_ignored(self, tmp_path):
        path = tmp_path / ".morphrc.yml"
        path.write_text("colour: blue\nformat: xml\n")
        config = load_config(str(path))
        assert config.format == "text"

    def test_bad_recursion_limit(self, tmp_path, caplog):
        path = tmp_path / ".morphrc.yml"
        path.write_text("recursion_limit: lots\n")
        with caplog.at_level(logging.WARNING, logger="morph.config"):
            config = load_config(str(path))
        assert config.recursion_limit == 10000
        assert "recursion_limit" in caplog.text


class TestDiscovery:
    """CONF-003: Config files are found by walking up."""

    def test_walks_up(self, tmp_path):
        (tmp_path / ".morphrc.yml").write_text("format: json\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(str(nested)) == str(tmp_path / ".morphrc.yml")
        assert load_config(start_dir=str(nested)).format == "json"

    def test_priority_order(self, tmp_path):
        (tmp_path / "morph.config.json").write_text("{}")
        (tmp_path / ".morphrc.yaml").write_text("format: json\n")
        assert find_config(str(tmp_path)) == str(tmp_path / ".morphrc.yaml")

    def test_nearest_wins(self, tmp_path):
        (tmp_path / ".morphrc.yml").write_text("format: json\n")
        inner = tmp_path / "inner"
        inner.mkdir()
        (inner / ".morphrc.json").write_text('{"format": "text"}')
        assert load_config(start_dir=str(inner)).format == "text"


class TestMalformed:
    """CONF-004: Unreadable or malformed files fall back to defaults."""

    def test_malformed_yaml(self, tmp_path, caplog):
        path = tmp_path / ".morphrc.yml"
        path.write_text("format: [unclosed\n")
        with caplog.at_level(logging.WARNING, logger="morph.config"):
            assert load_config(str(path)) == MorphConfig()
        assert "malformed" in caplog.text

    def test_malformed_json(self, tmp_path):
        path = tmp_path / ".morphrc.json"
        path.write_text("{not json")
        assert load_config(str(path)) == MorphConfig()

    def test_non_mapping(self, tmp_path):
        path = tmp_path / ".morphrc.yml"
        path.write_text("- a\n- b\n")
        assert load_config(str(path)) == MorphConfig()

    def test_missing_explicit_path(self, tmp_path):
        assert load_config(str(tmp_path / "absent.yml")) == MorphConfig()
