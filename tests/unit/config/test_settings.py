"""
Unit tests for parse options and the settings loader.
"""

import re

import pytest
from pydantic import ValidationError
from quarryreader.config.config import (
    DEFAULT_TAG_WEIGHTS,
    HeuristicsConfig,
    LazySettings,
    MonitoringConfig,
    ParseOptions,
    Settings,
    find_config_file,
)


@pytest.fixture
def fresh_lazy_settings():
    LazySettings.reset()
    yield LazySettings()
    LazySettings.reset()


class TestParseOptions:
    def test_aliases_and_field_names(self):
        by_alias = ParseOptions.model_validate({"nbTopCandidates": 3, "maxElemsToParse": 10})
        by_name = ParseOptions(nb_top_candidates=3, max_elems_to_parse=10)
        assert by_alias == by_name

    def test_frozen(self):
        options = ParseOptions()
        with pytest.raises(ValidationError):
            options.debug = True

    def test_classes_string_is_split(self):
        options = ParseOptions.model_validate({"classesToPreserve": "caption  lead"})
        assert options.classes_to_preserve == frozenset({"caption", "lead"})

    def test_video_regex_compiled(self):
        options = ParseOptions.model_validate({"allowedVideoRegex": r".*mycustomdomain\.com.*"})
        assert isinstance(options.allowed_video_regex, re.Pattern)
        assert options.allowed_video_regex.search("https://mycustomdomain.com/embed")

    @pytest.mark.parametrize("field", ["nbTopCandidates", "maxElemsToParse", "charThreshold"])
    def test_negative_counts_rejected(self, field):
        with pytest.raises(ValidationError):
            ParseOptions.model_validate({field: -1})


class TestHeuristicsConfig:
    def test_score_divider(self):
        heuristics = HeuristicsConfig()
        assert [heuristics.score_divider(level) for level in range(4)] == [1, 2, 6, 9]

    def test_sibling_min_paragraph_length(self):
        assert HeuristicsConfig().sibling_min_paragraph_length(500) == pytest.approx(80)

    def test_tag_weights_are_independent_copies(self):
        heuristics = HeuristicsConfig()
        assert heuristics.tag_weights == DEFAULT_TAG_WEIGHTS
        assert heuristics.tag_weights is not DEFAULT_TAG_WEIGHTS


class TestMonitoringConfig:
    def test_log_file_parent_created(self, tmp_path):
        log_file = tmp_path / "logs" / "reader.log"
        config = MonitoringConfig(log_file=log_file)
        assert config.log_file == str(log_file)
        assert log_file.parent.is_dir()


class TestSettings:
    def test_from_yaml(self, tmp_path):
        path = tmp_path / "quarryreader.yaml"
        path.write_text(
            "parse:\n"
            "  charThreshold: 120\n"
            "  classesToPreserve: caption\n"
            "heuristics:\n"
            "  min_paragraph_length: 40\n"
            "monitoring:\n"
            "  log_level: DEBUG\n",
            encoding="utf-8",
        )
        loaded = Settings.from_yaml(path)
        assert loaded.parse.char_threshold == 120
        assert loaded.parse.classes_to_preserve == frozenset({"caption"})
        assert loaded.heuristics.min_paragraph_length == 40
        assert loaded.monitoring.log_level == "DEBUG"

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert Settings.from_yaml(path).parse == ParseOptions()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")

    def test_invalid_values_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("parse:\n  nbTopCandidates: -2\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            Settings.from_yaml(path)

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("QUARRYREADER_MONITORING__LOG_LEVEL", "WARNING")
        assert Settings().monitoring.log_level == "WARNING"


class TestLazySettings:
    def test_find_config_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert find_config_file() is None
        (tmp_path / "quarryreader.yml").write_text("{}", encoding="utf-8")
        assert find_config_file() == tmp_path / "quarryreader.yml"

    def test_loads_config_from_working_directory(self, tmp_path, monkeypatch, fresh_lazy_settings):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "quarryreader.yaml").write_text("parse:\n  charThreshold: 42\n", encoding="utf-8")
        assert fresh_lazy_settings.parse.char_threshold == 42

    def test_falls_back_to_defaults_on_invalid_file(self, tmp_path, monkeypatch, fresh_lazy_settings):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "quarryreader.yaml").write_text("parse:\n  nbTopCandidates: -1\n", encoding="utf-8")
        assert fresh_lazy_settings.parse.nb_top_candidates == 5

    def test_loaded_once_until_reset(self, tmp_path, monkeypatch, fresh_lazy_settings):
        monkeypatch.chdir(tmp_path)
        assert fresh_lazy_settings.parse.char_threshold == 500
        (tmp_path / "quarryreader.yaml").write_text("parse:\n  charThreshold: 42\n", encoding="utf-8")
        assert fresh_lazy_settings.parse.char_threshold == 500
        LazySettings.reset()
        assert fresh_lazy_settings.parse.char_threshold == 42
