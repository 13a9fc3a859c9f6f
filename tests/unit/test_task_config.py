"""Tests for task configuration models: tagged union over strategies."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from derivcast.config import settings
from derivcast.models.task_config import (
    CONFIG_ONLY_KEYS,
    DEFAULT_PATH_TEMPLATE,
    DEFAULT_QUEUE,
    TASK_CONFIG_ADAPTER,
    FieldMappingConfig,
    FieldToFieldConfig,
    SemanticTagConfig,
    Strategy,
    default_configuration,
)


class TestStrategySelection:
    def test_semantic_tag_selected_by_tag(self, make_semantic_config):
        config = TASK_CONFIG_ADAPTER.validate_python(make_semantic_config())
        assert isinstance(config, SemanticTagConfig)
        assert config.strategy == Strategy.SEMANTIC_TAG.value

    def test_field_mapping_selected_by_tag(self, make_field_config):
        config = TASK_CONFIG_ADAPTER.validate_python(make_field_config())
        assert isinstance(config, FieldMappingConfig)
        assert config.bundle == "tn"

    def test_field_to_field_selected_by_tag(self):
        config = TASK_CONFIG_ADAPTER.validate_python(
            {"strategy": "field_to_field", "source": "field_media", "destination": "field_thumbnail"}
        )
        assert isinstance(config, FieldToFieldConfig)

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValidationError):
            TASK_CONFIG_ADAPTER.validate_python({"strategy": "by_magic"})

    def test_fields_of_other_strategy_rejected(self, make_field_config):
        raw = make_field_config(source_term_uri="http://pcdm.org/use#ServiceFile")
        with pytest.raises(ValidationError):
            TASK_CONFIG_ADAPTER.validate_python(raw)


class TestSemanticTagConfig:
    def test_defaults(self):
        config = SemanticTagConfig(source_term_uri="a", derivative_term_uri="b")
        assert config.queue == DEFAULT_QUEUE
        assert config.event == "Generate Derivative"
        assert config.mimetype == "image/jpeg"
        assert config.scheme == "public"
        assert config.path == DEFAULT_PATH_TEMPLATE

    def test_path_trimmed_of_separators(self):
        config = SemanticTagConfig(
            source_term_uri="a", derivative_term_uri="b", path="/thumbs/[node:nid].jpg\\"
        )
        assert config.path == "thumbs/[node:nid].jpg"

    def test_blank_queue_rejected(self):
        with pytest.raises(ValidationError):
            SemanticTagConfig(source_term_uri="a", derivative_term_uri="b", queue="   ")

    def test_frozen(self):
        config = SemanticTagConfig(source_term_uri="a", derivative_term_uri="b")
        with pytest.raises(ValidationError):
            config.queue = "other"  # type: ignore[misc]

    def test_scheme_default_follows_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "default_scheme", "private")
        config = SemanticTagConfig(source_term_uri="a", derivative_term_uri="b")
        assert config.scheme == "private"

    def test_mimetype_whitespace_stripped(self):
        config = SemanticTagConfig(
            source_term_uri="a", derivative_term_uri="b", mimetype="\timage/png "
        )
        assert config.mimetype == "image/png"


class TestDefaultConfiguration:
    def test_semantic_tag_blanks_required_fields(self):
        data = default_configuration(Strategy.SEMANTIC_TAG)
        assert data["strategy"] == "semantic_tag"
        assert data["source_term_uri"] == ""
        assert data["derivative_term_uri"] == ""
        assert data["path"] == DEFAULT_PATH_TEMPLATE
        assert data["queue"] == DEFAULT_QUEUE

    def test_scheme_taken_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "default_scheme", "fedora")
        assert default_configuration(Strategy.SEMANTIC_TAG)["scheme"] == "fedora"

    def test_field_mapping_has_bundle(self):
        data = default_configuration(Strategy.FIELD_MAPPING)
        assert data["bundle"] == ""
        assert "path" not in data

    def test_config_only_keys_cover_semantic_selectors(self):
        assert {"source_term_uri", "derivative_term_uri", "scheme", "path"} <= CONFIG_ONLY_KEYS
        assert "mimetype" not in CONFIG_ONLY_KEYS
        assert "args" not in CONFIG_ONLY_KEYS
