"""Tests for lxquery.shared.config."""

import json

import pytest

from lxquery.shared.config import (
    ConfigValidationError,
    OutputConfig,
    ParsingConfig,
    QueryConfig,
)


class TestComponentConfigs:
    """Test validation of the component dataclasses."""

    def test_defaults(self):
        """Test default values."""
        parsing = ParsingConfig()
        assert parsing.content_type == "auto"
        assert parsing.replace_entities is False
        assert parsing.ignore_parser_warnings is False
        assert OutputConfig().encoding == "UTF-8"

    def test_invalid_content_type(self):
        """Test unknown content types are rejected."""
        with pytest.raises(ValueError, match="content_type"):
            ParsingConfig(content_type="json")

    def test_reserved_parser_options(self):
        """Test parser options cannot shadow dedicated settings."""
        with pytest.raises(ValueError, match="recover"):
            ParsingConfig(parser_options={"recover": True})

    def test_unknown_encoding(self):
        """Test encodings are checked against the codec registry."""
        with pytest.raises(ValueError, match="Unknown encoding"):
            OutputConfig(encoding="no-such-codec")

    def test_frozen(self):
        """Test configurations are immutable."""
        config = QueryConfig()
        with pytest.raises(AttributeError):
            config.output = OutputConfig()


class TestQueryConfig:
    """Test QueryConfig overrides and conversions."""

    def test_override_flat_names(self):
        """Test flat option names reach the right component."""
        config = QueryConfig().override(encoding="ISO-8859-1", replace_entities=True)
        assert config.output.encoding == "ISO-8859-1"
        assert config.parsing.replace_entities is True

    def test_override_component_notation(self):
        """Test component__field notation."""
        config = QueryConfig().override(output__pretty_print=True, global__cursor="custom")
        assert config.output.pretty_print is True
        assert config.global_.cursor == "custom"

    def test_override_returns_new_instance(self):
        """Test overriding leaves the original untouched."""
        config = QueryConfig()
        changed = config.override(encoding="ISO-8859-1")
        assert config.output.encoding == "UTF-8"
        assert changed is not config

    def test_unknown_option_suggestions(self):
        """Test misspelt options produce suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            QueryConfig().override(encodng="UTF-8")
        assert exc_info.value.field_name == "encodng"
        assert "encoding" in exc_info.value.suggestions

    def test_wrong_component(self):
        """Test a field addressed through the wrong component is unknown."""
        with pytest.raises(ConfigValidationError):
            QueryConfig().override(parsing__encoding="UTF-8")

    def test_invalid_value(self):
        """Test invalid values surface as ConfigValidationError."""
        with pytest.raises(ConfigValidationError, match="content_type"):
            QueryConfig().override(content_type="yaml")

    def test_options_flat_view(self):
        """Test the flattened option mapping."""
        options = QueryConfig().override(strip_cdata=True).options()
        assert options["strip_cdata"] is True
        assert options["encoding"] == "UTF-8"
        assert options["cursor"] == "default"

    def test_dict_round_trip(self):
        """Test to_dict output is accepted by from_dict."""
        config = QueryConfig().override(encoding="ISO-8859-1", name="custom")
        restored = QueryConfig.from_dict(config.to_dict())
        assert restored == config

    def test_from_dict_flat(self):
        """Test a flat mapping of option names."""
        config = QueryConfig.from_dict({"ignore_parser_warnings": True})
        assert config.parsing.ignore_parser_warnings is True

    def test_from_dict_bad_section(self):
        """Test sections must be mappings."""
        with pytest.raises(ConfigValidationError, match="must be a mapping"):
            QueryConfig.from_dict({"parsing": "html"})

    def test_json(self):
        """Test JSON serialization."""
        config = QueryConfig.lenient()
        data = json.loads(config.to_json())
        assert data["name"] == "lenient"
        assert data["parsing"]["replace_entities"] is True
        assert QueryConfig.from_json(config.to_json()) == config

    def test_invalid_json(self):
        """Test malformed JSON is reported as a configuration error."""
        with pytest.raises(ConfigValidationError, match="Invalid configuration JSON"):
            QueryConfig.from_json("{not json")
        with pytest.raises(ConfigValidationError, match="must be an object"):
            QueryConfig.from_json("[1, 2]")

    def test_presets(self):
        """Test the preset factories."""
        html = QueryConfig.html_documents()
        assert html.parsing.content_type == "html"
        assert html.name == "html_documents"
        assert QueryConfig.lenient().parsing.ignore_parser_warnings is True
