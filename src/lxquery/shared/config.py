"""Configuration management for lxquery.

Configuration objects are frozen dataclasses. A :class:`QueryConfig` is
captured by every MatchSet when it is created and never changes afterwards;
new settings are obtained with :meth:`QueryConfig.override`, which returns a
fresh instance.
"""

import codecs
import difflib
import json
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import LxqueryError

CONTENT_TYPES = ("auto", "xml", "html")

HTML4_TRANSITIONAL_DOCTYPE = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01 Transitional//EN" '
    '"http://www.w3.org/TR/html4/loose.dtd">'
)


@dataclass(frozen=True)
class ParsingConfig:
    """Configuration for turning markup into documents and fragments."""

    content_type: str = "auto"  # auto, xml, html
    replace_entities: bool = False
    ignore_parser_warnings: bool = False
    strip_cdata: bool = False
    remove_blank_text: bool = False
    # Extra keyword arguments handed to lxml's XMLParser / HTMLParser
    parser_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate parsing configuration."""
        if self.content_type not in CONTENT_TYPES:
            raise ValueError(f"content_type must be one of {list(CONTENT_TYPES)}")
        if not isinstance(self.parser_options, Mapping):
            raise ValueError("parser_options must be a mapping")
        reserved = {"recover", "strip_cdata", "remove_blank_text"} & set(self.parser_options)
        if reserved:
            raise ValueError(
                f"parser_options may not set {sorted(reserved)}; use the dedicated options"
            )


@dataclass(frozen=True)
class OutputConfig:
    """Configuration for serialization."""

    encoding: str = "UTF-8"
    default_doctype: str = HTML4_TRANSITIONAL_DOCTYPE
    omit_xml_declaration: bool = False
    pretty_print: bool = False

    def __post_init__(self) -> None:
        """Validate output configuration."""
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {self.encoding}") from e


@dataclass(frozen=True)
class GlobalConfig:
    """Settings that apply across all components."""

    cursor: str = "default"
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if not self.cursor:
            raise ValueError("cursor must be a registered cursor name")


class ConfigError(LxqueryError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


_COMPONENTS = ("parsing", "output", "global_")


def _option_index() -> Dict[str, Tuple[str, str]]:
    """Map every flat option name to its (component, field) location."""
    index = {}
    for component, config_class in (
        ("parsing", ParsingConfig),
        ("output", OutputConfig),
        ("global_", GlobalConfig),
    ):
        for config_field in fields(config_class):
            index[config_field.name] = (component, config_field.name)
    return index


OPTION_FIELDS = _option_index()


@dataclass(frozen=True)
class QueryConfig:
    """Complete configuration captured by a MatchSet.

    Options can be addressed by their flat name (``encoding``,
    ``replace_entities``) or by ``component__field`` notation
    (``output__encoding``).
    """

    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.parsing.__post_init__()
            self.output.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    @staticmethod
    def locate(option: str) -> Tuple[str, str]:
        """Resolve an option name to its (component, field) location.

        Args:
            option: Flat option name or ``component__field``

        Returns:
            Tuple of component attribute and field name

        Raises:
            ConfigValidationError: If the option does not exist
        """
        if "__" in option:
            component, field_name = option.rsplit("__", 1)
            if component == "global":
                component = "global_"
            if component in _COMPONENTS and field_name in OPTION_FIELDS:
                if OPTION_FIELDS[field_name][0] == component:
                    return component, field_name
        elif option in OPTION_FIELDS:
            return OPTION_FIELDS[option]

        suggestions = difflib.get_close_matches(option, list(OPTION_FIELDS), n=3)
        raise ConfigValidationError(
            f"Unknown configuration option: {option}",
            field_name=option,
            suggestions=suggestions,
        )

    def override(self, **kwargs: Any) -> "QueryConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Option names (flat or ``component__field``) and values

        Returns:
            New QueryConfig instance with overrides applied

        Example:
            >>> config = QueryConfig()
            >>> config.override(encoding="ISO-8859-1").output.encoding
            'ISO-8859-1'
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        new_fields: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if key == "name":
                new_fields["name"] = value
                continue
            component, field_name = self.locate(key)
            if field_name == "parser_options":
                value = dict(value or {})
            nested_overrides.setdefault(component, {})[field_name] = value

        try:
            for component, overrides in nested_overrides.items():
                new_fields[component] = replace(getattr(self, component), **overrides)
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        return replace(self, **new_fields)

    def options(self) -> Dict[str, Any]:
        """Flatten the configuration into option-name/value pairs."""
        flat = {}
        for option, (component, field_name) in OPTION_FIELDS.items():
            value = getattr(getattr(self, component), field_name)
            flat[option] = dict(value) if isinstance(value, dict) else value
        return flat

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary representation of the configuration
        """
        result: Dict[str, Any] = {}
        for component in _COMPONENTS:
            config = getattr(self, component)
            result[component] = {
                f.name: (dict(getattr(config, f.name))
                         if isinstance(getattr(config, f.name), dict)
                         else getattr(config, f.name))
                for f in fields(config)
            }
        result["name"] = self.name
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryConfig":
        """Create configuration from dictionary.

        Accepts the nested layout produced by :meth:`to_dict` as well as a
        flat mapping of option names.

        Args:
            data: Dictionary containing configuration data

        Returns:
            QueryConfig instance created from dictionary
        """
        overrides: Dict[str, Any] = {}
        for key, value in data.items():
            if key in _COMPONENTS or key == "global":
                if not isinstance(value, Mapping):
                    raise ConfigValidationError(
                        f"Section {key} must be a mapping", field_name=key
                    )
                component = "global_" if key == "global" else key
                for field_name, field_value in value.items():
                    overrides[f"{component}__{field_name}"] = field_value
            else:
                overrides[key] = value
        return cls().override(**overrides)

    @classmethod
    def from_json(cls, json_str: str) -> "QueryConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def html_documents(cls) -> "QueryConfig":
        """Preset that treats every source as HTML."""
        return cls(
            parsing=ParsingConfig(content_type="html", ignore_parser_warnings=True),
            name="html_documents",
        )

    @classmethod
    def lenient(cls) -> "QueryConfig":
        """Preset that recovers from malformed markup wherever possible."""
        return cls(
            parsing=ParsingConfig(replace_entities=True, ignore_parser_warnings=True),
            name="lenient",
        )
