"""
Conversion settings and YAML configuration loading.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .exceptions import ConfigError
from .models import DictionaryType


# =============================================================================
# Per-dictionary rules
# =============================================================================

@dataclass(frozen=True)
class DictionaryConfig:
    """Inclusion rules and output metadata for one MARBLE dictionary."""
    dictionary: DictionaryType
    title: str
    language_name: str
    corpus_id: str
    # Entries below these versions are incomplete (only honoured when gated)
    version_gated: bool = False
    min_lexical_version: int = 3
    min_contextual_version: int = 5
    # IsBiblicalTerm markers whose lexical meanings are not linked to the text
    excluded_biblical_terms: Tuple[str, ...] = ()

    def include_entry(self, version: int) -> bool:
        return not self.version_gated or version >= self.min_lexical_version

    def include_contextual(self, version: int) -> bool:
        return not self.version_gated or version >= self.min_contextual_version

    def excludes_meaning(self, is_biblical_term: str) -> bool:
        return is_biblical_term.upper() in self.excluded_biblical_terms


DEFAULT_DICTIONARIES: Dict[DictionaryType, DictionaryConfig] = {
    DictionaryType.GREEK: DictionaryConfig(
        dictionary=DictionaryType.GREEK,
        title="Biblical Greek Dictionary",
        language_name="Greek",
        corpus_id="UBSGNT5",
    ),
    DictionaryType.HEBREW: DictionaryConfig(
        dictionary=DictionaryType.HEBREW,
        title="Biblical Hebrew Dictionary",
        language_name="Hebrew",
        corpus_id="UBSBHS4",
        version_gated=True,
        excluded_biblical_terms=("X", "N"),
    ),
}


# =============================================================================
# Run configuration
# =============================================================================

@dataclass
class ConversionConfig:
    """Everything a conversion run needs."""
    dictionary: DictionaryType
    data_version: str
    input_dir: Optional[Path] = None
    output_dir: Optional[Path] = None
    links_dir: Optional[Path] = None
    domains_dir: Optional[Path] = None
    dictionaries: Dict[DictionaryType, DictionaryConfig] = field(
        default_factory=lambda: dict(DEFAULT_DICTIONARIES)
    )

    @property
    def rules(self) -> DictionaryConfig:
        return self.dictionaries[self.dictionary]


_PATH_FIELDS = {
    "input": "input_dir",
    "output": "output_dir",
    "links": "links_dir",
    "domains": "domains_dir",
}

_DICTIONARY_FIELDS = {
    "title": str,
    "language_name": str,
    "corpus_id": str,
    "version_gated": bool,
    "min_lexical_version": int,
    "min_contextual_version": int,
}


def load_config(
    source: Union[str, Path, Dict[str, Any]],
) -> ConversionConfig:
    """Load a conversion configuration from a YAML file, string or mapping.

    Args:
        source: Path to YAML file, YAML string, or parsed dictionary

    Returns:
        ConversionConfig object

    Raises:
        ConfigError: If the content cannot be parsed or is invalid
        FileNotFoundError: If the file does not exist
    """
    base_dir: Optional[Path] = None

    if isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or (isinstance(source, str) and _is_file_path(source)):
        source_path = Path(source)
        if not source_path.exists():
            raise FileNotFoundError(f"File not found: {source_path}")
        base_dir = source_path.parent
        with open(source_path, "r", encoding="utf-8") as f:
            data = _load_yaml(f)
    else:
        data = _load_yaml(source)

    return _parse_config(data, base_dir)


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path."""
    if "\n" in s:
        return False
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))


def _load_yaml(stream: Any) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ConfigError(f"Invalid YAML: {e}", line=mark.line + 1 if mark else None) from e

    if data is None:
        raise ConfigError("Empty configuration")
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping (dictionary)")
    return data


def _parse_dictionary_type(value: Any, field_name: str) -> DictionaryType:
    try:
        return DictionaryType(str(value).upper())
    except ValueError:
        choices = ", ".join(d.value for d in DictionaryType)
        raise ConfigError(f"Field '{field_name}' must be one of: {choices}") from None


def _parse_config(data: Dict[str, Any], base_dir: Optional[Path]) -> ConversionConfig:
    """Parse a mapping into a ConversionConfig."""
    if "dictionary" not in data:
        raise ConfigError("Missing required field: 'dictionary'")
    dictionary = _parse_dictionary_type(data["dictionary"], "dictionary")

    data_version = data.get("version")
    if data_version is None:
        raise ConfigError("Missing required field: 'version'")
    if not isinstance(data_version, (str, int, float)):
        raise ConfigError("Field 'version' must be a string")

    config = ConversionConfig(dictionary=dictionary, data_version=str(data_version))

    for key, attr in _PATH_FIELDS.items():
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ConfigError(f"Field '{key}' must be a path string")
        path = Path(value)
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        setattr(config, attr, path)

    overrides = data.get("dictionaries", {})
    if not isinstance(overrides, dict):
        raise ConfigError("Field 'dictionaries' must be a mapping")
    for name, settings in overrides.items():
        dict_type = _parse_dictionary_type(name, "dictionaries")
        config.dictionaries[dict_type] = _apply_overrides(
            config.dictionaries[dict_type], settings, name
        )

    return config


def _apply_overrides(
    rules: DictionaryConfig,
    settings: Any,
    name: str,
) -> DictionaryConfig:
    if not isinstance(settings, dict):
        raise ConfigError(f"Dictionary '{name}' settings must be a mapping")

    changes: Dict[str, Any] = {}
    for key, value in settings.items():
        if key == "excluded_biblical_terms":
            if not isinstance(value, list):
                raise ConfigError(f"{name}.{key} must be a list")
            changes[key] = tuple(str(v).upper() for v in value)
            continue
        expected = _DICTIONARY_FIELDS.get(key)
        if expected is None:
            raise ConfigError(f"Unknown setting '{name}.{key}'")
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(f"{name}.{key} must be of type {expected.__name__}")
        changes[key] = value

    return replace(rules, **changes)
