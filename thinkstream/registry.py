"""Tag dictionary and pipeline configuration loader.

Loads the tag dictionary from tags.toml and pipeline defaults from
defaults.toml. Both files ship in the package's config directory.
"""

from __future__ import annotations

import re
import tomllib
from pathlib import Path

from pydantic import ValidationError

from thinkstream.schemas.pipeline import PipelineConfig
from thinkstream.schemas.tags import TagDictionaryConfig, TagPair, TagRule
from thinkstream.tags.dictionary import BUILTIN_DIALECTS, TagDictionary

# Default config directory relative to the thinkstream package
_CONFIG_DIR = Path(__file__).parent / "config"


def _read_toml(path: Path) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_tag_config(config_path: Path | None = None) -> TagDictionaryConfig:
    """Load tag dictionary contents from a TOML file.

    Args:
        config_path: Path to tags.toml. Defaults to thinkstream/config/tags.toml.

    Returns:
        The parsed TagDictionaryConfig.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML structure is invalid.
    """
    path = config_path or _CONFIG_DIR / "tags.toml"
    if not path.exists():
        raise FileNotFoundError(f"Tag dictionary not found: {path}")

    raw = _read_toml(path)

    default_section = raw.get("default")
    if not default_section or not isinstance(default_section, dict):
        raise ValueError(f"No [default] section found in {path}")

    dialects_section = raw.get("dialects", {})
    rules_section = raw.get("rules", [])
    if not isinstance(dialects_section, dict) or not isinstance(rules_section, list):
        raise ValueError(f"Invalid [dialects] or [[rules]] section in {path}")

    try:
        default = TagPair(**default_section)
        dialects = {
            name: TagPair(**entry)
            for name, entry in dialects_section.items()
            if isinstance(entry, dict)
        }
        rules = [TagRule(**entry) for entry in rules_section]
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Invalid tag dictionary entry in {path}: {e}") from e

    for rule in rules:
        if rule.dialect not in dialects and rule.dialect not in BUILTIN_DIALECTS:
            raise ValueError(
                f"Rule {rule.pattern!r} in {path} references unknown dialect {rule.dialect!r}"
            )
        try:
            re.compile(rule.pattern)
        except re.error as e:
            raise ValueError(f"Invalid rule pattern {rule.pattern!r} in {path}: {e}") from e

    return TagDictionaryConfig(default=default, dialects=dialects, rules=rules)


def load_tag_dictionary(config_path: Path | None = None) -> TagDictionary:
    """Load a TagDictionary from a TOML file (see ``load_tag_config``)."""
    return TagDictionary.from_config(load_tag_config(config_path))


def load_pipeline_config(config_path: Path | None = None) -> PipelineConfig:
    """Load pipeline defaults from a TOML file.

    Args:
        config_path: Path to defaults.toml. Defaults to thinkstream/config/defaults.toml.

    Returns:
        PipelineConfig with values from the TOML file.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Pipeline config not found: {path}")

    pipeline_section = _read_toml(path).get("pipeline", {})

    return PipelineConfig(
        enable_reasoning=pipeline_section.get("enable_reasoning", True),
        default_timeout=pipeline_section.get("default_timeout", 120),
        max_retries=pipeline_section.get("max_retries", 3),
    )
