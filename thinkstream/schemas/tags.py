"""Tag pair schemas for reasoning-span delimiters.

A TagPair names the opening and closing strings that wrap a reasoning
span inside an otherwise plain answer stream. Pairs are looked up per
model through the TagDictionary.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TagPair(BaseModel):
    """Matched opening/closing delimiters for a reasoning span."""

    model_config = ConfigDict(frozen=True)

    opening_tag: str = Field(min_length=1, description="Delimiter that starts a reasoning span")
    closing_tag: str = Field(min_length=1, description="Delimiter that ends a reasoning span")
    separator: str = Field(
        default="\n",
        description="Prefix inserted when a mode resumes after a tag switch",
    )

    @property
    def max_tag_length(self) -> int:
        """Length of the longer of the two delimiters."""
        return max(len(self.opening_tag), len(self.closing_tag))


class TagRule(BaseModel):
    """Maps a model-identifier pattern to a named tag dialect."""

    model_config = ConfigDict(frozen=True)

    pattern: str = Field(description="Case-insensitive regex searched in the model id")
    dialect: str = Field(description="Name of the dialect in the dictionary")


class TagDictionaryConfig(BaseModel):
    """Tag dictionary contents as loaded from tags.toml."""

    default: TagPair = Field(
        default_factory=lambda: TagPair(opening_tag="<think>", closing_tag="</think>"),
        description="Pair used when no rule matches the model id",
    )
    dialects: dict[str, TagPair] = Field(
        default_factory=dict, description="Named alternate tag dialects"
    )
    rules: list[TagRule] = Field(
        default_factory=list, description="Ordered model-id rules; first match wins"
    )
