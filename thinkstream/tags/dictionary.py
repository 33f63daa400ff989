"""Model-to-tag-pair lookup.

Most reasoning models wrap chain-of-thought in ``<think>`` tags, but some
families use other delimiters. The TagDictionary resolves a model id to
the pair its output uses, falling back to the default pair for anything
it does not recognise.
"""

from __future__ import annotations

import logging
import re

from thinkstream.schemas.tags import TagDictionaryConfig, TagPair, TagRule

logger = logging.getLogger(__name__)

THINK_TAGS = TagPair(opening_tag="<think>", closing_tag="</think>")

# Dialects seen in the wild, keyed by dialect name
BUILTIN_DIALECTS: dict[str, TagPair] = {
    "think": THINK_TAGS,
    "markdown-heading": TagPair(opening_tag="###Thinking", closing_tag="###Response"),
    "markdown-heading-zh": TagPair(opening_tag="##思考过程", closing_tag="##回答"),
    "reasoning": TagPair(opening_tag="<reasoning>", closing_tag="</reasoning>"),
}

BUILTIN_RULES: list[TagRule] = [
    TagRule(pattern=r"qwen3", dialect="think"),
    TagRule(pattern=r"deepseek-r1", dialect="think"),
    TagRule(pattern=r"qwq", dialect="think"),
]


class TagDictionary:
    """Resolves model identifiers to TagPairs.

    Rules are evaluated in order with a case-insensitive regex search on
    the model id; the first match wins. ``lookup`` never raises.
    """

    def __init__(
        self,
        default: TagPair = THINK_TAGS,
        dialects: dict[str, TagPair] | None = None,
        rules: list[TagRule] | None = None,
    ) -> None:
        self._default = default
        self._dialects = dict(BUILTIN_DIALECTS if dialects is None else dialects)
        self._rules: list[tuple[re.Pattern[str], TagPair]] = []
        for rule in BUILTIN_RULES if rules is None else rules:
            pair = self._dialects.get(rule.dialect)
            if pair is None:
                raise ValueError(
                    f"Rule {rule.pattern!r} references unknown dialect {rule.dialect!r}"
                )
            try:
                pattern = re.compile(rule.pattern, re.IGNORECASE)
            except re.error as e:
                raise ValueError(f"Invalid rule pattern {rule.pattern!r}: {e}") from e
            self._rules.append((pattern, pair))

    @classmethod
    def from_config(cls, config: TagDictionaryConfig) -> TagDictionary:
        dialects = {**BUILTIN_DIALECTS, **config.dialects}
        return cls(default=config.default, dialects=dialects, rules=config.rules)

    @property
    def default(self) -> TagPair:
        return self._default

    @property
    def dialects(self) -> dict[str, TagPair]:
        return dict(self._dialects)

    def lookup(self, model_id: str | None) -> TagPair:
        """Return the TagPair for ``model_id``, or the default pair."""
        if not model_id:
            return self._default
        for pattern, pair in self._rules:
            if pattern.search(model_id):
                return pair
        logger.debug("No tag rule for %s, using default pair", model_id)
        return self._default

    def pairs(self) -> list[TagPair]:
        """All distinct pairs known to the dictionary, default first."""
        result = [self._default]
        for pair in self._dialects.values():
            if pair not in result:
                result.append(pair)
        return result
