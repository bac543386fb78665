"""Ordered pattern rule tables.

Every regex classifier in editguard (tone, section markers, edit target,
CTA detection) is a table of rules evaluated top to bottom. The first rule
with a matching pattern decides the result, so table order is the tie-break.

Example:
    >>> table = RuleTable([
    ...     PatternRule.compile("HOOK", r"\\bhook\\b"),
    ...     PatternRule.compile("CTA", r"\\bcta\\b"),
    ... ])
    >>> table.first_match("fix the hook and the cta")
    "HOOK"
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Generic, Iterable, Optional, Pattern, Sequence, TypeVar

T = TypeVar("T")


def normalize_for_matching(text: str) -> str:
    """NFC-normalize and lowercase text before rule evaluation."""
    return unicodedata.normalize("NFC", text).lower()


@dataclass(frozen=True)
class PatternRule(Generic[T]):
    """A result paired with the patterns that select it.

    Attributes:
        result: Value returned when any pattern matches
        patterns: Compiled patterns, searched anywhere in the text
    """

    result: T
    patterns: tuple[Pattern[str], ...]

    @classmethod
    def compile(cls, result: T, *patterns: str, flags: int = re.IGNORECASE) -> "PatternRule[T]":
        return cls(result=result, patterns=tuple(re.compile(p, flags) for p in patterns))

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)

    def matched_patterns(self, text: str) -> list[str]:
        """Return the source of every pattern that matches (for diagnostics)."""
        return [p.pattern for p in self.patterns if p.search(text)]


class RuleTable(Generic[T]):
    """Priority-ordered list of pattern rules."""

    def __init__(self, rules: Iterable[PatternRule[T]]):
        self._rules: tuple[PatternRule[T], ...] = tuple(rules)

    @property
    def rules(self) -> tuple[PatternRule[T], ...]:
        return self._rules

    @property
    def order(self) -> list[T]:
        """Results in evaluation order."""
        return [rule.result for rule in self._rules]

    def first_match(self, text: str, default: Optional[T] = None) -> Optional[T]:
        """Return the result of the first rule that matches, else default."""
        rule = self.first_rule(text)
        return rule.result if rule is not None else default

    def first_rule(self, text: str) -> Optional[PatternRule[T]]:
        for rule in self._rules:
            if rule.matches(text):
                return rule
        return None

    def all_matches(self, text: str) -> list[T]:
        """Return every result whose rule matches, in table order."""
        return [rule.result for rule in self._rules if rule.matches(text)]

    def __len__(self) -> int:
        return len(self._rules)


def any_pattern(patterns: Sequence[Pattern[str]], text: str) -> bool:
    """True when any of the compiled patterns is found in text."""
    return any(p.search(text) for p in patterns)


def compile_all(*patterns: str, flags: int = re.IGNORECASE) -> tuple[Pattern[str], ...]:
    return tuple(re.compile(p, flags) for p in patterns)
