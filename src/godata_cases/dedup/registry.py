"""Registry of dedup matchers by method name."""

from typing import Type

from godata_cases.config import MatchMethod
from godata_cases.dedup.base import Matcher
from godata_cases.dedup.exact import ExactMatcher
from godata_cases.exceptions import ConfigurationError


class MatcherRegistry:
    """Resolves config.method to a Matcher. Fuzzy matchers are registered by the caller."""

    _matchers: dict[str, Type[Matcher]] = {
        "exact": ExactMatcher,
    }

    @staticmethod
    def _key(method: str | MatchMethod) -> str:
        return method.value if isinstance(method, MatchMethod) else str(method).strip().lower()

    @classmethod
    def get(cls, method: str | MatchMethod, **kwargs) -> Matcher:
        """Get a matcher instance for the given method. kwargs passed to matcher __init__."""
        key = cls._key(method)
        matcher_cls = cls._matchers.get(key)
        if not matcher_cls:
            raise ConfigurationError(
                f"No matcher registered for method '{key}'. "
                f"Available: {cls.available_methods()}"
            )
        return matcher_cls(**kwargs)

    @classmethod
    def register(cls, method: str | MatchMethod, matcher_cls: Type[Matcher]) -> None:
        cls._matchers[cls._key(method)] = matcher_cls

    @classmethod
    def unregister(cls, method: str | MatchMethod) -> None:
        cls._matchers.pop(cls._key(method), None)

    @classmethod
    def available_methods(cls) -> list[str]:
        return list(cls._matchers.keys())
