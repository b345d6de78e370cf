"""Analyzer settings and registry wiring.

Settings come from a mapping (e.g. a parsed config file) or from
``ORM_DOCTOR_*`` environment variables. Values are validated, never clamped.
"""

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from orm_doctor.analyzers import (
    AnalyzerRegistry,
    CascadeAllAnalyzer,
    CascadeRemoveIndependentAnalyzer,
    DivisionByZeroAnalyzer,
    FindAllAnalyzer,
    JoinOptimizationAnalyzer,
    LazyLoadingAnalyzer,
    MissingOrphanRemovalAnalyzer,
    OrphanRemovalWithoutCascadeAnalyzer,
    QueryAnalyzer,
    SlowQueryAnalyzer,
)
from orm_doctor.exceptions import ConfigurationError
from orm_doctor.metadata import MetadataProvider
from orm_doctor.suggestions import SuggestionFactory

ENV_PREFIX = "ORM_DOCTOR_"

QUERY_ANALYZERS = ("join_optimization", "lazy_loading", "slow_query", "find_all", "division_by_zero")
METADATA_ANALYZERS = (
    "cascade_all",
    "cascade_remove_independent",
    "missing_orphan_removal",
    "orphan_removal_without_cascade",
)


@dataclass(frozen=True, slots=True)
class AnalyzerSettings:
    slow_query_threshold_ms: float = 100.0
    lazy_loading_threshold: int = 10
    max_joins_recommended: int = 5
    max_joins_critical: int = 8
    find_all_threshold: int = 99
    enabled: frozenset[str] | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not 0 < self.slow_query_threshold_ms <= SlowQueryAnalyzer.MAX_THRESHOLD_MS:
            raise ConfigurationError(
                f"slow_query_threshold_ms must be in (0, 100000], got {self.slow_query_threshold_ms}"
            )
        lazy_min, lazy_max = LazyLoadingAnalyzer.MIN_THRESHOLD, LazyLoadingAnalyzer.MAX_THRESHOLD
        if not lazy_min <= self.lazy_loading_threshold <= lazy_max:
            raise ConfigurationError(
                f"lazy_loading_threshold out of range: {self.lazy_loading_threshold}"
            )
        if self.max_joins_recommended < 1 or self.max_joins_critical < self.max_joins_recommended:
            raise ConfigurationError(
                "max_joins_recommended must be >= 1 and not above max_joins_critical"
            )
        if self.find_all_threshold < 0:
            raise ConfigurationError(f"find_all_threshold must not be negative: {self.find_all_threshold}")
        if self.enabled is not None:
            unknown = self.enabled - set(QUERY_ANALYZERS) - set(METADATA_ANALYZERS)
            if unknown:
                raise ConfigurationError(f"Unknown analyzers: {', '.join(sorted(unknown))}")

    def is_enabled(self, key: str) -> bool:
        return self.enabled is None or key in self.enabled

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AnalyzerSettings":
        known = {f.name: f for f in fields(cls)}
        unknown = set(data) - set(known)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {}
        for key, raw in data.items():
            values[key] = _coerce(key, raw)
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AnalyzerSettings":
        environ = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is not None and raw.strip():
                data[f.name] = raw
        return cls.from_mapping(data)


_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "slow_query_threshold_ms": float,
    "lazy_loading_threshold": int,
    "max_joins_recommended": int,
    "max_joins_critical": int,
    "find_all_threshold": int,
}


def _coerce(key: str, raw: Any) -> Any:
    if key == "enabled":
        if raw is None:
            return None
        if isinstance(raw, str):
            raw = raw.split(",")
        return frozenset(str(item).strip() for item in raw if str(item).strip())
    try:
        return _CONVERTERS[key](raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value for {key}: {raw!r}") from exc


def build_registry(
    settings: AnalyzerSettings | None = None,
    metadata_provider: MetadataProvider | None = None,
    suggestion_factory: SuggestionFactory | None = None,
) -> AnalyzerRegistry:
    """Register the enabled analyzers.

    Metadata analyzers are only registered when a provider is given; the JOIN
    analyzer uses the provider for its LEFT JOIN check when there is one.
    """
    settings = settings or AnalyzerSettings()
    factory = suggestion_factory or SuggestionFactory()

    builders: dict[str, Callable[[], QueryAnalyzer]] = {
        "join_optimization": lambda: JoinOptimizationAnalyzer(
            factory,
            settings.max_joins_recommended,
            settings.max_joins_critical,
            metadata_provider,
        ),
        "lazy_loading": lambda: LazyLoadingAnalyzer(factory, settings.lazy_loading_threshold),
        "slow_query": lambda: SlowQueryAnalyzer(factory, settings.slow_query_threshold_ms),
        "find_all": lambda: FindAllAnalyzer(factory, settings.find_all_threshold),
        "division_by_zero": lambda: DivisionByZeroAnalyzer(factory),
    }
    if metadata_provider is not None:
        builders.update(
            {
                "cascade_all": lambda: CascadeAllAnalyzer(metadata_provider, factory),
                "cascade_remove_independent": lambda: CascadeRemoveIndependentAnalyzer(
                    metadata_provider, factory
                ),
                "missing_orphan_removal": lambda: MissingOrphanRemovalAnalyzer(
                    metadata_provider, factory
                ),
                "orphan_removal_without_cascade": lambda: OrphanRemovalWithoutCascadeAnalyzer(
                    metadata_provider, factory
                ),
            }
        )

    registry = AnalyzerRegistry()
    for key, build in builders.items():
        if settings.is_enabled(key):
            registry.register(build())
    return registry
