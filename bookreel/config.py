"""Configuration model and loaders for Bookreel.

Responsibilities:
- Define processing thresholds/timeouts and provider settings as typed dataclasses.
- Provide deterministic precedence resolution: defaults < YAML file < environment.
- Validate values before any pipeline component consumes them.

Key types:
- `ProcessingConfig`: thresholds, timeouts, temperatures, and scoring weights.
- `ContentTypeWeights`: per-category content-type scoring weights.
- `ProviderConfig`: text-completion provider model/endpoint settings.
- `BookreelConfig`: the pair of processing and provider settings for one run.
- `ConfigLoader`: static construction helpers for `BookreelConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import normalize_optional_string, parse_non_negative_float, parse_positive_int


_DEFAULT_MODEL = "gpt-4.1-mini"
_DEFAULT_BASE_URL = "https://api.openai.com/v1"

_INT_FIELDS = frozenset(
    {
        "min_content_length",
        "long_chapter_threshold",
        "max_segment_length",
        "max_summary_length",
        "chapter_excerpt_length",
    }
)
_FLOAT_FIELDS = frozenset(
    {
        "single_segment_timeout_seconds",
        "total_processing_timeout_seconds",
        "chapter_analysis_timeout_seconds",
        "segment_analysis_temperature",
        "chapter_analysis_temperature",
        "min_chapter_score",
    }
)
_WEIGHT_FIELDS = ("academic", "practical", "narrative", "business", "philosophy")

_PROCESSING_ENV_KEYS = {
    name: f"BOOKREEL_{name.upper()}" for name in sorted(_INT_FIELDS | _FLOAT_FIELDS)
}
_WEIGHT_ENV_KEYS = {name: f"BOOKREEL_WEIGHT_{name.upper()}" for name in _WEIGHT_FIELDS}
_PROVIDER_ENV_KEYS = {
    "model": "BOOKREEL_MODEL",
    "base_url": "BOOKREEL_BASE_URL",
    "api_key": "OPENAI_API_KEY",
    "request_timeout_seconds": "BOOKREEL_REQUEST_TIMEOUT_SECONDS",
}


@dataclass(frozen=True, slots=True)
class ContentTypeWeights:
    """Relative weights for content-type keyword categories."""

    academic: float = 0.25
    practical: float = 0.3
    narrative: float = 0.2
    business: float = 0.25
    philosophy: float = 0.2

    def as_dict(self) -> dict[str, float]:
        """Return weights keyed by category name."""

        return {name: getattr(self, name) for name in _WEIGHT_FIELDS}


@dataclass(frozen=True, slots=True)
class ProcessingConfig:
    """Thresholds and timeouts for one pipeline run.

    Attributes:
        min_content_length: Filtered chapters shorter than this are skipped.
        long_chapter_threshold: Filtered chapters longer than this are segmented.
        max_segment_length: Upper bound for segment length and summary prompt input.
        max_summary_length: Requested summary size and fallback excerpt length.
        chapter_excerpt_length: Whole-chapter excerpt length when every segment fails.
        single_segment_timeout_seconds: Per-segment summarization deadline.
        total_processing_timeout_seconds: Deadline for the whole summarization batch.
        chapter_analysis_timeout_seconds: Deadline for chapter analysis and later stages.
        segment_analysis_temperature: Sampling temperature for segment summaries.
        chapter_analysis_temperature: Sampling temperature for chapter analysis.
        min_chapter_score: Chapters scoring below this value are skipped.
        content_type_weights: Per-category keyword weights.
    """

    min_content_length: int = 500
    long_chapter_threshold: int = 3000
    max_segment_length: int = 3000
    max_summary_length: int = 300
    chapter_excerpt_length: int = 1000
    single_segment_timeout_seconds: float = 20.0
    total_processing_timeout_seconds: float = 30.0
    chapter_analysis_timeout_seconds: float = 25.0
    segment_analysis_temperature: float = 1.0
    chapter_analysis_temperature: float = 0.4
    min_chapter_score: float = 0.6
    content_type_weights: ContentTypeWeights = field(default_factory=ContentTypeWeights)

    def validate(self) -> None:
        """Validate value ranges before pipeline execution."""

        for name in sorted(_INT_FIELDS):
            if getattr(self, name) <= 0:
                raise ValueError(f"`{name}` must be a positive integer.")
        for name in (
            "single_segment_timeout_seconds",
            "total_processing_timeout_seconds",
            "chapter_analysis_timeout_seconds",
        ):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"`{name}` must be a positive number of seconds.")
        if not 0.0 <= self.min_chapter_score <= 1.0:
            raise ValueError("`min_chapter_score` must be within [0, 1].")
        for name, weight in self.content_type_weights.as_dict().items():
            if weight < 0.0:
                raise ValueError(f"Content-type weight `{name}` must be non-negative.")


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Settings for the OpenAI-compatible text-completion provider.

    Attributes:
        model: Chat model identifier.
        base_url: API base URL (any OpenAI-compatible endpoint).
        api_key: Optional API key; never persisted to artifacts.
        request_timeout_seconds: Default HTTP timeout when a call sets none.
    """

    model: str = _DEFAULT_MODEL
    base_url: str = _DEFAULT_BASE_URL
    api_key: str | None = None
    request_timeout_seconds: float = 60.0

    def validate(self) -> None:
        """Validate provider settings."""

        if not self.model.strip():
            raise ValueError("`model` must be a non-empty string.")
        if not self.base_url.strip():
            raise ValueError("`base_url` must be a non-empty string.")
        if self.request_timeout_seconds <= 0.0:
            raise ValueError("`request_timeout_seconds` must be a positive number.")


@dataclass(frozen=True, slots=True)
class BookreelConfig:
    """Resolved configuration for one run."""

    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)

    def validate(self) -> None:
        """Validate both configuration sections."""

        self.processing.validate()
        self.provider.validate()


class ConfigLoader:
    """Factory methods for creating `BookreelConfig` from external sources."""

    _SUPPORTED_SECTIONS = frozenset({"processing", "provider"})
    _SUPPORTED_PROCESSING_KEYS = frozenset(
        set(_PROCESSING_ENV_KEYS) | {"content_type_weights"}
    )
    _SUPPORTED_PROVIDER_KEYS = frozenset(_PROVIDER_ENV_KEYS)

    @staticmethod
    def load(
        path: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> BookreelConfig:
        """Resolve config from defaults, an optional YAML file, and environment overrides."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        base = ConfigLoader.from_yaml(path) if path is not None else BookreelConfig()
        config = ConfigLoader._apply_env(base, env_map)
        config.validate()
        return config

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> BookreelConfig:
        """Create a validated config from defaults and environment variables."""

        return ConfigLoader.load(path=None, env=env)

    @staticmethod
    def from_yaml(path: Path) -> BookreelConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        config = ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")
        config.validate()
        return config

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> BookreelConfig:
        """Build config from a `{processing: ..., provider: ...}` mapping."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_SECTIONS))
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        processing_payload = ConfigLoader._section(payload, "processing", source_label)
        provider_payload = ConfigLoader._section(payload, "provider", source_label)

        unknown_processing = sorted(
            set(processing_payload).difference(ConfigLoader._SUPPORTED_PROCESSING_KEYS)
        )
        if unknown_processing:
            raise ValueError(
                f"{source_label} section `processing` includes unsupported key(s): "
                f"{', '.join(unknown_processing)}."
            )
        unknown_provider = sorted(
            set(provider_payload).difference(ConfigLoader._SUPPORTED_PROVIDER_KEYS)
        )
        if unknown_provider:
            raise ValueError(
                f"{source_label} section `provider` includes unsupported key(s): "
                f"{', '.join(unknown_provider)}."
            )

        processing_values = {
            name: ConfigLoader._parse_processing_value(name, raw_value, source_label)
            for name, raw_value in processing_payload.items()
            if name != "content_type_weights"
        }
        weights = ContentTypeWeights()
        if "content_type_weights" in processing_payload:
            weights = ConfigLoader._parse_weights(
                processing_payload["content_type_weights"], source_label
            )
        processing = ProcessingConfig(content_type_weights=weights, **processing_values)

        provider_values = {
            name: ConfigLoader._parse_provider_value(name, raw_value, source_label)
            for name, raw_value in provider_payload.items()
        }
        provider = ProviderConfig(**provider_values)
        return BookreelConfig(processing=processing, provider=provider)

    @staticmethod
    def _apply_env(base: BookreelConfig, env: Mapping[str, str]) -> BookreelConfig:
        """Overlay environment overrides one-to-one onto config fields."""

        processing_values: dict[str, Any] = {}
        for name, env_key in _PROCESSING_ENV_KEYS.items():
            raw_value = normalize_optional_string(env.get(env_key))
            if raw_value is not None:
                processing_values[name] = ConfigLoader._parse_processing_value(
                    name, raw_value, f"Environment variable `{env_key}`"
                )

        weight_values: dict[str, float] = {}
        for name, env_key in _WEIGHT_ENV_KEYS.items():
            raw_value = normalize_optional_string(env.get(env_key))
            if raw_value is not None:
                weight_values[name] = parse_non_negative_float(raw_value, env_key)
        if weight_values:
            processing_values["content_type_weights"] = replace(
                base.processing.content_type_weights, **weight_values
            )

        provider_values: dict[str, Any] = {}
        for name, env_key in _PROVIDER_ENV_KEYS.items():
            raw_value = normalize_optional_string(env.get(env_key))
            if raw_value is not None:
                provider_values[name] = ConfigLoader._parse_provider_value(
                    name, raw_value, f"Environment variable `{env_key}`"
                )

        return BookreelConfig(
            processing=replace(base.processing, **processing_values),
            provider=replace(base.provider, **provider_values),
        )

    @staticmethod
    def _section(payload: Mapping[str, Any], key: str, source_label: str) -> Mapping[str, Any]:
        """Return an optional mapping section, defaulting to an empty mapping."""

        raw = payload.get(key)
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a mapping/object.")
        return raw

    @staticmethod
    def _parse_processing_value(name: str, raw_value: object, source_label: str) -> int | float:
        """Parse one processing value according to its declared field type."""

        try:
            if name in _INT_FIELDS:
                return parse_positive_int(raw_value, name)
            return parse_non_negative_float(raw_value, name)
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc

    @staticmethod
    def _parse_provider_value(name: str, raw_value: object, source_label: str) -> str | float:
        """Parse one provider value according to its declared field type."""

        if name == "request_timeout_seconds":
            try:
                return parse_non_negative_float(raw_value, name)
            except ValueError as exc:
                raise ValueError(f"{source_label}: {exc}") from exc
        value = normalize_optional_string(raw_value)
        if value is None:
            raise ValueError(f"{source_label} requires non-empty `{name}`.")
        return value

    @staticmethod
    def _parse_weights(raw: object, source_label: str) -> ContentTypeWeights:
        """Parse a `content_type_weights` mapping."""

        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `content_type_weights` must be a mapping.")
        known = {item.name for item in fields(ContentTypeWeights)}
        unknown = sorted(set(raw).difference(known))
        if unknown:
            raise ValueError(
                f"{source_label} field `content_type_weights` includes unsupported "
                f"categories: {', '.join(unknown)}."
            )
        values = {
            name: parse_non_negative_float(value, f"content_type_weights.{name}")
            for name, value in raw.items()
        }
        return ContentTypeWeights(**values)
