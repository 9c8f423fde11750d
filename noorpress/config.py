"""Configuration model and loaders for NoorPress exports.

Responsibilities:
- Define one export run's settings as a typed dataclass.
- Provide loader entry points for YAML- and environment-based configuration.

Key types:
- `PublishingConfig`: normalized settings for one publish run.
- `ConfigLoader`: static construction helpers for `PublishingConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import InvalidInputError
from .lulu import LuluHeaderFooterConfig
from .parsing import (
    normalize_optional_string,
    parse_permissive_boolean,
    parse_positive_number,
    parse_token_list,
)
from .render.images import IMAGE_POLICIES
from .specs.vendors import TrimSize

EXPORT_FORMATS = ("epub", "kdp_pdf", "lulu_pdf")
PAPER_TYPES = frozenset({"white", "cream", "color"})
BINDING_TYPES = frozenset({"perfect", "casewrap"})
_HEADER_FOOTER_KEYS = frozenset(
    {
        "headers",
        "footers",
        "font",
        "font_size",
        "even_header",
        "odd_header",
        "footer",
        "header_left",
        "header_right",
        "footer_left",
        "footer_right",
        "alternate_left_right",
    }
)


@dataclass(slots=True)
class PublishingConfig:
    """Settings for one publish run.

    Attributes:
        formats: Requested format keys, a subset of `EXPORT_FORMATS`.
        assign_isbns: Whether to assign ISBNs before generating.
        trim_size: Optional `WxH` override of the bundle's cover trim size.
        paper_type: Interior paper stock for KDP spine math.
        binding: KDP binding type (`perfect` or `casewrap`) for the spine allowance.
        include_bleed: Whether Lulu interior pages carry bleed on every edge.
        dpi: Resolution used to report cover pixel dimensions.
        image_policy: `placeholder` or `fail` for unavailable images.
        parallel: Whether formats render concurrently.
        max_image_concurrency: Cap on simultaneous image fetches.
        image_timeout_seconds: Per-request timeout for remote images.
        header_footer: Lulu running header/footer settings.
        isbn_registrant_prefix: Publisher ISBN block prefix for new ISBNs.
        isbn_first_title_number: First title number handed out from the block.
        extra: Additional metadata copied into the export report.
    """

    formats: tuple[str, ...] = EXPORT_FORMATS
    assign_isbns: bool = False
    trim_size: str | None = None
    paper_type: str = "white"
    binding: str = "perfect"
    include_bleed: bool = False
    dpi: int = 300
    image_policy: str = "placeholder"
    parallel: bool = True
    max_image_concurrency: int = 4
    image_timeout_seconds: float = 30.0
    header_footer: LuluHeaderFooterConfig = field(default_factory=LuluHeaderFooterConfig)
    isbn_registrant_prefix: str | None = None
    isbn_first_title_number: int = 0
    extra: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate settings before a publish run.

        Raises:
            ValueError: For unknown formats, paper types, bindings or policies and
                non-positive numeric settings.
        """

        if not self.formats:
            raise ValueError("At least one export format must be requested.")
        unknown = [item for item in self.formats if item not in EXPORT_FORMATS]
        if unknown:
            raise ValueError(
                f"Unsupported export format(s): {', '.join(unknown)}; "
                f"supported: {', '.join(EXPORT_FORMATS)}."
            )
        if self.paper_type not in PAPER_TYPES:
            raise ValueError(
                f"Unsupported paper type `{self.paper_type}`; "
                f"supported: {', '.join(sorted(PAPER_TYPES))}."
            )
        if self.binding not in BINDING_TYPES:
            raise ValueError(
                f"Unsupported binding `{self.binding}`; "
                f"supported: {', '.join(sorted(BINDING_TYPES))}."
            )
        if self.image_policy not in IMAGE_POLICIES:
            raise ValueError(
                f"Unsupported image policy `{self.image_policy}`; "
                f"supported: {', '.join(sorted(IMAGE_POLICIES))}."
            )
        if self.trim_size is not None:
            try:
                TrimSize.parse(self.trim_size)
            except InvalidInputError as exc:
                raise ValueError(exc.detail) from exc
        if self.dpi <= 0:
            raise ValueError("`dpi` must be a positive integer.")
        if self.max_image_concurrency <= 0:
            raise ValueError("`max_image_concurrency` must be a positive integer.")
        if self.image_timeout_seconds <= 0:
            raise ValueError("`image_timeout_seconds` must be a positive number.")
        if self.header_footer.font_size <= 0:
            raise ValueError("`header_footer.font_size` must be a positive number.")
        if self.isbn_first_title_number < 0:
            raise ValueError("`isbn_first_title_number` must not be negative.")


class ConfigLoader:
    """Factory methods for loading `PublishingConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "formats",
            "assign_isbns",
            "trim_size",
            "paper_type",
            "binding",
            "include_bleed",
            "dpi",
            "image_policy",
            "parallel",
            "max_image_concurrency",
            "image_timeout_seconds",
            "header_footer",
            "isbn_registrant_prefix",
            "isbn_first_title_number",
            "extra",
        }
    )

    @staticmethod
    def from_yaml(path: Path) -> PublishingConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        payload = ConfigLoader._parse_yaml_payload(path_text, path)

        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> PublishingConfig:
        """Create a validated config from `NOORPRESS_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        defaults = PublishingConfig()

        formats_raw = ConfigLoader._optional_env_string(env_map, "NOORPRESS_FORMATS")
        formats = parse_token_list(formats_raw) if formats_raw is not None else defaults.formats
        timeout_raw = ConfigLoader._optional_env_string(env_map, "NOORPRESS_IMAGE_TIMEOUT_SECONDS")
        headers = ConfigLoader._optional_env_boolean(env_map, "NOORPRESS_LULU_HEADERS")
        footers = ConfigLoader._optional_env_boolean(env_map, "NOORPRESS_LULU_FOOTERS")

        config = PublishingConfig(
            formats=formats,
            assign_isbns=_first_set(
                ConfigLoader._optional_env_boolean(env_map, "NOORPRESS_ASSIGN_ISBNS"),
                defaults.assign_isbns,
            ),
            trim_size=ConfigLoader._optional_env_string(env_map, "NOORPRESS_TRIM_SIZE"),
            paper_type=(
                ConfigLoader._optional_env_string(env_map, "NOORPRESS_PAPER_TYPE")
                or defaults.paper_type
            ).lower(),
            binding=(
                ConfigLoader._optional_env_string(env_map, "NOORPRESS_BINDING")
                or defaults.binding
            ).lower(),
            include_bleed=_first_set(
                ConfigLoader._optional_env_boolean(env_map, "NOORPRESS_INCLUDE_BLEED"),
                defaults.include_bleed,
            ),
            dpi=ConfigLoader._optional_env_positive_int(env_map, "NOORPRESS_DPI") or defaults.dpi,
            image_policy=(
                ConfigLoader._optional_env_string(env_map, "NOORPRESS_IMAGE_POLICY")
                or defaults.image_policy
            ).lower(),
            parallel=_first_set(
                ConfigLoader._optional_env_boolean(env_map, "NOORPRESS_PARALLEL"),
                defaults.parallel,
            ),
            max_image_concurrency=(
                ConfigLoader._optional_env_positive_int(env_map, "NOORPRESS_MAX_IMAGE_CONCURRENCY")
                or defaults.max_image_concurrency
            ),
            image_timeout_seconds=(
                parse_positive_number(timeout_raw, "NOORPRESS_IMAGE_TIMEOUT_SECONDS")
                if timeout_raw is not None
                else defaults.image_timeout_seconds
            ),
            header_footer=LuluHeaderFooterConfig(
                headers=_first_set(headers, True),
                footers=_first_set(footers, True),
            ),
            isbn_registrant_prefix=ConfigLoader._optional_env_string(
                env_map, "NOORPRESS_ISBN_REGISTRANT_PREFIX"
            ),
            isbn_first_title_number=ConfigLoader._optional_env_non_negative_int(
                env_map, "NOORPRESS_ISBN_FIRST_TITLE_NUMBER"
            ),
        )
        config.validate()
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` could not be parsed: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> PublishingConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_yaml_keys(payload, source_label)
        defaults = PublishingConfig()

        if "formats" in payload:
            try:
                formats = parse_token_list(payload["formats"])
            except ValueError as exc:
                raise ValueError(f"{source_label} field `formats`: {exc}") from exc
        else:
            formats = defaults.formats
        timeout = (
            parse_positive_number(payload["image_timeout_seconds"], "image_timeout_seconds")
            if "image_timeout_seconds" in payload
            else defaults.image_timeout_seconds
        )

        config = PublishingConfig(
            formats=formats,
            assign_isbns=ConfigLoader._optional_boolean(
                payload, "assign_isbns", source_label, default=defaults.assign_isbns
            ),
            trim_size=ConfigLoader._optional_non_empty_string(payload, "trim_size", source_label),
            paper_type=(
                ConfigLoader._optional_non_empty_string(payload, "paper_type", source_label)
                or defaults.paper_type
            ).lower(),
            binding=(
                ConfigLoader._optional_non_empty_string(payload, "binding", source_label)
                or defaults.binding
            ).lower(),
            include_bleed=ConfigLoader._optional_boolean(
                payload, "include_bleed", source_label, default=defaults.include_bleed
            ),
            dpi=ConfigLoader._optional_positive_int(
                payload, "dpi", source_label, default=defaults.dpi
            ),
            image_policy=(
                ConfigLoader._optional_non_empty_string(payload, "image_policy", source_label)
                or defaults.image_policy
            ).lower(),
            parallel=ConfigLoader._optional_boolean(
                payload, "parallel", source_label, default=defaults.parallel
            ),
            max_image_concurrency=ConfigLoader._optional_positive_int(
                payload,
                "max_image_concurrency",
                source_label,
                default=defaults.max_image_concurrency,
            ),
            image_timeout_seconds=timeout,
            header_footer=ConfigLoader._header_footer(payload, source_label),
            isbn_registrant_prefix=ConfigLoader._optional_non_empty_string(
                payload, "isbn_registrant_prefix", source_label
            ),
            isbn_first_title_number=ConfigLoader._optional_non_negative_int(
                payload, "isbn_first_title_number", source_label
            ),
            extra=ConfigLoader._optional_string_map(payload, "extra", source_label),
        )
        config.validate()
        return config

    @staticmethod
    def _validate_yaml_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Reject keys the loader does not understand."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

    @staticmethod
    def _header_footer(payload: Mapping[str, Any], source_label: str) -> LuluHeaderFooterConfig:
        """Read the nested `header_footer` mapping."""

        raw = payload.get("header_footer")
        if raw is None:
            return LuluHeaderFooterConfig()
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `header_footer` must be a mapping/object.")
        unknown = sorted(set(raw).difference(_HEADER_FOOTER_KEYS))
        if unknown:
            raise ValueError(
                f"{source_label} field `header_footer` includes unsupported key(s): "
                f"{', '.join(unknown)}."
            )

        label = f"{source_label} `header_footer`"
        defaults = LuluHeaderFooterConfig()
        font_size = (
            parse_positive_number(raw["font_size"], "header_footer.font_size")
            if "font_size" in raw
            else defaults.font_size
        )
        return LuluHeaderFooterConfig(
            headers=ConfigLoader._optional_boolean(raw, "headers", label, default=True),
            footers=ConfigLoader._optional_boolean(raw, "footers", label, default=True),
            font=ConfigLoader._optional_non_empty_string(raw, "font", label) or defaults.font,
            font_size=font_size,
            even_header=ConfigLoader._optional_template(raw, "even_header", defaults.even_header),
            odd_header=ConfigLoader._optional_template(raw, "odd_header", defaults.odd_header),
            footer=ConfigLoader._optional_template(raw, "footer", defaults.footer),
            header_left=ConfigLoader._optional_template(raw, "header_left", ""),
            header_right=ConfigLoader._optional_template(raw, "header_right", ""),
            footer_left=ConfigLoader._optional_template(raw, "footer_left", ""),
            footer_right=ConfigLoader._optional_template(raw, "footer_right", ""),
            alternate_left_right=ConfigLoader._optional_boolean(
                raw, "alternate_left_right", label, default=True
            ),
        )

    @staticmethod
    def _optional_template(payload: Mapping[str, Any], key: str, default: str) -> str:
        """Read a header/footer template; an explicit blank value disables it."""

        if key not in payload:
            return default
        return normalize_optional_string(payload[key]) or ""

    @staticmethod
    def _optional_non_empty_string(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> str | None:
        """Read an optional string field and normalize blank values to `None`."""

        if key not in payload:
            return None
        return normalize_optional_string(payload[key])

    @staticmethod
    def _optional_positive_int(
        payload: Mapping[str, Any], key: str, source_label: str, default: int
    ) -> int:
        """Read and validate a positive integer payload field."""

        if key not in payload:
            return default

        raw_value = payload[key]
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        if isinstance(raw_value, int):
            parsed = raw_value
        else:
            normalized = normalize_optional_string(raw_value)
            if normalized is None:
                return default
            try:
                parsed = int(normalized)
            except ValueError as exc:
                raise ValueError(
                    f"{source_label} field `{key}` must be a positive integer."
                ) from exc

        if parsed <= 0:
            raise ValueError(f"{source_label} field `{key}` must be a positive integer.")
        return parsed

    @staticmethod
    def _optional_non_negative_int(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> int:
        """Read an optional integer field that may be zero."""

        if key not in payload:
            return 0
        raw_value = payload[key]
        if isinstance(raw_value, bool) or not isinstance(raw_value, (int, str)):
            raise ValueError(f"{source_label} field `{key}` must be a non-negative integer.")
        try:
            parsed = int(raw_value)
        except ValueError as exc:
            raise ValueError(
                f"{source_label} field `{key}` must be a non-negative integer."
            ) from exc
        if parsed < 0:
            raise ValueError(f"{source_label} field `{key}` must be a non-negative integer.")
        return parsed

    @staticmethod
    def _optional_boolean(
        payload: Mapping[str, Any], key: str, source_label: str, default: bool
    ) -> bool:
        """Read and validate a boolean field from a payload."""

        if key not in payload:
            return default

        parsed = parse_permissive_boolean(payload[key])
        if parsed is None:
            raise ValueError(
                f"{source_label} field `{key}` must be a boolean value "
                "(`true`/`false`, `1`/`0`, `yes`/`no`)."
            )
        return parsed

    @staticmethod
    def _optional_string_map(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> dict[str, str]:
        """Read an optional mapping with non-empty string keys and values."""

        if key not in payload:
            return {}

        raw = payload[key]
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a mapping/object.")

        normalized: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            key_value = normalize_optional_string(raw_key)
            value_value = normalize_optional_string(raw_value)
            if key_value is None:
                raise ValueError(f"{source_label} field `{key}` contains a blank key.")
            if value_value is None:
                raise ValueError(
                    f"{source_label} field `{key}` contains blank value for `{key_value}`."
                )
            normalized[key_value] = value_value
        return normalized

    @staticmethod
    def _optional_env_string(env: Mapping[str, str], key: str) -> str | None:
        """Read and normalize optional string environment variable values."""

        if key not in env:
            return None
        return normalize_optional_string(env.get(key))

    @staticmethod
    def _optional_env_positive_int(env: Mapping[str, str], key: str) -> int | None:
        """Read an optional positive integer from environment mapping."""

        raw_value = ConfigLoader._optional_env_string(env, key)
        if raw_value is None:
            return None
        try:
            parsed = int(raw_value)
        except ValueError as exc:
            raise ValueError(f"Environment variable `{key}` must be a positive integer.") from exc
        if parsed <= 0:
            raise ValueError(f"Environment variable `{key}` must be a positive integer.")
        return parsed

    @staticmethod
    def _optional_env_non_negative_int(env: Mapping[str, str], key: str) -> int:
        raw_value = ConfigLoader._optional_env_string(env, key)
        if raw_value is None:
            return 0
        try:
            parsed = int(raw_value)
        except ValueError as exc:
            raise ValueError(
                f"Environment variable `{key}` must be a non-negative integer."
            ) from exc
        if parsed < 0:
            raise ValueError(f"Environment variable `{key}` must be a non-negative integer.")
        return parsed

    @staticmethod
    def _optional_env_boolean(env: Mapping[str, str], key: str) -> bool | None:
        """Read an optional boolean from environment mapping."""

        if key not in env:
            return None
        parsed = parse_permissive_boolean(env.get(key))
        if parsed is None:
            raise ValueError(
                f"Environment variable `{key}` must be a boolean value "
                "(`true`/`false`, `1`/`0`, `yes`/`no`)."
            )
        return parsed


def _first_set(value: bool | None, default: bool) -> bool:
    return default if value is None else value
