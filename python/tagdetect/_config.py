"""Detector configuration: tag family plus black-border width."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import numbers
from pathlib import Path
from typing import Any, Mapping

from ._errors import InvalidConfigError
from ._families import DEFAULT_FAMILY, TagFamily, TagFamilyName, TagFamilyRegistry, default_registry

logger = logging.getLogger(__name__)

BLACK_BORDER_WIDTHS = (1, 2)
DEFAULT_BLACK_BORDER = 1

_OPTION_KEYS = {"blackBorder": "black_border", "black_border": "black_border"}


def _json_loads_path_or_text(path_or_json: str | Path) -> Any:
    if isinstance(path_or_json, Path):
        return json.loads(path_or_json.read_text(encoding="utf-8"))

    text = str(path_or_json)
    if text.lstrip().startswith(("{", "[")):
        return json.loads(text)

    path = Path(text)
    if path.exists():
        return json.loads(path.read_text(encoding="utf-8"))

    return json.loads(text)


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidConfigError(f"{name} must be a mapping")
    return value


def _validate_black_border(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidConfigError(f"blackBorder must be an integer, got {type(value).__name__}")
    value = int(value)
    if value not in BLACK_BORDER_WIDTHS:
        raise InvalidConfigError(f"blackBorder must be 1 or 2, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class DetectorOptions:
    """Optional detector settings.

    ``black_border`` is the width in bits of the dark ring around the data
    cells: 1 for standard tags, 2 for grid-calibration sheets (Kalibr
    AprilGrid). ``None`` means the default of 1.
    """

    black_border: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectorOptions":
        data = _require_mapping(data, name="options")
        values: dict[str, Any] = {}
        for key, value in data.items():
            field_name = _OPTION_KEYS.get(key)
            if field_name is None:
                raise InvalidConfigError(f"unknown detector option {key!r}")
            values[field_name] = value
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.black_border is not None:
            out["blackBorder"] = self.black_border
        return out


def _coerce_options(options: DetectorOptions | Mapping[str, Any] | None) -> DetectorOptions:
    if options is None:
        return DetectorOptions()
    if isinstance(options, DetectorOptions):
        return options
    return DetectorOptions.from_dict(options)


@dataclass(frozen=True, slots=True)
class DetectorConfig:
    """Validated, immutable detector configuration."""

    family: TagFamily
    black_border: int = DEFAULT_BLACK_BORDER

    def __post_init__(self) -> None:
        _validate_black_border(self.black_border)

    @classmethod
    def create(
        cls,
        family: str | TagFamilyName = DEFAULT_FAMILY,
        options: DetectorOptions | Mapping[str, Any] | None = None,
        *,
        registry: TagFamilyRegistry | None = None,
    ) -> "DetectorConfig":
        """Resolve ``family`` and validate ``options``.

        Raises :class:`UnknownFamilyError` for families not enabled in
        ``registry`` (the process default when omitted) and
        :class:`InvalidConfigError` for a ``blackBorder`` outside {1, 2}.
        """
        opts = _coerce_options(options)
        if not isinstance(family, str):
            raise InvalidConfigError(f"tag family must be a string, got {type(family).__name__}")
        registry = default_registry() if registry is None else registry
        resolved = registry.resolve(family)

        black_border = DEFAULT_BLACK_BORDER
        if opts.black_border is not None:
            black_border = _validate_black_border(opts.black_border)

        logger.debug("detector config: family=%s blackBorder=%d", resolved.name, black_border)
        return cls(family=resolved, black_border=black_border)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        registry: TagFamilyRegistry | None = None,
    ) -> "DetectorConfig":
        """Construct from ``{"family": ..., "blackBorder": ...}``."""
        data = dict(_require_mapping(data, name="data"))
        family = data.pop("family", DEFAULT_FAMILY)
        return cls.create(family, data, registry=registry)

    @classmethod
    def from_json(
        cls,
        path_or_json: str | Path,
        *,
        registry: TagFamilyRegistry | None = None,
    ) -> "DetectorConfig":
        """Load from JSON text or a JSON file path."""
        return cls.from_dict(_json_loads_path_or_text(path_or_json), registry=registry)

    def to_dict(self) -> dict[str, Any]:
        return {"family": self.family.name, "blackBorder": int(self.black_border)}

    def to_json(self, path: str | Path | None = None) -> str | None:
        """Serialize to pretty JSON text or write JSON to `path`."""
        text = json.dumps(self.to_dict(), indent=2)
        if path is None:
            return text
        Path(path).write_text(text, encoding="utf-8")
        return None
