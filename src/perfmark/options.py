"""Measurement options and option profile loading.

Handles:
- The :class:`MeasureOptions` record and its validation.
- Building options from plain mappings (snake_case or camelCase keys).
- Loading named option profiles from YAML files.
- Reporting questionable option combinations as warnings.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from perfmark.logging import get_logger

log = get_logger("options")

#: A zero-argument callable, possibly returning an awaitable.
Work = Callable[[], Any]

THRESHOLD_FIELDS: tuple[str, ...] = (
    "mean_under",
    "min_under",
    "max_under",
    "margin_of_error_under",
    "standard_deviation_under",
)

_CAMEL_CASE_ALIASES: dict[str, str] = {
    "meanUnder": "mean_under",
    "minUnder": "min_under",
    "maxUnder": "max_under",
    "marginOfErrorUnder": "margin_of_error_under",
    "standardDeviationUnder": "standard_deviation_under",
    "beforeEach": "before_each",
    "afterEach": "after_each",
}


# ---------------------------------------------------------------------------
# MeasureOptions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MeasureOptions:
    """Options for :func:`perfmark.timing.measure` and ``Benchmark.record``.

    Thresholds are in milliseconds. A threshold of ``None`` is not checked.
    """

    iterations: int = 100  # Number of timed repetitions
    serial: bool = True  # False = launch all iterations before awaiting any
    mean_under: float | None = None
    min_under: float | None = None
    max_under: float | None = None
    margin_of_error_under: float | None = None
    standard_deviation_under: float | None = None
    before_each: Work | None = None
    after_each: Work | None = None
    verify: bool = True  # Whether thresholds are enforced

    def __post_init__(self) -> None:
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int):
            raise ValueError(
                f"iterations must be an integer, got {type(self.iterations).__name__}"
            )
        if self.iterations < 1:
            raise ValueError(f"iterations must be at least 1 (got {self.iterations})")
        for name in THRESHOLD_FIELDS:
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must not be negative (got {value})")
        for name in ("before_each", "after_each"):
            hook = getattr(self, name)
            if hook is not None and not callable(hook):
                raise ValueError(f"{name} must be callable")

    @property
    def thresholds(self) -> dict[str, float]:
        """The thresholds that are set, keyed by option name."""
        return {
            name: getattr(self, name)
            for name in THRESHOLD_FIELDS
            if getattr(self, name) is not None
        }

    def replace(self, **changes: Any) -> MeasureOptions:
        """Return a copy with *changes* applied (and validated)."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the non-callable fields."""
        return {
            "iterations": self.iterations,
            "serial": self.serial,
            "verify": self.verify,
            **{name: getattr(self, name) for name in THRESHOLD_FIELDS},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MeasureOptions:
        """Build options from a mapping.

        Keys may be snake_case field names or their camelCase spellings
        (``meanUnder``, ``beforeEach``, ...).

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_CASE_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown measure option: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)


DEFAULT_OPTIONS = MeasureOptions()


def resolve_options(
    options: MeasureOptions | Mapping[str, Any] | None,
    overrides: Mapping[str, Any] | None = None,
) -> MeasureOptions:
    """Normalize the ``options`` argument accepted by the public API.

    *options* may be a :class:`MeasureOptions`, a mapping understood by
    :meth:`MeasureOptions.from_dict`, or ``None`` for the defaults.
    Keyword *overrides* are applied on top.
    """
    if options is None:
        resolved = DEFAULT_OPTIONS
    elif isinstance(options, MeasureOptions):
        resolved = options
    else:
        resolved = MeasureOptions.from_dict(options)
    if overrides:
        resolved = resolved.replace(**overrides)
    return resolved


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single option validation finding."""

    field: str
    message: str
    severity: str = "warning"  # "error" or "warning"


def validate_options(options: MeasureOptions) -> list[ValidationError]:
    """Check *options* for combinations that are legal but likely mistakes.

    Hard errors are raised by :class:`MeasureOptions` itself; this only
    reports warnings. Empty list means nothing suspicious.
    """
    errors: list[ValidationError] = []

    if not options.serial and (options.before_each or options.after_each):
        errors.append(
            ValidationError(
                field="serial",
                message=(
                    "before_each/after_each hooks run interleaved with other "
                    "iterations in overlapped mode."
                ),
            )
        )

    spread_thresholds = [
        name
        for name in ("margin_of_error_under", "standard_deviation_under")
        if getattr(options, name) is not None
    ]
    if spread_thresholds and options.iterations < 3:
        errors.append(
            ValidationError(
                field="iterations",
                message=(
                    f"Need at least 3 iterations for a meaningful "
                    f"{' / '.join(spread_thresholds)} check (got {options.iterations})."
                ),
            )
        )

    if options.thresholds and not options.verify:
        errors.append(
            ValidationError(
                field="verify",
                message="Thresholds are set but verify is False; they will be ignored.",
            )
        )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load an option profile file.

    Profile format::

        defaults:
          iterations: 50
          serial: true

        profiles:
          fast:
            meanUnder: 5
          io:
            iterations: 10
            serial: false
            max_under: 250

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    log.info("Loaded option profile %s", profile_path)
    return data


def options_from_profile(
    profile_data: Mapping[str, Any],
    name: str | None = None,
) -> MeasureOptions:
    """Build options from a parsed profile.

    The ``defaults`` section applies to every profile; the named entry
    under ``profiles`` is layered on top of it.

    Raises:
        KeyError: If *name* is not defined in the profile.
        ValueError: If a section is not a mapping or holds unknown options.
    """
    defaults = profile_data.get("defaults") or {}
    if not isinstance(defaults, Mapping):
        raise ValueError("Profile 'defaults' must be a mapping of option -> value")

    merged: dict[str, Any] = dict(defaults)
    if name is not None:
        profiles = profile_data.get("profiles") or {}
        if not isinstance(profiles, Mapping):
            raise ValueError("Profile 'profiles' must be a mapping of name -> options")
        if name not in profiles:
            raise KeyError(f"Unknown profile: {name!r}")
        entry = profiles[name] or {}
        if not isinstance(entry, Mapping):
            raise ValueError(f"Profile '{name}' must be a mapping, got {type(entry).__name__}")
        merged.update(entry)

    return MeasureOptions.from_dict(merged)
