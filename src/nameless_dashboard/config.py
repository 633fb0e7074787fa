"""Runtime configuration: which spreadsheet, which sheets, which transport."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

DEFAULT_SHEET_ID = "11Fhl7NrWdz3IFEmXdzRcbSLRI26VtT2rPl64o3a0urY"
DEFAULT_MEETINGS_SHEET = "elenco riunioni"
DEFAULT_EXCHANGES_SHEET = "Foglio1"
DEFAULT_SPEAKERS_SHEET = "elenco nomi"


@dataclass(frozen=True)
class DashboardConfig:
    sheet_id: str = DEFAULT_SHEET_ID
    meetings_sheet: str = DEFAULT_MEETINGS_SHEET
    exchanges_sheet: str = DEFAULT_EXCHANGES_SHEET
    speakers_sheet: str = DEFAULT_SPEAKERS_SHEET
    # None means no timeout: a hung request delays the session indefinitely.
    timeout: float | None = None
    snapshot_dir: Path | None = None

    def __post_init__(self) -> None:
        for name in ("sheet_id", "meetings_sheet", "exchanges_sheet", "speakers_sheet"):
            if not str(getattr(self, name)).strip():
                raise ValueError(f"{name} must be a non-empty string")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 seconds")

    @property
    def source(self) -> str:
        if self.snapshot_dir is not None:
            return f"snapshot:{self.snapshot_dir}"
        return f"sheet:{self.sheet_id}"

    def with_overrides(self, **overrides: Any) -> DashboardConfig:
        """Return a copy with every non-``None`` override applied."""
        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **_coerce_values(applied)) if applied else self


_KNOWN_KEYS = {f.name for f in fields(DashboardConfig)}


def _coerce_values(values: dict[str, Any]) -> dict[str, Any]:
    coerced: dict[str, Any] = {}
    for key, value in values.items():
        if key not in _KNOWN_KEYS:
            raise ValueError(
                f"Unknown config key {key!r} (expected one of: {', '.join(sorted(_KNOWN_KEYS))})"
            )
        if key == "timeout" and not isinstance(value, (int, float)):
            try:
                value = float(value)
            except ValueError as exc:
                raise ValueError(f"timeout must be a number of seconds, got {value!r}") from exc
        elif key == "snapshot_dir":
            value = Path(value)
        coerced[key] = value
    return coerced


def parse_config_lines(text: str) -> dict[str, str]:
    """Parse ``key=value`` lines; blank lines and ``#`` comments are skipped."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            raise ValueError(f"Invalid config line: {stripped!r}  (expected key=value)")
        key, value = stripped.split("=", 1)
        key = key.strip().lower()
        value = value.strip()
        if not key or not value:
            raise ValueError(f"Config entries must have a non-empty key and value: {stripped!r}")
        values[key] = value
    return values


def load_config_file(path: Path | None) -> dict[str, str]:
    """Return the ``key=value`` pairs of a config file (empty for ``None``)."""
    if not path:
        return {}
    if not path.exists():
        raise ValueError(f"Config file not found: {path} (expected lines like sheet_id=...)")
    if path.is_dir():
        raise ValueError(f"Config path is a directory, not a file: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read config file {path}: {exc}") from exc
    return parse_config_lines(text)


def build_config(config_file: Path | None = None, **overrides: Any) -> DashboardConfig:
    """Defaults, then the config file, then explicit overrides (CLI / env)."""
    return DashboardConfig().with_overrides(**load_config_file(config_file)).with_overrides(
        **overrides
    )
