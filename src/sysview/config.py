"""Configuration system for sysview."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit


@dataclass
class SamplingConfig:
    """Sampling cadence."""

    interval: float = 1.0  # Seconds between rounds
    sample_timeout: float = 0.0  # Seconds; 0 disables the per-sample timeout

    @property
    def timeout(self) -> float | None:
        """The per-sample timeout, or None when disabled."""
        return self.sample_timeout if self.sample_timeout > 0 else None


@dataclass
class ThresholdsConfig:
    """Usage thresholds for colouring.

    Percentages apply to CPU, memory and disk; network thresholds are the
    combined send + receive rate of one interface in bytes/second.
    """

    warning: float = 70.0
    critical: float = 90.0
    network_high: float = 1024 * 1024  # 1 MB/s
    network_critical: float = 10 * 1024 * 1024  # 10 MB/s

    def level(self, percent: float) -> str:
        """Return "critical", "warning" or "normal" for a usage percentage."""
        if percent >= self.critical:
            return "critical"
        if percent >= self.warning:
            return "warning"
        return "normal"

    def activity(self, rate: float) -> str:
        """Return the activity level of an interface's combined rate."""
        if rate >= self.network_critical:
            return "critical"
        if rate >= self.network_high:
            return "warning"
        if rate > 0:
            return "normal"
        return "idle"


@dataclass
class DisplayConfig:
    """Presentation options."""

    history_size: int = 60  # CPU samples kept for the sparkline
    mouse: bool = True
    alt_screen: bool = True


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


def _load_section(cls: type, data: dict) -> object:
    """Build a section dataclass from TOML data, using dataclass defaults for missing fields."""
    defaults = cls()
    values = {}
    for f in fields(cls):
        value = data.get(f.name, getattr(defaults, f.name))
        # tomlkit items wrap plain values
        values[f.name] = value.unwrap() if hasattr(value, "unwrap") else value
    return cls(**values)


@dataclass
class Config:
    """Main configuration container."""

    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "sysview"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    def validate(self) -> None:
        """Raise ValueError if any value is out of range."""
        if self.sampling.interval <= 0:
            raise ValueError(f"sampling.interval must be positive, got {self.sampling.interval}")
        if self.sampling.sample_timeout < 0:
            raise ValueError(
                f"sampling.sample_timeout must not be negative, got {self.sampling.sample_timeout}"
            )
        t = self.thresholds
        if not 0 <= t.warning <= t.critical <= 100:
            raise ValueError(
                f"thresholds must satisfy 0 <= warning <= critical <= 100, "
                f"got warning={t.warning} critical={t.critical}"
            )
        if not 0 <= t.network_high <= t.network_critical:
            raise ValueError("thresholds must satisfy 0 <= network_high <= network_critical")
        if self.display.history_size < 1:
            raise ValueError(
                f"display.history_size must be at least 1, got {self.display.history_size}"
            )

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("sampling", "thresholds", "display"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file cannot be parsed or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        try:
            config = cls(
                sampling=_load_section(SamplingConfig, data.get("sampling", {})),
                thresholds=_load_section(ThresholdsConfig, data.get("thresholds", {})),
                display=_load_section(DisplayConfig, data.get("display", {})),
            )
            config.validate()
        except TypeError as e:
            # Wrong value types, e.g. interval = "fast"
            raise ValueError(f"Invalid config file {path}: {e}") from e

        return config
