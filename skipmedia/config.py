from dataclasses import dataclass, fields
from . import log95, ConfigError, Path

DEFAULT_CONFIG_PATH = Path("/etc/mediaSkipper.conf")

def load_dict_from_custom_format(file_path: str | Path) -> dict[str, str]:
    try:
        result_dict = {}
        with open(file_path, 'r') as file:
            for line in file:
                if line.strip() == "" or line.startswith(";"): continue
                if ":" not in line: raise ConfigError(f"Line without a key: {line.strip()}")
                key, value = line.split(':', 1)
                result_dict[key.strip()] = value.strip()
        return result_dict
    except FileNotFoundError: return {}

def _to_bool(value: str) -> bool:
    if value.lower() in ("1", "true", "yes", "on"): return True
    if value.lower() in ("0", "false", "no", "off"): return False
    raise ValueError(f"not a boolean: {value}")

@dataclass
class SkipConfig:
    session_check_interval: int = 100 # ms
    edl_cache_ttl: float = 0 # s, 0 means re-read the edl every scan
    web_enabled: bool = True
    web_host: str = "0.0.0.0"
    web_port: int = 3001
    log_file: str = "/tmp/mediaSkipper_log"

    @property
    def interval_seconds(self) -> float: return self.session_check_interval / 1000

    def validate(self) -> "SkipConfig":
        if self.session_check_interval <= 0: raise ConfigError("session_check_interval has to be positive")
        if self.edl_cache_ttl < 0: raise ConfigError("edl_cache_ttl can't be negative")
        if not 0 <= self.web_port <= 65535: raise ConfigError(f"web_port out of range: {self.web_port}")
        return self

    @classmethod
    def from_dict(cls, values: dict[str, str], logger: log95.log95 | None = None) -> "SkipConfig":
        converters = {"session_check_interval": int, "edl_cache_ttl": float, "web_enabled": _to_bool, "web_host": str, "web_port": int, "log_file": str}
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            if key not in known:
                if logger: logger.warning(f"Unknown config key {key}, ignoring")
                continue
            try: kwargs[key] = converters[key](value)
            except ValueError as e: raise ConfigError(f"Invalid value for {key}: {value} ({e})") from e
        return cls(**kwargs).validate()

    @classmethod
    def load(cls, path: str | Path = DEFAULT_CONFIG_PATH, logger: log95.log95 | None = None) -> "SkipConfig":
        return cls.from_dict(load_dict_from_custom_format(path), logger)
