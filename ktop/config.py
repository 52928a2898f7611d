from __future__ import annotations
import os
import yaml
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional
from .util import logging as log

OUTPUT_FORMATS = ('table', 'csv', 'json')
SORT_FIELDS = (
    'name', 'cpu-req', 'cpu-lim', 'cpu-use', 'cpu-pct', 'cpu-cap', 'cpu-req-pct',
    'mem-req', 'mem-lim', 'mem-use', 'mem-pct', 'mem-cap', 'mem-req-pct',
    'disk-use', 'disk-cap', 'disk-pct', 'pods', 'status',
)
MIN_PARALLEL = 1
MAX_PARALLEL = 50
DEFAULT_SORT = 'cpu-req'
CONTROL_PLANE_SELECTOR = '!node-role.kubernetes.io/control-plane'

# setting name -> environment variable
ENV_VARS = {
    'parallel': 'KTOP_PARALLEL',
    'output_format': 'KTOP_FORMAT',
    'show_all': 'KTOP_ALL',
    'no_color': 'KTOP_NO_COLOR',
    'no_sum': 'KTOP_NO_SUM',
    'watch': 'KTOP_WATCH',
    'sort_by': 'KTOP_SORT',
    'show_conditions': 'KTOP_SHOW_CONDITIONS',
}
LOG_ENV_VARS = {
    'level': 'KTOP_LOG_LEVEL',
    'format': 'KTOP_LOG_FORMAT',
}

@dataclass(frozen=True)
class LoggingConfig:
    level: str = 'WARN'
    format: str = 'text'

@dataclass(frozen=True)
class AppConfig:
    parallel: int = 8
    output_format: str = 'table'
    show_all: bool = False
    no_color: bool = False
    no_sum: bool = False
    watch: int = 0
    sort_by: str = DEFAULT_SORT
    reverse: bool = False
    show_conditions: bool = False
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def sort_order(self) -> str:
        return 'asc' if self.reverse else 'desc'

    @property
    def node_selector(self) -> Optional[str]:
        return None if self.show_all else CONTROL_PLANE_SELECTOR

    @property
    def is_default_sort(self) -> bool:
        return self.sort_by == DEFAULT_SORT and not self.reverse


def _parse_int(value: Any, lo: int, hi: Optional[int]) -> Optional[int]:
    if isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text.isdigit():
        return None
    num = int(text)
    if num < lo or (hi is not None and num > hi):
        return None
    return num

def _parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text == 'true':
        return True
    if text == 'false':
        return False
    return None

def _parse_choice(choices) -> Callable[[Any], Optional[str]]:
    def parse(value: Any) -> Optional[str]:
        text = str(value).strip()
        return text if text in choices else None
    return parse

_PARSERS: Dict[str, Callable[[Any], Any]] = {
    'parallel': lambda v: _parse_int(v, MIN_PARALLEL, MAX_PARALLEL),
    'output_format': _parse_choice(OUTPUT_FORMATS),
    'show_all': _parse_bool,
    'no_color': _parse_bool,
    'no_sum': _parse_bool,
    'watch': lambda v: _parse_int(v, 0, None),
    'sort_by': _parse_choice(SORT_FIELDS),
    'reverse': _parse_bool,
    'show_conditions': _parse_bool,
}


def validate_setting(name: str, value: Any, source: str) -> Any:
    """Validate one setting; on violation warn and return the default."""
    default = getattr(AppConfig(), name)
    parsed = _PARSERS[name](value)
    if parsed is None:
        log.warn(f"invalid {source} value '{value}', using default '{default}'", setting=name)
        return default
    return parsed


def _validate_logging(raw: Mapping[str, Any], source: str, base: LoggingConfig) -> LoggingConfig:
    level, fmt = base.level, base.format
    if raw.get('level') is not None:
        parsed = log.normalize_level(raw['level'])
        if parsed is None:
            log.warn(f"invalid {source} log level '{raw['level']}', using default '{LoggingConfig.level}'")
            level = LoggingConfig.level
        else:
            level = parsed
    if raw.get('format') is not None:
        value = str(raw['format']).strip().lower()
        if value not in ('json', 'text'):
            log.warn(f"invalid {source} log format '{raw['format']}', using default '{LoggingConfig.format}'")
            fmt = LoggingConfig.format
        else:
            fmt = value
    return LoggingConfig(level=level, format=fmt)


def load_config_file(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise FileNotFoundError(f'Config file not found: {path}')
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f'Config file {path} must contain a mapping')
    return raw


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None,
                overrides: Optional[Mapping[str, Any]] = None) -> AppConfig:
    """Build the run configuration.

    Precedence is defaults, then the optional YAML file, then ``KTOP_*``
    environment variables, then explicit CLI overrides. File and environment
    values are validated individually; a bad value produces a warning and the
    default, never an error. CLI overrides are expected to be validated by the
    option parser already.
    """
    environ = os.environ if environ is None else environ
    cfg = AppConfig()
    if path:
        raw = load_config_file(path)
        updates = {}
        for name in _PARSERS:
            key = name.replace('_', '-')
            value = raw.get(name, raw.get(key))
            if value is not None:
                updates[name] = validate_setting(name, value, f'config file {key}')
        for name in ('kubeconfig', 'context'):
            if raw.get(name):
                updates[name] = os.path.expanduser(str(raw[name]))
        logging_raw = raw.get('logging') or {}
        if isinstance(logging_raw, Mapping):
            updates['logging'] = _validate_logging(logging_raw, 'config file', cfg.logging)
        else:
            log.warn(f"invalid config file logging section '{logging_raw}', using default logging settings")
        cfg = replace(cfg, **updates)
    env_updates = {}
    for name, var in ENV_VARS.items():
        if var in environ:
            env_updates[name] = validate_setting(name, environ[var], var)
    log_env = {k: environ[v] for k, v in LOG_ENV_VARS.items() if v in environ}
    if log_env:
        env_updates['logging'] = _validate_logging(log_env, 'environment', cfg.logging)
    if env_updates:
        cfg = replace(cfg, **env_updates)
    if overrides:
        cli_updates = {k: v for k, v in overrides.items() if v is not None}
        if cli_updates:
            cfg = replace(cfg, **cli_updates)
    return cfg
