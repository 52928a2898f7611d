from __future__ import annotations
import json, sys, time
from typing import Any
_LEVELS = {'DEBUG': 0, 'INFO': 1, 'WARN': 2, 'ERROR': 3}
_ALIASES = {'WARNING': 'WARN', 'ERR': 'ERROR'}
_LOG_LEVEL = 'WARN'
_LOG_FORMAT = 'text'

def normalize_level(level: str) -> str | None:
    lvl = str(level).strip().upper()
    lvl = _ALIASES.get(lvl, lvl)
    return lvl if lvl in _LEVELS else None

def configure_logging(level: str = 'WARN', format: str = 'text'):
    global _LOG_LEVEL, _LOG_FORMAT
    _LOG_LEVEL = normalize_level(level) or 'WARN'
    _LOG_FORMAT = 'json' if str(format).lower() == 'json' else 'text'

def _should_log(level: str) -> bool:
    return _LEVELS.get(normalize_level(level) or 'INFO', 1) >= _LEVELS.get(_LOG_LEVEL, 2)

def log(level: str, message: str, **fields: Any):
    if not _should_log(level):
        return
    ts = time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())
    lvl = normalize_level(level) or 'INFO'
    if _LOG_FORMAT == 'json':
        rec = {'ts': ts, 'level': lvl, 'msg': message}
        if fields: rec.update(fields)
        print(json.dumps(rec, sort_keys=True, default=str), file=sys.stderr)
    else:
        extra = ' '.join(f'{k}={v}' for k,v in fields.items()) if fields else ''
        line = f"{ts} [{lvl}] {message}" + (f" {extra}" if extra else '')
        print(line, file=sys.stderr)

def debug(message: str, **fields: Any): log('debug', message, **fields)

def info(message: str, **fields: Any): log('info', message, **fields)

def warn(message: str, **fields: Any): log('warn', message, **fields)

def error(message: str, **fields: Any): log('error', message, **fields)
