"""
Logging setup for the transfer pipeline

Console records go to stderr (stdout belongs to the operator summary), with an
optional daily-rotated file. Records can be rendered as JSON with the current
run context merged in. Signing keys never reach a handler unmasked.
"""
import json
import logging
import re
import sys
from contextvars import ContextVar
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from qrypta.core.config import Settings, get_settings

# run_id / chain of the pipeline run currently executing
run_context: ContextVar[Dict[str, Any]] = ContextVar('run_context', default={})

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Chatty client libraries stay at WARNING unless overridden
QUIET_LIBRARIES = ("httpx", "httpcore", "urllib3", "web3", "websockets")

_STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {'message', 'asctime'}


class SensitiveDataFilter(logging.Filter):
    """Masks signing keys, credentials and RPC API keys in log messages"""

    PATTERNS = [
        (re.compile(r'(owner_pk|private[_-]?key|mnemonic)(["\']?\s*[:=]\s*["\']?)[^"\'\s,&]+', re.IGNORECASE),
         r'\1\2***'),
        (re.compile(r'(password|token|secret|api[_-]?key)(["\']?\s*[:=]\s*["\']?)[^"\'\s,&]+', re.IGNORECASE),
         r'\1\2***'),
        (re.compile(r'Bearer\s+[^\s"]+'), 'Bearer ***'),
        # Hosted RPC endpoints carry the project key in the path
        (re.compile(r'(https?://[^\s/]*(?:infura\.io|alchemy\.com|quiknode\.pro)/(?:v\d+/)?)[A-Za-z0-9_-]{16,}'),
         r'\1***'),
    ]

    # Exact values registered at startup (the signing key)
    _secrets: Set[str] = set()

    def __init__(self, enabled: bool = True):
        super().__init__()
        self.enabled = enabled

    @classmethod
    def register_secret(cls, value: str):
        value = (value or "").strip()
        if len(value) < 8:
            return
        cls._secrets.add(value)
        if value[:2].lower() == "0x":
            cls._secrets.add(value[2:])

    def mask(self, text: str) -> str:
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, "***")
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.enabled:
            return True

        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(self.mask(a) if isinstance(a, str) else a for a in record.args)
        # Fields passed through extra= reach the JSON formatter as-is
        for key in [k for k in vars(record) if k not in _STANDARD_ATTRS]:
            setattr(record, key, self._mask_value(getattr(record, key)))
        return True

    def _mask_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.mask(value)
        if isinstance(value, dict):
            return {k: self._mask_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._mask_value(v) for v in value]
        return value


class ContextualFormatter(logging.Formatter):
    """One JSON object per record: standard fields, run context, then extra= fields"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'function': record.funcName,
            'line': record.lineno,
            'message': record.getMessage(),
        }
        payload.update(run_context.get({}))

        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class LoggingConfig:
    """Process-wide logging configuration"""

    _configured = False
    _module_levels: Dict[str, str] = {}
    _log_metrics: Dict[str, int] = dict.fromkeys(('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'), 0)

    @classmethod
    def configure(
        cls,
        module_levels: Optional[Dict[str, str]] = None,
        settings: Optional[Settings] = None,
        level: Optional[str] = None,
        force: bool = False,
    ):
        """
        Install handlers on the root logger

        Args:
            module_levels: Extra per-logger levels, applied last
            settings: Settings to read LOG_* values from (default get_settings())
            level: Overrides LOG_LEVEL (the CLI's --log-level)
            force: Reconfigure even if already configured
        """
        if cls._configured and not force:
            return

        settings = settings or get_settings()
        app_level = (level or settings.log_level).upper()

        levels = {name: "WARNING" for name in QUIET_LIBRARIES}
        levels.update({"qrypta": app_level, "root": app_level})
        levels.update(cls._parse_module_levels(settings.log_module_levels))
        levels.update(module_levels or {})
        cls._module_levels = levels

        handlers = cls._build_handlers(settings)
        handlers.append(cls._MetricsHandler(level=logging.DEBUG))
        logging.basicConfig(level=levels["root"].upper(), handlers=handlers, force=True)

        for name, name_level in levels.items():
            if name != "root":
                logging.getLogger(name).setLevel(name_level.upper())

        cls._configured = True

    @staticmethod
    def _parse_module_levels(raw: Optional[str]) -> Dict[str, str]:
        """LOG_MODULE_LEVELS is a JSON object; anything else is ignored"""
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}

    @staticmethod
    def _build_handlers(settings: Settings) -> List[logging.Handler]:
        if settings.log_format.lower() == "json":
            formatter: logging.Formatter = ContextualFormatter(datefmt=DATE_FORMAT)
        else:
            formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)
        masking = SensitiveDataFilter(enabled=not settings.log_sensitive_data)

        handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
        if settings.log_file_enabled:
            log_path = Path(settings.log_file_path)
            if not log_path.is_absolute():
                log_path = Path.cwd() / log_path
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(TimedRotatingFileHandler(
                filename=str(log_path),
                when='midnight',
                backupCount=settings.log_file_retention,
                encoding='utf-8',
            ))

        for handler in handlers:
            handler.setFormatter(formatter)
            handler.addFilter(masking)
        return handlers

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._configured:
            cls.configure()
        return logging.getLogger(name)

    @classmethod
    def set_context(cls, **kwargs):
        """Merge values into the run context of the current task"""
        run_context.set({**run_context.get({}), **kwargs})

    @classmethod
    def clear_context(cls):
        run_context.set({})

    @classmethod
    def get_metrics(cls) -> Dict[str, int]:
        """Records emitted per level since the last reset"""
        return dict(cls._log_metrics)

    @classmethod
    def reset_metrics(cls):
        cls._log_metrics = dict.fromkeys(cls._log_metrics, 0)

    class _MetricsHandler(logging.Handler):
        def emit(self, record: logging.LogRecord):
            if record.levelname in LoggingConfig._log_metrics:
                LoggingConfig._log_metrics[record.levelname] += 1
