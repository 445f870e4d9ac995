"""
Console logging for the command-line front end.

Renders orchestrator events (start, per-language results, retries,
completion) as coloured console lines, and forwards structured entries to an
optional callback.
"""
import sys
import os
from datetime import datetime
from typing import Optional, Dict, Any, Callable
from enum import Enum

from multitranslate.core.events import Event, EventBus, EventType


class LogLevel(Enum):
    """Log levels with priority values"""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogType(Enum):
    """Types of log messages for special handling"""
    GENERAL = "general"
    PROGRESS = "progress"
    LANGUAGE_RESULT = "language_result"
    TRANSLATION_START = "translation_start"
    TRANSLATION_END = "translation_end"
    ERROR_DETAIL = "error_detail"


class Colors:
    """ANSI color codes for terminal output"""
    NO_COLOR = os.environ.get('NO_COLOR') is not None or not sys.stdout.isatty()

    YELLOW = '' if NO_COLOR else '\033[93m'
    WHITE = '' if NO_COLOR else '\033[97m'
    GRAY = '' if NO_COLOR else '\033[90m'
    GREEN = '' if NO_COLOR else '\033[92m'
    RED = '' if NO_COLOR else '\033[91m'
    ENDC = '' if NO_COLOR else '\033[0m'

    @classmethod
    def disable(cls):
        """Disable all colors"""
        cls.YELLOW = cls.WHITE = cls.GRAY = cls.GREEN = cls.RED = cls.ENDC = ''


class UnifiedLogger:
    """
    Console logger that understands translation events
    """

    def __init__(self,
                 name: str = "multitranslate",
                 console_output: bool = True,
                 enable_colors: bool = True,
                 min_level: LogLevel = LogLevel.INFO,
                 callback: Optional[Callable[[Dict[str, Any]], None]] = None,
                 stream=None):
        """
        Args:
            name: Logger name/identifier
            console_output: Whether to output to console
            enable_colors: Whether to use colored output
            min_level: Minimum log level to display
            callback: Receives every structured log entry
            stream: Output stream (defaults to stdout)
        """
        self.name = name
        self.console_output = console_output
        self.enable_colors = enable_colors
        self.min_level = min_level
        self.callback = callback
        self.stream = stream
        self.translation_state = {
            'languages': [],
            'provider': '',
            'start_time': None
        }

        if not enable_colors:
            Colors.disable()

    def _format_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S")

    def _format_console_message(self, level: LogLevel, message: str,
                                log_type: LogType = LogType.GENERAL,
                                data: Optional[Dict[str, Any]] = None) -> str:
        """Format message for console output"""
        data = data or {}
        level_colors = {
            LogLevel.DEBUG: Colors.GRAY,
            LogLevel.INFO: Colors.WHITE,
            LogLevel.WARNING: Colors.YELLOW,
            LogLevel.ERROR: Colors.RED,
            LogLevel.CRITICAL: Colors.RED
        }
        color = level_colors.get(level, Colors.WHITE)

        if log_type == LogType.PROGRESS:
            return self._format_progress(data)
        elif log_type == LogType.TRANSLATION_START:
            return self._format_translation_start(data)
        elif log_type == LogType.TRANSLATION_END:
            return self._format_translation_end(data)
        elif log_type == LogType.LANGUAGE_RESULT:
            return self._format_language_result(message, data)
        elif log_type == LogType.ERROR_DETAIL:
            return self._format_error_detail(message, data)

        level_str = f"[{level.name}] " if level != LogLevel.INFO else ""
        return f"{color}[{self._format_timestamp()}] {level_str}{message}{Colors.ENDC}"

    def _format_progress(self, data: Dict[str, Any]) -> str:
        percentage = data.get('percentage', 0)
        bar_length = 30
        filled = int(bar_length * percentage / 100)
        bar = '█' * filled + '░' * (bar_length - filled)
        label = data.get('language', '')
        return f"{Colors.GRAY}{label:<11}[{bar}] {percentage:.1f}%{Colors.ENDC}"

    def _format_translation_start(self, data: Dict[str, Any]) -> str:
        self.translation_state.update({
            'languages': data.get('languages', []),
            'provider': data.get('provider', 'Unknown'),
            'start_time': datetime.now()
        })
        output = [f"{Colors.YELLOW}TRANSLATION STARTED{Colors.ENDC}"]
        output.append(f"{Colors.WHITE}Languages: {len(self.translation_state['languages'])} "
                      f"({data.get('mode', 'parallel')}){Colors.ENDC}")
        output.append(f"{Colors.GRAY}Provider: {self.translation_state['provider']}{Colors.ENDC}")
        return '\n'.join(output)

    def _format_translation_end(self, data: Dict[str, Any]) -> str:
        output = [f"\n{Colors.WHITE}TRANSLATION COMPLETE{Colors.ENDC}"]
        if self.translation_state['start_time']:
            duration = datetime.now() - self.translation_state['start_time']
            output.append(f"{Colors.GRAY}Duration: {duration}{Colors.ENDC}")
        succeeded = data.get('succeeded', [])
        failed = data.get('failed', [])
        output.append(f"{Colors.WHITE}Succeeded: {len(succeeded)}{Colors.ENDC}")
        if failed:
            output.append(f"{Colors.YELLOW}Failed: {', '.join(failed)}{Colors.ENDC}")
        return '\n'.join(output)

    def _format_language_result(self, message: str, data: Dict[str, Any]) -> str:
        if data.get('error'):
            return f"{Colors.RED}[{self._format_timestamp()}] ✗ {message}: {data['error']}{Colors.ENDC}"
        return f"{Colors.GREEN}[{self._format_timestamp()}] ✓ {message}{Colors.ENDC}"

    def _format_error_detail(self, message: str, data: Dict[str, Any]) -> str:
        output = [f"{Colors.RED}[{self._format_timestamp()}] ERROR: {message}{Colors.ENDC}"]
        if 'details' in data:
            output.append(f"{Colors.RED}Details: {data['details']}{Colors.ENDC}")
        return '\n'.join(output)

    def log(self, level: LogLevel, message: str,
            log_type: LogType = LogType.GENERAL,
            data: Optional[Dict[str, Any]] = None):
        """
        Main logging method

        Args:
            level: Log level
            message: Log message
            log_type: Type of log for special formatting
            data: Additional data for the log entry
        """
        if level.value < self.min_level.value:
            return

        if self.console_output:
            console_msg = self._format_console_message(level, message, log_type, data)
            if console_msg:
                print(console_msg, file=self.stream or sys.stdout, flush=True)

        if self.callback:
            self.callback({
                'timestamp': datetime.now().isoformat(),
                'level': level.name,
                'type': log_type.value,
                'message': message,
                'data': data or {}
            })

    def debug(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.DEBUG, message, log_type, data)

    def info(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, log_type, data)

    def warning(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.WARNING, message, log_type, data)

    def error(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.ERROR, message, log_type, data)

    def handle_event(self, event: Event) -> None:
        """Translate an orchestrator event into a console line."""
        data = event.data
        if event.type == EventType.TRANSLATION_STARTED:
            self.info("Translation Started", LogType.TRANSLATION_START, data)
        elif event.type == EventType.TRANSLATION_COMPLETED:
            self.info("Translation Complete", LogType.TRANSLATION_END, data)
        elif event.type == EventType.TRANSLATION_FAILED:
            self.error(data.get('error', 'Translation failed'), LogType.ERROR_DETAIL)
        elif event.type == EventType.LANGUAGE_COMPLETED:
            self.info(data.get('name', data.get('language', '')), LogType.LANGUAGE_RESULT, data)
        elif event.type == EventType.LANGUAGE_FAILED:
            self.warning(data.get('name', data.get('language', '')), LogType.LANGUAGE_RESULT, data)
        elif event.type == EventType.CHUNK_RETRY:
            self.warning(
                f"{data.get('language')} chunk {data.get('chunk_index', 0) + 1}: "
                f"retry {data.get('attempt')} after {data.get('error')}"
            )
        elif event.type == EventType.FALLBACK_USED:
            self.warning(f"{data.get('language')}: {data.get('primary')} failed, "
                         f"using {data.get('secondary')}")
        elif event.type == EventType.CHUNK_TRANSLATED:
            self.debug("Progress Update", LogType.PROGRESS, {
                'language': data.get('language'),
                'percentage': data.get('progress', 0) * 100,
            })

    def attach(self, event_bus: EventBus) -> None:
        event_bus.subscribe_all(self.handle_event)


# Global logger instance
_global_logger = None


def get_logger(name: str = "multitranslate", **kwargs) -> UnifiedLogger:
    """Get or create the global logger instance"""
    global _global_logger
    if _global_logger is None:
        _global_logger = UnifiedLogger(name, **kwargs)
    elif 'callback' in kwargs:
        _global_logger.callback = kwargs['callback']
    return _global_logger


def setup_cli_logger(enable_colors: bool = True) -> UnifiedLogger:
    """Setup logger for CLI usage"""
    from multitranslate.config import DEBUG_MODE

    return get_logger(
        console_output=True,
        enable_colors=enable_colors,
        min_level=LogLevel.DEBUG if DEBUG_MODE else LogLevel.INFO
    )
