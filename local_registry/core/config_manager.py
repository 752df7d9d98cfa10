import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, List

import aiofiles

from local_registry.core.logging_utils import get_module_logger


logger = get_module_logger("ConfigManager")

COMMENT_PREFIXES = ('#', ';')


class ConfigManager:
    """Reads and edits plain ``key = value`` text files."""

    def __init__(self):
        self.logger = get_module_logger("ConfigManager")

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _stringify_value(value: Any) -> str:
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)

    @staticmethod
    def _line_key(line: str) -> str:
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_PREFIXES):
            return ""
        if '=' not in stripped:
            return ""
        return stripped.split('=', 1)[0].strip()

    def _parse_config_lines(self, lines: Iterable[str]) -> Dict[str, str]:
        config: Dict[str, str] = {}

        for raw_line in lines:
            key = self._line_key(raw_line)
            if not key:
                continue

            value = raw_line.strip().split('=', 1)[1].strip()

            if '#' in value:
                value = value.split('#')[0].strip()

            if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                value = value[1:-1]

            config[key] = value

        return config

    def _read_lines(self, config_path: Path) -> List[str]:
        if not config_path.exists():
            return []
        with open(config_path, 'r', encoding='utf-8') as f:
            return f.readlines()

    # ------------------------------------------------------------------
    # Reading

    def read_config(self, config_path: Path) -> Dict[str, str]:
        try:
            return self._parse_config_lines(self._read_lines(config_path))
        except OSError as e:
            logger.error("Failed to read config %s: %s", config_path, e)
            return {}

    async def read_config_async(self, config_path: Path) -> Dict[str, str]:
        """Async version for use in async contexts."""
        if not await asyncio.to_thread(config_path.exists):
            return {}

        try:
            lines: list[str] = []
            async with aiofiles.open(config_path, 'r', encoding='utf-8') as f:
                async for line in f:
                    lines.append(line)
            return self._parse_config_lines(lines)
        except OSError as e:
            logger.error("Failed to read config %s: %s", config_path, e)
            return {}

    # ------------------------------------------------------------------
    # Writing

    def write_config(self, config_path: Path, updates: Dict[str, Any]) -> None:
        """Update keys in place, appending new ones. Creates the file if needed.

        Raises OSError when the file cannot be read or written.
        """
        lines = self._read_lines(config_path)
        updated_keys = set()

        for i, line in enumerate(lines):
            key = self._line_key(line)
            if key in updates:
                value_str = self._stringify_value(updates[key])
                indent = len(line) - len(line.lstrip())
                lines[i] = ' ' * indent + f"{key} = {value_str}\n"
                updated_keys.add(key)

        if lines and not lines[-1].endswith('\n'):
            lines[-1] += '\n'

        for key, value in updates.items():
            if key not in updated_keys:
                value_str = self._stringify_value(value)
                lines.append(f"{key} = {value_str}\n")
                logger.debug("Added new config key: %s", key)

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            f.writelines(lines)

    def remove_keys(self, config_path: Path, keys: Iterable[str]) -> int:
        """Drop every line assigning one of ``keys``. Returns the number removed.

        Raises OSError when the file cannot be read or written.
        """
        targets = set(keys)
        if not config_path.exists():
            return 0

        lines = self._read_lines(config_path)
        kept = [line for line in lines if self._line_key(line) not in targets]
        removed = len(lines) - len(kept)
        if removed:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.writelines(kept)
            logger.debug("Removed %d key(s) from %s", removed, config_path)
        return removed

    # ------------------------------------------------------------------
    # Typed accessors

    def get_bool(self, config: Dict[str, str], key: str, default: bool = False) -> bool:
        if key not in config:
            return default

        value = config[key].lower()
        return value in ('true', '1', 'yes', 'on')

    def get_int(self, config: Dict[str, str], key: str, default: int = 0) -> int:
        if key not in config:
            return default

        try:
            return int(config[key])
        except ValueError:
            logger.warning("Invalid int value for %s: %s, using default %d", key, config[key], default)
            return default

    def get_float(self, config: Dict[str, str], key: str, default: float = 0.0) -> float:
        if key not in config:
            return default

        try:
            return float(config[key])
        except ValueError:
            logger.warning("Invalid float value for %s: %s, using default %f", key, config[key], default)
            return default

    def get_str(self, config: Dict[str, str], key: str, default: str = "") -> str:
        return config.get(key, default)


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    return _config_manager
