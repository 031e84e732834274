"""WMO weather code descriptions."""

import json
import threading
from pathlib import Path
from typing import Dict, Optional

from cityweather.logging_config import logger

FALLBACK_WEATHER_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
}


class WeatherCodeTranslator:
    """Map numeric weather codes to descriptions.

    The table is read from ``path`` on first use. If that fails, a small
    built-in table is used instead so lookups never fail.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._table: Optional[Dict[int, str]] = None
        self._lock = threading.Lock()

    def _load(self) -> Dict[int, str]:
        try:
            with self.path.open(encoding="utf-8") as fh:
                raw = json.load(fh)
            return {int(code): str(text) for code, text in raw.items()}
        except (OSError, ValueError, AttributeError) as exc:
            logger.warning(
                "WEATHER_CODES_LOAD_FAILED", path=str(self.path), error=str(exc)
            )
            return dict(FALLBACK_WEATHER_CODES)

    @property
    def table(self) -> Dict[int, str]:
        if self._table is None:
            with self._lock:
                if self._table is None:
                    self._table = self._load()
        return self._table

    def describe(self, code: int) -> str:
        """Return the description for a weather code.

        Args:
            code: WMO weather code.

        Returns:
            The description, or "Unknown code <n>" for unmapped codes.
        """
        return self.table.get(code) or f"Unknown code {code}"
