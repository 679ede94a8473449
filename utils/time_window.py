# utils/time_window.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, tzinfo

from utils.clock import as_utc

__all__ = ["TimeWindow"]

_WINDOW_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")
_DISABLED = {"", "off", "none", "disabled", "0"}


def _fmt(t: time) -> str:
    h12 = t.hour % 12 or 12
    suffix = "AM" if t.hour < 12 else "PM"
    return f"{h12}:{t.minute:02d} {suffix}"


@dataclass(frozen=True)
class TimeWindow:
    """
    Daily wall-clock window in a fixed timezone.
    ``start`` is inclusive and ``end`` exclusive; a window whose end is not
    after its start wraps past midnight.
    """
    start: time
    end: time
    tz: tzinfo

    @classmethod
    def parse(cls, value: str | None, tz: tzinfo) -> TimeWindow | None:
        """
        Parse "HH:MM-HH:MM". Returns None for a disabled gate ("off", empty).
        Raises ValueError on anything else that does not parse.
        """
        if value is None or value.strip().lower() in _DISABLED:
            return None
        m = _WINDOW_RE.match(value)
        if not m:
            raise ValueError(f"Invalid time window {value!r}; expected HH:MM-HH:MM")
        h1, m1, h2, m2 = (int(x) for x in m.groups())
        # 24:00 is accepted as an end-of-day bound
        end = time(0, 0) if (h2, m2) == (24, 0) else time(h2, m2)
        return cls(start=time(h1, m1), end=end, tz=tz)

    def local_time(self, moment: datetime) -> time:
        return as_utc(moment).astimezone(self.tz).time()

    def contains(self, moment: datetime) -> bool:
        t = self.local_time(moment)
        if self.start < self.end:
            return self.start <= t < self.end
        return t >= self.start or t < self.end

    def tz_label(self, moment: datetime) -> str:
        return as_utc(moment).astimezone(self.tz).tzname() or ""

    def describe(self, moment: datetime, joiner: str = "to") -> str:
        """Render like ``10:00 AM to 1:00 PM IST``. Use joiner="and" after "between"."""
        label = self.tz_label(moment)
        text = f"{_fmt(self.start)} {joiner} {_fmt(self.end)}"
        return f"{text} {label}" if label else text
