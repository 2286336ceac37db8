"""Reading time estimate for post bodies."""

import math
import re
from dataclasses import dataclass

DEFAULT_WORDS_PER_MINUTE = 200

_WORD_RE = re.compile(r"\w+(?:['’-]\w+)*")


@dataclass(frozen=True)
class ReadingTime:
    minutes: int
    words: int

    @property
    def text(self) -> str:
        return f"{self.minutes} min read"


def count_words(text: str) -> int:
    return len(_WORD_RE.findall(text or ""))


def estimate_reading_time(
    text: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE
) -> ReadingTime:
    """Estimate minutes to read *text*, rounding up, never below one minute."""
    words = count_words(text)
    minutes = max(1, math.ceil(words / max(words_per_minute, 1)))
    return ReadingTime(minutes=minutes, words=words)
