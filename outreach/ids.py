"""
Company identifier codec: PREFIX-NNNN.

Identifiers are integers rendered with a fixed prefix and zero padding.
Parsing never raises; malformed input yields None and callers leave such
ids out of the dense identifier space.
"""

import re
from dataclasses import dataclass, field

from outreach import config


@dataclass(frozen=True)
class IdCodec:
    """Parse/format identifiers and order them numerically."""

    prefix: str = config.ID_PREFIX
    width: int = config.ID_WIDTH
    _strict: re.Pattern = field(init=False, repr=False, compare=False)
    _loose: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        escaped = re.escape(self.prefix)
        object.__setattr__(self, "_strict", re.compile(rf"^{escaped}-(\d{{{self.width}}})$"))
        object.__setattr__(self, "_loose", re.compile(rf"^{escaped}-(\d+)$"))

    @property
    def max_value(self) -> int:
        return 10**self.width - 1

    def parse(self, value: object) -> int | None:
        """
        Parse a well-formed identifier.

        Returns the numeric part, or None when the value is not exactly
        PREFIX-<width digits> or the number is outside [1, max_value].
        """
        if not isinstance(value, str):
            return None
        match = self._strict.match(value.strip())
        if not match:
            return None
        n = int(match.group(1))
        return n if 1 <= n <= self.max_value else None

    def parse_loose(self, value: object) -> int | None:
        """Like parse, but accepts any digit count (legacy cells like ME-12)."""
        if not isinstance(value, str):
            return None
        match = self._loose.match(value.strip())
        if not match:
            return None
        n = int(match.group(1))
        return n if 1 <= n <= self.max_value else None

    def format(self, n: int) -> str:
        if not 1 <= n <= self.max_value:
            raise ValueError(f"Identifier {n} outside 1..{self.max_value}")
        return f"{self.prefix}-{n:0{self.width}d}"

    def is_valid(self, value: object) -> bool:
        return self.parse(value) is not None

    def successor(self, value: str) -> str | None:
        n = self.parse(value)
        if n is None or n >= self.max_value:
            return None
        return self.format(n + 1)

    def predecessor(self, value: str) -> str | None:
        n = self.parse(value)
        if n is None or n <= 1:
            return None
        return self.format(n - 1)

    def sort_key(self, value: str) -> tuple[int, int, str]:
        """Total order by number; unparsable ids sort last, by text."""
        n = self.parse_loose(value)
        if n is None:
            return (1, 0, str(value))
        return (0, n, "")


DEFAULT_CODEC = IdCodec()
