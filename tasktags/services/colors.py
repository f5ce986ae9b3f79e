"""Tag color assignment strategies."""

import random
import re
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ..core.config import DEFAULT_TAG_PALETTE, Settings

DEFAULT_PALETTE = DEFAULT_TAG_PALETTE

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _validate_palette(palette: Sequence[str]) -> tuple[str, ...]:
    colors = tuple(palette)
    if not colors:
        raise ValueError("Color palette cannot be empty")

    invalid = [color for color in colors if not _HEX_COLOR.match(color)]
    if invalid:
        raise ValueError(f"Invalid color format in palette: {invalid}. Use #RRGGBB")

    return colors


@runtime_checkable
class ColorAssigner(Protocol):
    """Anything that can pick a display color for a tag name."""

    palette: tuple[str, ...]

    def assign(self, name: str) -> str: ...


class HashColorAssigner:
    """
    Deterministic color from the tag name.

    Lower-cases the name, sums the Unicode code points and indexes the
    palette with the sum modulo its size. "Work", "work" and "WORK" always
    get the same color; unrelated names may collide.

    Example:
        assigner = HashColorAssigner()
        assigner.assign("urgent")  # "#DD6E42", every time
    """

    def __init__(self, palette: Sequence[str] = DEFAULT_PALETTE):
        self.palette = _validate_palette(palette)

    def assign(self, name: str) -> str:
        code_sum = sum(ord(char) for char in name.lower())
        return self.palette[code_sum % len(self.palette)]


class RandomColorAssigner:
    """
    Random color from the palette.

    Not reproducible: the same name can get a different color each time.
    Pass a seeded ``random.Random`` to make it repeatable in tests.
    """

    def __init__(self, palette: Sequence[str] = DEFAULT_PALETTE, rng: random.Random | None = None):
        self.palette = _validate_palette(palette)
        self.rng = rng or random.Random()

    def assign(self, name: str) -> str:
        return self.rng.choice(self.palette)


def build_color_assigner(settings: Settings) -> ColorAssigner:
    """
    Create the assigner selected by ``TAG_COLOR_STRATEGY``.

    Args:
        settings: Application settings

    Returns:
        HashColorAssigner for "hash" (default), RandomColorAssigner for "random"
    """
    if settings.TAG_COLOR_STRATEGY == "random":
        return RandomColorAssigner(settings.TAG_PALETTE)
    return HashColorAssigner(settings.TAG_PALETTE)
