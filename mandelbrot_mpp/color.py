"""Platform-neutral colors and the per-target factories that realise them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Color:
    """An opaque RGB triple with 8-bit channels."""

    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
                raise ValueError(f"{name} must be an integer in [0, 255], got {value!r}.")

    @classmethod
    def from_hex(cls, hex_color: str) -> "Color":
        hex_color = hex_color.strip().lstrip('#')
        if len(hex_color) != 6:
            raise ValueError('color must be in the form #RRGGBB.')
        try:
            red, green, blue = (int(hex_color[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError as exc:
            raise ValueError('color must contain only hexadecimal digits.') from exc
        return cls(red, green, blue)

    def to_hex(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"

    def as_tuple(self) -> tuple[int, int, int]:
        return self.red, self.green, self.blue


class ColorFactory(ABC):
    """Construct a target-specific color value from RGB components."""

    target: str

    @abstractmethod
    def create(self, red: int, green: int, blue: int) -> Any:
        ...

    def convert(self, color: Color) -> Any:
        return self.create(color.red, color.green, color.blue)


class PillowColorFactory(ColorFactory):
    """Server target: colors as the RGB tuples Pillow draws with."""

    target = "server"

    def create(self, red: int, green: int, blue: int) -> tuple[int, int, int]:
        return Color(red, green, blue).as_tuple()


class CanvasColorFactory(ColorFactory):
    """Browser target: colors as CSS strings for a canvas ``fillStyle``."""

    target = "canvas"

    def create(self, red: int, green: int, blue: int) -> str:
        color = Color(red, green, blue)
        return f"rgb({color.red}, {color.green}, {color.blue})"


_FACTORIES: dict[str, type[ColorFactory]] = {
    PillowColorFactory.target: PillowColorFactory,
    CanvasColorFactory.target: CanvasColorFactory,
}


def get_color_factory(target: str) -> ColorFactory:
    """Return the color factory configured for a deployment ``target``."""

    try:
        factory_cls = _FACTORIES[target.lower()]
    except KeyError:
        raise ValueError(f"Unknown color target '{target}'. Valid choices: {', '.join(sorted(_FACTORIES))}.") from None
    return factory_cls()
