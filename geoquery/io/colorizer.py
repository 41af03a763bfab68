"""
Colorizers

Map raster values to RGBA colors for image rendering.
"""

import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from geoquery.core.exceptions import ColorizerError, UnsupportedDataTypeError


@dataclass(frozen=True)
class RgbaColor:
    r: int
    g: int
    b: int
    a: int

    def __post_init__(self):
        for channel in (self.r, self.g, self.b, self.a):
            if not 0 <= channel <= 255:
                raise ColorizerError(f"Color channel {channel} is outside 0..255")

    @classmethod
    def black(cls) -> "RgbaColor":
        return cls(0, 0, 0, 255)

    @classmethod
    def white(cls) -> "RgbaColor":
        return cls(255, 255, 255, 255)

    @classmethod
    def transparent(cls) -> "RgbaColor":
        return cls(0, 0, 0, 0)

    @classmethod
    def pink(cls) -> "RgbaColor":
        return cls(255, 0, 255, 255)

    @classmethod
    def from_u32(cls, value: int) -> "RgbaColor":
        """Decode 0xRRGGBBAA"""
        return cls((value >> 24) & 0xFF, (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    def to_tuple(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)


@dataclass(frozen=True)
class Breakpoint:
    value: float
    color: RgbaColor

    def __post_init__(self):
        if not math.isfinite(self.value):
            raise ColorizerError(f"Breakpoint value {self.value} is not finite")


class ColorizerKind(str, Enum):
    LINEAR_GRADIENT = "linearGradient"
    LOGARITHMIC_GRADIENT = "logarithmicGradient"
    PALETTE = "palette"
    RGBA = "rgba"


def _round_half_away(values: NDArray) -> NDArray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


@dataclass(frozen=True)
class Colorizer:
    """
    Value to color mapping

    Build with ``linear_gradient``, ``logarithmic_gradient``, ``palette`` or
    ``rgba``. Gradients interpolate between breakpoints and give
    ``default_color`` outside their range; palettes give ``default_color``
    for unlisted values; NaN always maps to ``no_data_color``.

    Examples:
        >>> colorizer = Colorizer.linear_gradient(
        ...     [Breakpoint(0.0, RgbaColor.black()), Breakpoint(255.0, RgbaColor.white())],
        ...     no_data_color=RgbaColor.transparent(),
        ...     default_color=RgbaColor.pink(),
        ... )
        >>> colorizer.map_values(np.array([100.0]))[0].tolist()
        [100, 100, 100, 255]
    """

    kind: ColorizerKind
    breakpoints: tuple[Breakpoint, ...] = ()
    colors: dict[float, RgbaColor] = field(default_factory=dict, hash=False)
    no_data_color: RgbaColor = RgbaColor.transparent()
    default_color: RgbaColor = RgbaColor.transparent()

    @staticmethod
    def _check_breakpoints(breakpoints: list[Breakpoint]) -> None:
        if len(breakpoints) < 2:
            raise ColorizerError("A gradient needs at least two breakpoints")
        values = [b.value for b in breakpoints]
        if any(a >= b for a, b in zip(values, values[1:])):
            raise ColorizerError("Breakpoints must be strictly ascending")

    @classmethod
    def linear_gradient(
        cls,
        breakpoints: list[Breakpoint],
        no_data_color: RgbaColor,
        default_color: RgbaColor,
    ) -> "Colorizer":
        cls._check_breakpoints(breakpoints)
        return cls(ColorizerKind.LINEAR_GRADIENT, tuple(breakpoints), {}, no_data_color, default_color)

    @classmethod
    def logarithmic_gradient(
        cls,
        breakpoints: list[Breakpoint],
        no_data_color: RgbaColor,
        default_color: RgbaColor,
    ) -> "Colorizer":
        cls._check_breakpoints(breakpoints)
        if breakpoints[0].value <= 0:
            raise ColorizerError("Logarithmic gradient breakpoints must be positive")
        return cls(ColorizerKind.LOGARITHMIC_GRADIENT, tuple(breakpoints), {}, no_data_color, default_color)

    @classmethod
    def palette(
        cls,
        colors: dict[float, RgbaColor],
        no_data_color: RgbaColor,
        default_color: RgbaColor = RgbaColor.transparent(),
    ) -> "Colorizer":
        if not colors:
            raise ColorizerError("A palette needs at least one color")
        if not all(math.isfinite(v) for v in colors):
            raise ColorizerError("Palette values must be finite")
        return cls(ColorizerKind.PALETTE, (), dict(colors), no_data_color, default_color)

    @classmethod
    def rgba(cls) -> "Colorizer":
        return cls(ColorizerKind.RGBA)

    def map_values(self, values: NDArray) -> NDArray:
        """
        Colors of ``values`` as an (..., 4) uint8 array

        Raises:
            UnsupportedDataTypeError: If an RGBA colorizer receives non-uint32 values
        """
        if self.kind == ColorizerKind.RGBA:
            return self._map_rgba(values)

        values = np.asarray(values, dtype=np.float64)
        out = np.empty(values.shape + (4,), dtype=np.uint8)
        out[...] = self.default_color.to_tuple()

        if self.kind == ColorizerKind.PALETTE:
            for value, color in self.colors.items():
                out[values == value] = color.to_tuple()
        else:
            self._map_gradient(values, out)

        out[np.isnan(values)] = self.no_data_color.to_tuple()
        return out

    def _map_gradient(self, values: NDArray, out: NDArray) -> None:
        stops = np.array([b.value for b in self.breakpoints])
        channels = np.array([b.color.to_tuple() for b in self.breakpoints], dtype=np.float64)
        with np.errstate(invalid="ignore"):
            in_range = (values >= stops[0]) & (values <= stops[-1])
        if self.kind == ColorizerKind.LOGARITHMIC_GRADIENT:
            stops = np.log10(stops)
            with np.errstate(divide="ignore", invalid="ignore"):
                values = np.log10(np.where(in_range, values, 1.0))

        selected = values[in_range]
        for channel in range(4):
            interpolated = np.interp(selected, stops, channels[:, channel])
            out[..., channel][in_range] = _round_half_away(interpolated).astype(np.uint8)

    @staticmethod
    def _map_rgba(values: NDArray) -> NDArray:
        values = np.asarray(values)
        if values.dtype != np.uint32:
            raise UnsupportedDataTypeError(str(values.dtype), "RGBA colorizer")
        return np.stack(
            [(values >> shift) & 0xFF for shift in (24, 16, 8, 0)],
            axis=-1,
        ).astype(np.uint8)
