from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Protocol, runtime_checkable


@runtime_checkable
class PrefObject(Protocol):
    """Anything that can persist itself as a single string.

    The matching deserializer is a plain callable taking that string back.
    """

    def serialize(self) -> str:
        ...


@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))


@dataclass(frozen=True)
class Color:
    """RGBA color with float channels, nominally in [0, 1]."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0

    def __iter__(self) -> Iterator[float]:
        return iter((self.r, self.g, self.b, self.a))

    def clamped(self) -> "Color":
        return Color(
            r=_clamp(self.r, 0.0, 1.0),
            g=_clamp(self.g, 0.0, 1.0),
            b=_clamp(self.b, 0.0, 1.0),
            a=_clamp(self.a, 0.0, 1.0),
        )


def _clamp(val: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(val)))
