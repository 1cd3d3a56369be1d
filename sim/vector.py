#!/usr/bin/env python3
"""
sim/vector.py
=============
Mutable 2-D vector used by the physics layer, the tile map and the
driver.  In-place methods return ``self`` so calls can be chained.
"""

from __future__ import annotations

import math
from typing import Iterator, Tuple


class Vector2D:
    """Mutable 2-D vector with double-precision components."""

    __slots__ = ("x", "y")

    def __init__(self, x: float = 0.0, y: float = 0.0) -> None:
        self.x = float(x)
        self.y = float(y)

    @classmethod
    def of(cls, other: "Vector2D") -> "Vector2D":
        return cls(other.x, other.y)

    # ── in-place operations ───────────────────────────────────────────────

    def set(self, x: float, y: float) -> "Vector2D":
        self.x = float(x)
        self.y = float(y)
        return self

    def translate(self, other: "Vector2D") -> "Vector2D":
        self.x += other.x
        self.y += other.y
        return self

    def scale(self, factor: float) -> "Vector2D":
        self.x *= factor
        self.y *= factor
        return self

    def rotate(self, angle: float) -> "Vector2D":
        """Rotate counter-clockwise by *angle* radians."""
        c = math.cos(angle)
        s = math.sin(angle)
        self.x, self.y = self.x * c - self.y * s, self.x * s + self.y * c
        return self

    def normalize(self) -> "Vector2D":
        """Scale to unit length.  A zero vector is left untouched."""
        length = self.length()
        if length > 0.0:
            self.x /= length
            self.y /= length
        return self

    # ── queries ───────────────────────────────────────────────────────────

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def copy(self) -> "Vector2D":
        return Vector2D(self.x, self.y)

    def dot(self, other: "Vector2D") -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: "Vector2D") -> float:
        return self.x * other.y - self.y * other.x

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    # ── static helpers ────────────────────────────────────────────────────

    @staticmethod
    def diff(a: "Vector2D", b: "Vector2D") -> "Vector2D":
        """Return ``a - b`` as a new vector."""
        return Vector2D(a.x - b.x, a.y - b.y)

    @staticmethod
    def distance(a: "Vector2D", b: "Vector2D") -> float:
        return math.hypot(a.x - b.x, a.y - b.y)

    @staticmethod
    def angle(a: "Vector2D", b: "Vector2D") -> float:
        """Signed angle in ``(-pi, pi]`` measured from *a* to *b*.

        Degenerate (zero-length) inputs yield ``0.0``, i.e. "no turn".
        """
        if a.length() == 0.0 or b.length() == 0.0:
            return 0.0
        ang = math.atan2(a.cross(b), a.dot(b))
        if ang <= -math.pi:
            ang = math.pi
        return ang

    # ── operators ─────────────────────────────────────────────────────────

    def __add__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Vector2D":
        return Vector2D(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector2D":
        return Vector2D(-self.x, -self.y)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector2D):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __repr__(self) -> str:
        return f"Vector2D({self.x:.4f}, {self.y:.4f})"
