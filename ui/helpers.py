"""
ui/helpers.py
=============
Utility functions shared across UI modules: stable owner colours and
alpha-surface drawing.
"""

from __future__ import annotations

import zlib
from typing import Any, Dict, Sequence, Tuple

import pygame

from .types import ColorRGB, ColorRGBA

# ── Colours ──────────────────────────────────────────────────────────────────


def owner_color(owner: str, palette: Sequence[ColorRGB]) -> ColorRGB:
    """Colour of a reservation owner key.

    Plain vehicle ids use the same palette slot as the vehicle itself so a
    car and its tiles match; platoon keys hash to a stable slot.
    """
    if owner.isdigit():
        return palette[int(owner) % len(palette)]
    return palette[zlib.crc32(owner.encode()) % len(palette)]


def with_alpha(color: ColorRGB, alpha: int) -> ColorRGBA:
    return (color[0], color[1], color[2], alpha)


# ── Alpha drawing ────────────────────────────────────────────────────────────

def draw_alpha_rect(
    target: pygame.Surface,
    color: Tuple[int, ...],
    rect: pygame.Rect,
    border_radius: int = 0,
) -> None:
    """Draw a semi-transparent rectangle (colour tuple with 4 channels)."""
    if rect.w < 1 or rect.h < 1:
        return
    tmp = pygame.Surface((rect.w, rect.h), pygame.SRCALPHA)
    pygame.draw.rect(tmp, color, (0, 0, rect.w, rect.h), border_radius=border_radius)
    target.blit(tmp, rect.topleft)


class ViewHelpers:
    """Mixin with the per-view lookups the renderers share."""

    @staticmethod
    def _load_font(size: int, bold: bool = False) -> pygame.font.Font:
        if not pygame.font.get_init():
            pygame.font.init()
        font = pygame.font.Font(None, size)
        font.set_bold(bold)
        return font

    def _vehicle_color(self, vehicle: Dict[str, Any]) -> ColorRGB:
        return owner_color(str(vehicle["id"]), self.DEFAULT_VEHICLE_COLORS)

    def _to_screen(self, x: float, y: float) -> Tuple[int, int]:
        sx, sy = self.camera.world_to_screen(x, y)
        return int(round(sx)), int(round(sy))
