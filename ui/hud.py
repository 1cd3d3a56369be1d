#!/usr/bin/env python3
"""HUD panel, legend and pause banner (mixin)."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import pygame


class HudRenderer:
    """Mixin that draws every overlay / HUD element."""

    # ------------------------------------------------------------------ #
    #  Main HUD panel                                                      #
    # ------------------------------------------------------------------ #

    def draw_hud(
        self,
        surface: pygame.Surface,
        vehicles: Sequence[Mapping[str, Any]],
        intersection: Mapping[str, Any],
    ) -> None:
        if self.font_small is None:
            return
        coordinator = intersection.get("coordinator", {})
        metrics = intersection.get("bus_metrics", {})
        waiting = sum(1 for v in vehicles if v.get("state") == "WAITING")
        lines = [
            f"T {intersection.get('time_ms', 0) / 1000.0:8.2f} s",
            f"MODE {str(coordinator.get('type', '?')).upper()}",
            f"ON MAP {len(vehicles)}   WAITING {waiting}",
            f"CREATED {intersection.get('total_created', 0)}",
            f"TILES HELD {len(intersection.get('owners', {}))}",
            f"REQ {metrics.get('reservations', 0)}   REJ {metrics.get('rejected', 0)}",
        ]
        green = intersection.get("green")
        if green is not None:
            lines.append(f"GREEN {'/'.join(green)}")

        row_h = 16
        panel = pygame.Rect(12, 12, 210, len(lines) * row_h + 12)
        pygame.draw.rect(surface, self.HUD_BG_COLOR, panel, border_radius=6)
        pygame.draw.rect(surface, self.HUD_BORDER_COLOR, panel, width=1, border_radius=6)
        y = panel.y + 6
        for line in lines:
            surface.blit(self.font_small.render(line, True, self.TEXT_COLOR), (panel.x + 10, y))
            y += row_h

    # ------------------------------------------------------------------ #
    #  Legend                                                               #
    # ------------------------------------------------------------------ #

    def _draw_legend(self, surface: pygame.Surface) -> None:
        if self.font_small is None:
            return
        width, height = surface.get_size()
        x = width - 120
        y = height - 16 - len(self.LEGEND_ITEMS) * 18 - 8
        box = pygame.Rect(x - 6, y - 4, 112, len(self.LEGEND_ITEMS) * 18 + 10)
        pygame.draw.rect(surface, self.HUD_BG_COLOR, box, border_radius=4)
        pygame.draw.rect(surface, self.HUD_BORDER_COLOR, box, width=1, border_radius=4)
        for label, color in self.LEGEND_ITEMS:
            pygame.draw.circle(surface, color, (x + 4, y + 6), 4)
            surface.blit(self.font_small.render(label, True, self.DIM_TEXT_COLOR), (x + 14, y))
            y += 18

    # ------------------------------------------------------------------ #
    #  Pause banner                                                        #
    # ------------------------------------------------------------------ #

    def _draw_pause_banner(self, surface: pygame.Surface) -> None:
        width, height = surface.get_size()
        overlay = pygame.Surface((width, height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 100))
        surface.blit(overlay, (0, 0))
        if self.font_title:
            text = self.font_title.render("PAUSED", True, (220, 220, 220))
            surface.blit(text, text.get_rect(center=(width // 2, height // 2)))
