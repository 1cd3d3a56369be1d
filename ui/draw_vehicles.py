#!/usr/bin/env python3
"""Vehicle discs, heading ticks, remaining routes and sensor rays (mixin)."""

from __future__ import annotations

from typing import Any, Mapping

import pygame

from .helpers import with_alpha


class VehicleRenderer:
    """Mixin that draws every vehicle of a bridge snapshot."""

    def draw_vehicle(self, surface: pygame.Surface, vehicle: Mapping[str, Any]) -> None:
        centre = self._to_screen(vehicle["x"], vehicle["y"])
        radius = self.camera.metres(vehicle.get("radius", 1.0))
        color = self._vehicle_color(vehicle)
        pygame.draw.circle(surface, color, centre, radius)

        outline = self.STATE_COLORS.get(vehicle.get("state", ""))
        if outline is not None:
            pygame.draw.circle(surface, outline, centre, radius, width=max(1, radius // 4))

        # Heading tick from the centre to the rim.
        tip = self._to_screen(
            vehicle["x"] + vehicle["dir_x"] * vehicle.get("radius", 1.0),
            vehicle["y"] + vehicle["dir_y"] * vehicle.get("radius", 1.0),
        )
        pygame.draw.line(surface, (235, 235, 235), centre, tip, 2)

    def draw_route(self, surface: pygame.Surface, vehicle: Mapping[str, Any]) -> None:
        route = vehicle.get("route") or []
        if not route:
            return
        points = [self._to_screen(vehicle["x"], vehicle["y"])]
        points.extend(self._to_screen(x, y) for x, y in route)
        if len(points) < 2:
            return
        overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
        color = with_alpha(self._vehicle_color(vehicle), self.ROUTE_ALPHA)
        pygame.draw.lines(overlay, color, False, points, 3)
        surface.blit(overlay, (0, 0))

    def draw_sensor(self, surface: pygame.Surface, vehicle: Mapping[str, Any]) -> None:
        reading = vehicle.get("sensor", -1.0)
        if reading is None or reading < 0:
            return
        r = vehicle.get("radius", 1.0)
        start = self._to_screen(
            vehicle["x"] + vehicle["dir_x"] * r,
            vehicle["y"] + vehicle["dir_y"] * r,
        )
        end = self._to_screen(
            vehicle["x"] + vehicle["dir_x"] * (r + reading),
            vehicle["y"] + vehicle["dir_y"] * (r + reading),
        )
        overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
        pygame.draw.line(overlay, with_alpha(self.SENSOR_COLOR, self.SENSOR_ALPHA), start, end, 1)
        surface.blit(overlay, (0, 0))
