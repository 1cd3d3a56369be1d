#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants and the :class:`VanetConfig`
bundle consumed by :mod:`sim.sim_bridge` and :mod:`main`.

Values can be overridden via ``VANET_*`` environment variables (see
:meth:`VanetConfig.from_env`) or on the command line (see :mod:`main`).
This module is a thin, import-safe leaf and never imports from
other project packages.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_VEHICLES_PER_HOUR: float = 600.0
DEFAULT_TICK_MS: int = 20
DEFAULT_INTERSECTION_TYPE: str = "chaos"
DEFAULT_PLATOON_SIZE: int = 3
DEFAULT_INTERSECTION_SIZE: int = 5
RANDOM_SEED_OFFSET: int = 124

INTERSECTION_TYPES = ("chaos", "traffic_light", "platoon")

# ── Output defaults ──────────────────────────────────────────────────────────
DEFAULT_LOG_DIR: Optional[str] = None
DEFAULT_SCREEN_EXPORT_DIR: Optional[str] = None
LOG_FILE: str = "vanet.log"

# ── UI defaults ──────────────────────────────────────────────────────────────
WINDOW_WIDTH: int = 1000
WINDOW_HEIGHT: int = 700
TARGET_FPS: int = 60


def _opt_str(value: Optional[str]) -> Optional[str]:
    if value is None or value.strip() == "":
        return None
    return value


@dataclass(frozen=True)
class VanetConfig:
    """Host configuration of one simulation run.

    Attributes
    ----------
    vehicles_per_hour : float
        Mean Poisson arrival rate of new motes.  ``0`` disables arrivals.
    log_dir : str or None
        Directory receiving the event CSVs; *None* keeps them in memory.
    screen_export_dir : str or None
        Directory receiving one ``frame_<ms>.png`` per tick.
    intersection_type : str
        ``chaos``, ``traffic_light`` or ``platoon``.
    platoon_size : int
        Maximum platoon size for the ``platoon`` variant (``-1`` = unlimited).
    seed : int
        Simulation seed; the world RNG uses ``seed + RANDOM_SEED_OFFSET``.
    """

    vehicles_per_hour: float = DEFAULT_VEHICLES_PER_HOUR
    log_dir: Optional[str] = DEFAULT_LOG_DIR
    screen_export_dir: Optional[str] = DEFAULT_SCREEN_EXPORT_DIR
    intersection_type: str = DEFAULT_INTERSECTION_TYPE
    platoon_size: int = DEFAULT_PLATOON_SIZE
    seed: int = 0

    def validate(self) -> "VanetConfig":
        """Raise :class:`ValueError` naming the first invalid key."""
        if self.vehicles_per_hour < 0:
            raise ValueError(
                f"vehicles_per_hour must be >= 0, got {self.vehicles_per_hour}"
            )
        if self.intersection_type not in INTERSECTION_TYPES:
            raise ValueError(
                f"intersection_type must be one of {INTERSECTION_TYPES}, "
                f"got {self.intersection_type!r}"
            )
        if self.platoon_size == 0 or self.platoon_size < -1:
            raise ValueError(
                f"platoon_size must be positive or -1, got {self.platoon_size}"
            )
        return self

    def with_overrides(self, **changes) -> "VanetConfig":
        """Return a validated copy with every non-*None* override applied."""
        picked = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **picked).validate()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "VanetConfig":
        env = os.environ if environ is None else environ
        base = cls()

        def _num(key: str, cast, default):
            raw = env.get(key)
            if raw is None or raw.strip() == "":
                return default
            try:
                return cast(raw)
            except ValueError as exc:
                raise ValueError(f"{key}: cannot parse {raw!r}") from exc

        cfg = cls(
            vehicles_per_hour=_num(
                "VANET_VEHICLES_PER_HOUR", float, base.vehicles_per_hour
            ),
            log_dir=_opt_str(env.get("VANET_LOG_DIR", base.log_dir)),
            screen_export_dir=_opt_str(
                env.get("VANET_SCREEN_EXPORT_DIR", base.screen_export_dir)
            ),
            intersection_type=env.get(
                "VANET_INTERSECTION_TYPE", base.intersection_type
            ).strip().lower(),
            platoon_size=_num("VANET_PLATOON_SIZE", int, base.platoon_size),
            seed=_num("VANET_SEED", int, base.seed),
        )
        return cfg.validate()
