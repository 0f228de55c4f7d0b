"""Configuration for highlight computation."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

ENV_PREFIX = "TREEHIGHLIGHT_"


@dataclass(frozen=True)
class HighlightConfig:
    """Engine defaults.

    Attributes:
        default_color: Stroke colour used when a definition has none.
        default_opacity: Stroke opacity used when a definition has none.
        default_stroke_width: Stroke width used when a definition has none.
        default_priority: Priority assigned when a definition has none.
        cache_size: Capacity of the ancestor-chain LRU cache.
        default_max_depth: Hop limit for ancestor chains.
        subtree_depth_limit: Hard generation ceiling for subtree descent,
            applied regardless of any caller supplied ``max_depth``.
        log_level: Level name passed to ``configure_logging``.
        log_dir: Directory for the rotating log file.
    """

    default_color: str = "#A13333"
    default_opacity: float = 0.6
    default_stroke_width: float = 4
    default_priority: int = 0
    cache_size: int = 100
    default_max_depth: int = 500
    subtree_depth_limit: int = 20
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    def __post_init__(self) -> None:
        if self.cache_size < 1:
            raise ValueError(f"cache_size must be positive, got {self.cache_size}")
        if self.default_max_depth < 1:
            raise ValueError(
                f"default_max_depth must be positive, got {self.default_max_depth}"
            )
        if self.subtree_depth_limit < 1:
            raise ValueError(
                f"subtree_depth_limit must be positive, got {self.subtree_depth_limit}"
            )
        if not 0.0 <= self.default_opacity <= 1.0:
            raise ValueError(
                f"default_opacity must be within [0, 1], got {self.default_opacity}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HighlightConfig":
        """Build a config from ``TREEHIGHLIGHT_*`` environment variables.

        Unset variables keep their defaults. Unparseable values raise
        ``ValueError``.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _get(name: str, default, cast):
            raw = env.get(ENV_PREFIX + name)
            if raw is None or raw == "":
                return default
            try:
                return cast(raw)
            except ValueError as e:
                raise ValueError(
                    f"Invalid value for {ENV_PREFIX + name}: {raw!r}"
                ) from e

        return cls(
            default_color=_get("DEFAULT_COLOR", defaults.default_color, str),
            default_opacity=_get("DEFAULT_OPACITY", defaults.default_opacity, float),
            default_stroke_width=_get(
                "DEFAULT_STROKE_WIDTH", defaults.default_stroke_width, float
            ),
            default_priority=_get("DEFAULT_PRIORITY", defaults.default_priority, int),
            cache_size=_get("CACHE_SIZE", defaults.cache_size, int),
            default_max_depth=_get("MAX_DEPTH", defaults.default_max_depth, int),
            subtree_depth_limit=_get(
                "SUBTREE_DEPTH_LIMIT", defaults.subtree_depth_limit, int
            ),
            log_level=_get("LOG_LEVEL", defaults.log_level, str).upper(),
            log_dir=_get("LOG_DIR", defaults.log_dir, Path),
        )
