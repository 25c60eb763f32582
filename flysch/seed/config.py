from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..schools.config import DEFAULT_STORE_CONFIG


@dataclass(frozen=True)
class SeedConfig:
    """
    Configuration for the seed data generator.
    """

    output_path: Path = DEFAULT_STORE_CONFIG.seed_path
    mock_count: int = 30
    random_seed: int | None = None


DEFAULT_SEED_CONFIG = SeedConfig()
