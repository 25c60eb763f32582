from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_SEED_PATH = Path(__file__).resolve().parent.parent.parent / "data" / "schools.json"


@dataclass(frozen=True)
class StoreConfig:
    seed_path: Path = Path(os.getenv("FLYSCH_SEED_PATH", str(_DEFAULT_SEED_PATH)))
    cache_ttl_seconds: float = 300.0  # 5 minutes


DEFAULT_STORE_CONFIG = StoreConfig()
