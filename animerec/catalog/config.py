from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class CatalogConfig:
    url: str = os.getenv("ANILIST_URL", "https://graphql.anilist.co")
    timeout: float = float(os.getenv("ANILIST_TIMEOUT", "10"))
    max_per_page: int = 50
    title_cache_ttl: int = 600  # 10 minutes


DEFAULT_CATALOG_CONFIG = CatalogConfig()
