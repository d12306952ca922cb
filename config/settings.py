"""
ESMO Lung Cancer Knowledge Graph - Configuration Settings
===========================================================
Pydantic BaseSettings for the knowledge graph API and explorer UI.
All values can be overridden via environment variables with the ESMOKG_ prefix.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class EsmoKGSettings(BaseSettings):
    """Central configuration for the ESMO knowledge graph explorer."""

    class Config:
        env_prefix = "ESMOKG_"
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"

    # ── Supabase ─────────────────────────────────────────────────────────
    SUPABASE_URL: str = ""
    SUPABASE_KEY: Optional[str] = None

    # ── Tables (PostgreSQL lowercases table names) ───────────────────────
    TABLE_ENTITIES: str = "esmokg_entities"
    TABLE_RELATIONS: str = "esmokg_relations"

    # ── Flowchart Layout ─────────────────────────────────────────────────
    FLOWCHART_ROOT: str = "nsclc"
    LAYOUT_TOTAL_WIDTH: float = 1200.0
    LAYOUT_LEVEL_HEIGHT: float = 150.0
    LAYOUT_TOP_OFFSET: float = 50.0

    # ── API ──────────────────────────────────────────────────────────────
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8530
    API_BASE_URL: str = "http://localhost:8530"
    CORS_ORIGINS: str = "*"

    # ── Streamlit ────────────────────────────────────────────────────────
    GRAPH_HEIGHT: int = 720

    # ── Logging ──────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Metrics ──────────────────────────────────────────────────────────
    METRICS_ENABLED: bool = True


# ── Singleton ────────────────────────────────────────────────────────────
settings = EsmoKGSettings()
