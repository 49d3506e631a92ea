"""Application settings loaded from environment variables."""
from typing import List, Optional
from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Caminho absoluto para o ficheiro .env
ENV_FILE = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Catalogo-Imoveis"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:8000"]
    # Database
    database_url: str = "sqlite+aiosqlite:///./catalog.db"
    api_key: str = ""

    # Catalog
    public_page_size: int = 12
    admin_page_size: Optional[int] = None   # None = tabela admin sem limite
    featured_limit: int = 6
    search_recommendations: int = 3
    placeholder_image_url: str = "https://via.placeholder.com/800x600?text=Sem+Imagem"
    currency_symbol: str = "R$"

    # Bulk import / export
    import_max_rows: int = 2_000
    import_incremental_merge: bool = False
    export_sheet_name: str = "Imóveis"
    export_max_rows: int = 5_000

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v):
        if not v.startswith(('postgresql+asyncpg://', 'sqlite+aiosqlite://')):
            raise ValueError('database_url must use async driver')
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            import json
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("public_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("public_page_size must be >= 1")
        return v

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v:
            import warnings
            warnings.warn(
                "API_KEY não configurada — endpoints de administração desprotegidos.",
                stacklevel=2,
            )
        return v


settings = Settings()
