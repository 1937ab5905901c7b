"""Application configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    api_prefix: str = "/api/v1"
    project_name: str = "PGN Database API"
    allow_origins: list[str] = ["http://localhost:5173", "http://localhost:4173"]
    database_url: str = "sqlite:///../pgnbase.db"
    remote_api_url: str = "http://localhost:8000/api/v1"
    opening_tree_url: str | None = "http://localhost:3001/api"
    opening_tree_timeout: float = 5.0
    eco_corpus_path: str = str(BASE_DIR / "data" / "eco_openings.json")
    enrichment_chunk_size: int = 50
    enrichment_chunk_pause: float = 0.0
    max_storage_bytes: int = 10 * 1024 * 1024
    auth_feature_enabled: bool = True
    jwt_secret: str = "change-me"
    jwt_exp_minutes: int = 60 * 24 * 30
    lichess_api_url: str = "https://lichess.org/api/games/user/"
    lichess_max_games: int = 2000
    lichess_perf_types: str = "blitz,rapid,classical,correspondence,standard"
    chesscom_api_url: str = "https://api.chess.com/pub/player/"
    import_timeout: float = 30.0


settings = Settings()
