"""
Runtime settings for AuraNotes.

Everything is read from environment variables or a local ``.env``; the
defaults run a local Ollama model against a SQLite file under ``data/``.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """AuraNotes application settings loaded from environment / .env file.

    Attributes:
        llm_provider: Which LLM backend curates notes ("claude", "ollama", "openrouter").
        curation_interval_seconds: Period of the live curation timer.
        curation_min_new_chars: Transcript growth required before a tick calls the LLM.
        curation_timeout_seconds: Upper bound on one curation call (0 disables).
        database_url: Async SQLAlchemy connection string for SQLite.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- LLM Provider ---
    # Selects the LLM backend used for curation, refine, mind maps and flashcards
    llm_provider: str = "ollama"

    # Claude (Anthropic API) settings
    claude_api_key: str = ""  # Required when llm_provider="claude"
    claude_model: str = "claude-sonnet-4-20250514"

    # Ollama (local LLM) settings
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # OpenRouter (OpenAI-compatible chat completions) settings
    openrouter_api_key: str = ""  # Required when llm_provider="openrouter"
    openrouter_model: str = "openai/gpt-oss-20b:free"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_app_title: str = "Aura Notes App"  # Sent as X-Title

    # --- Curation ---
    curation_interval_seconds: float = 5.0
    curation_min_new_chars: int = 20  # Ticks with a smaller delta are skipped
    curation_timeout_seconds: float = 120.0  # 0 = wait forever
    default_note_style: str = "default"  # default, academic, creative, meeting

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level
    cors_origins: list[str] = [
        "http://localhost:5173",  # Vite dev frontend
        "http://localhost:3000",
    ]
    default_owner_id: str = "local"  # Used when X-Owner-Id header is absent

    # --- Storage ---
    # Paths are relative to the project root; absolute paths also supported
    database_url: str = "sqlite+aiosqlite:///data/auranotes.db"


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings; the environment is read on first use only."""
    return Settings()
