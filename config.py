"""Application configuration with secure handling of sensitive values."""

import re
from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings read from the environment and `.env`.

    Credentials are SecretStr and stay masked in logs and repr() output.
    """

    # Model provider (Groq exposes an OpenAI-compatible API)
    groq_api_key: SecretStr = SecretStr("")
    groq_base_url: str = "https://api.groq.com/openai/v1"
    llm_model: str = "llama-3.1-8b-instant"

    # Sampling temperatures per use case
    extraction_temperature: float = 0.3  # favour deterministic JSON
    recommendation_temperature: float = 0.7  # favour variety
    chat_temperature: float = 0.7

    llm_max_tokens: int = 2048
    # Prompt budget, estimated at ~4 characters per token
    max_prompt_tokens: int = 24000
    prompt_warning_threshold: float = 0.8

    # Knowledge graph - leaving any of these empty disables graph features
    neo4j_uri: str = ""  # e.g., bolt://localhost:7687 or neo4j+s://xxx.databases.neo4j.io
    neo4j_username: str = ""
    neo4j_password: SecretStr = SecretStr("")
    neo4j_database: str = ""  # empty = server default database
    neo4j_pool_max_size: int = 50
    neo4j_connection_acquisition_timeout: float = 60.0

    # Write preferences / seasonal / accommodation insights to the graph
    persist_extended_preferences: bool = False
    # Trim and collapse whitespace in natural keys before MERGE (case is kept)
    normalize_graph_keys: bool = False

    # App
    log_level: str = "INFO"
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("log_level", mode="after")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lowercase level names from the environment."""
        return v.upper()

    def __repr__(self) -> str:
        """Custom repr that masks sensitive values."""
        safe_fields = {
            "groq_base_url": self.groq_base_url,
            "llm_model": self.llm_model,
            "neo4j_uri": self._mask_url(self.neo4j_uri),
            "neo4j_username": self.neo4j_username,
            "neo4j_database": self.neo4j_database,
            "persist_extended_preferences": self.persist_extended_preferences,
            "normalize_graph_keys": self.normalize_graph_keys,
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
        }
        fields_str = ", ".join(f"{k}={v!r}" for k, v in safe_fields.items())
        return f"Settings({fields_str})"

    @staticmethod
    def _mask_url(url: str) -> str:
        """Mask an inline password in a connection URI."""
        if not url:
            return url
        return re.sub(r":([^:@/]+)@", ":***@", url)

    def get_groq_api_key(self) -> str:
        """Safely get the Groq API key value."""
        return self.groq_api_key.get_secret_value()

    def get_neo4j_password(self) -> str:
        """Safely get the Neo4j password value."""
        return self.neo4j_password.get_secret_value()


@lru_cache
def get_settings() -> Settings:
    return Settings()
