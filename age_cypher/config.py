from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from age_cypher.identifiers import GraphName

AGE_SEARCH_PATH = 'ag_catalog, "$user", public'


class AgeSettings(BaseSettings):
    """Connection and graph settings, read from ``AGE_*`` environment variables."""

    conninfo: str = Field(
        default="host=localhost port=5432 dbname=postgres user=postgres",
        description="libpq connection string; PG* environment variables also apply",
    )
    graph: str = Field(default="test_graph", description="Default graph name")
    search_path: str = Field(default=AGE_SEARCH_PATH)
    load_age: bool = Field(
        default=False, description="Run LOAD 'age' on every new connection"
    )
    autocommit: bool = True
    pool_min_size: int = Field(default=1, ge=0)
    pool_max_size: int = Field(default=10, ge=1)
    pool_timeout: float = Field(default=30.0, gt=0)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="AGE_", env_file=".env", extra="ignore")

    @field_validator("graph")
    @classmethod
    def _validate_graph(cls, value: str) -> str:
        return str(GraphName(value))

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level: {value}")
        return value
