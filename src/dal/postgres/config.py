from dataclasses import dataclass

from common.config.env import get_env_int, get_env_str


@dataclass(frozen=True)
class PostgresConfig:
    """Connection settings for the Postgres replica of SDWIS/STATE."""

    host: str
    port: int
    database: str
    user: str
    password: str
    min_pool_size: int
    max_pool_size: int

    @classmethod
    def from_env(cls) -> "PostgresConfig":
        """Load Postgres config from environment variables (all optional)."""
        return cls(
            host=get_env_str("DB_HOST", "localhost"),
            port=get_env_int("DB_PORT", 5435),
            database=get_env_str("DB_NAME", "dws_prod"),
            user=get_env_str("DB_USER", "dba"),
            password=get_env_str("DB_PASSWORD", ""),
            min_pool_size=get_env_int("DB_POOL_MIN", 1),
            max_pool_size=get_env_int("DB_POOL_MAX", 10),
        )
