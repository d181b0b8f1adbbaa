from dataclasses import dataclass
from typing import Optional

from common.config.env import get_env_bool, get_env_int, get_env_str


@dataclass(frozen=True)
class OracleConfig:
    """Connection settings for Oracle hosted SDWIS/STATE installations."""

    user: str
    password: Optional[str]
    connect_string: Optional[str]
    pool_min: int
    pool_max: int
    pool_increment: int
    thick_mode: bool
    client_lib_dir: Optional[str]

    @classmethod
    def from_env(cls) -> "OracleConfig":
        """Load Oracle config from environment variables.

        Oracle 11g servers only accept Thick mode (Instant Client) connections,
        so ``ORACLE_THICK_MODE`` defaults to true.
        """
        return cls(
            user=get_env_str("ORACLE_USER", required=True),
            password=get_env_str("ORACLE_PASSWORD"),
            connect_string=get_env_str("ORACLE_CONNECT_STRING"),
            pool_min=get_env_int("ORACLE_POOL_MIN", 2),
            pool_max=get_env_int("ORACLE_POOL_MAX", 10),
            pool_increment=get_env_int("ORACLE_POOL_INCREMENT", 1),
            thick_mode=get_env_bool("ORACLE_THICK_MODE", True),
            client_lib_dir=get_env_str("ORACLE_CLIENT_LIB_DIR"),
        )
