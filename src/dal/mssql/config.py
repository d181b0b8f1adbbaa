from dataclasses import dataclass
from typing import Optional

from common.config.env import get_env_bool, get_env_int, get_env_str


@dataclass(frozen=True)
class MssqlConfig:
    """Connection settings for SQL Server hosted SDWIS/STATE installations."""

    server: str
    database: str
    user: Optional[str]
    password: Optional[str]
    port: int
    encrypt: bool
    trust_server_certificate: bool
    driver: str
    min_pool_size: int
    max_pool_size: int

    @classmethod
    def from_env(cls) -> "MssqlConfig":
        """Load SQL Server config from environment variables."""
        return cls(
            server=get_env_str("MSSQL_SERVER", required=True),
            database=get_env_str("MSSQL_DATABASE", "SDWIS_STATE"),
            user=get_env_str("MSSQL_USER"),
            password=get_env_str("MSSQL_PASSWORD"),
            port=get_env_int("MSSQL_PORT", 1433),
            encrypt=get_env_bool("MSSQL_ENCRYPT", True),
            trust_server_certificate=get_env_bool("MSSQL_TRUST_CERT", False),
            driver=get_env_str("MSSQL_DRIVER", "ODBC Driver 18 for SQL Server"),
            min_pool_size=get_env_int("MSSQL_POOL_MIN", 1),
            max_pool_size=get_env_int("MSSQL_POOL_MAX", 10),
        )

    def odbc_dsn(self) -> str:
        """Render an ODBC connection string for this server."""
        parts = [
            f"DRIVER={{{self.driver}}}",
            f"SERVER={self.server},{self.port}",
            f"DATABASE={self.database}",
            f"Encrypt={'yes' if self.encrypt else 'no'}",
            f"TrustServerCertificate={'yes' if self.trust_server_certificate else 'no'}",
        ]
        if self.user:
            parts.append(f"UID={self.user}")
            parts.append(f"PWD={{{self.password or ''}}}")
        else:
            parts.append("Trusted_Connection=yes")
        return ";".join(parts)
