from dataclasses import dataclass

from common.config.env import get_env_str


@dataclass(frozen=True)
class InventorySettings:
    """Per-installation SDWIS/STATE naming.

    Most installations keep tables in the default namespace; set
    ``SDWIS_SCHEMA`` (e.g. ``msr30`` or ``dbo``) when they live in a named schema.
    """

    schema: str = ""
    state_code: str = "MS"

    @property
    def schema_prefix(self) -> str:
        return f"{self.schema}." if self.schema else ""

    def table(self, name: str) -> str:
        return f"{self.schema_prefix}{name}"

    @classmethod
    def from_env(cls) -> "InventorySettings":
        return cls(
            schema=(get_env_str("SDWIS_SCHEMA", "") or "").strip(),
            state_code=(get_env_str("SDWIS_ST_CODE", "") or "").strip() or "MS",
        )
