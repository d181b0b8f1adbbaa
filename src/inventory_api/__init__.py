"""DW-SFTIES compatible read-only inventory API backed by SDWIS/STATE data."""
