from fastapi import Request

from dal.database import Database
from inventory_api.settings import InventorySettings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_settings(request: Request) -> InventorySettings:
    return request.app.state.settings
