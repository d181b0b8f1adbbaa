from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from fastapi import APIRouter, Depends, Query

from dal.backend_mode import BackendMode
from dal.database import Database
from inventory_api.demo import (
    WATER_SYSTEMS_FILE,
    find_record,
    get_path,
    load_demo_records,
    sort_records,
)
from inventory_api.dependencies import get_database, get_settings
from inventory_api.errors import ResourceNotFoundError, server_error
from inventory_api.mapping import integer, number, ref_code, trimmed
from inventory_api.paging import PageRequest, build_order_by, page_request, sort_request
from inventory_api.settings import InventorySettings

router = APIRouter(prefix="/inventory/water-system", tags=["Water System"])

DEFAULT_ORDER_BY = "ws.name ASC"

# API sort field -> tinwsys column. seasonalInd has no SDWIS/STATE column.
SORT_COLUMNS: Dict[str, Optional[str]] = {
    "name": "ws.name",
    "waterSystemId": "ws.number0",
    "wsStatusCode": "ws.activity_status_cd",
    "fedWSTypeCode": "ws.d_pws_fed_type_cd",
    "fedWSSourceCode": "ws.d_fed_prim_src_cd",
    "fedPopulation": "ws.d_population_count",
    "seasonalInd": None,
    "wsOwnerTypeCode": "ws.owner_type_code",
    "localName": "ws.local_name",
    "createDt": "ws.d_initial_ts",
}

DEMO_SORT_FIELDS = {
    "name": "name",
    "waterSystemId": "waterSystemId",
    "wsStatusCode": "waterSystemStatus.wsStatusCode",
    "fedWSTypeCode": "fedWaterSystemType.wsTypeCode",
    "fedWSSourceCode": "fedWaterSystemSourceType.wsSourceCode",
    "fedPopulation": "fedPopulation",
    "wsOwnerTypeCode": "ownerType.wsOwnerTypeCode",
    "localName": "localName",
    "createDt": "createDt",
}


@dataclass(frozen=True)
class WaterSystemFilters:
    water_system_id: Optional[str] = None
    name: Optional[str] = None
    ws_status_code: Optional[str] = None
    fed_ws_source_code: Optional[str] = None
    fed_ws_type_code: Optional[str] = None
    ws_owner_type_code: Optional[str] = None
    fed_population_from: Optional[int] = None
    fed_population_to: Optional[int] = None


def water_system_filters(
    water_system_id: Optional[str] = Query(
        None, alias="waterSystemId", description="PWS ID starts-with filter (e.g., MS035)"
    ),
    name: Optional[str] = Query(None, description="Name contains filter (case-insensitive)"),
    ws_status_code: Optional[str] = Query(
        None, alias="wsStatusCode", description="Status code (A=Active, I=Inactive)"
    ),
    fed_ws_source_code: Optional[str] = Query(
        None, alias="fedWSSourceCode", description="Federal water source (GW, SW, GWP, SWP)"
    ),
    fed_ws_type_code: Optional[str] = Query(
        None, alias="fedWSTypeCode", description="Federal system type (C, NC, NTNC, NP)"
    ),
    ws_owner_type_code: Optional[str] = Query(
        None, alias="wsOwnerTypeCode", description="Owner type (F, L, P, S)"
    ),
    fed_population_from: Optional[int] = Query(
        None, alias="fedPopulationFrom", description="Minimum population (inclusive)"
    ),
    fed_population_to: Optional[int] = Query(
        None, alias="fedPopulationTo", description="Maximum population (inclusive)"
    ),
) -> WaterSystemFilters:
    return WaterSystemFilters(
        water_system_id=water_system_id,
        name=name,
        ws_status_code=ws_status_code,
        fed_ws_source_code=fed_ws_source_code,
        fed_ws_type_code=fed_ws_type_code,
        ws_owner_type_code=ws_owner_type_code,
        fed_population_from=fed_population_from,
        fed_population_to=fed_population_to,
    )


def map_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a tinwsys row (lowercase keys) to a DWPWaterSystemDTO."""
    return {
        "waterSystemId": trimmed(row.get("number0")),
        "name": row.get("name"),
        "localName": row.get("local_name"),
        "altPANumber": row.get("alternate_st_num"),
        "swPCT": number(row.get("surf_wtr_ratio")),
        "swPurchasePCT": number(row.get("surf_wtr_pur_ratio")),
        "gwPCT": number(row.get("grnd_wtr_ratio")),
        "gwPurchasePCT": number(row.get("grnd_wtr_pur_ratio")),
        "gwUDIPCT": number(row.get("grnd_wtr_udi_ratio")),
        "gwUDIPurchasePCT": number(row.get("grnd_wtr_udi_purch")),
        "fedPopulation": integer(row.get("d_population_count")),
        # SDWIS/STATE only tracks one population figure.
        "grandTotalPopulation": integer(row.get("d_population_count")),
        "daysServingCount": integer(row.get("days_serving_count")),
        "ownerType": ref_code(row.get("owner_type_code"), "wsOwnerTypeCode"),
        "waterSystemType": ref_code(row.get("pws_st_type_cd"), "wsTypeCode"),
        "waterSystemSourceType": ref_code(row.get("d_st_prim_src_cd"), "wsSourceCode"),
        "fedWaterSystemType": ref_code(row.get("d_pws_fed_type_cd"), "wsTypeCode"),
        "fedWaterSystemSourceType": ref_code(row.get("d_fed_prim_src_cd"), "wsSourceCode"),
        "waterSystemStatus": ref_code(row.get("activity_status_cd"), "wsStatusCode"),
        "waterSystemStatusDt": row.get("activity_date"),
        "waterSystemStatusReason": ref_code(row.get("activity_reason_cd"), "reasonCode"),
        "paStatusNotes": row.get("activity_rsn_txt"),
        "notes": row.get("memo_text"),
        "seasonalInd": None,
        "wholeSalerInd": None,
        "createLanId": trimmed(row.get("d_initial_userid")),
        "updateLanId": trimmed(row.get("d_userid_code")),
        "createDt": row.get("d_initial_ts"),
        "updateDt": row.get("d_last_updt_ts"),
    }


def build_where(
    filters: WaterSystemFilters, settings: InventorySettings
) -> Tuple[str, List[Any]]:
    """Render the canonical WHERE clause and its ordered binds."""
    conditions: List[str] = []
    params: List[Any] = []

    def add(template: str, value: Any) -> None:
        params.append(value)
        conditions.append(template.format(f"${len(params)}"))

    add("ws.tinwsys_st_code = {}", settings.state_code)

    if filters.water_system_id:
        add("TRIM(ws.number0) LIKE {}", f"{filters.water_system_id}%")
    if filters.name:
        add("ws.name ILIKE {}", f"%{filters.name}%")
    if filters.ws_status_code:
        add("ws.activity_status_cd = {}", filters.ws_status_code)
    if filters.fed_ws_source_code:
        add("TRIM(ws.d_fed_prim_src_cd) = {}", filters.fed_ws_source_code)
    if filters.fed_ws_type_code:
        add("TRIM(ws.d_pws_fed_type_cd) = {}", filters.fed_ws_type_code)
    if filters.ws_owner_type_code:
        add("TRIM(ws.owner_type_code) = {}", filters.ws_owner_type_code)
    if filters.fed_population_from is not None:
        add("ws.d_population_count >= {}", filters.fed_population_from)
    if filters.fed_population_to is not None:
        add("ws.d_population_count <= {}", filters.fed_population_to)

    return "WHERE " + " AND ".join(conditions), params


def filter_demo(
    records: Iterable[Dict[str, Any]], filters: WaterSystemFilters
) -> List[Dict[str, Any]]:
    results = list(records)
    if filters.water_system_id:
        prefix = filters.water_system_id.upper()
        results = [ws for ws in results if (ws.get("waterSystemId") or "").startswith(prefix)]
    if filters.name:
        term = filters.name.lower()
        results = [ws for ws in results if term in (ws.get("name") or "").lower()]
    exact = (
        ("waterSystemStatus.wsStatusCode", filters.ws_status_code),
        ("fedWaterSystemSourceType.wsSourceCode", filters.fed_ws_source_code),
        ("fedWaterSystemType.wsTypeCode", filters.fed_ws_type_code),
        ("ownerType.wsOwnerTypeCode", filters.ws_owner_type_code),
    )
    for path, wanted in exact:
        if wanted:
            results = [ws for ws in results if get_path(ws, path) == wanted]
    if filters.fed_population_from is not None:
        results = [
            ws for ws in results
            if ws.get("fedPopulation") is not None
            and ws["fedPopulation"] >= filters.fed_population_from
        ]
    if filters.fed_population_to is not None:
        results = [
            ws for ws in results
            if ws.get("fedPopulation") is not None
            and ws["fedPopulation"] <= filters.fed_population_to
        ]
    return results


async def query_water_systems(
    database: Database,
    settings: InventorySettings,
    filters: WaterSystemFilters,
    sort: List[Tuple[str, bool]],
    page: PageRequest,
) -> Tuple[int, List[Dict[str, Any]]]:
    where, params = build_where(filters, settings)
    table = settings.table("tinwsys")

    count_rows = await database.execute(f"SELECT COUNT(*) as total FROM {table} ws {where}", params)
    total = int(count_rows[0]["total"]) if count_rows else 0

    order_by = build_order_by(sort, SORT_COLUMNS, DEFAULT_ORDER_BY)
    limit_idx, offset_idx = len(params) + 1, len(params) + 2
    rows = await database.execute(
        f"SELECT * FROM {table} ws {where}\n"
        f" ORDER BY {order_by}\n"
        f" LIMIT ${limit_idx} OFFSET ${offset_idx}",
        [*params, page.page_size, page.offset],
    )
    return total, [map_row(row) for row in rows]


@router.get("", summary="List water systems")
async def list_water_systems(
    filters: WaterSystemFilters = Depends(water_system_filters),
    page: PageRequest = Depends(page_request),
    sort: List[Tuple[str, bool]] = Depends(sort_request),
    database: Database = Depends(get_database),
    settings: InventorySettings = Depends(get_settings),
):
    """Return a page of water systems with optional filters and sorting."""
    try:
        mode = await database.wait_until_settled()
        if mode is BackendMode.DEMO:
            records = filter_demo(load_demo_records(WATER_SYSTEMS_FILE), filters)
            records = sort_records(records, sort, DEMO_SORT_FIELDS)
            total, water_systems = len(records), page.slice(records)
        else:
            total, water_systems = await query_water_systems(
                database, settings, filters, sort, page
            )
    except Exception as exc:
        return server_error("listing water systems", exc)

    return {"error": None, "resultSummary": page.summary(total), "waterSystems": water_systems}


@router.get("/{water_system_id}", summary="Get a water system by PWS ID")
async def get_water_system(
    water_system_id: str,
    database: Database = Depends(get_database),
    settings: InventorySettings = Depends(get_settings),
):
    try:
        mode = await database.wait_until_settled()
        if mode is BackendMode.DEMO:
            water_system = find_record(WATER_SYSTEMS_FILE, "waterSystemId", water_system_id)
        else:
            rows = await database.execute(
                f"SELECT * FROM {settings.table('tinwsys')} ws\n"
                " WHERE TRIM(ws.number0) = $1 AND ws.tinwsys_st_code = $2",
                [water_system_id, settings.state_code],
            )
            water_system = map_row(rows[0]) if rows else None
    except Exception as exc:
        return server_error("getting water system", exc)

    if water_system is None:
        raise ResourceNotFoundError(f"Water system {water_system_id} not found")
    return {"error": None, "waterSystem": water_system}
