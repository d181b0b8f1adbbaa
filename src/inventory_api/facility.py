from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from fastapi import APIRouter, Depends, Query

from dal.backend_mode import BackendMode
from dal.database import Database
from inventory_api.demo import (
    FACILITIES_FILE,
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

router = APIRouter(prefix="/inventory/water-system/facility", tags=["Facility"])

DEFAULT_ORDER_BY = "f.name ASC"

SORT_COLUMNS: Dict[str, Optional[str]] = {
    "facilityId": "f.tinwsf_is_number",
    "name": "f.name",
    "fedFacilityId": "f.external_sys_num",
    "paAssignedId": "f.st_asgn_ident_cd",
    "srcInd": "f.d_source_flag",
    "facilityWaterTypeCode": "f.water_type_code",
    "facilityStatusCode": "f.activity_status_cd",
    "facilityAvailabilityCode": "f.availability_code",
    "treatmentStatusCode": "f.treatment_stat_cd",
    "avgWaterQuantityPCT": "f.avg_pct_water_qty",
    "facilityTypeCode": "f.type_code",
}

DEMO_SORT_FIELDS = {
    "facilityId": "facilityId",
    "name": "name",
    "fedFacilityId": "fedFacilityId",
    "paAssignedId": "paAssignedId",
    "srcInd": "srcInd",
    "facilityWaterTypeCode": "waterType.facilityWaterTypeCode",
    "facilityStatusCode": "facilityStatus.facilityStatusCode",
    "facilityAvailabilityCode": "facilityAvailability.facilityAvailabilityCode",
    "treatmentStatusCode": "treatmentStatus.treatmentStatusCode",
    "avgWaterQuantityPCT": "avgWaterQuantityPCT",
    "facilityTypeCode": "facilityType.facilityTypeCode",
}


@dataclass(frozen=True)
class FacilityFilters:
    water_system_id: Optional[str] = None
    facility_id: Optional[int] = None
    name: Optional[str] = None
    facility_type_code: Optional[str] = None
    facility_status_code: Optional[str] = None
    facility_availability_code: Optional[str] = None
    src_ind: Optional[str] = None
    facility_water_type_code: Optional[str] = None
    treatment_status_code: Optional[str] = None
    pa_assigned_id: Optional[str] = None
    fed_facility_id: Optional[int] = None


def facility_filters(
    water_system_id: Optional[str] = Query(
        None, alias="waterSystemId", description="PWS ID starts-with filter (e.g., MS035)"
    ),
    facility_id: Optional[int] = Query(None, alias="facilityId"),
    name: Optional[str] = Query(None, description="Name contains filter (case-insensitive)"),
    facility_type_code: Optional[str] = Query(
        None, alias="facilityTypeCode", description="Facility type (WL, TP, IN, ST, DS)"
    ),
    facility_status_code: Optional[str] = Query(None, alias="facilityStatusCode"),
    facility_availability_code: Optional[str] = Query(None, alias="facilityAvailabilityCode"),
    src_ind: Optional[str] = Query(None, alias="srcInd", description="Source indicator (Y/N)"),
    facility_water_type_code: Optional[str] = Query(None, alias="facilityWaterTypeCode"),
    treatment_status_code: Optional[str] = Query(None, alias="treatmentStatusCode"),
    pa_assigned_id: Optional[str] = Query(
        None, alias="paAssignedId", description="PA-assigned ID starts-with filter"
    ),
    fed_facility_id: Optional[int] = Query(None, alias="fedFacilityId"),
) -> FacilityFilters:
    return FacilityFilters(
        water_system_id=water_system_id,
        facility_id=facility_id,
        name=name,
        facility_type_code=facility_type_code,
        facility_status_code=facility_status_code,
        facility_availability_code=facility_availability_code,
        src_ind=src_ind,
        facility_water_type_code=facility_water_type_code,
        treatment_status_code=treatment_status_code,
        pa_assigned_id=pa_assigned_id,
        fed_facility_id=fed_facility_id,
    )


def map_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Map a tinwsf row joined to its tinwsys parent to a DWPFacilityDTO.

    The parent PWS ID and name arrive as ``ws_pwsid`` and ``ws_name``.
    Fields with no SDWIS/STATE counterpart are always null.
    """
    return {
        "facilityId": integer(row.get("tinwsf_is_number")),
        "fedFacilityId": integer(row.get("external_sys_num")),
        "dwpWaterSystem": {
            "waterSystemId": trimmed(row.get("ws_pwsid")),
            "name": row.get("ws_name") or None,
        },
        "constructedDt": row.get("constructed_date"),
        "paAssignedId": trimmed(row.get("st_asgn_ident_cd")),
        "name": row.get("name"),
        "localName": row.get("local_name"),
        "sellTreatmentType": ref_code(row.get("sell_treat_ind_cd"), "sellTreatmentTypeCode"),
        "facilityType": ref_code(row.get("type_code"), "facilityTypeCode"),
        "nonPipeType": ref_code(row.get("non_pipe_fac_tp_cd"), "nonPipeTypeCode"),
        "waterType": ref_code(row.get("water_type_code"), "facilityWaterTypeCode"),
        "waterTypeDt": row.get("water_type_code_dt"),
        "facilityFiltration": ref_code(row.get("filtration_status"), "facilityFiltrationCode"),
        "filtrationDt": row.get("filtration_stat_dt"),
        "facilityAvailability": ref_code(
            row.get("availability_code"), "facilityAvailabilityCode"
        ),
        "facilityStatus": ref_code(row.get("activity_status_cd"), "facilityStatusCode"),
        "facilityStatusDt": row.get("activity_date"),
        "fedStatusCode": trimmed(row.get("activity_status_cd")),
        "facilityStatusReason": ref_code(row.get("activity_reason_cd"), "facStatusReasonCode"),
        "treatmentStatus": ref_code(row.get("treatment_stat_cd"), "treatmentStatusCode"),
        "srcInd": trimmed(row.get("d_source_flag")),
        "avgWaterQuantityPCT": number(row.get("avg_pct_water_qty")),
        "maintenanceDt": row.get("physical_modif_dt"),
        "swapStatus": ref_code(row.get("swap_report_status"), "swapStatusCode"),
        "swapStatusDt": row.get("swap_rpt_status_dt"),
        "usgsHUC": trimmed(row.get("usgs_hydro_unit_cd")),
        "storetCode": trimmed(row.get("storet_ext_hydro_u")),
        "riverReachInd": trimmed(row.get("on_rvr_rch_ind_cd")),
        "riverReachMiles": number(row.get("rvr_rch_miles_qty")),
        "waterBodyName": row.get("wtr_body_nm_txt"),
        "paStatusNotes": row.get("activity_rsn_txt"),
        "notes": row.get("directions_text"),
        "lastReportedToFedDt": None,
        "createId": trimmed(row.get("d_initial_userid")),
        "removeId": None,
        "updateId": trimmed(row.get("d_userid_code")),
        "createDt": row.get("d_initial_ts"),
        "removeDt": None,
        "updateDt": row.get("d_last_updt_ts"),
    }


def facility_from(settings: InventorySettings) -> str:
    return (
        f"{settings.table('tinwsf')} f\n"
        f" JOIN {settings.table('tinwsys')} ws\n"
        "   ON f.tinwsys_is_number = ws.tinwsys_is_number\n"
        "  AND f.tinwsys_st_code = ws.tinwsys_st_code"
    )


def build_where(filters: FacilityFilters, settings: InventorySettings) -> Tuple[str, List[Any]]:
    """Render the canonical WHERE clause and its ordered binds."""
    conditions: List[str] = []
    params: List[Any] = []

    def add(template: str, value: Any) -> None:
        params.append(value)
        conditions.append(template.format(f"${len(params)}"))

    add("f.tinwsys_st_code = {}", settings.state_code)

    if filters.water_system_id:
        add("TRIM(ws.number0) LIKE {}", f"{filters.water_system_id}%")
    if filters.facility_id is not None:
        add("f.tinwsf_is_number = {}", filters.facility_id)
    if filters.name:
        add("f.name ILIKE {}", f"%{filters.name}%")
    if filters.facility_type_code:
        add("TRIM(f.type_code) = {}", filters.facility_type_code)
    if filters.facility_status_code:
        add("TRIM(f.activity_status_cd) = {}", filters.facility_status_code)
    if filters.facility_availability_code:
        add("TRIM(f.availability_code) = {}", filters.facility_availability_code)
    if filters.src_ind:
        add("TRIM(f.d_source_flag) = {}", filters.src_ind.upper())
    if filters.facility_water_type_code:
        add("TRIM(f.water_type_code) = {}", filters.facility_water_type_code)
    if filters.treatment_status_code:
        add("TRIM(f.treatment_stat_cd) = {}", filters.treatment_status_code)
    if filters.pa_assigned_id:
        add("TRIM(f.st_asgn_ident_cd) LIKE {}", f"{filters.pa_assigned_id}%")
    if filters.fed_facility_id is not None:
        add("f.external_sys_num = {}", filters.fed_facility_id)

    return "WHERE " + " AND ".join(conditions), params


def filter_demo(
    records: Iterable[Dict[str, Any]], filters: FacilityFilters
) -> List[Dict[str, Any]]:
    results = list(records)
    if filters.water_system_id:
        prefix = filters.water_system_id.upper()
        results = [
            f for f in results
            if (get_path(f, "dwpWaterSystem.waterSystemId") or "").startswith(prefix)
        ]
    if filters.facility_id is not None:
        results = [f for f in results if f.get("facilityId") == filters.facility_id]
    if filters.name:
        term = filters.name.lower()
        results = [f for f in results if term in (f.get("name") or "").lower()]
    exact = (
        ("facilityType.facilityTypeCode", filters.facility_type_code),
        ("facilityStatus.facilityStatusCode", filters.facility_status_code),
        ("facilityAvailability.facilityAvailabilityCode", filters.facility_availability_code),
        ("waterType.facilityWaterTypeCode", filters.facility_water_type_code),
        ("treatmentStatus.treatmentStatusCode", filters.treatment_status_code),
    )
    for path, wanted in exact:
        if wanted:
            results = [f for f in results if get_path(f, path) == wanted]
    if filters.src_ind:
        wanted = filters.src_ind.upper()
        results = [f for f in results if (f.get("srcInd") or "").upper() == wanted]
    if filters.pa_assigned_id:
        prefix = filters.pa_assigned_id.upper()
        results = [
            f for f in results if (f.get("paAssignedId") or "").upper().startswith(prefix)
        ]
    if filters.fed_facility_id is not None:
        results = [f for f in results if f.get("fedFacilityId") == filters.fed_facility_id]
    return results


async def query_facilities(
    database: Database,
    settings: InventorySettings,
    filters: FacilityFilters,
    sort: List[Tuple[str, bool]],
    page: PageRequest,
) -> Tuple[int, List[Dict[str, Any]]]:
    where, params = build_where(filters, settings)
    source = facility_from(settings)

    count_rows = await database.execute(f"SELECT COUNT(*) as total FROM {source} {where}", params)
    total = int(count_rows[0]["total"]) if count_rows else 0

    order_by = build_order_by(sort, SORT_COLUMNS, DEFAULT_ORDER_BY)
    limit_idx, offset_idx = len(params) + 1, len(params) + 2
    rows = await database.execute(
        "SELECT f.*, TRIM(ws.number0) as ws_pwsid, ws.name as ws_name"
        f" FROM {source} {where}\n"
        f" ORDER BY {order_by}\n"
        f" LIMIT ${limit_idx} OFFSET ${offset_idx}",
        [*params, page.page_size, page.offset],
    )
    return total, [map_row(row) for row in rows]


@router.get("", summary="List facilities")
async def list_facilities(
    filters: FacilityFilters = Depends(facility_filters),
    page: PageRequest = Depends(page_request),
    sort: List[Tuple[str, bool]] = Depends(sort_request),
    database: Database = Depends(get_database),
    settings: InventorySettings = Depends(get_settings),
):
    """Return a page of facilities, each with its parent water system summary."""
    try:
        mode = await database.wait_until_settled()
        if mode is BackendMode.DEMO:
            records = filter_demo(load_demo_records(FACILITIES_FILE), filters)
            records = sort_records(records, sort, DEMO_SORT_FIELDS)
            total, facilities = len(records), page.slice(records)
        else:
            total, facilities = await query_facilities(database, settings, filters, sort, page)
    except Exception as exc:
        return server_error("listing facilities", exc)

    return {"error": None, "resultSummary": page.summary(total), "facilities": facilities}


@router.get("/{facility_id}", summary="Get a facility by internal ID")
async def get_facility(
    facility_id: int,
    database: Database = Depends(get_database),
    settings: InventorySettings = Depends(get_settings),
):
    try:
        mode = await database.wait_until_settled()
        if mode is BackendMode.DEMO:
            facility = find_record(FACILITIES_FILE, "facilityId", facility_id)
        else:
            rows = await database.execute(
                "SELECT f.*, TRIM(ws.number0) as ws_pwsid, ws.name as ws_name"
                f" FROM {facility_from(settings)}\n"
                " WHERE f.tinwsf_is_number = $1 AND f.tinwsys_st_code = $2",
                [facility_id, settings.state_code],
            )
            facility = map_row(rows[0]) if rows else None
    except Exception as exc:
        return server_error("getting facility", exc)

    if facility is None:
        raise ResourceNotFoundError(f"Facility {facility_id} not found")
    return {"error": None, "facility": facility}
