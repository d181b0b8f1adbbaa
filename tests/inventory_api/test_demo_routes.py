def test_health_reports_demo_datasource(demo_client):
    resp = demo_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "datasource": "demo"}


def test_root_redirects_to_docs(demo_client):
    resp = demo_client.get("/", follow_redirects=False)
    assert resp.status_code in (302, 307)
    assert resp.headers["location"] == "/docs"


def test_list_water_systems_default_page(demo_client):
    resp = demo_client.get("/inventory/water-system")
    assert resp.status_code == 200
    body = resp.json()
    assert body["error"] is None
    assert body["resultSummary"] == {
        "totalCount": 10,
        "pageNumber": 0,
        "pageSize": 10,
        "totalPages": 1,
    }
    assert len(body["waterSystems"]) == 10


def test_list_water_systems_name_filter_is_case_insensitive(demo_client):
    body = demo_client.get("/inventory/water-system", params={"name": "spring"}).json()
    ids = [ws["waterSystemId"] for ws in body["waterSystems"]]
    assert ids == ["XX0010001", "XX0030002"]


def test_list_water_systems_id_prefix_filter(demo_client):
    body = demo_client.get("/inventory/water-system", params={"waterSystemId": "xx001"}).json()
    assert body["resultSummary"]["totalCount"] == 3


def test_list_water_systems_population_range(demo_client):
    body = demo_client.get(
        "/inventory/water-system", params={"fedPopulationFrom": 1000, "fedPopulationTo": 10000}
    ).json()
    assert body["resultSummary"]["totalCount"] == 5
    assert all(1000 <= ws["fedPopulation"] <= 10000 for ws in body["waterSystems"])


def test_list_water_systems_code_filters(demo_client):
    body = demo_client.get(
        "/inventory/water-system", params={"wsStatusCode": "A", "fedWSSourceCode": "GW"}
    ).json()
    assert body["resultSummary"]["totalCount"] == 6
    assert {ws["waterSystemStatus"]["wsStatusCode"] for ws in body["waterSystems"]} == {"A"}


def test_list_water_systems_paging(demo_client):
    body = demo_client.get(
        "/inventory/water-system", params={"pageSize": 3, "pageNumber": 1}
    ).json()
    assert body["resultSummary"] == {
        "totalCount": 10,
        "pageNumber": 1,
        "pageSize": 3,
        "totalPages": 4,
    }
    assert [ws["waterSystemId"] for ws in body["waterSystems"]] == [
        "XX0020001",
        "XX0020002",
        "XX0020003",
    ]


def test_list_water_systems_clamps_and_defaults_paging(demo_client):
    summary = demo_client.get(
        "/inventory/water-system", params={"pageSize": 500, "pageNumber": -2}
    ).json()["resultSummary"]
    assert (summary["pageSize"], summary["pageNumber"]) == (100, 0)

    summary = demo_client.get(
        "/inventory/water-system", params={"pageSize": "abc", "pageNumber": "x"}
    ).json()["resultSummary"]
    assert (summary["pageSize"], summary["pageNumber"]) == (10, 0)


def test_list_water_systems_sort_places_nulls_by_direction(demo_client):
    """Missing populations sort last ascending and first descending."""
    ascending = demo_client.get(
        "/inventory/water-system", params={"sortColumns": "fedPopulation"}
    ).json()["waterSystems"]
    assert ascending[0]["waterSystemId"] == "XX0020003"
    assert ascending[-1]["waterSystemId"] == "XX0040001"

    descending = demo_client.get(
        "/inventory/water-system",
        params={"sortColumns": "fedPopulation", "sortOrders": "DESC"},
    ).json()["waterSystems"]
    assert [ws["waterSystemId"] for ws in descending[:2]] == ["XX0040001", "XX0020001"]


def test_list_water_systems_multi_column_sort(demo_client):
    body = demo_client.get(
        "/inventory/water-system",
        params={"sortColumns": "wsOwnerTypeCode,name", "sortOrders": "ASC,DESC"},
    ).json()
    owners = [ws["ownerType"]["wsOwnerTypeCode"] for ws in body["waterSystems"]]
    assert owners == sorted(owners)
    local = [ws["name"] for ws in body["waterSystems"] if ws["ownerType"]["wsOwnerTypeCode"] == "L"]
    assert local == sorted(local, reverse=True)


def test_list_water_systems_rejects_non_numeric_population(demo_client):
    resp = demo_client.get("/inventory/water-system", params={"fedPopulationFrom": "lots"})
    assert resp.status_code == 422


def test_get_water_system(demo_client):
    resp = demo_client.get("/inventory/water-system/XX0010001")
    assert resp.status_code == 200
    body = resp.json()
    assert body["error"] is None
    assert body["waterSystem"]["name"] == "Springfield Water Association"


def test_get_water_system_not_found(demo_client):
    resp = demo_client.get("/inventory/water-system/XX9999999")
    assert resp.status_code == 404
    assert resp.json() == {"error": {"message": "Water system XX9999999 not found"}}


def test_facility_routes_are_not_captured_as_water_system_ids(demo_client):
    resp = demo_client.get("/inventory/water-system/facility")
    assert resp.status_code == 200
    body = resp.json()
    assert body["resultSummary"]["totalCount"] == 12
    assert len(body["facilities"]) == 10


def test_list_facilities_filters(demo_client):
    body = demo_client.get(
        "/inventory/water-system/facility", params={"waterSystemId": "XX0010001"}
    ).json()
    assert body["resultSummary"]["totalCount"] == 3

    body = demo_client.get("/inventory/water-system/facility", params={"srcInd": "y"}).json()
    assert body["resultSummary"]["totalCount"] == 8

    body = demo_client.get(
        "/inventory/water-system/facility", params={"facilityTypeCode": "WL", "name": "pine"}
    ).json()
    assert [f["facilityId"] for f in body["facilities"]] == [1009]


def test_list_facilities_sorted_by_id_descending(demo_client):
    body = demo_client.get(
        "/inventory/water-system/facility",
        params={"sortColumns": "facilityId", "sortOrders": "DESC", "pageSize": 2},
    ).json()
    assert [f["facilityId"] for f in body["facilities"]] == [1012, 1011]
    assert body["resultSummary"]["totalPages"] == 6


def test_get_facility(demo_client):
    resp = demo_client.get("/inventory/water-system/facility/1003")
    assert resp.status_code == 200
    facility = resp.json()["facility"]
    assert facility["name"] == "Springfield Treatment Plant"
    assert facility["dwpWaterSystem"]["waterSystemId"] == "XX0010001"


def test_get_facility_not_found(demo_client):
    resp = demo_client.get("/inventory/water-system/facility/9999")
    assert resp.status_code == 404
    assert resp.json() == {"error": {"message": "Facility 9999 not found"}}
