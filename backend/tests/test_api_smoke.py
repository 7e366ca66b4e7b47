def create_target(client, name="Meeting", uph=6.0, docs=10, videos=4):
    r = client.post("/targets/", json={"name": name, "target_uph": uph, "docs_per_unit": docs, "videos_per_unit": videos})
    assert r.status_code == 200, r.text
    return r.json()


def create_log(client, day="2024-07-15", **kw):
    payload = {
        "date": day,
        "start_time": "14:00",
        "end_time": "22:30",
        "break_duration_minutes": 30,
        "documents_completed": 100,
        "video_sessions_completed": 20,
        "notes": "",
    }
    payload.update(kw)
    r = client.post("/work-logs/", json=payload)
    assert r.status_code == 200, r.text
    return r.json()


def test_root_ok(client):
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert "message" in data


def test_create_and_list_work_log(client):
    target = create_target(client)
    log = create_log(client)
    assert log["hours_worked"] == 8.0
    assert log["target_id"] == target["id"]

    lr = client.get("/work-logs/", params={"date_from": "2024-07-14", "date_to": "2024-07-16"})
    assert lr.status_code == 200
    page = lr.json()
    assert page["total_items"] == 1
    row = page["items"][0]
    assert row["target_name"] == "Meeting"
    assert row["units_completed"] == 15.0
    assert row["avg_uph"] == 1.88


def test_work_log_pagination_and_sort(client):
    create_target(client)
    for day in range(1, 13):
        create_log(client, day=f"2024-07-{day:02d}", documents_completed=day * 10)

    first = client.get("/work-logs/", params={"sort": "documents_completed", "direction": "asc", "page_size": 5}).json()
    assert first["total_pages"] == 3
    assert [i["documents_completed"] for i in first["items"]] == [10, 20, 30, 40, 50]

    last = client.get("/work-logs/", params={"page": 9}).json()
    assert last["page"] == 2
    assert len(last["items"]) == 2


def test_invalid_hours_rejected(client):
    r = client.post(
        "/work-logs/",
        json={"date": "2024-07-15", "start_time": "14:00", "end_time": "14:30", "break_duration_minutes": 30},
    )
    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["error_id"]


def test_today_and_quick_update(client):
    create_target(client)
    assert client.get("/work-logs/today", params={"day": "2024-07-15"}).json() is None
    create_log(client)

    r = client.post("/work-logs/2024-07-15/quick-update", json={"field": "documents_completed", "delta": 1})
    assert r.status_code == 200, r.text
    assert r.json()["documents_completed"] == 101

    r = client.post("/work-logs/2024-07-20/quick-update", json={"field": "documents_completed"})
    assert r.status_code == 404
    assert r.json()["code"] == "RESOURCE_NOT_FOUND"

    today = client.get("/work-logs/today", params={"day": "2024-07-15"}).json()
    assert today["documents_completed"] == 101


def test_finalize_update_delete(client):
    log = create_log(client)
    assert client.post(f"/work-logs/{log['id']}/finalize").json()["is_finalized"] is True

    r = client.put(f"/work-logs/{log['id']}", json={**log, "notes": "edited"})
    assert r.status_code == 200, r.text
    assert r.json()["notes"] == "edited"

    assert client.delete(f"/work-logs/{log['id']}").status_code == 200
    assert client.delete(f"/work-logs/{log['id']}").status_code == 404


def test_targets_activate_duplicate_delete(client):
    meeting = create_target(client)
    minimum = create_target(client, name="Minimum", uph=7.5)
    assert meeting["is_active"] and not minimum["is_active"]

    r = client.post(f"/targets/{minimum['id']}/activate")
    assert r.status_code == 200
    assert client.get("/targets/active").json()["id"] == minimum["id"]

    r = client.delete(f"/targets/{minimum['id']}")
    assert r.status_code == 409
    assert r.json()["code"] == "INVARIANT_VIOLATION"

    copy = client.post(f"/targets/{meeting['id']}/duplicate").json()
    assert copy["name"] == "Meeting (Copy)"

    r = client.put(f"/targets/{copy['id']}", json={"target_uph": 11})
    assert r.json()["target_uph"] == 11
    assert client.post("/targets/missing/activate").status_code == 404
    assert len(client.get("/targets/").json()) == 3


def test_settings_roundtrip(client):
    assert client.get("/settings/").json()["default_break_minutes"] == 65
    r = client.put("/settings/", json={"default_start_time": "09:00", "default_end_time": "17:30"})
    assert r.status_code == 200, r.text
    assert client.get("/settings/").json()["default_end_time"] == "17:30"


def test_audit_log_listing_and_csv(client):
    create_target(client)
    create_log(client)

    page = client.get("/audit-logs/", params={"entity_type": "WorkLog"}).json()
    assert [i["action"] for i in page["items"]] == ["CREATE_WORK_LOG"]

    r = client.get("/audit-logs/export.csv")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert r.text.startswith('"Timestamp","Action"')


def test_work_log_csv_export(client):
    create_target(client)
    create_log(client, notes="slow, then fast")

    r = client.get("/work-logs/export.csv", params={"day": "2024-07-16"})
    assert r.status_code == 200
    header, row = r.text.splitlines()
    assert header.startswith("Date,Start Time,End Time")
    assert header.endswith("Meeting Units,Meeting UPH")
    assert '"slow, then fast"' in row

    # Today's open log is not a previous log
    assert client.get("/work-logs/export.csv", params={"day": "2024-07-15"}).status_code == 404


def test_dashboards(client):
    create_target(client)
    create_log(client)

    today = client.get("/dashboard/today", params={"at": "2024-07-15T18:00:00"}).json()
    assert today["log"]["date"] == "2024-07-15"
    assert today["current_units"] == 15.0
    assert today["projection"]["status"] == "behind"
    assert today["targets"][0]["required_units"] == 48.0

    weekly = client.get("/dashboard/weekly", params={"day": "2024-07-17"}).json()
    assert weekly["week_start"] == "2024-07-15"
    assert weekly["average_uph"] == 1.88

    analytics = client.get("/dashboard/analytics").json()
    assert analytics["day_count"] == 1
    assert analytics["total_units"] == 15.0


def test_data_export_import_clear(client):
    create_target(client)
    create_log(client)

    state = client.get("/data/export").json()
    assert state["version"] == 1
    assert len(state["work_logs"]) == 1

    assert client.post("/data/clear").status_code == 200
    assert client.get("/work-logs/").json()["total_items"] == 0

    r = client.post("/data/import", json=state)
    assert r.status_code == 200, r.text
    assert client.get("/work-logs/").json()["total_items"] == 1


def test_migrate_from_local_file(client):
    from metricdaily.core.config import settings
    from metricdaily.schemas.target import UPHTargetRecord
    from metricdaily.storage.local import JsonFileStore

    local = JsonFileStore(settings.local_store_path)
    local.upsert_target(UPHTargetRecord(name="Local", target_uph=8, docs_per_unit=10, videos_per_unit=2))
    assert client.get("/data/migrate").json()["needs_migration"] is True

    result = client.post("/data/migrate").json()
    assert result["success"] is True
    assert result["targets_migrated"] == 1
    assert client.get("/targets/active").json()["name"] == "Local"
