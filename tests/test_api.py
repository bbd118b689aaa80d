def _create(client, **fields):
    body = {"employee_id": 1, "clock_in_date": "2024-03-04", "clock_in_time": "15:00"}
    body.update(fields)
    response = client.post("/timesheets", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestGeneral:

    def test_root(self, client):
        data = client.get("/").json()
        assert data["status"] == "running"

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["timesheet_entries"] == 0


class TestTimesheets:

    def test_create_and_fetch(self, client):
        created = _create(client, clock_out_date="2024-03-04", clock_out_time="19:00")
        assert created["total_hours"] == 4.0
        assert created["employee_name"] == "John Doe"

        fetched = client.get(f"/timesheets/{created['id']}").json()
        assert fetched == created

    def test_list(self, client):
        _create(client)
        _create(client, employee_id=2)
        data = client.get("/timesheets", params={"employee_id": 2}).json()
        assert data["total_entries"] == 1
        assert data["entries"][0]["employee_id"] == 2

    def test_clock_out(self, client):
        created = _create(client, clock_in_time="22:00")
        response = client.post(f"/timesheets/{created['id']}/clock-out",
                               json={"clock_out_date": "2024-03-05", "clock_out_time": "06:00"})
        assert response.status_code == 200
        assert response.json()["total_hours"] == 8.0

        again = client.post(f"/timesheets/{created['id']}/clock-out",
                            json={"clock_out_date": "2024-03-05", "clock_out_time": "07:00"})
        assert again.status_code == 409

    def test_malformed_time(self, client):
        response = client.post("/timesheets", json={"employee_id": 1, "clock_in_date": "2024-03-04",
                                                    "clock_in_time": "3pm"})
        assert response.status_code == 400

    def test_half_a_clock_out(self, client):
        response = client.post("/timesheets", json={"employee_id": 1, "clock_in_date": "2024-03-04",
                                                    "clock_in_time": "08:00", "clock_out_time": "12:00"})
        assert response.status_code == 400

    def test_clock_out_before_clock_in_date(self, client):
        response = client.post("/timesheets", json={"employee_id": 1, "clock_in_date": "2024-03-05",
                                                    "clock_in_time": "22:00", "clock_out_date": "2024-03-04",
                                                    "clock_out_time": "23:00"})
        assert response.status_code == 400

    def test_unknown_employee(self, client):
        response = client.post("/timesheets", json={"employee_id": 77, "clock_in_date": "2024-03-04",
                                                    "clock_in_time": "08:00"})
        assert response.status_code == 404

    def test_unknown_entry(self, client):
        assert client.get("/timesheets/12345").status_code == 404


class TestWageSettings:

    def test_get_falls_back_to_global(self, client):
        data = client.get("/wages/settings", params={"organization_id": "default"}).json()
        assert data["morning_start"] == "06:00:00"
        assert data["night_rate"] == 20.0

    def test_update_requires_admin_secret(self, client):
        response = client.put("/admin/wages/settings", json={"morning_wage_rate": 19.0})
        assert response.status_code == 403

    def test_create_organization_settings(self, client, admin_headers):
        response = client.put("/admin/wages/settings", headers=admin_headers, json={
            "organization_id": "default",
            "night_end_time": "06:00",
            "night_wage_rate": 24.0,
            "create_if_missing": True,
        })
        assert response.status_code == 200, response.text
        assert response.json()["night_end"] == "06:00:00"

        data = client.get("/wages/settings", params={"organization_id": "default"}).json()
        assert data["night_rate"] == 24.0

    def test_missing_organization_without_create(self, client, admin_headers):
        response = client.put("/admin/wages/settings", headers=admin_headers,
                              json={"organization_id": "acme", "night_wage_rate": 24.0})
        assert response.status_code == 404

    def test_overlapping_windows_rejected(self, client, admin_headers):
        response = client.put("/admin/wages/settings", headers=admin_headers,
                              json={"morning_end_time": "19:00"})
        assert response.status_code == 400

    def test_negative_rate_rejected(self, client, admin_headers):
        response = client.put("/admin/wages/settings", headers=admin_headers,
                              json={"morning_wage_rate": -3})
        assert response.status_code == 422


class TestSplitPreview:

    def test_preview(self, client):
        response = client.post("/wages/split-preview", json={
            "clock_in_date": "2024-03-04", "clock_in_time": "15:00",
            "clock_out_date": "2024-03-04", "clock_out_time": "19:00",
        })
        data = response.json()
        assert data["split"]["morning_hours"] == 2.0
        assert data["split"]["night_hours"] == 2.0
        assert data["amount_split"] == 74.0
        assert data["amount_flat"] == 80.0
        assert data["pricing_error"] is None

    def test_preview_with_employee_rates_and_gap(self, client):
        data = client.post("/wages/split-preview", json={
            "clock_in_date": "2024-03-04", "clock_in_time": "23:00",
            "clock_out_date": "2024-03-05", "clock_out_time": "03:00",
            "night_wage_rate": 30.0,
        }).json()
        assert data["split"]["night_hours"] == 2.0
        assert data["split"]["unassigned_hours"] == 2.0
        assert data["amount_split"] == 60.0

    def test_preview_bad_time(self, client):
        response = client.post("/wages/split-preview", json={
            "clock_in_date": "2024-03-04", "clock_in_time": "late",
            "clock_out_date": "2024-03-04", "clock_out_time": "19:00",
        })
        assert response.status_code == 400
        assert "ParseError" in response.json()["detail"]


class TestRecalculation:

    def test_recalculate_all(self, client, admin_headers):
        done = _create(client, clock_out_date="2024-03-04", clock_out_time="19:00")
        _create(client, employee_id=2, clock_in_time="20:00", clock_out_date="2024-03-04", clock_out_time="23:00")
        _create(client, employee_id=3)   # open shift, not a candidate

        response = client.post("/admin/wages/recalculate", headers=admin_headers,
                               json={"organization_id": "default"})
        assert response.status_code == 200, response.text
        summary = response.json()
        assert summary["processed"] == 2
        assert summary["succeeded"] == 2
        assert summary["failed"] == 0
        assert summary["unassigned_hours_total"] == 0.0

        entry = client.get(f"/timesheets/{done['id']}").json()
        assert entry["morning_hours"] == 2.0
        assert entry["total_card_amount_split"] == 74.0
        assert entry["is_split_calculation"] is True

    def test_recalculate_requires_admin(self, client):
        assert client.post("/admin/wages/recalculate", json={}).status_code == 403

    def test_recalculate_without_any_settings(self, client, admin_headers, db_path):
        from timesheet_server.core.database import get_db
        with get_db(db_path) as conn:
            conn.execute("DELETE FROM wage_settings")
            conn.commit()

        response = client.post("/admin/wages/recalculate", headers=admin_headers, json={})
        assert response.status_code == 404

    def test_recalculate_one(self, client, admin_headers):
        entry = _create(client, employee_id=2, clock_out_date="2024-03-04", clock_out_time="19:00")
        response = client.post(f"/admin/wages/recalculate/{entry['id']}", headers=admin_headers)
        data = response.json()
        assert data["success"] is True
        assert data["amount_split"] == 2 * 18.5 + 2 * 22.0

    def test_recalculate_one_open_shift(self, client, admin_headers):
        entry = _create(client)
        data = client.post(f"/admin/wages/recalculate/{entry['id']}", headers=admin_headers).json()
        assert data["success"] is False
        assert data["error_kind"] == "IncompleteShiftError"

    def test_recalculate_one_unknown(self, client, admin_headers):
        assert client.post("/admin/wages/recalculate/999", headers=admin_headers).status_code == 404

    def test_cancel_when_idle(self, client, admin_headers):
        data = client.post("/admin/wages/recalculate/cancel", headers=admin_headers,
                           params={"organization_id": "default"}).json()
        assert data["cancelled"] is False
