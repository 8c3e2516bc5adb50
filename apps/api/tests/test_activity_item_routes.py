"""Tests for activity attendance and equipment routes."""

from tripflow_api.models import ActivityParticipantLog, ParticipantActivityWillNotAttend, ParticipantItemLog


def _activity_url(scenario, path="", activity_id=None):
    return f"/v1/events/{scenario.event_id}/activities/{activity_id or scenario.activity_id}{path}"


def _item_url(scenario, path="", item_id=None):
    return f"/v1/events/{scenario.event_id}/items/{item_id or scenario.item_id}{path}"


class TestActivities:
    def test_only_check_in_enabled_activities_are_listed(self, client, scenario, tenant_headers):
        response = client.get(f"/v1/events/{scenario.event_id}/activities/for-checkin", headers=tenant_headers)

        assert response.status_code == 200
        body = response.json()
        assert [activity["title"] for activity in body] == ["Balloon Flight"]
        assert body[0]["check_in_mode"] == "EntryExit"

    def test_entry_and_exit(self, client, scenario, tenant_headers):
        entry = client.post(
            _activity_url(scenario, "/checkins"), json={"code": scenario.alice_code}, headers=tenant_headers
        )
        repeat = client.post(
            _activity_url(scenario, "/checkins"), json={"code": scenario.alice_code}, headers=tenant_headers
        )
        leave = client.post(
            _activity_url(scenario, "/checkins"),
            json={"code": scenario.alice_code, "direction": "Exit", "method": "scan"},
            headers=tenant_headers,
        )

        assert entry.status_code == 200
        assert entry.json()["result"] == "Success"
        assert repeat.status_code == 200
        assert repeat.json()["result"] == "AlreadyInState"
        assert leave.json()["direction"] == "Exit"
        assert leave.json()["method"] == "QrScan"

    def test_excluded_participant_is_rejected(self, client, scenario, tenant_headers):
        response = client.post(
            _activity_url(scenario, "/checkins"), json={"code": scenario.bob_code}, headers=tenant_headers
        )
        assert response.status_code == 400
        assert response.json()["participant_name"] == "Bob Baker"

    def test_unknown_activity_is_not_found_and_not_logged(self, client, db, scenario, tenant_headers):
        response = client.post(
            _activity_url(scenario, "/checkins", activity_id=9999),
            json={"code": scenario.alice_code},
            headers=tenant_headers,
        )
        assert response.status_code == 404
        assert db.query(ActivityParticipantLog).count() == 0

    def test_will_not_attend_upsert(self, client, db, scenario, tenant_headers):
        client.post(_activity_url(scenario, "/checkins"), json={"code": scenario.alice_code}, headers=tenant_headers)

        response = client.patch(
            _activity_url(scenario, f"/participants/{scenario.alice_id}/will-not-attend"),
            json={"will_not_attend": True},
            headers=tenant_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["will_not_attend"] is True
        assert body["checked_in"] is True
        assert body["last_log"]["action"] == "Entry"

        cleared = client.patch(
            _activity_url(scenario, f"/participants/{scenario.bob_id}/will-not-attend"),
            json={"will_not_attend": False},
            headers=tenant_headers,
        )
        assert cleared.json()["last_log"] is None
        assert db.query(ParticipantActivityWillNotAttend).count() == 2

    def test_participant_table_hides_excluded(self, client, scenario, tenant_headers):
        response = client.get(_activity_url(scenario, "/participants/table"), headers=tenant_headers)
        assert [row["full_name"] for row in response.json()["items"]] == ["Alice Archer", "Carol Cole"]

        excluded = client.get(
            _activity_url(scenario, "/participants/table"),
            params={"status": "will_not_attend"},
            headers=tenant_headers,
        )
        assert [row["full_name"] for row in excluded.json()["items"]] == ["Bob Baker"]

    def test_reset_and_logs(self, client, scenario, tenant_headers):
        client.post(_activity_url(scenario, "/checkins"), json={"code": scenario.alice_code}, headers=tenant_headers)
        client.post(_activity_url(scenario, "/checkins"), json={"code": scenario.carol_code}, headers=tenant_headers)

        reset = client.post(_activity_url(scenario, "/checkins/reset-all"), headers=tenant_headers)
        assert reset.json() == {"removed_count": 2, "active_count": 0, "total_count": 3}

        logs = client.get(_activity_url(scenario, "/checkins/logs"), headers=tenant_headers)
        assert logs.status_code == 200
        assert logs.json()["total"] == 0


class TestItems:
    def test_list_items(self, client, scenario, tenant_headers):
        url = f"/v1/events/{scenario.event_id}/items"
        active = client.get(url, headers=tenant_headers)
        everything = client.get(url, params={"include_inactive": True}, headers=tenant_headers)

        assert [item["name"] for item in active.json()] == ["Headset"]
        assert [item["name"] for item in everything.json()] == ["Headset", "Old Radio"]

    def test_give_and_return(self, client, scenario, tenant_headers):
        give = client.post(_item_url(scenario, "/actions"), json={"code": scenario.alice_code}, headers=tenant_headers)
        again = client.post(_item_url(scenario, "/actions"), json={"code": scenario.alice_code}, headers=tenant_headers)
        back = client.post(
            _item_url(scenario, "/actions"),
            json={"code": scenario.alice_code, "action": "return"},
            headers=tenant_headers,
        )

        assert give.status_code == 200
        assert give.json()["action"] == "Give"
        assert again.json()["result"] == "AlreadyInState"
        assert back.json()["action"] == "Return"
        assert back.json()["result"] == "Success"

    def test_inactive_item_rejects_actions(self, client, db, scenario, tenant_headers):
        response = client.post(
            _item_url(scenario, "/actions", item_id=scenario.retired_item_id),
            json={"code": scenario.alice_code},
            headers=tenant_headers,
        )
        assert response.status_code == 404
        assert db.query(ParticipantItemLog).count() == 0

    def test_inactive_item_history_is_readable(self, client, scenario, tenant_headers):
        table = client.get(
            _item_url(scenario, "/participants/table", item_id=scenario.retired_item_id), headers=tenant_headers
        )
        logs = client.get(_item_url(scenario, "/actions/logs", item_id=scenario.retired_item_id), headers=tenant_headers)
        assert table.status_code == 200
        assert logs.status_code == 200

    def test_custody_table(self, client, scenario, tenant_headers):
        client.post(_item_url(scenario, "/actions"), json={"code": scenario.bob_code}, headers=tenant_headers)

        response = client.get(
            _item_url(scenario, "/participants/table"), params={"status": "not_returned"}, headers=tenant_headers
        )
        assert [row["full_name"] for row in response.json()["items"]] == ["Bob Baker"]

    def test_item_logs_record_actor(self, client, scenario, tenant_headers):
        client.post(_item_url(scenario, "/actions"), json={"code": "ZZZZ9999"}, headers=tenant_headers)
        response = client.get(_item_url(scenario, "/actions/logs"), headers=tenant_headers)

        item = response.json()["items"][0]
        assert item["result"] == "NotFound"
        assert item["actor_role"] == "Guide"
        assert item["participant_id"] is None
