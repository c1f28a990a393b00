"""Tests for lab machine endpoints and status transitions."""
from datetime import timedelta

from labconsole.models.reservation import ReservationStatus
from tests.conftest import (
    add_reservation,
    create_test_machine,
    create_test_member,
    future,
    lab_setup,
    reservation_payload,
)


def _set_status(client, machine_id, actor_id, status, **job):
    return client.post(f"/api/machines/{machine_id}/status?actor_id={actor_id}", json={"status": status, **job})


class TestMachineCreate:

    def test_create_machine_starts_idle(self, client):
        operator = create_test_member(client, name="Lab Admin", role="admin")
        machine = create_test_machine(client, operator["member_id"], name="Glowforge", category="Laser Cutter")
        assert machine["status"] == "Idle"
        assert machine["category"] == "Laser Cutter"
        assert machine["current_job"] is None

    def test_member_cannot_add_machine(self, client):
        member = create_test_member(client)
        resp = client.post(f"/api/machines/?actor_id={member['member_id']}", json={
            "name": "Rogue Printer",
            "category": "3D Printer",
        })
        assert resp.status_code == 403

    def test_unknown_category_rejected(self, client):
        operator = create_test_member(client, role="admin")
        resp = client.post(f"/api/machines/?actor_id={operator['member_id']}", json={
            "name": "Loom",
            "category": "Weaving Loom",
        })
        assert resp.status_code == 422

    def test_blank_name_rejected(self, client):
        operator = create_test_member(client, role="admin")
        resp = client.post(f"/api/machines/?actor_id={operator['member_id']}", json={
            "name": "   ",
            "category": "CNC",
        })
        assert resp.status_code == 422

    def test_list_and_get(self, client):
        operator, _, machine = lab_setup(client)
        create_test_machine(client, operator["member_id"], name="Alpha Station", category="Workstation")
        names = [m["name"] for m in client.get("/api/machines/").json()]
        assert names == ["Alpha Station", "Prusa MK4"]
        resp = client.get(f"/api/machines/{machine['machine_id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Prusa MK4"


class TestMachineStatus:

    def test_operator_marks_in_use_with_job(self, client):
        operator, member, machine = lab_setup(client)
        resp = _set_status(
            client, machine["machine_id"], operator["member_id"], "In Use",
            job_member_id=member["member_id"], estimated_minutes=60,
        )
        assert resp.status_code == 200, resp.text
        job = resp.json()["current_job"]
        assert resp.json()["status"] == "In Use"
        assert job["member_id"] == member["member_id"]
        assert job["estimated_minutes"] == 60
        assert 59 <= job["remaining_minutes"] <= 60
        assert job["overdue"] is False

    def test_offline_to_in_use_rejected_then_two_steps(self, client):
        operator, member, machine = lab_setup(client)
        mid, oid = machine["machine_id"], operator["member_id"]
        assert _set_status(client, mid, oid, "Offline").status_code == 200

        resp = _set_status(client, mid, oid, "In Use", job_member_id=member["member_id"], estimated_minutes=30)
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "invalid_transition"

        assert _set_status(client, mid, oid, "Idle").status_code == 200
        resp = _set_status(client, mid, oid, "In Use", job_member_id=member["member_id"], estimated_minutes=30)
        assert resp.status_code == 200
        assert resp.json()["status"] == "In Use"

    def test_member_cannot_set_maintenance(self, client):
        _, member, machine = lab_setup(client)
        resp = _set_status(client, machine["machine_id"], member["member_id"], "Maintenance")
        assert resp.status_code == 403

    def test_member_without_reservation_cannot_start_job(self, client):
        _, member, machine = lab_setup(client)
        resp = _set_status(client, machine["machine_id"], member["member_id"], "In Use", estimated_minutes=30)
        assert resp.status_code == 403

    def test_member_with_current_reservation_starts_own_job(self, client, store):
        _, member, machine = lab_setup(client)
        # Approved window covering now, inserted directly; no read has converged it yet
        start = future(-1)
        member_obj = store.member(member["member_id"])
        machine_obj = store.machine(machine["machine_id"])
        add_reservation(store, machine_obj, member_obj, start, start + timedelta(hours=3),
                        status=ReservationStatus.approved)

        resp = _set_status(client, machine["machine_id"], member["member_id"], "In Use", estimated_minutes=45)
        assert resp.status_code == 200, resp.text
        assert resp.json()["current_job"]["member_id"] == member["member_id"]

    def test_status_change_is_audited(self, client):
        operator, _, machine = lab_setup(client)
        _set_status(client, machine["machine_id"], operator["member_id"], "Maintenance")
        logs = client.get(f"/api/audit-logs/?entity_id={machine['machine_id']}").json()
        actions = [entry["action_type"] for entry in logs]
        assert actions[0] == "LAB_MACHINE_STATUS_CHANGED"
        assert logs[0]["before_snapshot"]["status"] == "Idle"
        assert logs[0]["after_snapshot"]["status"] == "Maintenance"
        assert "LAB_MACHINE_CREATED" in actions

    def test_operator_ends_job_during_reservation(self, client, store):
        operator, member, machine = lab_setup(client)
        start = future(-1)
        reservation = add_reservation(
            store, store.machine(machine["machine_id"]), store.member(member["member_id"]),
            start, start + timedelta(hours=3), status=ReservationStatus.approved,
        )
        assert client.get(f"/api/machines/{machine['machine_id']}").json()["status"] == "In Use"

        resp = _set_status(client, machine["machine_id"], operator["member_id"], "Idle")
        assert resp.status_code == 200
        assert resp.json()["current_job"] is None

        # Subsequent reads keep the override
        for _ in range(2):
            assert client.get(f"/api/machines/{machine['machine_id']}").json()["status"] == "Idle"
        listed = client.get("/api/machines/").json()
        assert listed[0]["status"] == "Idle"

        booking = client.get(f"/api/reservations/{reservation.reservation_id}").json()
        assert booking["status"] == "Approved"
        assert booking["job_released_at"] is not None


class TestMachineRetire:

    def _retire(self, client, machine_id, actor_id):
        return client.delete(f"/api/machines/{machine_id}?actor_id={actor_id}")

    def test_retire_cancels_open_bookings(self, client, store):
        operator, member, machine = lab_setup(client)
        mid, oid = machine["machine_id"], operator["member_id"]
        pending = client.post(
            f"/api/reservations/?actor_id={member['member_id']}",
            json=reservation_payload(mid, future(24)),
        ).json()
        approved = client.post(
            f"/api/reservations/?actor_id={member['member_id']}",
            json=reservation_payload(mid, future(30)),
        ).json()
        client.post(f"/api/reservations/{approved['reservation_id']}/approve?actor_id={oid}")
        finished = add_reservation(
            store, store.machine(mid), store.member(member["member_id"]),
            future(-30), future(-29), status=ReservationStatus.completed,
        )

        resp = self._retire(client, mid, oid)
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == "Offline"
        assert resp.json()["retired_at"] is not None

        statuses = {
            r["reservation_id"]: r["status"]
            for r in client.get(f"/api/reservations/?machine_id={mid}").json()
        }
        assert statuses == {
            pending["reservation_id"]: "Cancelled",
            approved["reservation_id"]: "Cancelled",
            finished.reservation_id: "Completed",
        }

    def test_retired_machine_leaves_grid(self, client):
        operator, _, machine = lab_setup(client)
        self._retire(client, machine["machine_id"], operator["member_id"])
        assert client.get("/api/machines/").json() == []
        # History stays reachable by id
        assert client.get(f"/api/machines/{machine['machine_id']}").status_code == 200

    def test_retire_clears_running_job(self, client):
        operator, member, machine = lab_setup(client)
        _set_status(
            client, machine["machine_id"], operator["member_id"], "In Use",
            job_member_id=member["member_id"], estimated_minutes=60,
        )
        resp = self._retire(client, machine["machine_id"], operator["member_id"])
        assert resp.json()["current_job"] is None

    def test_member_cannot_retire(self, client):
        _, member, machine = lab_setup(client)
        resp = self._retire(client, machine["machine_id"], member["member_id"])
        assert resp.status_code == 403

    def test_retire_twice(self, client):
        operator, _, machine = lab_setup(client)
        self._retire(client, machine["machine_id"], operator["member_id"])
        resp = self._retire(client, machine["machine_id"], operator["member_id"])
        assert resp.status_code == 400

    def test_retired_machine_rejects_bookings_and_status_changes(self, client):
        operator, member, machine = lab_setup(client)
        self._retire(client, machine["machine_id"], operator["member_id"])

        resp = client.post(
            f"/api/reservations/?actor_id={member['member_id']}",
            json=reservation_payload(machine["machine_id"], future(24)),
        )
        assert resp.status_code == 422
        resp = _set_status(client, machine["machine_id"], operator["member_id"], "Idle")
        assert resp.status_code == 400

    def test_retire_is_audited(self, client):
        operator, member, machine = lab_setup(client)
        booked = client.post(
            f"/api/reservations/?actor_id={member['member_id']}",
            json=reservation_payload(machine["machine_id"], future(24)),
        ).json()
        self._retire(client, machine["machine_id"], operator["member_id"])

        machine_logs = client.get(f"/api/audit-logs/?entity_id={machine['machine_id']}").json()
        assert machine_logs[0]["action_type"] == "LAB_MACHINE_RETIRED"
        assert machine_logs[0]["before_snapshot"]["status"] == "Idle"
        assert machine_logs[0]["after_snapshot"]["status"] == "Offline"

        booking_logs = client.get(f"/api/audit-logs/?entity_id={booked['reservation_id']}").json()
        assert booking_logs[0]["action_type"] == "LAB_RESERVATION_CANCELLED"
        assert booking_logs[0]["actor_id"] == operator["member_id"]
