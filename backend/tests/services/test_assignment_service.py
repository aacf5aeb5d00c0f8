"""
Tests for guestdesk/services/assignment_service.py
Covers: select_optimal_staff, assign (manual, automatic, forced), failure modes, audit trail
"""
import pytest
from datetime import datetime

from guestdesk.models.events import EventType, AnalyticsEventType
from guestdesk.models.ontology import (
    AnalyticsEvent, ServiceRequest, ServiceRequestStatus, Priority
)
from guestdesk.services.assignment_service import AssignmentEngine, select_optimal_staff
from guestdesk.services.errors import (
    ValidationError, NotFoundError, AlreadyAssignedError, ConflictOfStateError,
    NoStaffAvailableError, StaffUnavailableError
)
from guestdesk.services.workload_service import StaffWorkload


# ── helpers ──────────────────────────────────────────────────────────

def _workload(name, active, available=None):
    return StaffWorkload(
        staff_id=f"id-{name}",
        staff_name=name,
        active_requests=active,
        max_concurrent_requests=5,
        is_available=active < 5 if available is None else available,
    )


def _assigned_events(db):
    return db.query(AnalyticsEvent).filter(
        AnalyticsEvent.event_type == AnalyticsEventType.SERVICE_REQUEST_ASSIGNED.value
    ).all()


# ── automatic selection ──────────────────────────────────────────────

class TestSelectOptimalStaff:

    def test_high_priority_picks_lowest_workload(self):
        workloads = [_workload("A", 2), _workload("B", 2), _workload("C", 1)]
        assert select_optimal_staff(workloads, Priority.HIGH) == "id-C"

    def test_medium_priority_tie_goes_to_first_name(self):
        workloads = [_workload("B", 1), _workload("A", 1)]
        assert select_optimal_staff(workloads, Priority.MEDIUM) == "id-A"

    def test_urgent_tie_goes_to_first_name(self):
        workloads = [_workload("Dora", 0), _workload("Carl", 0), _workload("Ann", 3)]
        assert select_optimal_staff(workloads, Priority.URGENT) == "id-Carl"

    def test_low_priority_picks_least_loaded(self):
        workloads = [_workload("A", 4), _workload("B", 0), _workload("C", 0)]
        assert select_optimal_staff(workloads, Priority.LOW) == "id-B"

    def test_skips_unavailable_staff(self):
        workloads = [_workload("A", 5), _workload("B", 0, available=False), _workload("C", 3)]
        assert select_optimal_staff(workloads, Priority.MEDIUM) == "id-C"

    def test_no_eligible_staff(self):
        workloads = [_workload("A", 5), _workload("B", 6)]
        with pytest.raises(NoStaffAvailableError):
            select_optimal_staff(workloads, Priority.HIGH)

    def test_accepts_plain_strings(self):
        workloads = [_workload("A", 1), _workload("B", 0)]
        assert select_optimal_staff(workloads, "urgent") == "id-B"


# ── assign ───────────────────────────────────────────────────────────

class TestAssign:

    def test_manual_assignment(self, db_session, alice, bob, make_request, caller, published):
        request = make_request(priority=Priority.HIGH)

        result = AssignmentEngine(db_session, published).assign(
            caller, request.id, preferred_staff_id=bob.id
        )

        assert result.status == ServiceRequestStatus.IN_PROGRESS
        assert result.assigned_staff_id == bob.id
        assert result.started_at is not None
        assert result.completed_at is None

        [event] = _assigned_events(db_session)
        assert event.hotel_id == caller.hotel_id
        assert event.event_data["request_id"] == request.id
        assert event.event_data["assigned_staff_id"] == bob.id
        assert event.event_data["assigned_by"] == caller.user_id
        assert event.event_data["assignment_method"] == "manual"
        assert event.event_data["priority"] == "high"
        assert event.event_data["service_category"] == "housekeeping"

    def test_automatic_assignment_uses_workload(self, db_session, alice, bob, make_request,
                                                caller, noop_publisher):
        make_request(status=ServiceRequestStatus.IN_PROGRESS, assigned_staff=alice)
        request = make_request(priority=Priority.MEDIUM)

        result = AssignmentEngine(db_session, noop_publisher).assign(caller, request.id)

        assert result.assigned_staff_id == bob.id
        [event] = _assigned_events(db_session)
        assert event.event_data["assignment_method"] == "automatic"

    def test_automatic_assignment_tie_breaks_by_name(self, db_session, make_staff, make_request,
                                                     caller, noop_publisher):
        make_staff("Bea")
        ann = make_staff("Ann")
        request = make_request(priority=Priority.URGENT)

        result = AssignmentEngine(db_session, noop_publisher).assign(caller, request.id)

        assert result.assigned_staff_id == ann.id

    def test_returns_joined_details(self, db_session, alice, make_request, caller, noop_publisher):
        request = make_request()

        result = AssignmentEngine(db_session, noop_publisher).assign(caller, request.id)

        assert result.guest.name == "Gina Guest"
        assert result.room.room_number == "101"
        assert result.service.category == "housekeeping"
        assert result.assigned_staff.name == "Alice"

    def test_publishes_assigned_event(self, db_session, alice, make_request, caller, published):
        request = make_request()

        AssignmentEngine(db_session, published).assign(caller, request.id)

        [event] = published.of_type(EventType.SERVICE_REQUEST_ASSIGNED)
        assert event.data["request_id"] == request.id
        assert event.data["staff_id"] == alice.id
        assert event.data["hotel_id"] == caller.hotel_id

    def test_keeps_existing_started_at(self, db_session, alice, make_request, caller, noop_publisher):
        first_start = datetime(2024, 1, 1, 9, 0)
        request = make_request(started_at=first_start)

        result = AssignmentEngine(db_session, noop_publisher).assign(caller, request.id)

        assert result.started_at == first_start


class TestAssignFailures:

    def test_missing_request_id(self, db_session, caller, noop_publisher):
        with pytest.raises(ValidationError):
            AssignmentEngine(db_session, noop_publisher).assign(caller, "")

    def test_unknown_request(self, db_session, alice, caller, noop_publisher):
        with pytest.raises(NotFoundError):
            AssignmentEngine(db_session, noop_publisher).assign(caller, "does-not-exist")

    def test_request_of_another_hotel(self, db_session, alice, other_hotel, make_request,
                                      caller, noop_publisher):
        foreign = make_request(hotel_id=other_hotel.id)

        with pytest.raises(NotFoundError):
            AssignmentEngine(db_session, noop_publisher).assign(caller, foreign.id, preferred_staff_id=alice.id)

        db_session.expire_all()
        untouched = db_session.get(ServiceRequest, foreign.id)
        assert untouched.status == ServiceRequestStatus.PENDING
        assert untouched.assigned_staff_id is None
        assert _assigned_events(db_session) == []

    def test_double_assign(self, db_session, alice, bob, make_request, caller, noop_publisher):
        request = make_request()
        engine = AssignmentEngine(db_session, noop_publisher)
        engine.assign(caller, request.id, preferred_staff_id=alice.id)

        with pytest.raises(ConflictOfStateError) as exc_info:
            engine.assign(caller, request.id, preferred_staff_id=bob.id)

        assert isinstance(exc_info.value, AlreadyAssignedError)
        assert exc_info.value.status_code == 404
        db_session.expire_all()
        assert db_session.get(ServiceRequest, request.id).assigned_staff_id == alice.id
        assert len(_assigned_events(db_session)) == 1

    def test_no_staff_in_hotel(self, db_session, make_request, caller, noop_publisher):
        request = make_request()

        with pytest.raises(NoStaffAvailableError):
            AssignmentEngine(db_session, noop_publisher).assign(caller, request.id)

    def test_everyone_at_capacity(self, db_session, alice, make_request, caller, noop_publisher):
        for _ in range(5):
            make_request(status=ServiceRequestStatus.IN_PROGRESS, assigned_staff=alice)
        request = make_request()

        with pytest.raises(NoStaffAvailableError):
            AssignmentEngine(db_session, noop_publisher).assign(caller, request.id)

    def test_preferred_staff_at_capacity(self, db_session, alice, bob, make_request, caller, noop_publisher):
        for _ in range(5):
            make_request(status=ServiceRequestStatus.IN_PROGRESS, assigned_staff=alice)
        request = make_request()

        with pytest.raises(StaffUnavailableError):
            AssignmentEngine(db_session, noop_publisher).assign(caller, request.id, preferred_staff_id=alice.id)

    def test_force_assign_overrides_capacity(self, db_session, alice, make_request, caller, noop_publisher):
        for _ in range(5):
            make_request(status=ServiceRequestStatus.IN_PROGRESS, assigned_staff=alice)
        request = make_request()

        result = AssignmentEngine(db_session, noop_publisher).assign(
            caller, request.id, preferred_staff_id=alice.id, force_assign=True
        )

        assert result.assigned_staff_id == alice.id

    def test_preferred_staff_of_another_hotel(self, db_session, alice, other_hotel, make_staff,
                                              make_request, caller, noop_publisher):
        outsider = make_staff("Outsider", hotel_id=other_hotel.id)
        request = make_request()

        with pytest.raises(StaffUnavailableError):
            AssignmentEngine(db_session, noop_publisher).assign(
                caller, request.id, preferred_staff_id=outsider.id, force_assign=True
            )

    def test_lost_race_is_already_assigned(self, db_session, alice, make_request, caller,
                                           noop_publisher, monkeypatch):
        request = make_request()
        engine = AssignmentEngine(db_session, noop_publisher)
        monkeypatch.setattr(engine.repository, "update", lambda *args, **kwargs: 0)

        with pytest.raises(AlreadyAssignedError):
            engine.assign(caller, request.id)

        assert _assigned_events(db_session) == []
