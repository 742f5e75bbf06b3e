import pytest
from dispatch.driver.driver import Driver
from dispatch.errors import AuthorizationError, BusinessRuleError, OrderValidationError, StateTransitionError
from dispatch.order.details import parse_placement
from dispatch.order.event_log import (
    AssignmentChangedPayload,
    LocationUpdatePayload,
    OrderCreatedPayload,
    PhotoUploadedPayload,
    StatusUpdatePayload,
)
from dispatch.order.events import DriverAssigned, OrderPlaced, OrderStatusChanged
from dispatch.order.lifecycle import ActorRole, OrderStatus
from dispatch.order.order import Order, proof_key_prefix
from dispatch.pricing.cost import compute_cost
from dispatch.service.service import Service
from dispatch.trust.evaluator import evaluate_trust, is_high_value


@pytest.fixture()
def service(config_document):
    return Service.register(mitra_id="mitra-1", name="Kirim Barang Malang", document=config_document())


@pytest.fixture()
def new_order(service, order_details):
    def _make(**overrides):
        raw = {
            "service_id": str(service.id),
            "orderer_identifier": "081298765432",
            "receiver_contact": "081311112222",
            "details": order_details(),
        }
        raw.update(overrides)
        placement = parse_placement(raw)
        config = service.config()
        breakdown = compute_cost(config, placement.details)
        trust = evaluate_trust(config, placement, "ord-agg-1")
        return Order.place(
            "ord-agg-1",
            service,
            placement,
            breakdown,
            trust,
            high_value=is_high_value(config, placement),
        )

    return _make


@pytest.fixture()
def driver(service):
    d = Driver.register(mitra_id="mitra-1", name="Budi", vehicle_type="MOTORCYCLE")
    d.link_service(str(service.id))
    return d


def _assigned(order, driver):
    order.assign_driver(driver, "mitra-1")
    order._events.clear()
    return order


def _advance(order, driver_id, *statuses):
    for status in statuses:
        order.driver_update(driver_id, status)
    return order


def _snapshot(order):
    return (order.status, order.driver_id, order.final_cost, len(order.timeline), len(order._events))


class TestPlacement:
    def test_new_order_is_pending(self, new_order):
        order = new_order()

        assert order.id == "ord-agg-1"
        assert order.status == OrderStatus.PENDING.value
        assert order.estimated_cost == 8300
        assert order.final_cost is None
        assert order.driver_id is None
        assert order.mitra_id == "mitra-1"

    def test_creation_entry_carries_breakdown_and_trust(self, new_order):
        order = new_order()

        assert len(order.timeline) == 1
        entry = order.timeline[0]
        payload = entry.payload()
        assert isinstance(payload, OrderCreatedPayload)
        assert payload.cost_breakdown["total"] == 8300
        assert payload.trust["level"] == "STANDARD"
        assert entry.actor_role == ActorRole.CUSTOMER.value

    def test_sensitive_order_adds_trust_evaluation_entry(self, new_order):
        order = new_order(high_value=True)

        assert [e.event_type for e in order.history()] == ["ORDER_CREATED", "TRUST_EVALUATION"]
        trust_entry = order.history()[1]
        assert trust_entry.actor_role == ActorRole.SYSTEM.value
        assert trust_entry.actor_id == "trust-evaluator"
        assert order.trust_level == "SENSITIVE"
        assert order.high_value is True

    def test_raises_order_placed(self, new_order):
        order = new_order()

        assert len(order._events) == 1
        assert isinstance(order._events[0], OrderPlaced)
        assert order._events[0].estimated_cost == 8300


class TestAssignment:
    def test_assign_driver(self, new_order, driver):
        order = new_order()
        order.assign_driver(driver, "mitra-1")

        assert order.status == OrderStatus.DRIVER_ASSIGNED.value
        assert order.driver_id == str(driver.id)
        assignment, status_change = order.history()[-2:]
        assert assignment.payload() == AssignmentChangedPayload(
            old_driver_id=None,
            new_driver_id=str(driver.id),
            reason="Manual assignment by mitra admin",
        )
        assert status_change.payload().new_status == "DRIVER_ASSIGNED"
        assert any(isinstance(e, DriverAssigned) for e in order._events)

    def test_inactive_driver_rejected(self, new_order, driver):
        order = new_order()
        driver.deactivate()
        before = _snapshot(order)

        with pytest.raises(BusinessRuleError) as exc_info:
            order.assign_driver(driver, "mitra-1")

        assert exc_info.value.code == "DRIVER_NOT_ELIGIBLE"
        assert _snapshot(order) == before

    def test_driver_not_linked_to_service_rejected(self, new_order):
        order = new_order()
        stranger = Driver.register(mitra_id="mitra-1", name="Sari")
        before = _snapshot(order)

        with pytest.raises(BusinessRuleError):
            order.assign_driver(stranger, "mitra-1")

        assert _snapshot(order) == before
        assert order.driver_id is None

    def test_cannot_reassign_while_assigned(self, new_order, driver):
        order = _assigned(new_order(), driver)

        with pytest.raises(StateTransitionError):
            order.assign_driver(driver, "mitra-1")


class TestDriverLifecycle:
    def test_happy_path_to_delivery(self, new_order, driver):
        order = _assigned(new_order(), driver)
        _advance(
            order,
            str(driver.id),
            OrderStatus.ACCEPTED_BY_DRIVER,
            OrderStatus.DRIVER_AT_PICKUP,
            OrderStatus.PICKED_UP,
            OrderStatus.IN_TRANSIT,
            OrderStatus.DRIVER_AT_DROPOFF,
            OrderStatus.DELIVERED,
        )

        assert order.status == OrderStatus.DELIVERED.value
        assert order.final_cost == order.estimated_cost
        assert len(order._events) == 6
        assert all(isinstance(e, OrderStatusChanged) for e in order._events)

    def test_every_transition_appends_status_entry(self, new_order, driver):
        order = _assigned(new_order(), driver)
        before = len(order.timeline)
        order.driver_update(str(driver.id), OrderStatus.ACCEPTED_BY_DRIVER, notes="On my way")

        assert len(order.timeline) == before + 1
        payload = order.history()[-1].payload()
        assert payload == StatusUpdatePayload(
            old_status="DRIVER_ASSIGNED", new_status="ACCEPTED_BY_DRIVER", reason="On my way"
        )

    def test_reject_clears_driver(self, new_order, driver):
        order = _assigned(new_order(), driver)
        order.driver_update(str(driver.id), OrderStatus.REJECTED_BY_DRIVER, notes="Motor broke down")

        assert order.status == OrderStatus.REJECTED_BY_DRIVER.value
        assert order.driver_id is None

    def test_rejected_order_can_be_assigned_again(self, new_order, driver):
        order = _assigned(new_order(), driver)
        order.driver_update(str(driver.id), OrderStatus.REJECTED_BY_DRIVER)
        order.assign_driver(driver, "mitra-1")

        assert order.status == OrderStatus.DRIVER_ASSIGNED.value

    def test_failed_delivery_retry(self, new_order, driver):
        order = _assigned(new_order(), driver)
        _advance(
            order,
            str(driver.id),
            OrderStatus.ACCEPTED_BY_DRIVER,
            OrderStatus.DRIVER_AT_PICKUP,
            OrderStatus.PICKED_UP,
            OrderStatus.DRIVER_AT_DROPOFF,
            OrderStatus.FAILED_DELIVERY,
            OrderStatus.DRIVER_AT_DROPOFF,
            OrderStatus.DELIVERED,
        )

        assert order.status == OrderStatus.DELIVERED.value

    def test_illegal_transition_changes_nothing(self, new_order, driver):
        order = _assigned(new_order(), driver)
        before = _snapshot(order)

        with pytest.raises(StateTransitionError) as exc_info:
            order.driver_update(str(driver.id), OrderStatus.DELIVERED, photo_key="x", lat=1.0, lon=2.0)

        assert exc_info.value.current_status == "DRIVER_ASSIGNED"
        assert _snapshot(order) == before

    def test_terminal_state_is_final(self, new_order, driver):
        order = _assigned(new_order(), driver)
        order.driver_update(str(driver.id), OrderStatus.CANCELLED_BY_DRIVER)

        with pytest.raises(StateTransitionError):
            order.driver_update(str(driver.id), OrderStatus.ACCEPTED_BY_DRIVER)

    def test_other_driver_not_allowed(self, new_order, driver):
        order = _assigned(new_order(), driver)
        before = _snapshot(order)

        with pytest.raises(AuthorizationError):
            order.driver_update("someone-else", OrderStatus.ACCEPTED_BY_DRIVER)

        assert _snapshot(order) == before

    def test_photo_and_location_side_entries(self, new_order, driver):
        order = _assigned(new_order(), driver)
        _advance(order, str(driver.id), OrderStatus.ACCEPTED_BY_DRIVER, OrderStatus.DRIVER_AT_PICKUP)
        key = proof_key_prefix("mitra-1", str(order.id)) + "abc-parcel.jpg"
        order.driver_update(str(driver.id), OrderStatus.PICKED_UP, photo_key=key, lat=-7.96, lon=112.63)

        status_entry, photo_entry, location_entry = order.history()[-3:]
        assert status_entry.event_type == "STATUS_UPDATE"
        assert photo_entry.payload() == PhotoUploadedPayload(storage_key=key, category="PICKUP_PROOF")
        assert location_entry.payload() == LocationUpdatePayload(lat=-7.96, lon=112.63)

    def test_foreign_photo_key_rejected(self, new_order, driver):
        order = _assigned(new_order(), driver)
        before = _snapshot(order)

        with pytest.raises(OrderValidationError):
            order.driver_update(
                str(driver.id),
                OrderStatus.ACCEPTED_BY_DRIVER,
                photo_key="proofs/other-mitra/ord-x/abc.jpg",
            )

        assert _snapshot(order) == before


class TestNotesAndPhotos:
    def test_mitra_note(self, new_order):
        order = new_order()
        order.add_note("Customer asked to call first", ActorRole.MITRA, "mitra-1")

        entry = order.history()[-1]
        assert entry.event_type == "NOTE_ADDED"
        assert entry.payload().author_role == "MITRA"

    def test_driver_note_requires_assignment(self, new_order):
        order = new_order()

        with pytest.raises(AuthorizationError):
            order.add_note("Hello", ActorRole.DRIVER, "drv-1")

    def test_blank_note_rejected(self, new_order):
        with pytest.raises(OrderValidationError):
            new_order().add_note("   ", ActorRole.MITRA, "mitra-1")

    def test_condition_photo_outside_pickup_and_delivery(self, new_order, driver):
        order = _assigned(new_order(), driver)
        key = proof_key_prefix("mitra-1", str(order.id)) + "abc-dent.png"
        order.attach_photo(str(driver.id), key, caption="Dent on the box")

        payload = order.history()[-1].payload()
        assert payload.category == "CONDITION_PROOF"
        assert payload.caption == "Dent on the box"


class TestTimeline:
    def test_history_is_ordered_and_sequenced(self, new_order, driver):
        order = _assigned(new_order(high_value=True), driver)
        _advance(order, str(driver.id), OrderStatus.ACCEPTED_BY_DRIVER)

        sequences = [e.sequence for e in order.history()]
        assert sequences == sorted(sequences) == list(range(1, len(sequences) + 1))
