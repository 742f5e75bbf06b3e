"""Order aggregate — the current-state projection of a dispatch order.

Every mutation appends at least one ``OrderEvent`` to the order's timeline.
The timeline is append-only; no method edits or removes an entry. All checks
run before the first field is written, so a rejected call leaves both the
order and its timeline exactly as they were.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text

from dispatch.domain import dispatch
from dispatch.errors import AuthorizationError, BusinessRuleError, OrderValidationError
from dispatch.order.details import OrderDetails, PaymentMethod, Placement, parse_details, snapshot_details
from dispatch.order.event_log import (
    AssignmentChangedPayload,
    LocationUpdatePayload,
    NoteAddedPayload,
    OrderCreatedPayload,
    PhotoUploadedPayload,
    StatusUpdatePayload,
    TrustEvaluationPayload,
    parse_payload,
    serialize_payload,
)
from dispatch.order.events import (
    DriverAssigned,
    OrderNoteAdded,
    OrderPlaced,
    OrderStatusChanged,
    ProofPhotoAttached,
)
from dispatch.order.lifecycle import ActorRole, OrderStatus, check_transition

TRUST_EVALUATOR_ACTOR = "trust-evaluator"
MANUAL_ASSIGNMENT_REASON = "Manual assignment by mitra admin"

_PROOF_CATEGORY_BY_STATUS = {
    OrderStatus.PICKED_UP: "PICKUP_PROOF",
    OrderStatus.DELIVERED: "DELIVERY_PROOF",
}


def proof_category_for(status: OrderStatus) -> str:
    return _PROOF_CATEGORY_BY_STATUS.get(status, "CONDITION_PROOF")


def proof_key_prefix(mitra_id: str, order_id: str) -> str:
    return f"proofs/{mitra_id}/{order_id}/"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dispatch.entity(part_of="Order")
class OrderEvent:
    """One immutable entry in an order's timeline."""

    sequence = Integer(required=True, min_value=1)
    event_type = String(required=True, max_length=50)
    data = Text(required=True)  # JSON payload, shape selected by event_type
    actor_role = String(required=True, choices=ActorRole)
    actor_id = String(max_length=255)
    occurred_at = DateTime(required=True)

    def payload(self):
        return parse_payload(self.data)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@dispatch.aggregate
class Order:
    service_id = Identifier(required=True)
    mitra_id = Identifier(required=True)
    driver_id = Identifier()
    orderer_identifier = String(required=True, max_length=50)
    receiver_contact = String(max_length=50)
    details_json = Text(required=True)  # JSON snapshot of OrderDetails
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    estimated_cost = Integer(required=True, min_value=0)
    final_cost = Integer(min_value=0)
    talangan_amount = Integer(default=0, min_value=0)
    high_value = Boolean(default=False)
    payment_method = String(max_length=20, choices=PaymentMethod, default=PaymentMethod.CASH.value)
    trust_level = String(max_length=20)
    timeline = HasMany(OrderEvent)
    created_at = DateTime()
    updated_at = DateTime()
    scheduled_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, order_id: str, service, placement: Placement, breakdown, trust, high_value: bool):
        """Create a PENDING order from an already validated, priced placement."""
        now = datetime.now(UTC)
        order = cls(
            id=order_id,
            service_id=str(service.id),
            mitra_id=str(service.mitra_id),
            orderer_identifier=placement.orderer_identifier,
            receiver_contact=placement.receiver_contact,
            details_json=snapshot_details(placement.details),
            status=OrderStatus.PENDING.value,
            estimated_cost=breakdown.total,
            talangan_amount=placement.talangan_amount,
            high_value=high_value,
            payment_method=placement.payment_method.value,
            trust_level=trust.level.value,
            created_at=now,
            updated_at=now,
            scheduled_at=placement.details.scheduled_at,
        )
        order._append(
            OrderCreatedPayload(
                service_name=service.name,
                estimated_cost=breakdown.total,
                cost_breakdown=breakdown.model_dump(mode="json"),
                payment_method=placement.payment_method.value,
                high_value=order.high_value,
                talangan_amount=placement.talangan_amount,
                trust=trust.summary(),
            ),
            ActorRole.CUSTOMER,
            placement.orderer_identifier,
            now,
        )
        if trust.requires_notification:
            order._append(
                TrustEvaluationPayload(
                    level=trust.level.value,
                    reasons=list(trust.reasons),
                    verification_requirements=list(trust.verification_requirements),
                    notification_required=True,
                ),
                ActorRole.SYSTEM,
                TRUST_EVALUATOR_ACTOR,
                now,
            )
        order.raise_(
            OrderPlaced(
                order_id=order_id,
                service_id=str(service.id),
                mitra_id=str(service.mitra_id),
                orderer_identifier=placement.orderer_identifier,
                estimated_cost=breakdown.total,
                trust_level=trust.level.value,
                cost_breakdown=breakdown.model_dump_json(),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Timeline helpers
    # -------------------------------------------------------------------
    def _append(self, payload, role: ActorRole, actor_id: str | None, now: datetime) -> None:
        self.add_timeline(
            OrderEvent(
                sequence=len(self.timeline or []) + 1,
                event_type=payload.event_type,
                data=serialize_payload(payload),
                actor_role=role.value,
                actor_id=actor_id,
                occurred_at=now,
            )
        )

    def history(self) -> list:
        """Timeline entries, oldest first."""
        return sorted(self.timeline or [], key=lambda e: (e.occurred_at, e.sequence))

    def details(self) -> OrderDetails:
        return parse_details(self.details_json)

    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def assert_assigned_to(self, driver_id: str) -> None:
        if not self.driver_id or str(self.driver_id) != str(driver_id):
            raise AuthorizationError(
                "Order is not assigned to this driver",
                code="ORDER_NOT_ASSIGNED_TO_DRIVER",
                details={"order_id": str(self.id)},
            )

    def _move_to(self, target: OrderStatus, role: ActorRole, actor_id: str, reason: str | None, now: datetime) -> None:
        current = self.current_status()
        check_transition(current, target, role)

        self.status = target.value
        self.updated_at = now
        if target is OrderStatus.REJECTED_BY_DRIVER:
            self.driver_id = None
        if target is OrderStatus.DELIVERED and self.final_cost is None:
            self.final_cost = self.estimated_cost

        self._append(
            StatusUpdatePayload(old_status=current.value, new_status=target.value, reason=reason),
            role,
            actor_id,
            now,
        )
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                old_status=current.value,
                new_status=target.value,
                actor_role=role.value,
                actor_id=actor_id,
                reason=reason,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Driver actions
    # -------------------------------------------------------------------
    def driver_update(
        self,
        driver_id: str,
        new_status: OrderStatus,
        notes: str | None = None,
        photo_key: str | None = None,
        lat: float | None = None,
        lon: float | None = None,
    ) -> None:
        """Apply a driver's status change plus any proof photo or location ping."""
        self.assert_assigned_to(driver_id)
        check_transition(self.current_status(), new_status, ActorRole.DRIVER)
        if photo_key:
            self._assert_proof_key(photo_key)

        now = datetime.now(UTC)
        self._move_to(new_status, ActorRole.DRIVER, driver_id, notes, now)
        if photo_key:
            self._attach(photo_key, proof_category_for(new_status), notes, driver_id, now)
        if lat is not None and lon is not None:
            self._append(LocationUpdatePayload(lat=lat, lon=lon), ActorRole.DRIVER, driver_id, now)

    def attach_photo(self, driver_id: str, storage_key: str, caption: str | None = None) -> None:
        self.assert_assigned_to(driver_id)
        self._assert_proof_key(storage_key)
        self._attach(storage_key, proof_category_for(self.current_status()), caption, driver_id, datetime.now(UTC))

    def _assert_proof_key(self, storage_key: str) -> None:
        if not storage_key.startswith(proof_key_prefix(str(self.mitra_id), str(self.id))):
            raise OrderValidationError(
                "Photo key does not belong to this order",
                code="INVALID_PHOTO_KEY",
                details={"fields": {"photo_key": ["Photo key does not belong to this order"]}},
            )

    def _attach(self, storage_key: str, category: str, caption: str | None, driver_id: str, now: datetime) -> None:
        self._append(
            PhotoUploadedPayload(storage_key=storage_key, category=category, caption=caption),
            ActorRole.DRIVER,
            driver_id,
            now,
        )
        self.updated_at = now
        self.raise_(
            ProofPhotoAttached(
                order_id=str(self.id),
                storage_key=storage_key,
                category=category,
                attached_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Mitra actions
    # -------------------------------------------------------------------
    def assign_driver(self, driver, mitra_id: str) -> None:
        """Manually hand the order to one of the mitra's drivers."""
        check_transition(self.current_status(), OrderStatus.DRIVER_ASSIGNED, ActorRole.MITRA)
        if not driver.is_active:
            raise BusinessRuleError(
                "Driver is not active",
                code="DRIVER_NOT_ELIGIBLE",
                details={"driver_id": str(driver.id), "reason": "inactive"},
            )
        if not driver.serves(str(self.service_id)):
            raise BusinessRuleError(
                "Driver is not assigned to this order's service",
                code="DRIVER_NOT_ELIGIBLE",
                details={"driver_id": str(driver.id), "reason": "not_linked_to_service"},
            )

        now = datetime.now(UTC)
        previous = str(self.driver_id) if self.driver_id else None
        self.driver_id = str(driver.id)
        self._append(
            AssignmentChangedPayload(
                old_driver_id=previous,
                new_driver_id=str(driver.id),
                reason=MANUAL_ASSIGNMENT_REASON,
            ),
            ActorRole.MITRA,
            mitra_id,
            now,
        )
        self._move_to(OrderStatus.DRIVER_ASSIGNED, ActorRole.MITRA, mitra_id, MANUAL_ASSIGNMENT_REASON, now)
        self.raise_(
            DriverAssigned(
                order_id=str(self.id),
                mitra_id=str(self.mitra_id),
                driver_id=str(driver.id),
                previous_driver_id=previous,
                assigned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------
    def add_note(self, note: str, role: ActorRole, actor_id: str) -> None:
        if role is ActorRole.DRIVER:
            self.assert_assigned_to(actor_id)
        if not note or not note.strip():
            raise OrderValidationError(
                "Note must not be empty",
                details={"fields": {"note": ["Note must not be empty"]}},
            )
        now = datetime.now(UTC)
        self._append(NoteAddedPayload(note=note, author_role=role.value), role, actor_id, now)
        self.updated_at = now
        self.raise_(OrderNoteAdded(order_id=str(self.id), author_role=role.value, note=note, added_at=now))

