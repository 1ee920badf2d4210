"""
Post-arrival workflow - status progression, available actions and transitions.

Shipments move forward one step at a time:
arrived -> unloading -> inspection_pending -> inspecting -> passed/on hold/failed
-> receiving -> received -> stored.
"Amend Status" is the one backward move: it returns the shipment to the
shipping schedule and clears every workflow field in the same commit.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from freight_console.config.defaults_loader import get_hold_types, get_failure_reasons
from freight_console.models import Shipment, ShipmentStatus


class WorkflowError(Exception):
    """Raised when an action is not allowed from the shipment's current status."""


ARRIVED_STATUSES = [
    ShipmentStatus.ARRIVED_PTA.value,
    ShipmentStatus.ARRIVED_KLM.value,
    ShipmentStatus.ARRIVED_OFFSITE.value,
]

POST_ARRIVAL_STATUSES = ARRIVED_STATUSES + [
    ShipmentStatus.UNLOADING.value,
    ShipmentStatus.INSPECTION_PENDING.value,
    ShipmentStatus.INSPECTING.value,
    ShipmentStatus.INSPECTION_PASSED.value,
    ShipmentStatus.INSPECTION_ON_HOLD.value,
    ShipmentStatus.INSPECTION_FAILED.value,
    ShipmentStatus.RECEIVING.value,
    ShipmentStatus.RECEIVED.value,
]

# Fixed progression used for the progress bar
PROGRESS_STATES = [
    ShipmentStatus.ARRIVED_PTA.value,
    ShipmentStatus.ARRIVED_KLM.value,
    ShipmentStatus.UNLOADING.value,
    ShipmentStatus.INSPECTION_PENDING.value,
    ShipmentStatus.INSPECTING.value,
    ShipmentStatus.INSPECTION_PASSED.value,
    ShipmentStatus.RECEIVING.value,
    ShipmentStatus.RECEIVED.value,
    ShipmentStatus.STORED.value,
]

START_UNLOADING = {"key": "start-unloading", "label": "Start Unloading"}
COMPLETE_UNLOADING = {"key": "complete-unloading", "label": "Complete Unloading"}
START_INSPECTION = {"key": "start-inspection", "label": "Start Inspection"}
RE_INSPECT = {"key": "start-inspection", "label": "Re-inspect"}
COMPLETE_INSPECTION = {"key": "complete-inspection", "label": "Complete Inspection"}
START_RECEIVING = {"key": "start-receiving", "label": "Start Receiving"}
REJECT = {"key": "reject", "label": "Reject/Return to Supplier"}
COMPLETE_RECEIVING = {"key": "complete-receiving", "label": "Complete Receiving"}
MARK_STORED = {"key": "mark-stored", "label": "Mark as Stored"}
AMEND_STATUS = {"key": "amend-status", "label": "Amend Status"}

ACTIONS_BY_STATUS = {
    ShipmentStatus.ARRIVED_PTA.value: [START_UNLOADING],
    ShipmentStatus.ARRIVED_KLM.value: [START_UNLOADING],
    ShipmentStatus.ARRIVED_OFFSITE.value: [START_UNLOADING],
    ShipmentStatus.UNLOADING.value: [COMPLETE_UNLOADING],
    ShipmentStatus.INSPECTION_PENDING.value: [START_INSPECTION],
    ShipmentStatus.INSPECTING.value: [COMPLETE_INSPECTION],
    ShipmentStatus.INSPECTION_PASSED.value: [START_RECEIVING],
    ShipmentStatus.INSPECTION_ON_HOLD.value: [RE_INSPECT],
    ShipmentStatus.INSPECTION_FAILED.value: [RE_INSPECT, REJECT],
    ShipmentStatus.RECEIVING.value: [COMPLETE_RECEIVING],
    ShipmentStatus.RECEIVED.value: [MARK_STORED],
    ShipmentStatus.STORED.value: [],
}

INSPECTION_OUTCOMES = ("passed", "passed_on_hold", "failed")

# Fields reset by amend-status
WORKFLOW_FIELDS = [
    "unloading_start_date",
    "unloading_completed_date",
    "inspection_date",
    "inspection_status",
    "inspection_notes",
    "inspected_by",
    "hold_types",
    "failure_reasons",
    "receiving_date",
    "receiving_status",
    "receiving_notes",
    "received_by",
    "received_quantity",
    "discrepancies",
    "rejection_date",
    "rejection_reason",
    "rejected_by",
]

STATUS_LABELS = {
    ShipmentStatus.ARRIVED_PTA.value: "Arrived PTA",
    ShipmentStatus.ARRIVED_KLM.value: "Arrived KLM",
    ShipmentStatus.ARRIVED_OFFSITE.value: "Arrived OffSite",
    ShipmentStatus.UNLOADING.value: "Unloading",
    ShipmentStatus.INSPECTION_PENDING.value: "Inspection Pending",
    ShipmentStatus.INSPECTING.value: "Inspecting",
    ShipmentStatus.INSPECTION_PASSED.value: "Inspection Passed",
    ShipmentStatus.INSPECTION_ON_HOLD.value: "Inspection On Hold",
    ShipmentStatus.INSPECTION_FAILED.value: "Inspection Failed",
    ShipmentStatus.RECEIVING.value: "Receiving",
    ShipmentStatus.RECEIVED.value: "Received",
    ShipmentStatus.STORED.value: "Stored",
}


def get_available_actions(status: Optional[str]) -> List[Dict[str, str]]:
    """Forward actions for a status followed by the always-available Amend Status."""
    actions = [dict(action) for action in ACTIONS_BY_STATUS.get(status, [])]
    actions.append(dict(AMEND_STATUS))
    return actions


def get_workflow_progress(status: Optional[str]) -> Dict[str, Any]:
    total = len(PROGRESS_STATES)
    index = PROGRESS_STATES.index(status) if status in PROGRESS_STATES else -1
    current_step = index + 1
    return {
        "current_step": current_step,
        "total_steps": total,
        "percentage": round(current_step / total * 100),
        "label": STATUS_LABELS.get(status, status or ""),
    }


def _require_status(shipment: Shipment, allowed: Iterable[str], label: str) -> None:
    if shipment.latest_status not in allowed:
        raise WorkflowError(
            f"Shipment {shipment.order_ref or shipment.id} is not in {label} status "
            f"(current: {shipment.latest_status})"
        )


def _touch(shipment: Shipment, status: ShipmentStatus, now: Optional[datetime]) -> datetime:
    now = now or datetime.utcnow()
    shipment.latest_status = status.value
    shipment.updated_at = now
    return now


def start_unloading(shipment: Shipment, now: Optional[datetime] = None) -> Shipment:
    _require_status(shipment, ARRIVED_STATUSES, "ARRIVED")
    shipment.unloading_start_date = _touch(shipment, ShipmentStatus.UNLOADING, now)
    return shipment


def complete_unloading(shipment: Shipment, now: Optional[datetime] = None) -> Shipment:
    _require_status(shipment, [ShipmentStatus.UNLOADING.value], "UNLOADING")
    shipment.unloading_completed_date = _touch(shipment, ShipmentStatus.INSPECTION_PENDING, now)
    return shipment


def start_inspection(shipment: Shipment, inspected_by: Optional[str] = None, now: Optional[datetime] = None) -> Shipment:
    """Begin (or repeat) an inspection; re-inspection is allowed after a hold or failure."""
    _require_status(
        shipment,
        [
            ShipmentStatus.INSPECTION_PENDING.value,
            ShipmentStatus.INSPECTION_ON_HOLD.value,
            ShipmentStatus.INSPECTION_FAILED.value,
        ],
        "INSPECTION_PENDING",
    )
    shipment.inspection_date = _touch(shipment, ShipmentStatus.INSPECTING, now)
    shipment.inspection_status = "in_progress"
    shipment.inspected_by = inspected_by or ""
    shipment.hold_types = []
    shipment.failure_reasons = []
    return shipment


def validate_inspection_outcome(
    outcome: str,
    hold_types: Optional[List[str]] = None,
    failure_reasons: Optional[List[str]] = None,
) -> None:
    """
    An on-hold result needs at least one hold type and a failure needs at least
    one failure reason, each drawn from the configured lists.
    """
    if outcome not in INSPECTION_OUTCOMES:
        raise ValueError(f"Unknown inspection outcome '{outcome}'")
    if outcome == "passed_on_hold":
        if not hold_types:
            raise ValueError("Please select at least one hold type")
        unknown = sorted(set(hold_types) - set(get_hold_types()))
        if unknown:
            raise ValueError(f"Unknown hold type(s): {', '.join(unknown)}")
    if outcome == "failed":
        if not failure_reasons:
            raise ValueError("Please select at least one failure reason")
        unknown = sorted(set(failure_reasons) - set(get_failure_reasons()))
        if unknown:
            raise ValueError(f"Unknown failure reason(s): {', '.join(unknown)}")


def complete_inspection(
    shipment: Shipment,
    outcome: str,
    notes: Optional[str] = None,
    inspected_by: Optional[str] = None,
    hold_types: Optional[List[str]] = None,
    failure_reasons: Optional[List[str]] = None,
    now: Optional[datetime] = None,
) -> Shipment:
    _require_status(shipment, [ShipmentStatus.INSPECTING.value], "INSPECTING")
    validate_inspection_outcome(outcome, hold_types, failure_reasons)

    if outcome == "passed":
        _touch(shipment, ShipmentStatus.INSPECTION_PASSED, now)
        shipment.inspection_status = "passed"
    elif outcome == "passed_on_hold":
        _touch(shipment, ShipmentStatus.INSPECTION_ON_HOLD, now)
        shipment.inspection_status = "on_hold"
    else:
        _touch(shipment, ShipmentStatus.INSPECTION_FAILED, now)
        shipment.inspection_status = "failed"

    shipment.hold_types = list(hold_types or []) if outcome == "passed_on_hold" else []
    shipment.failure_reasons = list(failure_reasons or []) if outcome == "failed" else []
    shipment.inspection_notes = notes or ""
    if inspected_by:
        shipment.inspected_by = inspected_by
    return shipment


def start_receiving(shipment: Shipment, received_by: Optional[str] = None, now: Optional[datetime] = None) -> Shipment:
    _require_status(shipment, [ShipmentStatus.INSPECTION_PASSED.value], "INSPECTION_PASSED")
    shipment.receiving_date = _touch(shipment, ShipmentStatus.RECEIVING, now)
    shipment.receiving_status = "in_progress"
    shipment.received_by = received_by or ""
    return shipment


def receiving_status_for(
    expected_quantity: Optional[Decimal],
    received_quantity: Optional[Decimal],
    discrepancies: Optional[List[Any]],
) -> str:
    if discrepancies:
        return "discrepancy"
    if expected_quantity is not None and received_quantity is not None and received_quantity < expected_quantity:
        return "partial"
    return "completed"


def complete_receiving(
    shipment: Shipment,
    received_quantity: Optional[Decimal],
    notes: Optional[str] = None,
    received_by: Optional[str] = None,
    discrepancies: Optional[List[Any]] = None,
    now: Optional[datetime] = None,
) -> Shipment:
    _require_status(shipment, [ShipmentStatus.RECEIVING.value], "RECEIVING")
    shipment.receiving_status = receiving_status_for(shipment.quantity, received_quantity, discrepancies)
    _touch(shipment, ShipmentStatus.RECEIVED, now)
    shipment.received_quantity = received_quantity
    shipment.receiving_notes = notes or ""
    shipment.discrepancies = list(discrepancies or [])
    if received_by:
        shipment.received_by = received_by
    return shipment


def mark_stored(shipment: Shipment, now: Optional[datetime] = None) -> Shipment:
    _require_status(shipment, [ShipmentStatus.RECEIVED.value], "RECEIVED")
    _touch(shipment, ShipmentStatus.STORED, now)
    return shipment


def mark_rejected(
    shipment: Shipment,
    rejection_reason: str,
    rejected_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Shipment:
    """Only a failed inspection can be returned to the supplier."""
    _require_status(shipment, [ShipmentStatus.INSPECTION_FAILED.value], "INSPECTION_FAILED")
    if not rejection_reason or not rejection_reason.strip():
        raise ValueError("Rejection reason is required")
    shipment.rejection_date = _touch(shipment, ShipmentStatus.REJECTED, now)
    shipment.rejection_reason = rejection_reason.strip()
    shipment.rejected_by = rejected_by or "Unknown"
    return shipment


def amend_status(shipment: Shipment, now: Optional[datetime] = None) -> Shipment:
    """Send the shipment back to the shipping schedule with a clean workflow slate."""
    for field in WORKFLOW_FIELDS:
        setattr(shipment, field, None)
    _touch(shipment, ShipmentStatus.IN_TRANSIT_SEAWAY, now)
    return shipment
