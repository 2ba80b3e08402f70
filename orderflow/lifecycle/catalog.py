"""Status catalog for every entity kind and status dimension.

One ``str`` enum per (kind, dimension) and one metadata table per enum:
label, allowed successors, terminal flag, and the colour/icon keys the client
portal renders. Everything here is static data plus pure lookups.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from orderflow.errors import UnknownStatus
from orderflow.models import Dimension, EntityKind


class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PRICING_REVIEW = "PRICING_REVIEW"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    QUOTED = "QUOTED"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    INVOICED = "INVOICED"
    PAID = "PAID"
    CONFIRMED = "CONFIRMED"
    AWAITING_FABRICATION = "AWAITING_FABRICATION"
    IN_PREPARATION = "IN_PREPARATION"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    IN_USE = "IN_USE"
    AWAITING_RETURN = "AWAITING_RETURN"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class InboundRequestStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    PRICING_REVIEW = "PRICING_REVIEW"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    QUOTED = "QUOTED"
    CONFIRMED = "CONFIRMED"
    DECLINED = "DECLINED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ServiceRequestStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class CommercialStatus(str, Enum):
    PENDING_QUOTE = "PENDING_QUOTE"
    QUOTED = "QUOTED"
    QUOTE_APPROVED = "QUOTE_APPROVED"
    INVOICED = "INVOICED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True, slots=True)
class StatusInfo:
    label: str
    allowed_next: frozenset[str]
    is_terminal: bool = False
    color: str = "slate"
    icon: str = "circle"


def _info(label: str, *successors: Enum, color: str = "slate", icon: str = "circle") -> StatusInfo:
    return StatusInfo(
        label=label,
        allowed_next=frozenset(s.value for s in successors),
        is_terminal=not successors,
        color=color,
        icon=icon,
    )


_O = OrderStatus
ORDER_STATUSES: dict[str, StatusInfo] = {
    _O.DRAFT: _info("Draft", _O.SUBMITTED, _O.CANCELLED, color="muted", icon="file-text"),
    _O.SUBMITTED: _info("Submitted", _O.PRICING_REVIEW, _O.CANCELLED, color="primary", icon="check-circle"),
    _O.PRICING_REVIEW: _info(
        "Under Review", _O.PENDING_APPROVAL, _O.QUOTED, _O.CANCELLED, color="yellow", icon="clock"
    ),
    _O.PENDING_APPROVAL: _info("Pending Approval", _O.QUOTED, _O.CANCELLED, color="orange", icon="clock"),
    _O.QUOTED: _info("Quote Ready", _O.APPROVED, _O.DECLINED, _O.CANCELLED, color="amber", icon="file-text"),
    _O.APPROVED: _info(
        "Quote Approved", _O.INVOICED, _O.CONFIRMED, _O.CANCELLED, color="green", icon="check-circle"
    ),
    _O.DECLINED: _info("Quote Declined", color="destructive", icon="x-circle"),
    _O.INVOICED: _info("Invoiced", _O.PAID, _O.CONFIRMED, color="indigo", icon="receipt"),
    _O.PAID: _info("Paid", _O.CONFIRMED, color="emerald", icon="credit-card"),
    _O.CONFIRMED: _info(
        "Confirmed",
        _O.IN_PREPARATION,
        _O.AWAITING_FABRICATION,
        _O.CANCELLED,
        color="green",
        icon="check-circle",
    ),
    _O.AWAITING_FABRICATION: _info(
        "Awaiting Fabrication", _O.IN_PREPARATION, _O.CANCELLED, color="purple", icon="hammer"
    ),
    _O.IN_PREPARATION: _info("In Preparation", _O.READY_FOR_DELIVERY, color="cyan", icon="package"),
    _O.READY_FOR_DELIVERY: _info("Ready for Delivery", _O.IN_TRANSIT, color="teal", icon="package-check"),
    _O.IN_TRANSIT: _info("In Transit", _O.DELIVERED, color="blue", icon="truck"),
    _O.DELIVERED: _info("Delivered", _O.IN_USE, color="green", icon="map-pin"),
    _O.IN_USE: _info("In Use", _O.AWAITING_RETURN, color="violet", icon="calendar"),
    _O.AWAITING_RETURN: _info("Awaiting Return", _O.CLOSED, color="orange", icon="rotate-ccw"),
    _O.CLOSED: _info("Completed", color="teal", icon="check-circle"),
    _O.CANCELLED: _info("Cancelled", color="destructive", icon="alert-circle"),
}

_I = InboundRequestStatus
INBOUND_REQUEST_STATUSES: dict[str, StatusInfo] = {
    _I.SUBMITTED: _info("Submitted", _I.PRICING_REVIEW, _I.CANCELLED, color="primary", icon="check-circle"),
    _I.PRICING_REVIEW: _info(
        "Under Review", _I.PENDING_APPROVAL, _I.QUOTED, _I.CANCELLED, color="yellow", icon="clock"
    ),
    _I.PENDING_APPROVAL: _info("Pending Approval", _I.QUOTED, _I.CANCELLED, color="orange", icon="clock"),
    _I.QUOTED: _info("Quote Ready", _I.CONFIRMED, _I.DECLINED, _I.CANCELLED, color="amber", icon="file-text"),
    _I.CONFIRMED: _info("Confirmed", _I.COMPLETED, _I.CANCELLED, color="green", icon="check-circle"),
    _I.DECLINED: _info("Quote Declined", color="destructive", icon="x-circle"),
    _I.COMPLETED: _info("Completed", color="teal", icon="check-circle"),
    _I.CANCELLED: _info("Cancelled", color="destructive", icon="alert-circle"),
}

_S = ServiceRequestStatus
SERVICE_REQUEST_STATUSES: dict[str, StatusInfo] = {
    _S.DRAFT: _info("Request Created", _S.SUBMITTED, _S.CANCELLED, color="muted", icon="file-text"),
    _S.SUBMITTED: _info("Request Submitted", _S.IN_REVIEW, _S.CANCELLED, color="primary", icon="check-circle"),
    _S.IN_REVIEW: _info(
        "Under Review", _S.APPROVED, _S.DECLINED, _S.CANCELLED, color="yellow", icon="clock"
    ),
    _S.APPROVED: _info(
        "Request Approved", _S.IN_PROGRESS, _S.CANCELLED, color="green", icon="check-circle"
    ),
    _S.DECLINED: _info("Quote Declined", color="destructive", icon="x-circle"),
    _S.IN_PROGRESS: _info("Work In Progress", _S.COMPLETED, color="cyan", icon="wrench"),
    _S.COMPLETED: _info("Request Complete", color="teal", icon="check-circle"),
    _S.CANCELLED: _info("Request Cancelled", color="destructive", icon="alert-circle"),
}

_C = CommercialStatus
COMMERCIAL_STATUSES: dict[str, StatusInfo] = {
    _C.PENDING_QUOTE: _info("Pending Quote", _C.QUOTED, _C.CANCELLED, color="blue", icon="clock"),
    _C.QUOTED: _info(
        "Quote Sent", _C.QUOTE_APPROVED, _C.PENDING_QUOTE, _C.CANCELLED, color="amber", icon="file-text"
    ),
    _C.QUOTE_APPROVED: _info(
        "Quote Accepted", _C.INVOICED, _C.CANCELLED, color="green", icon="check-circle"
    ),
    _C.INVOICED: _info("Invoiced", _C.PAID, color="indigo", icon="receipt"),
    _C.PAID: _info("Paid", color="emerald", icon="credit-card"),
    _C.CANCELLED: _info("Cancelled", color="destructive", icon="alert-circle"),
}

# The tables above are keyed by enum members; str-valued enums hash like their
# values so lookups by plain strings work unchanged.

_PRE_QUOTE = frozenset({_C.PENDING_QUOTE.value})
_QUOTED = frozenset({_C.QUOTED.value})
_ACCEPTED = frozenset({_C.QUOTE_APPROVED.value, _C.INVOICED.value, _C.PAID.value})
_CANCELLED_ONLY = frozenset({_C.CANCELLED.value})
_ANY_COMMERCIAL = frozenset(s.value for s in CommercialStatus)

# Commercial statuses each operational status may coexist with (billable only)
ORDER_COMPATIBILITY: dict[str, frozenset[str]] = {
    _O.DRAFT: _PRE_QUOTE,
    _O.SUBMITTED: _PRE_QUOTE,
    _O.PRICING_REVIEW: _PRE_QUOTE,
    _O.PENDING_APPROVAL: _PRE_QUOTE,
    _O.QUOTED: _QUOTED,
    _O.DECLINED: _CANCELLED_ONLY,
    _O.APPROVED: _ACCEPTED,
    _O.INVOICED: frozenset({_C.INVOICED.value, _C.PAID.value}),
    _O.PAID: frozenset({_C.PAID.value}),
    _O.CONFIRMED: _ACCEPTED,
    _O.AWAITING_FABRICATION: _ACCEPTED,
    _O.IN_PREPARATION: _ACCEPTED,
    _O.READY_FOR_DELIVERY: _ACCEPTED,
    _O.IN_TRANSIT: _ACCEPTED,
    _O.DELIVERED: _ACCEPTED,
    _O.IN_USE: _ACCEPTED,
    _O.AWAITING_RETURN: _ACCEPTED,
    _O.CLOSED: _ACCEPTED,
    _O.CANCELLED: _ANY_COMMERCIAL,
}

INBOUND_REQUEST_COMPATIBILITY: dict[str, frozenset[str]] = {
    _I.SUBMITTED: _PRE_QUOTE,
    _I.PRICING_REVIEW: _PRE_QUOTE,
    _I.PENDING_APPROVAL: _PRE_QUOTE,
    _I.QUOTED: _QUOTED,
    _I.DECLINED: _CANCELLED_ONLY,
    _I.CONFIRMED: _ACCEPTED,
    _I.COMPLETED: _ACCEPTED,
    _I.CANCELLED: _ANY_COMMERCIAL,
}

SERVICE_REQUEST_COMPATIBILITY: dict[str, frozenset[str]] = {
    _S.DRAFT: _PRE_QUOTE,
    _S.SUBMITTED: _PRE_QUOTE,
    # Quoting happens while the request is under review
    _S.IN_REVIEW: _PRE_QUOTE | _QUOTED,
    _S.DECLINED: _CANCELLED_ONLY,
    _S.APPROVED: _ACCEPTED,
    _S.IN_PROGRESS: _ACCEPTED,
    _S.COMPLETED: _ACCEPTED,
    _S.CANCELLED: _ANY_COMMERCIAL,
}


class StatusCatalog:
    """Lookup facade over one status table."""

    def __init__(
        self,
        kind: EntityKind,
        dimension: Dimension,
        statuses: Mapping[str, StatusInfo],
        initial: str,
    ):
        self.kind = kind
        self.dimension = dimension
        self._statuses = {str(_value(key)): info for key, info in statuses.items()}
        self.initial = _value(initial)

    def __contains__(self, status: object) -> bool:
        return _value(status) in self._statuses

    def __iter__(self):
        return iter(self._statuses)

    def get(self, status: str) -> StatusInfo:
        info = self._statuses.get(_value(status))
        if info is None:
            raise UnknownStatus(self.kind.value, self.dimension.value, str(_value(status)))
        return info

    def label(self, status: str) -> str:
        return self.get(status).label

    def allowed_next(self, status: str) -> frozenset[str]:
        return self.get(status).allowed_next

    def is_terminal(self, status: str) -> bool:
        return self.get(status).is_terminal

    def can_transition(self, current: str, target: str) -> bool:
        return _value(target) in self.allowed_next(current)

    def items(self):
        return self._statuses.items()


def _value(status: object) -> str:
    return status.value if isinstance(status, Enum) else status


_OPERATIONAL: dict[EntityKind, StatusCatalog] = {
    EntityKind.ORDER: StatusCatalog(
        EntityKind.ORDER, Dimension.OPERATIONAL, ORDER_STATUSES, OrderStatus.SUBMITTED
    ),
    EntityKind.INBOUND_REQUEST: StatusCatalog(
        EntityKind.INBOUND_REQUEST,
        Dimension.OPERATIONAL,
        INBOUND_REQUEST_STATUSES,
        InboundRequestStatus.SUBMITTED,
    ),
    EntityKind.SERVICE_REQUEST: StatusCatalog(
        EntityKind.SERVICE_REQUEST,
        Dimension.OPERATIONAL,
        SERVICE_REQUEST_STATUSES,
        ServiceRequestStatus.DRAFT,
    ),
}

_COMMERCIAL: dict[EntityKind, StatusCatalog] = {
    kind: StatusCatalog(kind, Dimension.COMMERCIAL, COMMERCIAL_STATUSES, CommercialStatus.PENDING_QUOTE)
    for kind in EntityKind
}

_COMPATIBILITY: dict[EntityKind, dict[str, frozenset[str]]] = {
    EntityKind.ORDER: {_value(k): v for k, v in ORDER_COMPATIBILITY.items()},
    EntityKind.INBOUND_REQUEST: {_value(k): v for k, v in INBOUND_REQUEST_COMPATIBILITY.items()},
    EntityKind.SERVICE_REQUEST: {_value(k): v for k, v in SERVICE_REQUEST_COMPATIBILITY.items()},
}


def get_catalog(kind: EntityKind, dimension: Dimension = Dimension.OPERATIONAL) -> StatusCatalog:
    """Return the catalog for an entity kind and status dimension."""
    if dimension == Dimension.OPERATIONAL:
        return _OPERATIONAL[kind]
    return _COMMERCIAL[kind]


def is_compatible(kind: EntityKind, status: str, commercial_status: str | None) -> bool:
    """Check that an operational/commercial pair is a legal combination.

    Non-billable entities (no commercial status) are always compatible.
    """
    if commercial_status is None:
        return True
    allowed = _COMPATIBILITY[kind].get(_value(status))
    if allowed is None:
        return False
    return _value(commercial_status) in allowed
