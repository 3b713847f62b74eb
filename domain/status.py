from enum import Enum
from typing import Type, TypeVar, Union

from .errors import ValidationError


class ClientStatus(Enum):
    LEAD = "lead"
    CUSTOMER = "customer"
    ARCHIVED = "archived"


class ProjectStatus(Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    DONE = "done"


class OfferStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class InvoiceStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class TransactionType(Enum):
    INCOME = "income"
    EXPENSE = "expense"


# Libellés affichés (UI allemande)
STATUS_LABELS = {
    ClientStatus.LEAD: "Lead",
    ClientStatus.CUSTOMER: "Kunde",
    ClientStatus.ARCHIVED: "Archiviert",
    ProjectStatus.PLANNED: "Geplant",
    ProjectStatus.ACTIVE: "Aktiv",
    ProjectStatus.DONE: "Abgeschlossen",
    OfferStatus.DRAFT: "Entwurf",
    OfferStatus.SENT: "Gesendet",
    OfferStatus.ACCEPTED: "Angenommen",
    OfferStatus.REJECTED: "Abgelehnt",
    InvoiceStatus.DRAFT: "Entwurf",
    InvoiceStatus.SENT: "Gesendet",
    InvoiceStatus.PAID: "Bezahlt",
    InvoiceStatus.OVERDUE: "Überfällig",
    InvoiceStatus.CANCELLED: "Storniert",
}

S = TypeVar("S", bound=Enum)


def parse_status(enum_cls: Type[S], value: Union[str, S]) -> S:
    """Map a stored/user string onto the closed enum, rejecting anything else."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(s.value for s in enum_cls)
        raise ValidationError(f"Unknown {enum_cls.__name__} '{value}' (allowed: {allowed})") from None


def validate_transition(enum_cls: Type[S], current: Union[str, S], new: Union[str, S]) -> S:
    """Any state may move to any other state of the same enum.

    Only membership is checked; returns the parsed target status.
    """
    parse_status(enum_cls, current)
    return parse_status(enum_cls, new)
