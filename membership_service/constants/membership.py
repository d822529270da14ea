# membership_service/constants/membership.py
"""
Enumerations shared by models, schemas and services.
"""

import enum


class OrgLevel(str, enum.Enum):
    """Hierarchy level a seat belongs to, broadest first."""
    NATIONAL = "NATIONAL"
    ZONE = "ZONE"
    STATE = "STATE"
    DISTRICT = "DISTRICT"
    MANDAL = "MANDAL"


class Zone(str, enum.Enum):
    NORTH = "NORTH"
    SOUTH = "SOUTH"
    EAST = "EAST"
    WEST = "WEST"
    CENTRAL = "CENTRAL"


class MembershipStatus(str, enum.Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"

    @classmethod
    def seat_holding(cls) -> tuple["MembershipStatus", ...]:
        """Statuses that occupy a seat in their bucket."""
        return (cls.PENDING_PAYMENT, cls.PENDING_APPROVAL, cls.ACTIVE)


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    NOT_REQUIRED = "NOT_REQUIRED"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentPurpose(str, enum.Enum):
    JOIN = "JOIN"
    REASSIGNMENT = "REASSIGNMENT"


class CardStatus(str, enum.Enum):
    GENERATED = "GENERATED"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"


class AuditAction:
    """Audit log action names."""
    MEMBERSHIP_CREATED = "membership.created"
    MEMBERSHIP_ACTIVATED = "membership.activated"
    MEMBERSHIP_PAYMENT_FAILED = "membership.payment_failed"
    MEMBERSHIP_REVOKED = "membership.revoked"
    MEMBERSHIP_EXPIRED = "membership.expired"
    MEMBERSHIP_RENEWED = "membership.renewed"
    MEMBERSHIP_REASSIGNED = "membership.reassigned"
    MEMBERSHIP_REASSIGNED_DIRECT = "membership.reassigned_direct"
    ID_CARD_ISSUED = "id_card.issued"
    ID_CARD_REISSUED = "id_card.reissued"
    ID_CARD_RENUMBERED = "id_card.renumbered"
