# membership_service/schemas/membership.py
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

from membership_service.constants.membership import (
    OrgLevel,
    Zone,
    MembershipStatus,
    PaymentStatus,
    PaymentPurpose,
    CardStatus,
)
from membership_service.schemas.scope import ScopeIn


class JoinRequest(ScopeIn):
    full_name: Optional[str] = Field(None, max_length=255)


class MembershipPayment(BaseModel):
    id: str
    purpose: PaymentPurpose
    amount: int
    currency: str
    status: PaymentStatus
    provider_ref: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class Membership(BaseModel):
    id: str
    user_id: str
    full_name: Optional[str] = None
    cell_id: str
    designation_id: str
    level: OrgLevel
    zone: Optional[Zone] = None
    country_id: Optional[str] = None
    state_id: Optional[str] = None
    district_id: Optional[str] = None
    mandal_id: Optional[str] = None
    bucket_key: str
    seat_sequence: int
    status: MembershipStatus
    payment_status: PaymentStatus
    fee_amount: int
    currency: str
    validity_days: int
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    version: int
    created_at: datetime

    model_config = {"from_attributes": True}


class MembershipDetail(Membership):
    payments: List[MembershipPayment] = []


class LevelAggregate(BaseModel):
    capacity: int
    used: int
    remaining: int


class AvailabilityResponse(BaseModel):
    bucket_key: str
    capacity: int
    used: int
    seats_remaining: int
    fee: int
    currency: str
    validity_days: int
    fee_source: str
    level_aggregate: Optional[LevelAggregate] = None


class RevokeRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class RenewRequest(BaseModel):
    validity_days: Optional[int] = Field(None, gt=0)


class ReassignmentRequest(BaseModel):
    target: ScopeIn
    direct: bool = False
    expected_version: Optional[int] = None


class ReassignmentPreview(BaseModel):
    membership_id: str
    accepted: bool
    reason: Optional[str] = None
    current_bucket_key: str
    target_bucket_key: str
    target_seat_sequence: int
    capacity: int
    used: int
    current_fee: int
    target_fee: int
    currency: str
    validity_days: int
    pricing_delta: int
    paid_amount: int
    amount_due: int
    status_from: MembershipStatus
    status_to: MembershipStatus
    payment_status_to: PaymentStatus


class PaymentConfirmation(BaseModel):
    """Callback from the payment collaborator."""
    membership_id: str
    provider_ref: str = Field(..., min_length=1, max_length=255)
    status: Literal["SUCCESS", "FAILED"]


class IssueCredentialRequest(BaseModel):
    reissue: bool = False


class IdCard(BaseModel):
    card_number: str
    status: CardStatus
    issued_at: datetime
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class IdCardRenderPayload(IdCard):
    membership_id: str
    full_name: Optional[str] = None
    designation_name: Optional[str] = None
    cell_name: Optional[str] = None


class ExpirySweepResult(BaseModel):
    expired: int
