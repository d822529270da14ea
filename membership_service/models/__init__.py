# Import all models so SQLAlchemy can resolve relationships by name
# and Base.metadata sees every table.

from membership_service.db.base_class import Base
from membership_service.models.geo import HrcCountry, HrcState, HrcDistrict, HrcMandal
from membership_service.models.cell import Cell
from membership_service.models.designation import Designation
from membership_service.models.designation_price import DesignationPrice
from membership_service.models.capacity import (
    CapacityOverride,
    CellLevelCapacity,
    SeatBucket,
    CardNumberCounter,
)
from membership_service.models.membership import Membership
from membership_service.models.membership_payment import MembershipPayment
from membership_service.models.id_card import IdCard
from membership_service.models.audit_log import MembershipAuditLog
