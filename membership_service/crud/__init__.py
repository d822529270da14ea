from .crud_designation import designation
from .crud_designation_price import designation_price
from .crud_cell import cell
from .crud_geo import geo
from .crud_capacity import capacity
from .crud_membership import membership
from .crud_membership_payment import membership_payment
from .crud_id_card import id_card
from .crud_audit_log import audit_log
