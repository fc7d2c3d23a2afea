from .auth import User, UserRole
from .catalog import Property, ItemMaster, PropertyApprover
from .requisitions import RequisitionList, RequisitionListItem, RequisitionStatusHistory
from .communications import Notification
from .security import SecurityEvent

__all__ = [
    'User', 'UserRole',
    'Property', 'ItemMaster', 'PropertyApprover',
    'RequisitionList', 'RequisitionListItem', 'RequisitionStatusHistory',
    'Notification',
    'SecurityEvent',
]
