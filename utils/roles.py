"""
Role definitions and the central permission table
Every role check in the application goes through this module
"""

from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SuperAdmin"
    ADMIN = "Admin"
    DIGITAL_MARKETING = "DigitalMarketing"
    ADMISSION = "Admission"
    ACCOUNTANT = "Accountant"
    RECRUITMENT = "Recruitment"
    MOTION_GRAPHICS = "MotionGraphics"

    @classmethod
    def parse(cls, value):
        """Return the Role for a stored/session value, or None if unknown"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# Action -> roles allowed to perform it
PERMISSIONS = {
    # Lead intake (Digital Marketing)
    "lead.create": {Role.DIGITAL_MARKETING},
    "lead.bulk_create": {Role.DIGITAL_MARKETING},
    "lead.assign": {Role.DIGITAL_MARKETING},
    "lead.list": {Role.DIGITAL_MARKETING, Role.ADMIN, Role.SUPER_ADMIN},

    # Admission pipeline
    "pipeline.list": {Role.ADMISSION, Role.ADMIN, Role.SUPER_ADMIN},
    "pipeline.transition": {Role.ADMISSION, Role.ADMIN, Role.SUPER_ADMIN},
    "fee.submit": {Role.ADMISSION},
    "fee.list_own": {Role.ADMISSION, Role.ADMIN, Role.SUPER_ADMIN, Role.ACCOUNTANT},

    # Accounting
    "fee.list": {Role.ACCOUNTANT, Role.ADMIN, Role.SUPER_ADMIN},
    "fee.decide": {Role.ACCOUNTANT},
    "ledger.view": {Role.ACCOUNTANT, Role.ADMIN, Role.SUPER_ADMIN},
    "ledger.write": {Role.ACCOUNTANT},
}

# Roles that may act on any lead regardless of ownership
LEAD_SUPERVISOR_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Roles whose view of the pipeline is limited to leads assigned to them
OWNER_SCOPED_ROLES = frozenset({Role.ADMISSION})


def allowed_roles(action):
    return PERMISSIONS.get(action, set())


def has_permission(role, action):
    """Check whether a role may perform an action from PERMISSIONS"""
    role = Role.parse(role)
    if role is None:
        return False
    return role in allowed_roles(action)


def can_act_on_lead(role, user_id, lead):
    """
    Ownership rule for pipeline actions:
    Admission users only on leads assigned to them, Admin/SuperAdmin on any lead
    """
    role = Role.parse(role)
    if role in LEAD_SUPERVISOR_ROLES:
        return True
    if role in OWNER_SCOPED_ROLES:
        return lead.assigned_to_user_id is not None and str(lead.assigned_to_user_id) == str(user_id)
    return False
