"""Database models."""
from .user import (
    User, Role,
    ROLE_TECHNICIAN, ROLE_ENGINEER, ROLE_MANAGER, ROLE_ADMIN,
    ROLES, ROLE_LABELS, PERMISSION_GROUPS, ALL_PERMISSIONS, DEFAULT_ROLE_PERMISSIONS,
    permission_required
)
from .audit import AuditLog
from .laboratory import (
    Laboratory, Machine, LabTest,
    REGISTER_CATEGORIES, MATERIAL_CATEGORIES
)
from .receipt import (
    Receipt, Invoice,
    DELIVERY_DELIVERED_BY, DELIVERY_PICKED_BY, DELIVERY_MODES, DELIVERY_LABELS,
    INVOICE_DRAFT, INVOICE_SENT, INVOICE_PAID, INVOICE_PARTIALLY_PAID, INVOICE_OVERDUE,
    INVOICE_STATUSES
)
from .register import (
    RegisterEntry,
    REGISTER_CONCRETE_CUBES, REGISTER_PAVERS, REGISTER_CYLINDERS,
    REGISTER_BRICKS_BLOCKS, REGISTER_WATER_ABSORPTION, REGISTER_TYPES, REGISTER_LABELS,
    STATUS_PENDING_TEST, STATUS_PENDING_INITIAL, STATUS_PENDING_FINAL,
    STATUS_APPROVED, STATUS_REJECTED, REGISTER_STATUSES, STATUS_COLORS,
    BLOCK_SOLID, BLOCK_HOLLOW
)
from .project import Project, ProjectTask
from .asset import (
    Asset, CalibrationRecord, MaintenanceRecord,
    ASSET_STATUSES, ASSET_CATEGORIES, CALIBRATION_RESULTS, MAINTENANCE_TYPES
)
from .finance import (
    Quotation, Expense,
    QUOTE_DRAFT, QUOTE_SENT, QUOTE_ACCEPTED, QUOTE_DECLINED, QUOTE_STATUSES,
    EXPENSE_CATEGORIES
)

__all__ = [
    # Users
    'User', 'Role',
    'ROLE_TECHNICIAN', 'ROLE_ENGINEER', 'ROLE_MANAGER', 'ROLE_ADMIN',
    'ROLES', 'ROLE_LABELS', 'PERMISSION_GROUPS', 'ALL_PERMISSIONS',
    'DEFAULT_ROLE_PERMISSIONS',
    'permission_required',
    'AuditLog',
    # Laboratory
    'Laboratory', 'Machine', 'LabTest', 'REGISTER_CATEGORIES', 'MATERIAL_CATEGORIES',
    # Intake
    'Receipt', 'Invoice',
    'DELIVERY_DELIVERED_BY', 'DELIVERY_PICKED_BY', 'DELIVERY_MODES', 'DELIVERY_LABELS',
    'INVOICE_DRAFT', 'INVOICE_SENT', 'INVOICE_PAID', 'INVOICE_PARTIALLY_PAID', 'INVOICE_OVERDUE',
    'INVOICE_STATUSES',
    # Registers
    'RegisterEntry',
    'REGISTER_CONCRETE_CUBES', 'REGISTER_PAVERS', 'REGISTER_CYLINDERS',
    'REGISTER_BRICKS_BLOCKS', 'REGISTER_WATER_ABSORPTION', 'REGISTER_TYPES', 'REGISTER_LABELS',
    'STATUS_PENDING_TEST', 'STATUS_PENDING_INITIAL', 'STATUS_PENDING_FINAL',
    'STATUS_APPROVED', 'STATUS_REJECTED', 'REGISTER_STATUSES', 'STATUS_COLORS',
    'BLOCK_SOLID', 'BLOCK_HOLLOW',
    # Projects
    'Project', 'ProjectTask',
    # Assets
    'Asset', 'CalibrationRecord', 'MaintenanceRecord',
    'ASSET_STATUSES', 'ASSET_CATEGORIES', 'CALIBRATION_RESULTS', 'MAINTENANCE_TYPES',
    # Finance
    'Quotation', 'Expense',
    'QUOTE_DRAFT', 'QUOTE_SENT', 'QUOTE_ACCEPTED', 'QUOTE_DECLINED', 'QUOTE_STATUSES',
    'EXPENSE_CATEGORIES',
]
