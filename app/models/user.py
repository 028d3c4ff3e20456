"""User, role and permission models for authentication and approval workflow."""
from datetime import datetime
from functools import wraps
from flask import flash, redirect, url_for
from flask_login import UserMixin, current_user
from werkzeug.security import generate_password_hash, check_password_hash

from app.extensions import db, login_manager


# User roles
ROLE_TECHNICIAN = 'technician'
ROLE_ENGINEER = 'engineer'
ROLE_MANAGER = 'manager'
ROLE_ADMIN = 'admin'

ROLES = [ROLE_TECHNICIAN, ROLE_ENGINEER, ROLE_MANAGER, ROLE_ADMIN]
ROLE_LABELS = {
    ROLE_TECHNICIAN: 'Technician',
    ROLE_ENGINEER: 'Engineer',
    ROLE_MANAGER: 'Laboratory Manager',
    ROLE_ADMIN: 'Administrator',
}

# Permission identifiers, grouped for the role editor
PERMISSION_GROUPS = {
    'Dashboard': [
        ('dashboard:view', 'View dashboard'),
        ('dashboard:view-my-tasks', 'View my tasks'),
        ('dashboard:assign-projects', 'Assign project tasks'),
        ('dashboard:assign-engineer-on-duty', 'Assign engineer on duty'),
    ],
    'Samples': [
        ('samples:receive', 'Receive samples'),
        ('receipts:read', 'View receipts'),
    ],
    'Registers': [
        ('registers:read', 'View registers'),
        ('registers:update', 'Edit register entries'),
        ('registers:test', 'Enter test results'),
        ('registers:delete', 'Delete register entries'),
        ('registers:projects', 'Manage projects'),
    ],
    'Certificates': [
        ('certificates:read', 'View certificates'),
        ('certificates:approve-initial', 'Initial approval'),
        ('certificates:approve-final', 'Final approval'),
        ('certificates:reject', 'Reject certificates'),
    ],
    'Assets': [
        ('assets:read', 'View assets'),
        ('assets:create', 'Create assets'),
        ('assets:update', 'Edit assets and log calibration/maintenance'),
        ('assets:delete', 'Delete assets'),
    ],
    'Finance': [
        ('finance:invoices:read', 'View invoices'),
        ('finance:invoices:update', 'Update invoices'),
        ('finance:quotations:read', 'View quotations'),
        ('finance:quotations:update', 'Create and edit quotations'),
        ('finance:expenses:read', 'View expenses'),
        ('finance:expenses:update', 'Record and edit expenses'),
    ],
    'Settings': [
        ('settings:read', 'View settings'),
        ('settings:laboratory:update', 'Edit laboratory profile'),
        ('settings:machines:update', 'Edit machines'),
        ('settings:tests:update', 'Edit test catalogue'),
    ],
    'Administration': [
        ('users:read', 'View users'),
        ('users:create', 'Create users'),
        ('users:update', 'Edit users'),
        ('roles:read', 'View roles'),
        ('roles:update', 'Edit roles'),
    ],
}

ALL_PERMISSIONS = [pid for group in PERMISSION_GROUPS.values() for pid, _ in group]

_TECHNICIAN_PERMISSIONS = [
    'dashboard:view', 'dashboard:view-my-tasks',
    'samples:receive', 'receipts:read',
    'registers:read', 'registers:test',
    'certificates:read', 'assets:read',
]

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_TECHNICIAN: _TECHNICIAN_PERMISSIONS,
    ROLE_ENGINEER: _TECHNICIAN_PERMISSIONS + [
        'registers:update', 'registers:projects', 'dashboard:assign-projects',
        'certificates:approve-initial', 'certificates:reject',
        'assets:create', 'assets:update',
    ],
    ROLE_MANAGER: _TECHNICIAN_PERMISSIONS + [
        'registers:update', 'registers:delete', 'registers:projects',
        'dashboard:assign-projects', 'dashboard:assign-engineer-on-duty',
        'certificates:approve-initial', 'certificates:approve-final', 'certificates:reject',
        'assets:create', 'assets:update', 'assets:delete',
        'finance:invoices:read', 'finance:invoices:update',
        'finance:quotations:read', 'finance:quotations:update',
        'finance:expenses:read', 'finance:expenses:update',
        'settings:read', 'settings:laboratory:update', 'settings:machines:update',
        'settings:tests:update', 'users:read',
    ],
    ROLE_ADMIN: ALL_PERMISSIONS,
}


class Role(db.Model):
    """Named role holding a list of permission identifiers.

    A user's ``role`` column refers to ``Role.name``. When no row exists for
    a built-in role, its default permission set applies.
    """
    __tablename__ = 'roles'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(40), unique=True, nullable=False, index=True)
    label = db.Column(db.String(80))
    permissions = db.Column(db.JSON, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def permissions_for(cls, name: str) -> set:
        """Permission set for a role name."""
        role = cls.query.filter_by(name=name).first()
        if role is not None:
            return set(role.permissions or [])
        return set(DEFAULT_ROLE_PERMISSIONS.get(name, []))

    def __repr__(self) -> str:
        return f'<Role {self.name}>'


class User(UserMixin, db.Model):
    """User model for authentication, approval workflow, and audit trail.

    Attributes
    ----------
    id : int
        Primary key
    user_id : str
        Unique user identifier (e.g., LAB-ENG-001) for audit trail
    username : str
        Unique username for login
    full_name : str
        Full name for display and certificates
    role : str
        Role name: 'technician', 'engineer', 'manager', 'admin' or a custom role
    signature_filename : str
        Uploaded signature image, required to approve certificates
    granted_permissions, revoked_permissions : list of str
        Per-user overrides on top of the role's permissions
    """
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(20), unique=True, index=True)  # LAB-ENG-001
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256))
    full_name = db.Column(db.String(120))
    email = db.Column(db.String(120))
    role = db.Column(db.String(40), default=ROLE_TECHNICIAN)
    signature_filename = db.Column(db.String(255))
    granted_permissions = db.Column(db.JSON, default=list)
    revoked_permissions = db.Column(db.JSON, default=list)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    @property
    def is_admin(self) -> bool:
        """Check if user is administrator."""
        return self.role == ROLE_ADMIN

    @property
    def role_label(self) -> str:
        """Get human-readable role label."""
        return ROLE_LABELS.get(self.role, self.role)

    @property
    def has_signature(self) -> bool:
        return bool(self.signature_filename)

    @property
    def permissions(self) -> set:
        """Effective permissions: (role ∪ granted) − revoked."""
        if self.is_admin:
            return set(ALL_PERMISSIONS)
        perms = Role.permissions_for(self.role)
        perms |= set(self.granted_permissions or [])
        perms -= set(self.revoked_permissions or [])
        return perms

    def has_permission(self, permission_id: str) -> bool:
        """Check a single permission identifier."""
        return self.is_admin or permission_id in self.permissions

    @property
    def can_approve_initial(self) -> bool:
        return self.has_permission('certificates:approve-initial')

    @property
    def can_approve_final(self) -> bool:
        return self.has_permission('certificates:approve-final')

    @staticmethod
    def generate_user_id(role: str) -> str:
        """Generate next user ID for a role.

        Format: LAB-XXX-NNN where XXX is role prefix and NNN is sequence number.
        """
        prefix_map = {
            ROLE_TECHNICIAN: 'TEC',
            ROLE_ENGINEER: 'ENG',
            ROLE_MANAGER: 'MGR',
            ROLE_ADMIN: 'ADM',
        }
        prefix = prefix_map.get(role, 'USR')

        # Find highest existing number for this prefix
        pattern = f'LAB-{prefix}-%'
        existing = User.query.filter(User.user_id.like(pattern)).all()
        numbers = []
        for u in existing:
            try:
                numbers.append(int(u.user_id.split('-')[-1]))
            except (ValueError, IndexError):
                pass
        next_num = max(numbers) + 1 if numbers else 1

        return f'LAB-{prefix}-{next_num:03d}'

    def set_password(self, password: str) -> None:
        """Hash and store password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify password against stored hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def update_last_login(self) -> None:
        """Update last login timestamp."""
        self.last_login = datetime.utcnow()

    def __repr__(self) -> str:
        return f'<User {self.user_id or self.username}>'


@login_manager.user_loader
def load_user(user_id: str) -> User | None:
    """Load user by ID for Flask-Login."""
    return db.session.get(User, int(user_id))


# Access control decorators

def permission_required(permission_id: str):
    """Decorator factory requiring a permission identifier."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                flash('Please log in to access this page.', 'warning')
                return redirect(url_for('auth.login'))
            if not current_user.has_permission(permission_id):
                flash('You do not have permission to perform this action.', 'danger')
                return redirect(url_for('main.dashboard'))
            return f(*args, **kwargs)
        return decorated_function
    return decorator
