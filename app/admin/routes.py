"""Admin routes for user, role and signature management."""
import os
from datetime import datetime

from flask import render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user
from werkzeug.utils import secure_filename

from . import admin_bp
from .forms import (
    UserCreateForm, UserEditForm, PasswordChangeForm, SignatureForm, RoleForm
)
from app.extensions import db
from app.models import (
    User, Role, AuditLog, permission_required, ROLES, ROLE_LABELS,
    PERMISSION_GROUPS, DEFAULT_ROLE_PERMISSIONS
)


@admin_bp.route('/')
@login_required
@permission_required('users:read')
def index():
    """Admin dashboard."""
    user_count = User.query.count()
    active_users = User.query.filter_by(is_active=True).count()
    role_count = len(set(ROLES) | {r.name for r in Role.query.all()})
    return render_template('admin/index.html',
                           user_count=user_count,
                           active_users=active_users,
                           role_count=role_count)


@admin_bp.route('/users')
@login_required
@permission_required('users:read')
def users():
    """List all users."""
    users = User.query.order_by(User.user_id).all()
    return render_template('admin/users.html', users=users, role_labels=ROLE_LABELS)


@admin_bp.route('/users/new', methods=['GET', 'POST'])
@login_required
@permission_required('users:create')
def user_create():
    """Create a new user."""
    form = UserCreateForm()

    if form.validate_on_submit():
        # Generate user_id based on role
        user_id = User.generate_user_id(form.role.data)

        user = User(
            user_id=user_id,
            username=form.username.data,
            full_name=form.full_name.data,
            email=form.email.data or None,
            role=form.role.data,
            is_active=form.is_active.data
        )
        user.set_password(form.password.data)
        db.session.add(user)
        db.session.flush()

        AuditLog.record(current_user, 'CREATE_USER', 'users', record_id=user.id,
                        new_values={'user_id': user_id, 'username': user.username,
                                    'role': user.role},
                        ip_address=request.remote_addr)
        db.session.commit()

        flash(f'User {user.username} ({user.user_id}) created successfully!', 'success')
        return redirect(url_for('admin.users'))

    return render_template('admin/user_form.html', form=form, title='Create User')


@admin_bp.route('/users/<int:id>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('users:update')
def user_edit(id):
    """Edit an existing user, including per-user permission overrides."""
    user = db.get_or_404(User, id)
    form = UserEditForm(original_username=user.username)

    if form.validate_on_submit():
        old_values = {
            'username': user.username,
            'full_name': user.full_name,
            'role': user.role,
            'is_active': user.is_active,
            'granted_permissions': list(user.granted_permissions or []),
            'revoked_permissions': list(user.revoked_permissions or []),
        }

        # Role change regenerates the user_id prefix
        if form.role.data != user.role:
            user.user_id = User.generate_user_id(form.role.data)

        user.username = form.username.data
        user.full_name = form.full_name.data
        user.email = form.email.data or None
        user.role = form.role.data
        user.is_active = form.is_active.data
        user.granted_permissions = list(form.granted_permissions.data or [])
        user.revoked_permissions = list(form.revoked_permissions.data or [])

        new_values = {
            'username': user.username,
            'full_name': user.full_name,
            'role': user.role,
            'is_active': user.is_active,
            'granted_permissions': user.granted_permissions,
            'revoked_permissions': user.revoked_permissions,
        }

        AuditLog.record(current_user, 'UPDATE_USER', 'users', record_id=user.id,
                        old_values=old_values, new_values=new_values,
                        ip_address=request.remote_addr)
        db.session.commit()

        flash(f'User {user.username} updated successfully!', 'success')
        return redirect(url_for('admin.users'))

    # Pre-populate form
    if request.method == 'GET':
        form.username.data = user.username
        form.full_name.data = user.full_name
        form.email.data = user.email
        form.role.data = user.role
        form.is_active.data = user.is_active
        form.granted_permissions.data = list(user.granted_permissions or [])
        form.revoked_permissions.data = list(user.revoked_permissions or [])

    return render_template('admin/user_form.html', form=form, user=user,
                           title=f'Edit User: {user.username}')


@admin_bp.route('/users/<int:id>/password', methods=['GET', 'POST'])
@login_required
@permission_required('users:update')
def user_password(id):
    """Change a user's password."""
    user = db.get_or_404(User, id)
    form = PasswordChangeForm()

    if form.validate_on_submit():
        user.set_password(form.password.data)
        AuditLog.record(current_user, 'CHANGE_PASSWORD', 'users', record_id=user.id,
                        new_values={'password_changed': True},
                        ip_address=request.remote_addr)
        db.session.commit()

        flash(f'Password for {user.username} changed successfully!', 'success')
        return redirect(url_for('admin.users'))

    return render_template('admin/password_form.html', form=form, user=user)


@admin_bp.route('/users/<int:id>/toggle-active', methods=['POST'])
@login_required
@permission_required('users:update')
def user_toggle_active(id):
    """Toggle user active status."""
    user = db.get_or_404(User, id)

    # Prevent deactivating yourself
    if user.id == current_user.id:
        flash('You cannot deactivate your own account.', 'danger')
        return redirect(url_for('admin.users'))

    old_status = user.is_active
    user.is_active = not user.is_active

    AuditLog.record(current_user, 'TOGGLE_USER_STATUS', 'users', record_id=user.id,
                    old_values={'is_active': old_status},
                    new_values={'is_active': user.is_active},
                    ip_address=request.remote_addr)
    db.session.commit()

    status = 'activated' if user.is_active else 'deactivated'
    flash(f'User {user.username} has been {status}.', 'success')
    return redirect(url_for('admin.users'))


@admin_bp.route('/users/<int:id>/signature', methods=['GET', 'POST'])
@login_required
def user_signature(id):
    """Upload a signature image.

    Users may upload their own signature; changing another user's
    signature requires ``users:update``.
    """
    user = db.get_or_404(User, id)
    if user.id != current_user.id and not current_user.has_permission('users:update'):
        flash('You do not have permission to access this page.', 'danger')
        return redirect(url_for('main.dashboard'))

    form = SignatureForm()
    if form.validate_on_submit():
        upload = form.signature.data
        ext = secure_filename(upload.filename).rsplit('.', 1)[-1].lower()
        filename = f'signature_{user.user_id or user.id}_{datetime.utcnow():%Y%m%d%H%M%S}.{ext}'
        upload.save(os.path.join(current_app.config['UPLOAD_FOLDER'], filename))

        old = user.signature_filename
        user.signature_filename = filename
        AuditLog.record(current_user, 'UPLOAD_SIGNATURE', 'users', record_id=user.id,
                        old_values={'signature_filename': old},
                        new_values={'signature_filename': filename},
                        ip_address=request.remote_addr)
        db.session.commit()
        current_app.logger.info('Signature uploaded for %s', user.username)

        flash('Signature uploaded.', 'success')
        if user.id == current_user.id and not current_user.has_permission('users:read'):
            return redirect(url_for('main.dashboard'))
        return redirect(url_for('admin.users'))

    return render_template('admin/signature_form.html', form=form, user=user)


@admin_bp.route('/roles')
@login_required
@permission_required('roles:read')
def roles():
    """List roles with their permissions."""
    stored = {r.name: r for r in Role.query.order_by(Role.name).all()}
    rows = []
    for name in ROLES:
        role = stored.pop(name, None)
        rows.append({
            'name': name,
            'label': role.label if role else ROLE_LABELS[name],
            'permissions': sorted(Role.permissions_for(name)),
            'stored': role is not None,
        })
    for name, role in stored.items():
        rows.append({'name': name, 'label': role.label or name,
                     'permissions': sorted(role.permissions or []), 'stored': True})
    return render_template('admin/roles.html', roles=rows,
                           permission_groups=PERMISSION_GROUPS)


@admin_bp.route('/roles/new', methods=['GET', 'POST'])
@login_required
@permission_required('roles:update')
def role_create():
    """Create a custom role."""
    form = RoleForm()
    if form.validate_on_submit():
        role = Role(name=form.name.data, label=form.label.data,
                    permissions=list(form.permissions.data or []))
        db.session.add(role)
        db.session.flush()
        AuditLog.record(current_user, 'CREATE_ROLE', 'roles', record_id=role.id,
                        new_values={'name': role.name, 'permissions': role.permissions},
                        ip_address=request.remote_addr)
        db.session.commit()
        flash(f'Role {role.label} created.', 'success')
        return redirect(url_for('admin.roles'))

    return render_template('admin/role_form.html', form=form, title='Create Role')


@admin_bp.route('/roles/<name>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('roles:update')
def role_edit(name):
    """Edit a role's permissions.

    Built-in roles without a stored row start from their default set and
    are saved as a row on first edit.
    """
    role = Role.query.filter_by(name=name).first()
    if role is None:
        if name not in ROLES:
            flash(f'Unknown role: {name}', 'danger')
            return redirect(url_for('admin.roles'))
        role = Role(name=name, label=ROLE_LABELS[name],
                    permissions=list(DEFAULT_ROLE_PERMISSIONS[name]))

    form = RoleForm(original_name=role.name)
    if form.validate_on_submit():
        old_values = {'name': role.name, 'permissions': list(role.permissions or [])}
        # Built-in role names are fixed
        role.name = name if name in ROLES else form.name.data
        role.label = form.label.data
        role.permissions = list(form.permissions.data or [])
        if role.id is None:
            db.session.add(role)
            db.session.flush()
        AuditLog.record(current_user, 'UPDATE_ROLE', 'roles', record_id=role.id,
                        old_values=old_values,
                        new_values={'name': role.name, 'permissions': role.permissions},
                        ip_address=request.remote_addr)
        db.session.commit()
        flash(f'Role {role.label} updated.', 'success')
        return redirect(url_for('admin.roles'))

    if request.method == 'GET':
        form.name.data = role.name
        form.label.data = role.label
        form.permissions.data = list(role.permissions or [])

    return render_template('admin/role_form.html', form=form, role=role,
                           title=f'Edit Role: {role.label or role.name}')
