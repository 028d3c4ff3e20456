"""Project task management: adding tests and assigning technicians."""

import logging
from datetime import datetime

from app.extensions import db
from app.models import AuditLog, Project, ProjectTask, User
from app.services.errors import ValidationError

logger = logging.getLogger(__name__)


def _validate_quantity(quantity, category_quantity):
    try:
        quantity = int(quantity)
        category_quantity = int(category_quantity)
    except (TypeError, ValueError):
        raise ValidationError('Quantities must be whole numbers.')
    if quantity < 1:
        raise ValidationError('Quantity must be at least 1.')
    if quantity > category_quantity:
        raise ValidationError(
            f'Quantity ({quantity}) cannot exceed the category quantity ({category_quantity}).')
    return quantity, category_quantity


def add_task(project, data, user, ip_address=None):
    """Add a lab test to a project.

    data: dict with material_category, category_quantity, material_test,
    quantity and optionally technician_id and test_id.
    """
    quantity, category_quantity = _validate_quantity(
        data.get('quantity'), data.get('category_quantity'))
    if not (data.get('material_test') or '').strip():
        raise ValidationError('Material test is required.')

    task = ProjectTask(
        project_id=project.id,
        test_id=data.get('test_id'),
        material_category=data.get('material_category'),
        category_quantity=category_quantity,
        material_test=data['material_test'].strip(),
        quantity=quantity,
    )
    if data.get('technician_id'):
        task.technician_id = data['technician_id']
        task.assigned_at = datetime.utcnow()
    db.session.add(task)
    db.session.flush()
    AuditLog.record(user, 'CREATE', 'project_tasks', record_id=task.id,
                    new_values={'project_id': project.id, 'material_test': task.material_test,
                                'quantity': quantity}, ip_address=ip_address)
    db.session.commit()
    return task


def update_task(task, data, user, ip_address=None):
    """Change a task's quantities, keeping quantity within the category quantity."""
    quantity, category_quantity = _validate_quantity(
        data.get('quantity', task.quantity),
        data.get('category_quantity', task.category_quantity))
    old_values = {'quantity': task.quantity, 'category_quantity': task.category_quantity}
    task.quantity = quantity
    task.category_quantity = category_quantity
    if data.get('material_test'):
        task.material_test = data['material_test']
    AuditLog.record(user, 'UPDATE', 'project_tasks', record_id=task.id,
                    old_values=old_values,
                    new_values={'quantity': quantity, 'category_quantity': category_quantity},
                    ip_address=ip_address)
    db.session.commit()
    return task


def assign_task(task, technician, user, ip_address=None):
    """Assign (or with None, unassign) a technician."""
    if technician is not None and not technician.is_active:
        raise ValidationError(f'{technician.display_name} is not an active user.')
    old = task.technician_id
    task.technician_id = technician.id if technician is not None else None
    task.assigned_at = datetime.utcnow() if technician is not None else None
    AuditLog.record(user, 'ASSIGN', 'project_tasks', record_id=task.id,
                    old_values={'technician_id': old},
                    new_values={'technician_id': task.technician_id}, ip_address=ip_address)
    db.session.commit()
    logger.info('Task %s assigned to %s', task.id,
                technician.username if technician else 'nobody')
    return task


def complete_task(task, user, ip_address=None):
    """Mark a task as done."""
    task.completed = True
    AuditLog.record(user, 'COMPLETE', 'project_tasks', record_id=task.id,
                    new_values={'completed': True}, ip_address=ip_address)
    db.session.commit()
    return task


def technician_tasks(user, include_completed=False):
    """Tasks assigned to a user."""
    query = ProjectTask.query.filter_by(technician_id=user.id)
    if not include_completed:
        query = query.filter_by(completed=False)
    return query.order_by(ProjectTask.id.desc()).all()


def unassigned_tasks():
    """Open tasks without a technician."""
    return ProjectTask.query.filter(ProjectTask.technician_id.is_(None),
                                    ProjectTask.completed.is_(False))\
        .order_by(ProjectTask.id.asc()).all()


def assignable_technicians():
    """Active users for the assignment drop-down."""
    return User.query.filter_by(is_active=True).order_by(User.full_name, User.username).all()


def list_projects():
    return Project.query.order_by(Project.created_at.desc(), Project.id.desc()).all()
