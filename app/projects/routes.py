"""Project routes: task list, task editing and technician assignment."""
from flask import render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from . import projects_bp
from .forms import TaskForm, AssignForm
from app.extensions import db
from app.models import Project, ProjectTask, User, permission_required
from app.services import ServiceError, project_service


def _technician_choices(blank='-- Unassigned --'):
    return [(0, blank)] + [(u.id, u.display_name)
                           for u in project_service.assignable_technicians()]


def _run(action, success_message):
    """Run a service call, flashing the outcome. Returns True on success."""
    try:
        action()
    except ServiceError as e:
        db.session.rollback()
        flash(str(e), 'danger')
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Project update failed')
        flash('A database error occurred. Please try again.', 'danger')
    else:
        flash(success_message, 'success')
        return True
    return False


@projects_bp.route('/')
@login_required
@permission_required('registers:projects')
def index():
    """Projects with their tasks."""
    return render_template('projects/index.html', projects=project_service.list_projects())


@projects_bp.route('/my-tasks')
@login_required
@permission_required('dashboard:view-my-tasks')
def my_tasks():
    """Tasks assigned to the current user."""
    tasks = project_service.technician_tasks(current_user, include_completed=True)
    return render_template('projects/my_tasks.html', tasks=tasks)


@projects_bp.route('/<int:id>')
@login_required
@permission_required('registers:projects')
def view(id):
    project = db.get_or_404(Project, id)
    assign_form = AssignForm()
    assign_form.technician_id.choices = _technician_choices()
    return render_template('projects/view.html', project=project,
                           tasks=project.tasks.all(), assign_form=assign_form)


@projects_bp.route('/<int:id>/tasks/new', methods=['GET', 'POST'])
@login_required
@permission_required('registers:projects')
def task_create(id):
    """Add a lab test to a project."""
    project = db.get_or_404(Project, id)
    form = TaskForm()
    form.technician_id.choices = _technician_choices()

    if form.validate_on_submit():
        data = {
            'material_category': form.material_category.data,
            'category_quantity': form.category_quantity.data,
            'material_test': form.material_test.data,
            'quantity': form.quantity.data,
            'technician_id': form.technician_id.data or None,
        }
        if _run(lambda: project_service.add_task(project, data, current_user,
                                                 request.remote_addr),
                'Task added.'):
            return redirect(url_for('projects.view', id=project.id))

    return render_template('projects/task_form.html', form=form, project=project,
                           title='Add Task')


@projects_bp.route('/tasks/<int:task_id>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('registers:projects')
def task_edit(task_id):
    """Edit a task's quantities."""
    task = db.get_or_404(ProjectTask, task_id)
    form = TaskForm(obj=task)
    form.technician_id.choices = _technician_choices()

    if form.validate_on_submit():
        data = {
            'category_quantity': form.category_quantity.data,
            'quantity': form.quantity.data,
            'material_test': form.material_test.data,
        }
        if _run(lambda: project_service.update_task(task, data, current_user,
                                                    request.remote_addr),
                'Task updated.'):
            return redirect(url_for('projects.view', id=task.project_id))

    if request.method == 'GET':
        form.technician_id.data = task.technician_id or 0

    return render_template('projects/task_form.html', form=form, project=task.project,
                           task=task, title='Edit Task')


@projects_bp.route('/tasks/<int:task_id>/assign', methods=['POST'])
@login_required
@permission_required('dashboard:assign-projects')
def task_assign(task_id):
    """Assign a technician to a task (0 unassigns)."""
    task = db.get_or_404(ProjectTask, task_id)
    form = AssignForm()
    form.technician_id.choices = _technician_choices()
    if form.validate_on_submit():
        technician = db.session.get(User, form.technician_id.data) \
            if form.technician_id.data else None
        _run(lambda: project_service.assign_task(task, technician, current_user,
                                                 request.remote_addr),
             f'Task assigned to {technician.display_name}.' if technician else 'Task unassigned.')
    return redirect(request.referrer or url_for('projects.view', id=task.project_id))


@projects_bp.route('/tasks/<int:task_id>/complete', methods=['POST'])
@login_required
def task_complete(task_id):
    """Mark a task as done. Allowed for the assignee and project managers."""
    task = db.get_or_404(ProjectTask, task_id)
    if task.technician_id != current_user.id and \
            not current_user.has_permission('registers:projects'):
        flash('You do not have permission to access this page.', 'danger')
        return redirect(url_for('main.dashboard'))
    _run(lambda: project_service.complete_task(task, current_user, request.remote_addr),
         'Task completed.')
    return redirect(request.referrer or url_for('projects.my_tasks'))
