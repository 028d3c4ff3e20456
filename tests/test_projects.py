"""Tests for project tasks and technician assignment."""
import pytest

from app.models import AuditLog, Project, ProjectTask
from app.services import ValidationError, project_service


@pytest.fixture()
def project(db):
    p = Project(client='Acme Construction', title='Nile Bridge')
    db.session.add(p)
    db.session.commit()
    return p


def task_data(**overrides):
    data = {'material_category': 'aggregates', 'category_quantity': 4,
            'material_test': 'Sieve Analysis', 'quantity': 2}
    data.update(overrides)
    return data


class TestAddTask:
    def test_adds_task(self, project, engineer_user):
        task = project_service.add_task(project, task_data(), engineer_user)
        assert task.project_id == project.id
        assert task.quantity == 2
        assert task.category_quantity == 4
        assert project.tasks.count() == 1
        assert project.unassigned_count == 1

    def test_with_technician(self, project, engineer_user, technician_user):
        task = project_service.add_task(
            project, task_data(technician_id=technician_user.id), engineer_user)
        assert task.technician_id == technician_user.id
        assert task.assigned_at is not None

    def test_quantity_above_category(self, project, engineer_user):
        with pytest.raises(ValidationError, match='cannot exceed'):
            project_service.add_task(project, task_data(quantity=5), engineer_user)

    def test_quantity_at_least_one(self, project, engineer_user):
        with pytest.raises(ValidationError):
            project_service.add_task(project, task_data(quantity=0), engineer_user)

    def test_non_numeric(self, project, engineer_user):
        with pytest.raises(ValidationError, match='whole numbers'):
            project_service.add_task(project, task_data(quantity='two'), engineer_user)

    def test_material_test_required(self, project, engineer_user):
        with pytest.raises(ValidationError):
            project_service.add_task(project, task_data(material_test=' '), engineer_user)


class TestUpdateTask:
    def test_update_quantities(self, db, project, engineer_user):
        task = project_service.add_task(project, task_data(), engineer_user)
        project_service.update_task(task, {'quantity': 4}, engineer_user)
        assert task.quantity == 4

    def test_update_respects_category(self, db, project, engineer_user):
        task = project_service.add_task(project, task_data(), engineer_user)
        with pytest.raises(ValidationError):
            project_service.update_task(task, {'category_quantity': 1}, engineer_user)


class TestAssignment:
    def test_assign_and_unassign(self, project, engineer_user, technician_user):
        task = project_service.add_task(project, task_data(), engineer_user)
        project_service.assign_task(task, technician_user, engineer_user)
        assert task.technician_id == technician_user.id
        assert project_service.technician_tasks(technician_user) == [task]
        assert project_service.unassigned_tasks() == []

        project_service.assign_task(task, None, engineer_user)
        assert task.technician_id is None
        assert task.assigned_at is None
        assert project_service.unassigned_tasks() == [task]
        assert AuditLog.query.filter_by(action='ASSIGN').count() == 2

    def test_inactive_technician(self, db, project, engineer_user, technician_user):
        technician_user.is_active = False
        db.session.commit()
        task = project_service.add_task(project, task_data(), engineer_user)
        with pytest.raises(ValidationError, match='not an active user'):
            project_service.assign_task(task, technician_user, engineer_user)

    def test_complete(self, project, engineer_user, technician_user):
        task = project_service.add_task(
            project, task_data(technician_id=technician_user.id), engineer_user)
        project_service.complete_task(task, technician_user)
        assert task.completed
        assert project_service.technician_tasks(technician_user) == []
        assert project_service.technician_tasks(technician_user,
                                                include_completed=True) == [task]


class TestListing:
    def test_list_projects(self, project):
        assert project_service.list_projects() == [project]

    def test_assignable_technicians(self, db, technician_user, engineer_user):
        engineer_user.is_active = False
        db.session.commit()
        assert project_service.assignable_technicians() == [technician_user]

    def test_task_cascade(self, db, project, engineer_user):
        project_service.add_task(project, task_data(), engineer_user)
        db.session.delete(project)
        db.session.commit()
        assert ProjectTask.query.count() == 0
