"""Project and lab task models."""
from datetime import datetime
from app.extensions import db


class Project(db.Model):
    """Client engagement created from a receipt."""
    __tablename__ = 'projects'

    id = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.Integer, db.ForeignKey('receipts.id'), index=True)
    client = db.Column(db.String(150), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    date = db.Column(db.Date, default=lambda: datetime.utcnow().date())
    engineer = db.Column(db.String(120))
    lab_remarks = db.Column(db.Text)
    agreed_delivery = db.Column(db.Date)
    actual_delivery = db.Column(db.Date)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    receipt = db.relationship('Receipt', backref=db.backref('project', uselist=False))
    tasks = db.relationship('ProjectTask', backref='project', lazy='dynamic',
                            cascade='all, delete-orphan', order_by='ProjectTask.id')

    @property
    def unassigned_count(self) -> int:
        return self.tasks.filter(ProjectTask.technician_id.is_(None)).count()

    def __repr__(self) -> str:
        return f'<Project {self.title}>'


class ProjectTask(db.Model):
    """A lab test to perform within a project, assignable to a technician."""
    __tablename__ = 'project_tasks'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id'), nullable=False, index=True)
    test_id = db.Column(db.Integer, db.ForeignKey('lab_tests.id'))
    material_category = db.Column(db.String(40))
    category_quantity = db.Column(db.Integer, default=0)
    material_test = db.Column(db.String(150))
    quantity = db.Column(db.Integer, default=0)
    technician_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    completed = db.Column(db.Boolean, default=False)
    assigned_at = db.Column(db.DateTime)

    technician = db.relationship('User', backref=db.backref('tasks', lazy='dynamic'))

    def __repr__(self) -> str:
        return f'<ProjectTask {self.material_test} x{self.quantity}>'
