"""Project task forms."""
from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, IntegerField, SubmitField
from wtforms.validators import DataRequired, Optional, NumberRange, Length

from app.models import MATERIAL_CATEGORIES


class TaskForm(FlaskForm):
    """Add or edit a lab test within a project."""
    material_category = SelectField('Material Category',
                                    choices=[(c, c.title()) for c in MATERIAL_CATEGORIES])
    category_quantity = IntegerField('Category Quantity', validators=[
        DataRequired(), NumberRange(min=1)
    ])
    material_test = StringField('Material Test', validators=[DataRequired(), Length(max=150)])
    quantity = IntegerField('Quantity', validators=[DataRequired(), NumberRange(min=1)])
    technician_id = SelectField('Technician', coerce=int, validators=[Optional()])
    submit = SubmitField('Save Task')


class AssignForm(FlaskForm):
    technician_id = SelectField('Technician', coerce=int)
    submit = SubmitField('Assign')
