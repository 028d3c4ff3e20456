"""Settings forms: laboratory profile, machines and test catalogue."""
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileAllowed, FileRequired
from wtforms import StringField, SelectField, BooleanField, FloatField, IntegerField, SubmitField
from wtforms.validators import DataRequired, InputRequired, Optional, NumberRange, Email, Length

from app.models import MATERIAL_CATEGORIES


class LaboratoryForm(FlaskForm):
    """Laboratory profile."""
    name = StringField('Laboratory Name', validators=[DataRequired(), Length(max=120)])
    address = StringField('Address', validators=[Optional(), Length(max=255)])
    email = StringField('Email', validators=[Optional(), Email()])
    phone = StringField('Phone', validators=[Optional(), Length(max=40)])
    receipt_sequence_start = IntegerField('Receipt Sequence Start', validators=[
        DataRequired(), NumberRange(min=1)
    ])
    engineer_on_duty_id = SelectField('Engineer on Duty', coerce=int, validators=[Optional()])
    submit = SubmitField('Save')


class MachineForm(FlaskForm):
    """Compression machine with its correction factors."""
    name = StringField('Name', validators=[DataRequired(), Length(max=120)])
    tag_id = StringField('Tag ID', validators=[Optional(), Length(max=50)])
    factor_m = FloatField('Factor m', default=1.0, validators=[InputRequired()])
    factor_c = FloatField('Factor c', default=0.0, validators=[Optional()])
    submit = SubmitField('Save Machine')


class LabTestForm(FlaskForm):
    """Test catalogue entry."""
    name = StringField('Test Name', validators=[DataRequired(), Length(max=150)])
    material_category = SelectField('Material Category',
                                    choices=[(c, c.title()) for c in MATERIAL_CATEGORIES])
    method = StringField('Method', validators=[Optional(), Length(max=150)])
    unit_price = FloatField('Unit Price', default=0.0,
                            validators=[Optional(), NumberRange(min=0)])
    is_active = BooleanField('Active', default=True)
    submit = SubmitField('Save Test')


class CatalogueImportForm(FlaskForm):
    """Price-list upload for the test catalogue."""
    file = FileField('Price List', validators=[
        FileRequired(),
        FileAllowed(['xlsx', 'xls', 'csv'], 'Excel or CSV files only')
    ], description='Columns: Material Category, Material Test, Test Method(s), Amount (UGX)')
    submit = SubmitField('Import')
