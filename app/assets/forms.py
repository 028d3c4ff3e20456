"""Asset register forms."""
from flask_wtf import FlaskForm
from wtforms import (
    StringField, TextAreaField, SelectField, BooleanField, FloatField, IntegerField, SubmitField
)
from wtforms.fields import DateField
from wtforms.validators import DataRequired, Optional, NumberRange, Length

from app.models import ASSET_STATUSES, ASSET_CATEGORIES, CALIBRATION_RESULTS, MAINTENANCE_TYPES


class AssetForm(FlaskForm):
    """Create or edit an asset."""
    name = StringField('Name', validators=[DataRequired(), Length(max=150)])
    tag_id = StringField('Tag ID', validators=[Optional(), Length(max=50)])
    serial_number = StringField('Serial Number', validators=[Optional(), Length(max=80)])
    category = SelectField('Category', choices=[(c, c) for c in ASSET_CATEGORIES])
    status = SelectField('Status', choices=[(s, s) for s in ASSET_STATUSES])
    location = StringField('Location', validators=[Optional(), Length(max=120)])
    purchase_date = DateField('Purchase Date', validators=[Optional()])
    purchase_cost = FloatField('Purchase Cost', validators=[Optional(), NumberRange(min=0)])
    vendor = StringField('Vendor', validators=[Optional(), Length(max=150)])
    warranty_expiry = DateField('Warranty Expiry', validators=[Optional()])
    assigned_to_id = SelectField('Assigned To', coerce=int, validators=[Optional()])
    requires_calibration = BooleanField('Requires Calibration')
    calibration_frequency_days = IntegerField('Calibration Frequency (days)',
                                              validators=[Optional(), NumberRange(min=1)])
    next_calibration_date = DateField('Next Calibration', validators=[Optional()])
    maintenance_frequency_days = IntegerField('Maintenance Frequency (days)',
                                              validators=[Optional(), NumberRange(min=1)])
    next_maintenance_date = DateField('Next Maintenance', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])
    submit = SubmitField('Save Asset')

    def to_data(self):
        """Field values for the asset service."""
        data = {name: field.data for name, field in self._fields.items()
                if name not in ('submit', 'csrf_token')}
        data['assigned_to_id'] = data['assigned_to_id'] or None
        return data


class CalibrationForm(FlaskForm):
    """Log a calibration."""
    calibration_date = DateField('Calibration Date', validators=[DataRequired()])
    performed_by = StringField('Performed By', validators=[Optional(), Length(max=150)])
    certificate_number = StringField('Certificate Number', validators=[Optional(), Length(max=80)])
    result = SelectField('Result', choices=[(r, r) for r in CALIBRATION_RESULTS])
    notes = TextAreaField('Notes', validators=[Optional()])
    submit = SubmitField('Log Calibration')


class MaintenanceForm(FlaskForm):
    """Log a maintenance event."""
    maintenance_date = DateField('Maintenance Date', validators=[DataRequired()])
    maintenance_type = SelectField('Type', choices=[(t, t) for t in MAINTENANCE_TYPES])
    performed_by = StringField('Performed By', validators=[Optional(), Length(max=150)])
    cost = FloatField('Cost', validators=[Optional(), NumberRange(min=0)])
    description = TextAreaField('Description', validators=[Optional()])
    submit = SubmitField('Log Maintenance')
