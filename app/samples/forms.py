"""Sample receipt forms."""
from flask_wtf import FlaskForm
from wtforms import (
    StringField, TextAreaField, SelectField, RadioField, BooleanField,
    IntegerField, FloatField, FieldList, FormField, SubmitField
)
from wtforms import Form
from wtforms.fields import DateField
from wtforms.validators import DataRequired, Optional, NumberRange, Email, Length

from app.models import (
    DELIVERY_MODES, DELIVERY_LABELS, DELIVERY_DELIVERED_BY, BLOCK_SOLID, BLOCK_HOLLOW
)
from utils.analysis.strength_calculations import PAVER_THICKNESS_CLASSES


class SampleSetForm(Form):
    """One sample set: the samples that go into one register entry."""
    sample_ids = StringField('Sample IDs', validators=[Optional()],
                             description='Comma separated')
    casting_date = DateField('Date of Casting', validators=[Optional()])
    testing_date = DateField('Date of Testing', validators=[Optional()])
    age = IntegerField('Age (days)', validators=[Optional(), NumberRange(min=0)])
    area_of_use = StringField('Area of Use', validators=[Optional(), Length(max=150)])
    concrete_class = StringField('Class of Concrete', validators=[Optional(), Length(max=50)])
    paver_type = StringField('Paver Type', validators=[Optional(), Length(max=80)])
    paver_thickness = SelectField('Paver Thickness',
                                  choices=[('', '-')] + [(c, c) for c in PAVER_THICKNESS_CLASSES],
                                  validators=[Optional()])
    pavers_per_square_metre = FloatField('Pavers per m²',
                                         validators=[Optional(), NumberRange(min=0)])
    sample_type = StringField('Sample Type', validators=[Optional(), Length(max=80)])
    block_type = SelectField('Block Type',
                             choices=[('', '-'), (BLOCK_SOLID, 'Solid'), (BLOCK_HOLLOW, 'Hollow')],
                             validators=[Optional()])

    def to_dict(self):
        """Set dict in the shape the receipt service expects."""
        ids = [s.strip() for s in (self.sample_ids.data or '').split(',') if s.strip()]
        return {
            'sample_ids': ids,
            'casting_date': self.casting_date.data,
            'testing_date': self.testing_date.data,
            'age': self.age.data,
            'area_of_use': self.area_of_use.data or None,
            'concrete_class': self.concrete_class.data or None,
            'paver_type': self.paver_type.data or None,
            'paver_thickness': self.paver_thickness.data or None,
            'pavers_per_square_metre': self.pavers_per_square_metre.data,
            'sample_type': self.sample_type.data or None,
            'block_type': self.block_type.data or None,
        }


class SelectedTestForm(Form):
    """A selected test with its quantity and sample sets."""
    test_id = SelectField('Test', coerce=int, validators=[Optional()])
    quantity = IntegerField('Quantity', validators=[Optional(), NumberRange(min=1)])
    sets = FieldList(FormField(SampleSetForm), min_entries=1)


class ReceiveSamplesForm(FlaskForm):
    """Sample intake form."""
    client_name = StringField('Client', validators=[DataRequired(), Length(max=150)])
    client_address = StringField('Client Address', validators=[Optional(), Length(max=255)])
    client_contact = StringField('Client Contact', validators=[Optional(), Length(max=80)])
    project_title = StringField('Project', validators=[Optional(), Length(max=200)])
    date_received = DateField('Date Received', validators=[Optional()])

    delivery_mode = RadioField('Delivery',
                               choices=[(m, DELIVERY_LABELS[m]) for m in DELIVERY_MODES],
                               default=DELIVERY_DELIVERED_BY)
    delivery_person = StringField("Deliverer's / Collector's Name",
                                  validators=[Optional(), Length(max=120)])

    is_billing_client_same = BooleanField('Billing client is the same as client', default=True)
    billing_client_name = StringField('Billing Client', validators=[Optional(), Length(max=150)])

    transmittal_email = BooleanField('Email')
    transmittal_whatsapp = BooleanField('WhatsApp')
    transmittal_hardcopy = BooleanField('Hard copy')
    transmittal_email_address = StringField('Transmittal Email',
                                            validators=[Optional(), Email()])
    transmittal_whatsapp_number = StringField('WhatsApp Number',
                                              validators=[Optional(), Length(max=40)])

    notes = TextAreaField('Notes', validators=[Optional()])
    tests = FieldList(FormField(SelectedTestForm), min_entries=1)
    submit = SubmitField('Receive Samples')

    def set_test_choices(self, choices):
        for entry in self.tests:
            entry.form.test_id.choices = choices

    def to_data(self):
        """Intake data dict for the receipt service."""
        return {
            'client_name': self.client_name.data,
            'client_address': self.client_address.data or None,
            'client_contact': self.client_contact.data or None,
            'project_title': self.project_title.data or None,
            'date_received': self.date_received.data,
            'delivery_mode': self.delivery_mode.data,
            'delivery_person': self.delivery_person.data or None,
            'is_billing_client_same': bool(self.is_billing_client_same.data),
            'billing_client_name': self.billing_client_name.data or None,
            'transmittal_modes': {
                'email': bool(self.transmittal_email.data),
                'whatsapp': bool(self.transmittal_whatsapp.data),
                'hardcopy': bool(self.transmittal_hardcopy.data),
            },
            'transmittal_email': self.transmittal_email_address.data or None,
            'transmittal_whatsapp': self.transmittal_whatsapp_number.data or None,
            'notes': self.notes.data or None,
        }
