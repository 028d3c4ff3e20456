"""Register forms: test results entry and entry metadata."""
from flask_wtf import FlaskForm
from wtforms import (
    Form, StringField, TextAreaField, SelectField, BooleanField, FloatField,
    IntegerField, FieldList, FormField, SubmitField
)
from wtforms.fields import DateField
from wtforms.validators import Optional, NumberRange, Length

from app.models import BLOCK_SOLID, BLOCK_HOLLOW
from utils.analysis.strength_calculations import PAVER_THICKNESS_CLASSES


_THICKNESS_CHOICES = [('', '-')] + [(c, c) for c in PAVER_THICKNESS_CLASSES]
_BLOCK_CHOICES = [('', '-'), (BLOCK_SOLID, 'Solid'), (BLOCK_HOLLOW, 'Hollow')]


def _measure(label):
    return FloatField(label, validators=[Optional(), NumberRange(min=0)])


class SampleResultForm(Form):
    """Measurements for one sample. Unused fields stay blank."""
    sample_id = StringField('Sample ID', validators=[Optional(), Length(max=50)])
    length = _measure('Length (mm)')
    width = _measure('Width (mm)')
    height = _measure('Height (mm)')
    diameter = _measure('Diameter (mm)')
    weight = _measure('Weight (kg)')
    load = _measure('Failure Load (kN)')
    calculated_area = _measure('Area (mm²)')
    mode_of_failure = StringField('Mode of Failure', validators=[Optional(), Length(max=80)])

    hole_a_l = _measure('Hole A length')
    hole_a_w = _measure('Hole A width')
    hole_a_no = IntegerField('Hole A count', validators=[Optional(), NumberRange(min=0)])
    hole_b_l = _measure('Hole B length')
    hole_b_w = _measure('Hole B width')
    hole_b_no = IntegerField('Hole B count', validators=[Optional(), NumberRange(min=0)])
    notch_l = _measure('Notch length')
    notch_w = _measure('Notch width')
    notch_no = IntegerField('Notch count', validators=[Optional(), NumberRange(min=0)])

    dry_weight = _measure('Dry Weight (kg)')
    soaked_weight = _measure('Soaked Weight (kg)')

    def to_result(self, with_holes=False):
        """Result dict as stored on the register entry."""
        result = {
            'sample_id': self.sample_id.data,
            'length': self.length.data,
            'width': self.width.data,
            'height': self.height.data,
            'diameter': self.diameter.data,
            'weight': self.weight.data,
            'load': self.load.data,
            'calculated_area': self.calculated_area.data,
            'mode_of_failure': self.mode_of_failure.data or None,
            'dry_weight': self.dry_weight.data,
            'soaked_weight': self.soaked_weight.data,
        }
        if with_holes:
            for key in ('hole_a', 'hole_b', 'notch'):
                result[key] = {
                    'l': getattr(self, f'{key}_l').data,
                    'w': getattr(self, f'{key}_w').data,
                    'no': getattr(self, f'{key}_no').data,
                }
        return result

    def has_data(self):
        return any(f.data not in (None, '') for f in self if f.short_name != 'sample_id')


class ResultsEntryForm(FlaskForm):
    """Results entry for a register entry."""
    machine_id = SelectField('Machine', coerce=int, validators=[Optional()])
    temperature = FloatField('Facility Temperature (°C)', validators=[Optional()])
    paver_thickness = SelectField('Paver Thickness', choices=_THICKNESS_CHOICES,
                                  validators=[Optional()])
    override = BooleanField('Test before the scheduled date')
    comment = TextAreaField('Comment', validators=[Optional()])
    samples = FieldList(FormField(SampleResultForm), min_entries=1)
    submit = SubmitField('Submit Results')


class MachineSelectForm(FlaskForm):
    """Machine change with recalculation of corrected loads."""
    machine_id = SelectField('Machine', coerce=int)
    submit = SubmitField('Recalculate')


class EntryMetadataForm(FlaskForm):
    """Descriptive fields and schedule of a register entry."""
    client = StringField('Client', validators=[Optional(), Length(max=150)])
    project = StringField('Project', validators=[Optional(), Length(max=200)])
    area_of_use = StringField('Area of Use', validators=[Optional(), Length(max=150)])
    casting_date = DateField('Date of Casting', validators=[Optional()])
    testing_date = DateField('Date of Testing', validators=[Optional()])
    concrete_class = StringField('Class of Concrete', validators=[Optional(), Length(max=50)])
    paver_type = StringField('Paver Type', validators=[Optional(), Length(max=80)])
    paver_thickness = SelectField('Paver Thickness', choices=_THICKNESS_CHOICES,
                                  validators=[Optional()])
    pavers_per_square_metre = FloatField('Pavers per m²',
                                         validators=[Optional(), NumberRange(min=0)])
    sample_type = StringField('Sample Type', validators=[Optional(), Length(max=80)])
    block_type = SelectField('Block Type', choices=_BLOCK_CHOICES, validators=[Optional()])
    mode_of_compaction = StringField('Mode of Compaction',
                                     validators=[Optional(), Length(max=80)])
    comment = TextAreaField('Comment', validators=[Optional()])
    submit = SubmitField('Save')

    FIELDS = ['client', 'project', 'area_of_use', 'casting_date', 'testing_date',
              'concrete_class', 'paver_type', 'paver_thickness', 'pavers_per_square_metre',
              'sample_type', 'block_type', 'mode_of_compaction', 'comment']

    def changes(self):
        """Field values keyed by entry attribute, blanks as None."""
        return {name: (getattr(self, name).data if getattr(self, name).data != '' else None)
                for name in self.FIELDS}

