"""Invoice, quotation and expense forms."""
from flask_wtf import FlaskForm
from wtforms import (
    Form, StringField, SelectField, FloatField, TextAreaField, FieldList, FormField, SubmitField
)
from wtforms.fields import DateField
from wtforms.validators import DataRequired, InputRequired, Optional, NumberRange, Length

from app.models import INVOICE_STATUSES, QUOTE_STATUSES, QUOTE_ACCEPTED, EXPENSE_CATEGORIES


class InvoiceUpdateForm(FlaskForm):
    """Invoice status and payment."""
    status = SelectField('Status', choices=[(s, s) for s in INVOICE_STATUSES])
    amount_paid = FloatField('Amount Paid', validators=[InputRequired(), NumberRange(min=0)])
    due_date = DateField('Due Date', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])
    submit = SubmitField('Update Invoice')


class QuoteItemForm(Form):
    """One priced line; rows without a description are ignored."""
    description = StringField('Description', validators=[Optional(), Length(max=200)])
    quantity = FloatField('Qty', validators=[Optional(), NumberRange(min=0)])
    unit_price = FloatField('Unit Price', validators=[Optional(), NumberRange(min=0)])


class QuotationForm(FlaskForm):
    """Create or edit a draft quotation."""
    client_name = StringField('Client Name', validators=[DataRequired(), Length(max=150)])
    project_title = StringField('Project Title', validators=[Optional(), Length(max=200)])
    valid_until = DateField('Valid Until', validators=[Optional()])
    notes = TextAreaField('Notes', validators=[Optional()])
    items = FieldList(FormField(QuoteItemForm), min_entries=5)
    submit = SubmitField('Save Quotation')

    def to_data(self):
        """Quotation data dict for the finance service."""
        return {
            'client_name': self.client_name.data,
            'project_title': self.project_title.data or None,
            'valid_until': self.valid_until.data,
            'notes': self.notes.data or None,
            'items': [{'description': (row.form.description.data or '').strip(),
                       'quantity': row.form.quantity.data,
                       'unit_price': row.form.unit_price.data}
                      for row in self.items],
        }


class QuotationStatusForm(FlaskForm):
    """Move a quotation between draft, sent and declined."""
    status = SelectField('Status', choices=[(s, s) for s in QUOTE_STATUSES if s != QUOTE_ACCEPTED])
    submit = SubmitField('Set Status')


class ExpenseForm(FlaskForm):
    """Record or edit an expense."""
    expense_date = DateField('Date', validators=[DataRequired()])
    category = SelectField('Category', choices=[(c, c) for c in EXPENSE_CATEGORIES])
    description = StringField('Description', validators=[DataRequired(), Length(max=255)])
    amount = FloatField('Amount', validators=[InputRequired(), NumberRange(min=0.01)])
    vendor = StringField('Vendor', validators=[Optional(), Length(max=150)])
    submit = SubmitField('Save Expense')

    def to_data(self):
        """Field values for the finance service."""
        return {name: field.data for name, field in self._fields.items()
                if name not in ('submit', 'csrf_token')}
