"""Finance service: quotations, invoicing, expenses and the finance overview."""

import logging
from collections import OrderedDict
from datetime import date, timedelta

from flask import current_app
from sqlalchemy import func

from app.extensions import db
from app.models import (
    AuditLog, Expense, Invoice, Quotation,
    EXPENSE_CATEGORIES, INVOICE_DRAFT, INVOICE_OVERDUE, INVOICE_PAID, INVOICE_SENT,
    QUOTE_ACCEPTED, QUOTE_DRAFT, QUOTE_STATUSES,
)
from app.services.errors import ValidationError, WorkflowError
from utils.analysis.strength_calculations import to_number

logger = logging.getLogger(__name__)

EXPENSE_FIELDS = ['expense_date', 'category', 'description', 'amount', 'vendor']


def price_items(items, vat_rate):
    """Price line items and add VAT.

    Parameters
    ----------
    items : list of dict
        Lines with ``description``, ``quantity`` and ``unit_price``
    vat_rate : float
        VAT as a fraction, e.g. 0.18

    Returns
    -------
    tuple
        (priced items, subtotal, tax, total), amounts rounded to 2 places
    """
    priced = []
    for item in items:
        quantity = to_number(item.get('quantity')) or 0
        unit_price = to_number(item.get('unit_price')) or 0.0
        priced.append({
            'description': item.get('description'),
            'quantity': int(quantity) if float(quantity).is_integer() else quantity,
            'unit_price': unit_price,
            'total': round(quantity * unit_price, 2),
        })
    subtotal = round(sum(i['total'] for i in priced), 2)
    tax = round(subtotal * vat_rate, 2)
    return priced, subtotal, tax, round(subtotal + tax, 2)


def _vat_rate():
    return current_app.config.get('VAT_RATE', 0.18)


# Quotations

def _quote_items(items):
    lines = [i for i in items or [] if (i.get('description') or '').strip()]
    if not lines:
        raise ValidationError('A quotation needs at least one line item.')
    for line in lines:
        quantity = to_number(line.get('quantity'))
        unit_price = to_number(line.get('unit_price'))
        if quantity is None or quantity <= 0:
            raise ValidationError(f"Quantity for {line['description']} must be greater than 0.")
        if unit_price is None or unit_price < 0:
            raise ValidationError(f"Unit price for {line['description']} cannot be negative.")
    return lines


def _apply_quote(quote, data):
    if not (data.get('client_name') or '').strip():
        raise ValidationError('Client name is required.')
    items, subtotal, tax, total = price_items(_quote_items(data.get('items')), _vat_rate())
    quote.client_name = data['client_name'].strip()
    quote.project_title = data.get('project_title') or None
    quote.notes = data.get('notes') or None
    quote.items = items
    quote.subtotal = subtotal
    quote.vat_rate = _vat_rate()
    quote.tax = tax
    quote.total = total
    if data.get('issue_date'):
        quote.issue_date = data['issue_date']
    validity = current_app.config.get('QUOTE_VALIDITY_DAYS', 30)
    quote.valid_until = data.get('valid_until') or quote.issue_date + timedelta(days=validity)


def next_quote_number():
    """Next quotation number, QUO-000001 upwards."""
    last = db.session.query(func.max(Quotation.id)).scalar() or 0
    return f'QUO-{last + 1:06d}'


def create_quotation(data, user, ip_address=None):
    """Create a draft quotation priced with the configured VAT rate."""
    quote = Quotation(quote_number=next_quote_number(), status=QUOTE_DRAFT,
                      issue_date=date.today(), created_by_id=user.id)
    _apply_quote(quote, data)
    db.session.add(quote)
    db.session.flush()
    AuditLog.record(user, 'CREATE', 'quotations', record_id=quote.id,
                    new_values={'quote_number': quote.quote_number,
                                'client_name': quote.client_name, 'total': quote.total},
                    ip_address=ip_address)
    db.session.commit()
    logger.info('Quotation %s created by %s', quote.quote_number, user.username)
    return quote


def update_quotation(quote, data, user, ip_address=None):
    """Edit a quotation's client and lines; only drafts can be edited."""
    if not quote.is_editable:
        raise WorkflowError(f'Quotation {quote.quote_number} is {quote.status} '
                            'and can no longer be edited.')
    old_values = {'client_name': quote.client_name, 'total': quote.total}
    _apply_quote(quote, data)
    AuditLog.record(user, 'UPDATE', 'quotations', record_id=quote.id,
                    old_values=old_values,
                    new_values={'client_name': quote.client_name, 'total': quote.total},
                    ip_address=ip_address)
    db.session.commit()
    return quote


def set_quotation_status(quote, status, user, ip_address=None):
    """Mark a quotation as sent or declined (or back to draft)."""
    if status not in QUOTE_STATUSES:
        raise ValidationError(f'Unknown quotation status: {status}')
    if status == QUOTE_ACCEPTED:
        raise WorkflowError('A quotation is accepted by converting it to an invoice.')
    if quote.invoice_id is not None:
        raise WorkflowError(f'Quotation {quote.quote_number} has already been invoiced.')
    if status == quote.status:
        return quote
    old_status = quote.status
    quote.status = status
    AuditLog.record(user, 'STATUS', 'quotations', record_id=quote.id,
                    old_values={'status': old_status}, new_values={'status': status},
                    ip_address=ip_address)
    db.session.commit()
    return quote


def convert_to_invoice(quote, user, ip_address=None, today=None):
    """Raise a draft invoice from a draft or sent quotation and accept it."""
    if not quote.can_convert:
        raise WorkflowError(f'Quotation {quote.quote_number} is {quote.status} '
                            'and cannot be invoiced.')
    today = today or date.today()
    due_days = current_app.config.get('INVOICE_DUE_DAYS', 30)
    invoice = Invoice(
        invoice_number=f'INV-{quote.quote_number}',
        client_name=quote.client_name,
        project_title=quote.project_title,
        items=[dict(i) for i in quote.items or []],
        subtotal=quote.subtotal,
        vat_rate=quote.vat_rate,
        tax=quote.tax,
        total=quote.total,
        amount_paid=0.0,
        status=INVOICE_DRAFT,
        issue_date=today,
        due_date=today + timedelta(days=due_days),
        notes=quote.notes,
    )
    db.session.add(invoice)
    db.session.flush()

    old_status = quote.status
    quote.status = QUOTE_ACCEPTED
    quote.invoice_id = invoice.id
    AuditLog.record(user, 'CONVERT', 'quotations', record_id=quote.id,
                    old_values={'status': old_status},
                    new_values={'status': quote.status,
                                'invoice_number': invoice.invoice_number},
                    ip_address=ip_address)
    db.session.commit()
    logger.info('Quotation %s converted to invoice %s by %s', quote.quote_number,
                invoice.invoice_number, user.username)
    return invoice


def delete_quotation(quote, user, ip_address=None):
    """Remove a quotation that has not been invoiced."""
    if quote.invoice_id is not None:
        raise WorkflowError(f'Quotation {quote.quote_number} has been invoiced '
                            'and cannot be deleted.')
    AuditLog.record(user, 'DELETE', 'quotations', record_id=quote.id,
                    old_values={'quote_number': quote.quote_number, 'status': quote.status},
                    ip_address=ip_address)
    db.session.delete(quote)
    db.session.commit()


# Expenses

def _validate_expense(data):
    if not data.get('expense_date'):
        raise ValidationError('Expense date is required.')
    if data.get('category') not in EXPENSE_CATEGORIES:
        raise ValidationError(f"Unknown expense category: {data.get('category')}")
    if not (data.get('description') or '').strip():
        raise ValidationError('Description is required.')
    amount = to_number(data.get('amount'))
    if amount is None or amount <= 0:
        raise ValidationError('Amount must be greater than 0.')
    return amount


def create_expense(data, user, ip_address=None):
    """Record an expense."""
    amount = _validate_expense(data)
    expense = Expense(**{k: data[k] for k in EXPENSE_FIELDS if k in data})
    expense.amount = amount
    expense.vendor = data.get('vendor') or None
    expense.recorded_by_id = user.id
    db.session.add(expense)
    db.session.flush()
    AuditLog.record(user, 'CREATE', 'expenses', record_id=expense.id,
                    new_values={'category': expense.category, 'amount': expense.amount},
                    ip_address=ip_address)
    db.session.commit()
    return expense


def update_expense(expense, data, user, ip_address=None):
    """Update an expense's fields."""
    amount = _validate_expense(data)
    old_values = {'category': expense.category, 'amount': expense.amount}
    for key in EXPENSE_FIELDS:
        if key in data:
            setattr(expense, key, data[key])
    expense.amount = amount
    expense.vendor = data.get('vendor') or None
    AuditLog.record(user, 'UPDATE', 'expenses', record_id=expense.id,
                    old_values=old_values,
                    new_values={'category': expense.category, 'amount': expense.amount},
                    ip_address=ip_address)
    db.session.commit()
    return expense


def delete_expense(expense, user, ip_address=None):
    AuditLog.record(user, 'DELETE', 'expenses', record_id=expense.id,
                    old_values={'category': expense.category, 'amount': expense.amount},
                    ip_address=ip_address)
    db.session.delete(expense)
    db.session.commit()


def list_expenses(start=None, end=None, category=None):
    """Expenses in a date range, newest first."""
    query = Expense.query
    if start:
        query = query.filter(Expense.expense_date >= start)
    if end:
        query = query.filter(Expense.expense_date <= end)
    if category:
        query = query.filter_by(category=category)
    return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


def totals_by_category(expenses):
    """Sum of amounts per category, in catalogue order, skipping empty ones."""
    totals = OrderedDict()
    for category in EXPENSE_CATEGORIES:
        amount = sum(e.amount for e in expenses if e.category == category)
        if amount:
            totals[category] = round(amount, 2)
    return totals


# Overview

def finance_overview(invoices, expenses, months=12):
    """Revenue, outstanding and expense figures with a monthly breakdown.

    Revenue counts paid invoices by issue month; outstanding counts sent and
    overdue invoices. The monthly rows cover the last ``months`` months that
    have any activity, oldest first.
    """
    revenue = sum(i.total or 0.0 for i in invoices if i.status == INVOICE_PAID)
    outstanding = sum(i.total or 0.0 for i in invoices
                      if i.status in (INVOICE_SENT, INVOICE_OVERDUE))
    spent = sum(e.amount for e in expenses)

    monthly = {}
    for invoice in invoices:
        if invoice.issue_date is None:
            continue
        row = monthly.setdefault((invoice.issue_date.year, invoice.issue_date.month),
                                 {'revenue': 0.0, 'expenses': 0.0})
        if invoice.status == INVOICE_PAID:
            row['revenue'] += invoice.total or 0.0
    for expense in expenses:
        row = monthly.setdefault((expense.expense_date.year, expense.expense_date.month),
                                 {'revenue': 0.0, 'expenses': 0.0})
        row['expenses'] += expense.amount

    rows = [{'month': date(year, month, 1).strftime('%b %y'),
             'revenue': round(values['revenue'], 2),
             'expenses': round(values['expenses'], 2)}
            for (year, month), values in sorted(monthly.items())]
    return {
        'total_revenue': round(revenue, 2),
        'outstanding': round(outstanding, 2),
        'total_expenses': round(spent, 2),
        'monthly': rows[-months:],
        'expenses_by_category': totals_by_category(expenses),
    }
