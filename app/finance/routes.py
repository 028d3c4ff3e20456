"""Invoice, quotation and expense routes."""
from datetime import date

from flask import render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from . import finance_bp
from .forms import InvoiceUpdateForm, QuotationForm, QuotationStatusForm, ExpenseForm
from app.extensions import db
from app.models import (
    AuditLog, Expense, Invoice, Quotation,
    EXPENSE_CATEGORIES, INVOICE_STATUSES, QUOTE_STATUSES, permission_required,
)
from app.services import ServiceError, finance_service
from utils.analysis.age_calculations import to_date


@finance_bp.route('/')
@login_required
@permission_required('finance:invoices:read')
def overview():
    """Revenue against expenses, by month and by expense category."""
    summary = finance_service.finance_overview(Invoice.query.all(), Expense.query.all())
    return render_template('finance/overview.html', summary=summary)


@finance_bp.route('/invoices')
@login_required
@permission_required('finance:invoices:read')
def invoices():
    """List invoices, optionally by status."""
    status = request.args.get('status', '')
    query = Invoice.query
    if status and status != 'All':
        query = query.filter_by(status=status)
    invoices = query.order_by(Invoice.issue_date.desc(), Invoice.id.desc()).all()
    outstanding = sum(i.balance for i in invoices)
    return render_template('finance/invoices.html', invoices=invoices,
                           statuses=INVOICE_STATUSES, status=status, outstanding=outstanding)


@finance_bp.route('/invoices/<int:id>', methods=['GET', 'POST'])
@login_required
@permission_required('finance:invoices:read')
def invoice_view(id):
    """Invoice detail; status and payment can be updated with write access."""
    invoice = db.get_or_404(Invoice, id)
    form = InvoiceUpdateForm(obj=invoice)

    if form.validate_on_submit():
        if not current_user.has_permission('finance:invoices:update'):
            flash('You do not have permission to update invoices.', 'danger')
            return redirect(url_for('finance.invoice_view', id=id))

        old_values = {'status': invoice.status, 'amount_paid': invoice.amount_paid}
        invoice.status = form.status.data
        invoice.amount_paid = form.amount_paid.data
        invoice.due_date = form.due_date.data
        invoice.notes = form.notes.data or None
        AuditLog.record(current_user, 'UPDATE', 'invoices', record_id=invoice.id,
                        old_values=old_values,
                        new_values={'status': invoice.status,
                                    'amount_paid': invoice.amount_paid},
                        ip_address=request.remote_addr)
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Invoice update failed')
            flash('A database error occurred. Please try again.', 'danger')
        else:
            current_app.logger.info('Invoice %s set to %s', invoice.invoice_number,
                                    invoice.status)
            flash(f'Invoice {invoice.invoice_number} updated.', 'success')
            return redirect(url_for('finance.invoice_view', id=id))

    return render_template('finance/invoice_view.html', invoice=invoice, form=form)


def _save(action, success_message):
    """Run a service call; returns the result, or None after flashing the failure."""
    try:
        result = action()
    except ServiceError as e:
        db.session.rollback()
        flash(str(e), 'danger')
        return None
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Finance update failed')
        flash('A database error occurred. Please try again.', 'danger')
        return None
    flash(success_message, 'success')
    return result


# Quotations

@finance_bp.route('/quotations')
@login_required
@permission_required('finance:quotations:read')
def quotations():
    """List quotations, optionally by status."""
    status = request.args.get('status', '')
    query = Quotation.query
    if status and status != 'All':
        query = query.filter_by(status=status)
    quotes = query.order_by(Quotation.issue_date.desc(), Quotation.id.desc()).all()
    return render_template('finance/quotations.html', quotes=quotes,
                           statuses=QUOTE_STATUSES, status=status)


@finance_bp.route('/quotations/new', methods=['GET', 'POST'])
@login_required
@permission_required('finance:quotations:update')
def quotation_create():
    form = QuotationForm()
    if form.validate_on_submit():
        quote = _save(lambda: finance_service.create_quotation(form.to_data(), current_user,
                                                               request.remote_addr),
                      'Quotation created.')
        if quote is not None:
            return redirect(url_for('finance.quotation_view', id=quote.id))
    return render_template('finance/quotation_form.html', form=form, title='New Quotation',
                           vat_rate=current_app.config.get('VAT_RATE', 0.18))


@finance_bp.route('/quotations/<int:id>')
@login_required
@permission_required('finance:quotations:read')
def quotation_view(id):
    quote = db.get_or_404(Quotation, id)
    return render_template('finance/quotation_view.html', quote=quote,
                           status_form=QuotationStatusForm(status=quote.status))


@finance_bp.route('/quotations/<int:id>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('finance:quotations:update')
def quotation_edit(id):
    """Edit a draft quotation."""
    quote = db.get_or_404(Quotation, id)
    if not quote.is_editable:
        flash(f'Quotation {quote.quote_number} is {quote.status} and can no longer be edited.',
              'warning')
        return redirect(url_for('finance.quotation_view', id=id))

    if request.method == 'GET':
        form = QuotationForm(data={
            'client_name': quote.client_name, 'project_title': quote.project_title,
            'valid_until': quote.valid_until, 'notes': quote.notes,
            'items': list(quote.items or []),
        })
    else:
        form = QuotationForm()
    if form.validate_on_submit():
        if _save(lambda: finance_service.update_quotation(quote, form.to_data(), current_user,
                                                          request.remote_addr),
                 f'Quotation {quote.quote_number} updated.') is not None:
            return redirect(url_for('finance.quotation_view', id=id))
    return render_template('finance/quotation_form.html', form=form, quote=quote,
                           title=f'Edit Quotation {quote.quote_number}',
                           vat_rate=current_app.config.get('VAT_RATE', 0.18))


@finance_bp.route('/quotations/<int:id>/status', methods=['POST'])
@login_required
@permission_required('finance:quotations:update')
def quotation_status(id):
    quote = db.get_or_404(Quotation, id)
    form = QuotationStatusForm()
    if form.validate_on_submit():
        _save(lambda: finance_service.set_quotation_status(quote, form.status.data, current_user,
                                                           request.remote_addr),
              f'Quotation {quote.quote_number} marked {form.status.data}.')
    return redirect(url_for('finance.quotation_view', id=id))


@finance_bp.route('/quotations/<int:id>/convert', methods=['POST'])
@login_required
@permission_required('finance:quotations:update')
def quotation_convert(id):
    """Raise an invoice from the quotation."""
    quote = db.get_or_404(Quotation, id)
    invoice = _save(lambda: finance_service.convert_to_invoice(quote, current_user,
                                                               request.remote_addr),
                    f'Invoice raised from quotation {quote.quote_number}.')
    if invoice is None:
        return redirect(url_for('finance.quotation_view', id=id))
    if current_user.has_permission('finance:invoices:read'):
        return redirect(url_for('finance.invoice_view', id=invoice.id))
    return redirect(url_for('finance.quotation_view', id=id))


@finance_bp.route('/quotations/<int:id>/delete', methods=['POST'])
@login_required
@permission_required('finance:quotations:update')
def quotation_delete(id):
    quote = db.get_or_404(Quotation, id)
    number = quote.quote_number
    if _save(lambda: finance_service.delete_quotation(quote, current_user, request.remote_addr),
             f'Quotation {number} deleted.') is None:
        return redirect(url_for('finance.quotation_view', id=id))
    return redirect(url_for('finance.quotations'))


# Expenses

@finance_bp.route('/expenses')
@login_required
@permission_required('finance:expenses:read')
def expenses():
    """Expenses with per-category totals, filterable by date range and category."""
    start = to_date(request.args.get('start'))
    end = to_date(request.args.get('end'))
    category = request.args.get('category', '')
    records = finance_service.list_expenses(start, end, category or None)
    return render_template('finance/expenses.html', expenses=records,
                           totals=finance_service.totals_by_category(records),
                           total=sum(e.amount for e in records),
                           categories=EXPENSE_CATEGORIES, category=category,
                           start=start, end=end)


@finance_bp.route('/expenses/new', methods=['GET', 'POST'])
@login_required
@permission_required('finance:expenses:update')
def expense_create():
    form = ExpenseForm()
    if request.method == 'GET':
        form.expense_date.data = date.today()
    if form.validate_on_submit():
        if _save(lambda: finance_service.create_expense(form.to_data(), current_user,
                                                        request.remote_addr),
                 'Expense recorded.') is not None:
            return redirect(url_for('finance.expenses'))
    return render_template('finance/expense_form.html', form=form, title='New Expense')


@finance_bp.route('/expenses/<int:id>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('finance:expenses:update')
def expense_edit(id):
    expense = db.get_or_404(Expense, id)
    form = ExpenseForm(obj=expense)
    if form.validate_on_submit():
        if _save(lambda: finance_service.update_expense(expense, form.to_data(), current_user,
                                                        request.remote_addr),
                 'Expense updated.') is not None:
            return redirect(url_for('finance.expenses'))
    return render_template('finance/expense_form.html', form=form, expense=expense,
                           title='Edit Expense')


@finance_bp.route('/expenses/<int:id>/delete', methods=['POST'])
@login_required
@permission_required('finance:expenses:update')
def expense_delete(id):
    expense = db.get_or_404(Expense, id)
    _save(lambda: finance_service.delete_expense(expense, current_user, request.remote_addr),
          'Expense deleted.')
    return redirect(url_for('finance.expenses'))
