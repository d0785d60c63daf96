# invoicing/exports.py
"""Invoice list export columns; rendering is shared with accounting/exports.py."""

INVOICE_EXPORT_COLUMNS = [
    {'key': 'invoice_number', 'header': 'Invoice No', 'width': 20},
    {'key': 'customer', 'header': 'Customer', 'width': 30},
    {'key': 'issue_date', 'header': 'Issue Date', 'width': 12},
    {'key': 'due_date', 'header': 'Due Date', 'width': 12},
    {'key': 'status', 'header': 'Status', 'width': 12},
    {'key': 'subtotal', 'header': 'Subtotal (RM)', 'width': 15, 'numeric': True},
    {'key': 'tax_amount', 'header': 'Tax (RM)', 'width': 12, 'numeric': True},
    {'key': 'discount_amount', 'header': 'Discount (RM)', 'width': 14, 'numeric': True},
    {'key': 'total', 'header': 'Total (RM)', 'width': 15, 'numeric': True},
    {'key': 'paid_amount', 'header': 'Paid (RM)', 'width': 15, 'numeric': True},
    {'key': 'balance_due', 'header': 'Balance (RM)', 'width': 15, 'numeric': True},
]


def prepare_invoice_export_data(invoices) -> list[dict]:
    return [
        {
            'invoice_number': invoice.invoice_number,
            'customer': invoice.customer.name,
            'issue_date': invoice.issue_date,
            'due_date': invoice.due_date,
            'status': invoice.status,
            'subtotal': invoice.subtotal,
            'tax_amount': invoice.tax_amount,
            'discount_amount': invoice.discount_amount,
            'total': invoice.total,
            'paid_amount': invoice.paid_amount,
            'balance_due': invoice.balance_due,
        }
        for invoice in invoices
    ]
