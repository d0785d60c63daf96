"""
Export utilities for Invo data.

Supports Excel (.xlsx), CSV (.csv) and plain text (.txt). Column
definitions are dicts with 'key', 'header', optional 'width' and
'numeric'. Invoicing reuses the same engine for the invoice list.
"""
import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from django.http import HttpResponse
from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter


class ExportFormat:
    EXCEL = 'xlsx'
    CSV = 'csv'
    TXT = 'txt'

    CHOICES = [EXCEL, CSV, TXT]
    CONTENT_TYPES = {
        EXCEL: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        CSV: 'text/csv',
        TXT: 'text/plain',
    }


TXT_MAX_WIDTH = 40


def format_value(value: Any) -> str:
    """Render a cell value as text. Money keeps two decimals."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, datetime):
        return timezone.localtime(value).strftime('%Y-%m-%d %H:%M') if timezone.is_aware(value) else value.strftime('%Y-%m-%d %H:%M')
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return str(value)


def _cell_value(value: Any, numeric: bool):
    # Numeric columns stay numbers in Excel so totals can be summed there
    if numeric and isinstance(value, (Decimal, int, float)) and not isinstance(value, bool):
        return float(value)
    return format_value(value)


def export_to_excel(data: list[dict], columns: list[dict], title: str = 'Export', sheet_name: str = 'Data') -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    edge = Side(style='thin', color='BFBFBF')
    border = Border(left=edge, right=edge, top=edge, bottom=edge)

    ws.cell(row=1, column=1, value=title).font = Font(bold=True, size=14)
    stamp = ws.cell(row=2, column=1, value=f"Generated {timezone.localtime():%Y-%m-%d %H:%M}")
    stamp.font = Font(italic=True, size=9, color='808080')

    header_row = 4
    for col_idx, col in enumerate(columns, 1):
        cell = ws.cell(row=header_row, column=col_idx, value=col['header'])
        cell.font = Font(bold=True, color='FFFFFF')
        cell.fill = PatternFill(start_color='1F4E79', end_color='1F4E79', fill_type='solid')
        cell.alignment = Alignment(horizontal='center', vertical='center')
        cell.border = border
        ws.column_dimensions[get_column_letter(col_idx)].width = col.get('width', 15)

    for row_idx, row_data in enumerate(data, header_row + 1):
        for col_idx, col in enumerate(columns, 1):
            numeric = col.get('numeric', False)
            cell = ws.cell(row=row_idx, column=col_idx, value=_cell_value(row_data.get(col['key']), numeric))
            cell.border = border
            if numeric:
                cell.number_format = '#,##0.00'
                cell.alignment = Alignment(horizontal='right')

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def export_to_csv(data: list[dict], columns: list[dict]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([col['header'] for col in columns])
    for row_data in data:
        writer.writerow([format_value(row_data.get(col['key'])) for col in columns])
    return output.getvalue()


def export_to_txt(data: list[dict], columns: list[dict]) -> str:
    """Fixed-width text table; long values are cut at TXT_MAX_WIDTH."""
    rows = [[format_value(row_data.get(col['key'])) for col in columns] for row_data in data]

    widths = []
    for idx, col in enumerate(columns):
        longest = max([len(col['header'])] + [len(row[idx]) for row in rows])
        widths.append(min(longest, TXT_MAX_WIDTH))

    def render(values):
        parts = []
        for idx, value in enumerate(values):
            if len(value) > widths[idx]:
                value = value[:widths[idx] - 1] + '~'
            if columns[idx].get('numeric'):
                parts.append(value.rjust(widths[idx]))
            else:
                parts.append(value.ljust(widths[idx]))
        return '  '.join(parts).rstrip()

    lines = [render([col['header'] for col in columns]), '  '.join('=' * w for w in widths)]
    lines.extend(render(row) for row in rows)
    return '\n'.join(lines) + '\n'


def create_export_response(
    data: list[dict],
    columns: list[dict],
    format: str,
    filename: str,
    title: str = 'Export',
) -> HttpResponse:
    """
    Build the download response for ``format``.

    Raises ValueError for an unknown format; views validate the query
    parameter first.
    """
    if format not in ExportFormat.CHOICES:
        raise ValueError(f"Invalid format: {format}. Must be one of {ExportFormat.CHOICES}")

    if format == ExportFormat.EXCEL:
        content = export_to_excel(data, columns, title=title)
    elif format == ExportFormat.CSV:
        # BOM so Excel opens UTF-8 names correctly
        content = '﻿' + export_to_csv(data, columns)
    else:
        content = export_to_txt(data, columns)

    response = HttpResponse(content, content_type=ExportFormat.CONTENT_TYPES[format])
    response['Content-Disposition'] = f'attachment; filename="{filename}.{format}"'
    return response


# =============================================================================
# Chart of Accounts
# =============================================================================

ACCOUNT_EXPORT_COLUMNS = [
    {'key': 'code', 'header': 'Code', 'width': 10},
    {'key': 'name', 'header': 'Account Name', 'width': 35},
    {'key': 'type', 'header': 'Type', 'width': 12},
    {'key': 'parent', 'header': 'Parent', 'width': 10},
    {'key': 'is_active', 'header': 'Active', 'width': 8},
    {'key': 'is_system', 'header': 'System', 'width': 8},
]


def prepare_account_export_data(accounts) -> list[dict]:
    return [
        {
            'code': account.code,
            'name': account.name,
            'type': account.get_account_type_display(),
            'parent': account.parent.code if account.parent_id else '',
            'is_active': account.is_active,
            'is_system': account.is_system,
        }
        for account in accounts
    ]


# =============================================================================
# Trial Balance
# =============================================================================

TRIAL_BALANCE_EXPORT_COLUMNS = [
    {'key': 'code', 'header': 'Code', 'width': 10},
    {'key': 'name', 'header': 'Account Name', 'width': 35},
    {'key': 'debit', 'header': 'Debit (RM)', 'width': 15, 'numeric': True},
    {'key': 'credit', 'header': 'Credit (RM)', 'width': 15, 'numeric': True},
    {'key': 'balance', 'header': 'Balance (RM)', 'width': 15, 'numeric': True},
]


def prepare_trial_balance_export_data(report: dict) -> list[dict]:
    """Report rows plus a closing TOTAL row."""
    rows = [
        {key: item[key] for key in ('code', 'name', 'debit', 'credit', 'balance')}
        for item in report['items']
    ]
    totals = report['totals']
    rows.append({
        'code': '',
        'name': 'TOTAL',
        'debit': totals['debit'],
        'credit': totals['credit'],
        'balance': totals['debit'] - totals['credit'],
    })
    return rows
