"""
Excel output generator for parsed sales reports.

Creates a formatted Excel workbook with multiple sheets:
1. Items
2. Category Summary
3. Unresolved Costs
4. Summary
"""
import logging
from typing import Any, List, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from parsers.base_parser import ParseResult

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
FLAGGED_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
LOSS_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
ALT_ROW_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)
CURRENCY_FORMAT = '#,##0.00'
QUANTITY_FORMAT = '#,##0'
MARGIN_FORMAT = '0.0"%"'

ITEM_HEADERS = [
    "Category", "Item", "Qty", "Gross", "Discount", "Net", "Tax", "Total Sales",
    "Cost Price", "Total Cost", "Profit", "Margin", "Cost Match",
]

CATEGORY_HEADERS = [
    "Category", "Items", "Qty", "Revenue", "Cost", "Profit", "Tax", "Margin",
]


def generate_sales_report_excel(result: ParseResult, output_path: str) -> str:
    """
    Generate an Excel workbook for a parsed sales report.

    Args:
        result: Parsed sales report
        output_path: Path to save the Excel file

    Returns:
        Path to the generated file
    """
    logger.info("Generating Excel output: %s", output_path)

    wb = Workbook()

    # Remove default sheet
    if 'Sheet' in wb.sheetnames:
        del wb['Sheet']

    _create_items_sheet(wb, result)
    _create_category_summary_sheet(wb, result)
    _create_unresolved_sheet(wb, result)
    _create_summary_sheet(wb, result)

    wb.save(output_path)
    logger.info("Excel file saved: %s", output_path)

    return output_path


def _write_header(ws: Worksheet, headers: Sequence[str]) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal='center')
        cell.border = THIN_BORDER


def _create_items_sheet(wb: Workbook, result: ParseResult) -> None:
    """Create the Items sheet."""
    ws = wb.create_sheet("Items")
    _write_header(ws, ITEM_HEADERS)

    for row_idx, item in enumerate(result.items, 2):
        values: List[Tuple[Any, str]] = [
            (item.category, ''),
            (item.item_name, ''),
            (item.quantity, QUANTITY_FORMAT),
            (item.gross_amount, CURRENCY_FORMAT),
            (item.discount, CURRENCY_FORMAT),
            (item.net_amount, CURRENCY_FORMAT),
            (item.tax, CURRENCY_FORMAT),
            (item.total_sales, CURRENCY_FORMAT),
            (item.cost_price, CURRENCY_FORMAT),
            (item.total_cost, CURRENCY_FORMAT),
            (item.profit, CURRENCY_FORMAT),
            (item.margin_percent, MARGIN_FORMAT),
            (item.cost_match, ''),
        ]
        for col, (value, number_format) in enumerate(values, 1):
            cell = ws.cell(row=row_idx, column=col, value=value)
            if number_format:
                cell.number_format = number_format

        # Highlight unreliable costs, then losses, then alternate rows
        fill = None
        if not item.is_cost_reliable:
            fill = FLAGGED_FILL
        elif item.profit < 0:
            fill = LOSS_FILL
        elif row_idx % 2 == 0:
            fill = ALT_ROW_FILL
        if fill is not None:
            for col in range(1, len(ITEM_HEADERS) + 1):
                ws.cell(row=row_idx, column=col).fill = fill

    column_widths = [22, 32, 8, 14, 12, 14, 12, 14, 12, 14, 14, 10, 16]
    for col, width in enumerate(column_widths, 1):
        ws.column_dimensions[get_column_letter(col)].width = width

    ws.auto_filter.ref = f"A1:{get_column_letter(len(ITEM_HEADERS))}{len(result.items) + 1}"
    ws.freeze_panes = "A2"


def _create_category_summary_sheet(wb: Workbook, result: ParseResult) -> None:
    """Create the Category Summary sheet."""
    ws = wb.create_sheet("Category Summary")
    _write_header(ws, CATEGORY_HEADERS)

    row_idx = 2
    for category in result.categories:
        _write_totals_row(ws, row_idx, category.name, category.item_count, category.total_quantity,
                          category.total_revenue, category.total_cost, category.total_profit,
                          category.total_tax, category.avg_margin)
        if row_idx % 2 == 0:
            for col in range(1, len(CATEGORY_HEADERS) + 1):
                ws.cell(row=row_idx, column=col).fill = ALT_ROW_FILL
        row_idx += 1

    # Grand total
    row_idx += 1
    s = result.summary
    _write_totals_row(ws, row_idx, "GRAND TOTAL", s.item_count, s.total_quantity,
                      s.total_revenue, s.total_cost, s.total_profit, s.total_tax, s.avg_margin)
    for col in range(1, len(CATEGORY_HEADERS) + 1):
        ws.cell(row=row_idx, column=col).font = Font(bold=True)

    for col, width in enumerate([28, 8, 10, 16, 16, 16, 14, 10], 1):
        ws.column_dimensions[get_column_letter(col)].width = width

    ws.freeze_panes = "A2"


def _write_totals_row(ws: Worksheet, row: int, label: str, count: int, quantity: float,
                      revenue: float, cost: float, profit: float, tax: float, margin: float) -> None:
    """Write one category (or grand total) row."""
    ws.cell(row=row, column=1, value=label)
    ws.cell(row=row, column=2, value=count)
    ws.cell(row=row, column=3, value=quantity).number_format = QUANTITY_FORMAT
    for col, value in ((4, revenue), (5, cost), (6, profit), (7, tax)):
        ws.cell(row=row, column=col, value=value).number_format = CURRENCY_FORMAT
    ws.cell(row=row, column=8, value=margin).number_format = MARGIN_FORMAT


def _create_unresolved_sheet(wb: Workbook, result: ParseResult) -> None:
    """Create the Unresolved Costs sheet."""
    ws = wb.create_sheet("Unresolved Costs")
    _write_header(ws, ["Row", "Item", "Category", "Assumed Margin", "Your Cost Price"])

    for row_idx, warning in enumerate(result.warnings, 2):
        ws.cell(row=row_idx, column=1, value=warning.row_number)
        ws.cell(row=row_idx, column=2, value=warning.item_name)
        ws.cell(row=row_idx, column=3, value=warning.category)
        ws.cell(row=row_idx, column=4, value=warning.assumed_margin).number_format = MARGIN_FORMAT
        # Left blank for the user to fill in
        ws.cell(row=row_idx, column=5, value="")
        for col in range(1, 6):
            ws.cell(row=row_idx, column=col).fill = FLAGGED_FILL

    for col, width in enumerate([8, 32, 22, 16, 18], 1):
        ws.column_dimensions[get_column_letter(col)].width = width

    if result.warnings:
        note_row = len(result.warnings) + 3
        ws.cell(row=note_row, column=1,
                value="Profit for these items assumes zero cost. Add them to the inventory and re-run.")
        ws.cell(row=note_row, column=1).font = Font(italic=True)

    ws.freeze_panes = "A2"


def _create_summary_sheet(wb: Workbook, result: ParseResult) -> None:
    """Create the Summary sheet."""
    ws = wb.create_sheet("Summary")
    s = result.summary

    stats = [
        ("Sales Report Summary", ""),
        ("", ""),
        ("Restaurant", result.restaurant_name),
        ("Date Range", result.date_range or "N/A"),
        ("Report Date", result.date),
        ("", ""),
        ("Totals", ""),
        ("Items Sold", s.item_count),
        ("Total Orders (Qty)", s.total_orders),
        ("Total Revenue (Net)", float(s.total_revenue)),
        ("Total Cost", float(s.total_cost)),
        ("Profit Before Tax", float(s.total_profit)),
        ("Total Tax", float(s.total_tax)),
        ("Net Profit After Tax", float(s.net_profit)),
        ("Average Margin (%)", f"{s.avg_margin:.1f}"),
        ("", ""),
        ("Costing", ""),
        ("Unresolved Costs", len(result.warnings)),
        ("Fuzzy Cost Matches", sum(1 for i in result.items if i.cost_match == "fuzzy")),
    ]

    for row_idx, (label, value) in enumerate(stats, 1):
        cell = ws.cell(row=row_idx, column=1, value=label)
        if label and value == "":
            cell.font = Font(bold=True, size=12)
        cell = ws.cell(row=row_idx, column=2, value=value)
        if isinstance(value, float):
            cell.number_format = CURRENCY_FORMAT

    ws.column_dimensions['A'].width = 30
    ws.column_dimensions['B'].width = 30
