#!/usr/bin/env python3
"""
Sales Profit Analyzer - Main Entry Point

Parses point-of-sale sales reports in XLSX or CSV format, costs every item
against the menu inventory, and prints (or saves) per-item profit, category
totals and report totals.

Usage:
    python main.py --input <filepath> [--output <report.xlsx>] [options]

Examples:
    python main.py --input sales.xlsx
    python main.py --input sales.xlsx --output profit.xlsx --exact-only
    python main.py --input sales.csv --inventory my_menu.yaml --json
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

import yaml

from config import APP_NAME, APP_VERSION, get_config
from normalizer.amount_parser import format_currency
from output.excel_generator import generate_sales_report_excel
from parsers.base_parser import ParseResult
from parsers.csv_parser import CSVSalesParser
from parsers.errors import NoItemsFoundError, SalesReportError
from parsers.xlsx_parser import XLSXSalesParser
from storage.inventory_store import InventoryRepository


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    config = get_config()
    parser = argparse.ArgumentParser(
        description="Calculate item, category and report profit from a sales report.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --input sales.xlsx
  python main.py --input sales.xlsx --output profit.xlsx
  python main.py --input sales.csv --inventory my_menu.yaml --exact-only

Environment Variables:
  INVENTORY_FILE          - Default inventory YAML file
  ALLOW_FUZZY_MATCH       - Allow substring cost matching (default: true)
  DEFAULT_ASSUMED_MARGIN  - Margin reported for unmatched items (default: 45)
        """
    )

    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Path to the sales report file (XLSX or CSV)'
    )
    parser.add_argument(
        '--output', '-o',
        default=None,
        help='Path for an Excel profit report (optional)'
    )
    parser.add_argument(
        '--inventory',
        default=config.get('inventory_file'),
        help='Inventory YAML file with item costs (default: bundled menu)'
    )
    parser.add_argument(
        '--type', '-t',
        choices=['xlsx', 'csv'],
        default=None,
        help='File type (auto-detected by extension if not specified)'
    )
    parser.add_argument(
        '--exact-only',
        action='store_true',
        help='Disable substring (fuzzy) cost matching'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the full result as JSON instead of a text summary'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    return parser.parse_args(argv)


def detect_file_type(filepath: str) -> str:
    """
    Detect file type from extension.

    Args:
        filepath: Path to the file

    Returns:
        'xlsx' or 'csv'
    """
    ext = Path(filepath).suffix.lower()
    if ext in ('.xlsx', '.xls'):
        return 'xlsx'
    elif ext in ('.csv', '.txt'):
        return 'csv'
    else:
        raise ValueError(f"Unknown file extension: {ext}. Use --type to specify.")


def print_result(result: ParseResult, verbose: bool = False) -> None:
    """Print a text summary of a parsed report."""
    symbol = get_config().get('currency_symbol', '₹')
    summary = result.summary

    print(f"\n--- {result.restaurant_name} ---")
    if result.date_range:
        print(f"Date range: {result.date_range}")
    print(f"Report date: {result.date}")

    print(f"\n--- Categories ---")
    for category in result.categories:
        print(f"  {category.name}: {category.item_count} items, "
              f"revenue {format_currency(category.total_revenue, symbol)}, "
              f"profit {format_currency(category.total_profit, symbol)} "
              f"({category.avg_margin:.1f}%)")

    if verbose:
        print(f"\n--- Items ---")
        for item in result.items:
            flag = "" if item.is_cost_reliable else f" [{item.cost_match}]"
            print(f"  {item.item_name} x{item.quantity:g}: "
                  f"net {format_currency(item.net_amount, symbol)}, "
                  f"cost {format_currency(item.total_cost, symbol)}, "
                  f"profit {format_currency(item.profit, symbol)} "
                  f"({item.margin_percent:.1f}%){flag}")

    print(f"\n--- Totals ---")
    print(f"Items: {summary.item_count}")
    print(f"Orders: {summary.total_orders:g}")
    print(f"Revenue: {format_currency(summary.total_revenue, symbol)}")
    print(f"Cost: {format_currency(summary.total_cost, symbol)}")
    print(f"Profit before tax: {format_currency(summary.total_profit, symbol)}")
    print(f"Tax: {format_currency(summary.total_tax, symbol)}")
    print(f"Net profit after tax: {format_currency(summary.net_profit, symbol)}")
    print(f"Average margin: {summary.avg_margin:.1f}%")

    if result.warnings:
        print(f"\nUnresolved costs ({len(result.warnings)}):")
        for warning in result.warnings[:10]:
            print(f"  - {warning.message}")
        if len(result.warnings) > 10:
            print(f"  ... and {len(result.warnings) - 10} more")


def print_no_items(error: NoItemsFoundError) -> None:
    """Print what the parser saw when it found no item rows."""
    details = error.details
    print(f"Error: {error.message}")
    print(f"Rows inspected: {details.get('rows_inspected', 0)}")
    for kind, count in details.get('row_kinds', {}).items():
        print(f"  {kind}: {count}")
    print("First rows of the file:")
    print("-" * 80)
    for i, row in enumerate(details.get('sample_rows', [])):
        cols = " | ".join(f"[{j}]{str(v)[:20]}" for j, v in enumerate(row))
        print(f"Row {i}: {cols}")
    print("-" * 80)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    config = get_config()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Validate input file
    if not os.path.exists(args.input):
        print(f"Error: Input file not found: {args.input}")
        return 1

    try:
        file_type = args.type or detect_file_type(args.input)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    allow_fuzzy = config.allow_fuzzy_match and not args.exact_only

    if not args.json:
        print(f"\n{'='*60}")
        print(f"{APP_NAME} v{APP_VERSION}")
        print(f"{'='*60}")
        print(f"Input file: {args.input}")
        print(f"Inventory: {args.inventory}")
        print(f"File type: {file_type}")
        print(f"Fuzzy cost matching: {'on' if allow_fuzzy else 'off'}")
        print(f"{'='*60}")

    try:
        inventory = InventoryRepository.from_file(args.inventory)
    except (OSError, ValueError, KeyError, yaml.YAMLError, SalesReportError) as e:
        print(f"Error: Could not load inventory {args.inventory}: {e}")
        return 1

    resolver = inventory.resolver(
        allow_fuzzy=allow_fuzzy,
        default_margin=config.default_assumed_margin,
    )
    parser_cls = XLSXSalesParser if file_type == 'xlsx' else CSVSalesParser
    parser = parser_cls(args.input, resolver)

    try:
        result = parser.parse()
    except NoItemsFoundError as e:
        print_no_items(e)
        return 1
    except SalesReportError as e:
        print(f"Error: {e.message}")
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print_result(result, verbose=args.verbose)

    if args.output:
        generate_sales_report_excel(result, args.output)
        if not args.json:
            print(f"\nOutput saved to: {args.output}")

    if not args.json:
        print(f"\n{'='*60}")
        print("Processing complete!")
        print(f"{'='*60}\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
