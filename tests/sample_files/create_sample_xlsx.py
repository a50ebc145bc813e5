#!/usr/bin/env python3
"""
Generate sample sales report files for the sales profit analyzer.

The layout mirrors a point-of-sale "Group Report" export: restaurant name,
reporting period, column headers, statistic rows, then category blocks with
their item rows and subtotals.
"""
import csv
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pandas as pd

SAMPLE_DIR = os.path.dirname(os.path.abspath(__file__))

SAMPLE_ROWS = [
    ["Sunrise Hotel & Bar"],
    ["Group Report : 17-10-2025 to 18-10-2025"],
    [],
    ["Group", "Item", "Qty", "My Amount", "Discount", "Net Amount", "Tax", "Total"],
    ["Max", None, 3, 698, 0, 698, 34.9, 732.9],
    ["Min", None, 1, 249, 0, 249, 12.45, 261.45],
    ["Avg", None, 2, 385.5, 12.5, 373, 18.65, 391.65],
    ["Total", "", 7, 1544, 50, 1494, 74.7, 1568.7],
    ["Dine In Food Menu"],
    [None, "Chicken 65", 2, 698, 0, 698, 34.9, 732.9],
    [None, "Crispy Corn", 1, 249, 0, 249, 12.45, 261.45],
    ["Sub Total", None, None, None, None, 947, None, None],
    ["Bar Menu"],
    [None, "Coke", 3, 297, 0, 297, 14.85, 311.85],
    [None, "Mystery Mocktail", 1, 300, 50, 250, 12.5, 262.5],
    ["Sub Total", None, None, None, None, 547, None, None],
    ["Round off", None, None, None, None, None, None, 0.3],
]


def create_sample_xlsx(output_path=None):
    """Create a sample sales report workbook."""
    output_path = output_path or os.path.join(SAMPLE_DIR, 'sample_sales_report.xlsx')

    df = pd.DataFrame(SAMPLE_ROWS)
    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        df.to_excel(writer, sheet_name='Group Report', index=False, header=False)

    print(f"Created: {output_path}")
    return output_path


def create_sample_csv(output_path=None):
    """Create the same sample report as a CSV export."""
    output_path = output_path or os.path.join(SAMPLE_DIR, 'sample_sales_report.csv')

    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f)
        for row in SAMPLE_ROWS:
            writer.writerow(["" if v is None else v for v in row])

    print(f"Created: {output_path}")
    return output_path


if __name__ == "__main__":
    create_sample_xlsx()
    create_sample_csv()
