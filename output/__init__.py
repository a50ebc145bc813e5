"""
Output module for writing parsed sales reports.
"""
from .excel_generator import generate_sales_report_excel

__all__ = ['generate_sales_report_excel']
