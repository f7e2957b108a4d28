"""
Gradebook views package.

- marks: marks sheet read and save for an exam subject
- reports: report cards for an exam
- export: report cards as an Excel workbook
- setup: grading scale diagnostics
"""
from .marks import marks_sheet_view
from .reports import report_card_detail, report_card_list
from .export import report_cards_export
from .setup import grading_scale_detail

__all__ = [
    'marks_sheet_view',
    'report_card_list',
    'report_card_detail',
    'report_cards_export',
    'grading_scale_detail',
]
