import logging

import openpyxl
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils.text import slugify
from django.views.decorators.http import require_GET
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from core.decorators import teacher_or_admin_required
from .. import config
from ..models import Exam
from ..reports import build_class_report_cards
from .base import get_requested_scale

logger = logging.getLogger(__name__)


def build_report_workbook(exam, cards):
    """
    One row per student: marks per subject, then totals, percentage, grade
    and result.
    """
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Report Cards"

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color=config.EXCEL_HEADER_COLOR, end_color=config.EXCEL_HEADER_COLOR, fill_type="solid")
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    subjects = cards[0][1].subjects if cards else ()
    headers = ["Student", "Email"]
    headers += [f"{s.subject_code} (/{s.max_marks})" for s in subjects]
    headers += ["Total", "Max", "%", "Grade", "Result"]

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal='center', wrap_text=True)
        cell.border = thin_border

    for row, (student, card) in enumerate(cards, 2):
        values = [student.full_name, student.email]
        values += [
            float(s.marks_obtained) if s.is_graded else s.grade
            for s in card.subjects
        ]
        values += [
            float(card.total_obtained),
            card.total_max,
            float(card.overall_percentage),
            card.overall_grade,
            card.result,
        ]
        for col, value in enumerate(values, 1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.border = thin_border
            if col > 2:
                cell.alignment = Alignment(horizontal='center')

    ws.column_dimensions['A'].width = 25
    ws.column_dimensions['B'].width = 30
    for col in range(3, len(headers) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 12

    return wb


@require_GET
@teacher_or_admin_required
def report_cards_export(request, pk):
    """Download the exam's report cards as an .xlsx workbook."""
    exam = get_object_or_404(Exam.objects.select_related('class_assigned'), pk=pk)
    cards = build_class_report_cards(exam, get_requested_scale(request))
    wb = build_report_workbook(exam, cards)

    response = HttpResponse(
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    filename = f"report_cards_{slugify(exam.name)}_{slugify(str(exam.class_assigned))}.xlsx"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    wb.save(response)

    logger.info(f"Exported {len(cards)} report cards for exam {exam.pk}")
    return response
