from django.http import JsonResponse
from django.views.decorators.http import require_GET

from core.decorators import api_login_required
from ..utils import get_todays_slots


@require_GET
@api_login_required
def timetable_today(request):
    """Today's lessons for the requesting user."""
    slots = get_todays_slots(request.user)
    return JsonResponse({
        'slots': [
            {
                'id': slot.pk,
                'class': str(slot.class_assigned),
                'subject': slot.subject.name,
                'teacher': slot.teacher.full_name if slot.teacher else None,
                'start_time': slot.start_time.strftime('%H:%M'),
                'end_time': slot.end_time.strftime('%H:%M'),
                'room': slot.room,
            }
            for slot in slots
        ],
    })
