import json
import logging

from django.contrib.auth.forms import PasswordChangeForm
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from core.choices import ApprovalStatus
from core.decorators import admin_required, api_login_required, authenticate_api_request, is_teacher_or_admin
from core.models import AuditLog
from .forms import ApprovalReviewForm, LoginForm, StudentProvisionForm
from .models import ApprovalRequest
from .provisioning import ProvisioningError, provision_student
from .tokens import issue_token

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
}


def _json_body(request):
    try:
        return json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        return None


def _cors_json(data, status=200):
    response = JsonResponse(data, status=status)
    for header, value in CORS_HEADERS.items():
        response[header] = value
    return response


@csrf_exempt
@require_POST
def obtain_token(request):
    """Exchange email + password for an access token."""
    data = _json_body(request)
    if data is None:
        return JsonResponse({'error': 'Request body must be JSON'}, status=400)

    form = LoginForm(request, data={
        'username': data.get('email', ''),
        'password': data.get('password', ''),
    })
    if not form.is_valid():
        return JsonResponse({'error': form.errors.get('__all__', ['Invalid credentials'])[0]}, status=401)

    user = form.get_user()
    return JsonResponse({
        'token': issue_token(user),
        'user_id': user.pk,
        'role': user.role,
        'must_change_password': user.must_change_password,
    })


@csrf_exempt
def create_student(request):
    """
    Provision a student account.

    Caller must be an admin or teacher, authenticated with a bearer token (or
    session). Responds ``{user_id, temp_password}`` or ``{error}`` with
    400/401/403/500.
    """
    if request.method == 'OPTIONS':
        response = HttpResponse()
        for header, value in CORS_HEADERS.items():
            response[header] = value
        return response
    if request.method != 'POST':
        return _cors_json({'error': 'Method not allowed'}, status=405)

    try:
        caller, error = authenticate_api_request(request)
        if error is not None:
            for header, value in CORS_HEADERS.items():
                error[header] = value
            return error
        if not is_teacher_or_admin(caller):
            return _cors_json({'error': 'Forbidden'}, status=403)

        data = _json_body(request)
        if data is None:
            return _cors_json({'error': 'Request body must be JSON'}, status=400)

        form = StudentProvisionForm(data=data)
        if not form.is_valid():
            return _cors_json({'error': form.first_error()}, status=400)

        result = provision_student(caller, **form.cleaned_data)
        return _cors_json(result)

    except ProvisioningError as e:
        return _cors_json({'error': e.message}, status=e.status)
    except Exception as e:
        logger.exception("Unexpected error provisioning student")
        return _cors_json({'error': str(e)}, status=500)


@csrf_exempt
@require_POST
@api_login_required
def password_change(request):
    """Change password and clear the must_change_password flag."""
    data = _json_body(request) or {}
    user = request.user
    form = PasswordChangeForm(user, data=data)
    if not form.is_valid():
        field, errors = next(iter(form.errors.items()))
        return JsonResponse({'error': errors[0], 'field': field}, status=400)

    form.save()
    if user.must_change_password:
        user.must_change_password = False
        user.save(update_fields=['must_change_password'])

    # Old tokens stop validating once the password hash changes
    return JsonResponse({'token': issue_token(user)})


@require_GET
@admin_required
def approval_list(request):
    """Pending approval requests, oldest first."""
    pending = ApprovalRequest.objects.filter(
        status=ApprovalStatus.PENDING
    ).select_related('user').order_by('created_at')

    return JsonResponse({
        'count': len(pending),
        'requests': [
            {
                'id': req.pk,
                'user_id': req.user_id,
                'full_name': req.user.full_name,
                'email': req.user.email,
                'requested_role': req.requested_role,
                'created_at': req.created_at,
            }
            for req in pending
        ],
    })


@csrf_exempt
@require_POST
@admin_required
def approval_review(request, pk):
    """Approve or reject a pending request."""
    approval = get_object_or_404(ApprovalRequest.objects.select_related('user'), pk=pk)
    if approval.status != ApprovalStatus.PENDING:
        return JsonResponse({'error': 'This request has already been reviewed.'}, status=400)

    form = ApprovalReviewForm(data=_json_body(request) or {})
    if not form.is_valid():
        return JsonResponse({'error': 'action must be "approve" or "reject"'}, status=400)

    approved = form.cleaned_data['action'] == 'approve'
    approval.review(request.user, approved, form.cleaned_data['note'])
    AuditLog.record(
        'approval_reviewed',
        performed_by=request.user,
        target_user=approval.user,
        status=approval.status,
        role=approval.requested_role,
    )

    return JsonResponse({'id': approval.pk, 'status': approval.status})
