# materials/views.py
import json
import logging
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST
from accounts.decorators import login_required_json, moderator_required, onboarding_required
from accounts.services import AccountService
from core.exceptions import MaterialSubmissionError, MetadataInvalid, ModerationError
from .models import Material
from .moderation import ModerationQueue
from .services import MaterialService

logger = logging.getLogger(__name__)

METADATA_FIELDS = ('title', 'description', 'material_type', 'course_id', 'level', 'semester', 'topic')


@require_POST
@onboarding_required
def upload_material(request):
    """
    Accepts a multipart upload (`file` plus metadata fields) and files it for moderation.
    """
    metadata = {name: request.POST.get(name) for name in METADATA_FIELDS}
    try:
        material = MaterialService.submit(request.user, metadata, request.FILES.get('file'))
    except MetadataInvalid as e:
        return JsonResponse(
            {'status': 'error', 'kind': e.kind, 'message': 'Please fix the highlighted fields.', 'errors': e.errors},
            status=e.status_code,
        )
    except MaterialSubmissionError as e:
        return JsonResponse({'status': 'error', 'kind': e.kind, 'message': str(e)}, status=e.status_code)

    return JsonResponse(
        {'status': 'ok', 'message': 'Material submitted for review.', 'material': material.to_dict()},
        status=201,
    )


@require_GET
@login_required_json
def material_detail(request, material_id):
    if AccountService.is_moderator(request.user):
        materials = Material.objects.all()
    else:
        materials = Material.objects.visible_to(request.user)

    material = materials.filter(pk=material_id).first()
    if material is None:
        return JsonResponse({'status': 'error', 'message': 'Material not found.'}, status=404)

    data = material.to_dict()
    if AccountService.is_moderator(request.user) or material.owner_id == request.user.pk:
        data['extracted_text'] = material.extracted_text
    return JsonResponse({'status': 'ok', 'material': data})


@require_GET
@moderator_required
def moderation_queue(request):
    """Pending materials oldest first, or every material with ?status=."""
    status = request.GET.get('status')
    try:
        materials = ModerationQueue.list_by_status(status) if status else ModerationQueue.list_pending()
    except ModerationError as e:
        return JsonResponse({'status': 'error', 'message': str(e)}, status=e.status_code)
    return JsonResponse({'status': 'ok', 'materials': [m.to_dict() for m in materials]})


@require_POST
@moderator_required
def moderate_material(request, material_id):
    """Body: {"decision": "approve" | "reject", "notes": "..."}"""
    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return JsonResponse({'status': 'error', 'message': 'Invalid JSON body.'}, status=400)
    if not isinstance(data, dict):
        return JsonResponse({'status': 'error', 'message': 'Invalid JSON body.'}, status=400)

    try:
        material = ModerationQueue.resolve(
            material_id,
            data.get('decision'),
            moderator=request.user,
            notes=(data.get('notes') or '').strip(),
        )
    except ModerationError as e:
        return JsonResponse({'status': 'error', 'message': str(e)}, status=e.status_code)

    return JsonResponse({'status': 'ok', 'message': f'Material {material.status}.', 'material': material.to_dict()})
