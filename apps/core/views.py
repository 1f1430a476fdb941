from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET


@require_GET
def health(request: HttpRequest):
    """Liveness probe; touches neither the database nor the session."""
    return JsonResponse({"status": "OK", "message": "Server is running"})
