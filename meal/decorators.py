from functools import wraps

from django.conf import settings
from django.http import JsonResponse


def group_required(*group_names, setting=None):
    """
    Restricts a view to members of the given groups.
    `setting` names a settings list read at request time (e.g. "MEAL_EXPORT_GROUPS").
    Superusers always pass; anonymous users have no groups and get the same 403.
    Authentication itself is left to the view (DRF IsAuthenticated / login_required).
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            user = request.user
            if user.is_superuser:
                return view_func(request, *args, **kwargs)

            required = set(group_names)
            if setting:
                required |= set(getattr(settings, setting, []))
            user_groups = set(user.groups.values_list("name", flat=True))

            if user_groups & required:
                return view_func(request, *args, **kwargs)
            return JsonResponse({"success": False, "error": "Forbidden"}, status=403)

        return _wrapped_view
    return decorator
