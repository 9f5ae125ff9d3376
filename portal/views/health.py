from django.db import connections
from django.http import JsonResponse

from portal.services.pricing_store import get_pricing_store


def healthz(request):
    store = get_pricing_store()
    pricing = 'persisted' if store.path.exists() else 'defaults'
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'success': True, 'db': bool(row and row[0] == 1), 'pricing': pricing})
    except Exception as e:
        return JsonResponse({'success': False, 'error': str(e), 'pricing': pricing}, status=500)
