class PricingCacheControlMiddleware:
    """Attach cache headers to successful pricing reads.

    The public catalog tolerates a few minutes of staleness in shared
    caches.  The admin tree carries an ETag and must be revalidated on
    every read so editors never start from a stale copy.
    """
    PUBLIC_PREFIX = '/api/services/pricing'
    ADMIN_PREFIX = '/api/admin/pricing'
    PUBLIC_POLICY = 'public, s-maxage=300, stale-while-revalidate=600'
    ADMIN_POLICY = 'private, no-cache'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if request.method != 'GET' or response.status_code != 200:
            return response
        path = request.path or ''
        if path.startswith(self.PUBLIC_PREFIX):
            response.setdefault('Cache-Control', self.PUBLIC_POLICY)
        elif path.startswith(self.ADMIN_PREFIX):
            response.setdefault('Cache-Control', self.ADMIN_POLICY)
        return response
