"""Request helpers shared across apps"""


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def get_user_agent(request):
    """User-Agent header, trimmed to the column length"""
    if not request or not hasattr(request, 'META'):
        return ''
    return request.META.get('HTTP_USER_AGENT', '')[:500]


def parse_bool(value):
    """Interpret a query-string flag ('true', '1', 'yes')"""
    if value is None:
        return None
    return str(value).lower() in ('1', 'true', 'yes')
