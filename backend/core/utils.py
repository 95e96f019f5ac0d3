"""Shared helpers: request metadata, input sanitizing, pagination, geo distance"""
import math
import re
from django.conf import settings
from django.core.paginator import Paginator, EmptyPage
from django.utils.html import strip_tags
from rest_framework.exceptions import ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_SEARCH_LENGTH = 200
EARTH_RADIUS_KM = 6371

STOCK_IN = 'IN_STOCK'
STOCK_LOW = 'LOW_STOCK'
STOCK_OUT = 'OUT_OF_STOCK'


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


def sanitize_search_query(query):
    """
    Clean a free-text search term.

    Keeps word characters, whitespace and ``-.,()``, trims the result and
    caps it at 200 characters. Returns '' for empty input.
    """
    if not query:
        return ''
    cleaned = re.sub(r'[^\w\s\-.,()]', '', str(query))
    return cleaned.strip()[:MAX_SEARCH_LENGTH]


def sanitize_phone(phone):
    """Keep digits, '+', spaces, '-' and parentheses"""
    if not phone:
        return ''
    return re.sub(r'[^\d+\s\-()]', '', str(phone)).strip()


def clean_text(value):
    """Strip HTML tags and surrounding whitespace from user supplied text"""
    if value is None:
        return value
    return strip_tags(str(value)).strip()


def parse_bool_param(value, name):
    """Parse a 'true'/'false' query parameter, None when absent"""
    if value is None or value == '':
        return None
    lowered = value.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    raise ValidationError({name: [f'{name} must be "true" or "false"']})


def get_pagination_params(request, default_limit=DEFAULT_PAGE_SIZE):
    """Read and validate ``page`` and ``limit`` from the query string"""
    try:
        page = int(request.query_params.get('page', 1))
        limit = int(request.query_params.get('limit', default_limit))
    except (TypeError, ValueError):
        raise ValidationError({'pagination': ['page and limit must be integers']})
    if page < 1:
        raise ValidationError({'page': ['page must be a positive integer']})
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError({'limit': [f'limit must be between 1 and {MAX_PAGE_SIZE}']})
    return page, limit


def paginate_queryset(request, queryset, serializer_class, context=None):
    """
    Paginate a queryset with Django's Paginator and serialize the page.

    Response shape: results, count, page, page_size, total_pages, next, previous.
    A page past the end yields an empty result list rather than an error.
    """
    page_number, page_size = get_pagination_params(request)
    paginator = Paginator(queryset, page_size)

    try:
        page = paginator.page(page_number)
        items = page.object_list
        has_next = page.has_next()
    except EmptyPage:
        items = []
        has_next = False

    serializer = serializer_class(items, many=True, context=context or {'request': request})

    return {
        'results': serializer.data,
        'count': paginator.count,
        'page': page_number,
        'page_size': page_size,
        'total_pages': paginator.num_pages if paginator.count else 0,
        'next': page_number + 1 if has_next else None,
        'previous': page_number - 1 if page_number > 1 else None,
    }


def haversine_distance(lat1, lon1, lat2, lon2):
    """Great-circle distance between two points in kilometres"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def calculate_stock_status(quantity):
    """Derive the stock label from a quantity"""
    if quantity <= 0:
        return STOCK_OUT
    if quantity <= settings.LOW_STOCK_THRESHOLD:
        return STOCK_LOW
    return STOCK_IN
