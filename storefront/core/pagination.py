from django.core.paginator import Paginator


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def paginate(queryset, request, default_limit=12, max_limit=100):
    """
    Page a queryset with `page` and `limit` query parameters.

    Returns (items, pagination) where pagination is {page, limit, total, pages}.
    """
    page = _positive_int(request.query_params.get('page'), 1)
    limit = min(_positive_int(request.query_params.get('limit'), default_limit), max_limit)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    return page_obj.object_list, {
        'page': page_obj.number,
        'limit': limit,
        'total': paginator.count,
        'pages': paginator.num_pages if paginator.count else 0,
    }


def parse_limit(request, default=None):
    """Optional `limit` query parameter used by admin list views"""
    return _positive_int(request.query_params.get('limit'), default) if request.query_params.get('limit') else default
