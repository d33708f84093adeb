from django.core.paginator import InvalidPage, Paginator


def paginate(request, queryset, default_per_page=10, page_param="page"):
    """Return (paginator, page_obj, per_page) honouring ?per_page= and ?page=."""
    try:
        per_page = int(request.GET.get("per_page", default_per_page))
    except (TypeError, ValueError):
        per_page = default_per_page
    per_page = max(1, min(per_page, 200))

    paginator = Paginator(queryset, per_page)
    try:
        page_obj = paginator.page(request.GET.get(page_param, 1))
    except InvalidPage:
        page_obj = paginator.page(1)
    return paginator, page_obj, per_page


def query_string_without_page(request, page_param="page") -> str:
    params = request.GET.copy()
    params.pop(page_param, None)
    return params.urlencode()
