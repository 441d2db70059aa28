import csv
import io
from datetime import date, datetime

from flask import make_response, request

from clubhub.errors import BadRequest
from clubhub.utils.dates import parse_datetime

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def list_params(default_sort="created_at", default_order="desc"):
    """Pagination and sorting arguments from the query string."""
    limit = request.args.get("limit", DEFAULT_LIMIT, type=int)
    offset = request.args.get("offset", 0, type=int)
    sort_order = request.args.get("sort_order", default_order)
    if sort_order not in ("asc", "desc"):
        raise BadRequest("sort_order must be 'asc' or 'desc'")
    return {
        "limit": max(1, min(limit, MAX_LIMIT)),
        "offset": max(0, offset),
        "sort_by": request.args.get("sort_by", default_sort),
        "sort_order": sort_order,
    }


def arg_datetime(name):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_datetime(value)
    except ValueError:
        raise BadRequest(f"Invalid date for '{name}'")


def arg_bool(name):
    value = request.args.get(name)
    if value is None:
        return None
    return value.lower() in ("1", "true", "yes")


def apply_sort(query, columns, sort_by, sort_order, default):
    column = columns.get(sort_by, columns[default])
    return query.order_by(column.asc() if sort_order == "asc" else column.desc())


def paginate(query, limit, offset):
    total = query.order_by(None).count()
    items = query.limit(limit).offset(offset).all()
    return items, total


def page_response(items, total, serialize=None):
    serialize = serialize or (lambda item: item.to_dict())
    return {"items": [serialize(item) for item in items], "total": total}


def csv_response(filename_prefix, headers, rows):
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])

    timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
    response = make_response(output.getvalue())
    response.headers["Content-Type"] = "text/csv; charset=utf-8"
    response.headers["Content-Disposition"] = f"attachment; filename={filename_prefix}_{timestamp}.csv"
    return response


def arg_list(name):
    """Repeated or comma separated query values: ``?status=a&status=b`` or ``?status=a,b``."""
    values = []
    for raw in request.args.getlist(name):
        values.extend(part.strip() for part in raw.split(",") if part.strip())
    return values or None


def arg_int(name):
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        raise BadRequest(f"Invalid integer for '{name}'")


def arg_ids(name="ids"):
    values = arg_list(name) or []
    try:
        return [int(value) for value in values] or None
    except ValueError:
        raise BadRequest(f"Invalid ids in '{name}'")


def arg_date(name):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise BadRequest(f"Invalid date for '{name}'")
