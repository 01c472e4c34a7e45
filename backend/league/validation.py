"""Request body parsing helpers.

Each ``*_field`` helper reads one key from a JSON object, records problems in
a shared ``errors`` dict (field -> list of messages) and returns the parsed
value or ``None``. Callers finish with ``raise_if_errors(errors)`` so a
single 422 response lists every bad field at once.
"""

import re
from datetime import date, datetime

from flask import request

from league.errors import BadRequestError, ValidationError

_MISSING = object()
HEX_COLOR = re.compile(r'^#[0-9A-Fa-f]{6}$')
EMAIL = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')
_RUN_OF_SPACES = re.compile(r' +')
_RUN_OF_NEWLINES = re.compile(r'\n{3,}')
_SPOOFING_CHARS = re.compile('[\u200E\u200F\u202A-\u202E]')


def json_body(optional=False):
    data = request.get_json(silent=True)
    if data is None:
        if optional and not request.get_data():
            return {}
        raise BadRequestError('Invalid JSON in request body')
    if not isinstance(data, dict):
        raise BadRequestError('Request body must be a JSON object')
    return data


def add_error(errors, name, message):
    errors.setdefault(name, []).append(message)


def raise_if_errors(errors, message=None):
    if errors:
        raise ValidationError(errors, message)


def _get(data, name, required, errors):
    value = data.get(name, _MISSING)
    if value is _MISSING or value is None:
        if required:
            add_error(errors, name, 'This field is required')
        return _MISSING
    return value


def int_field(data, name, errors, required=False, default=None, min_value=None, max_value=None, label=None):
    label = label or name
    value = _get(data, name, required, errors)
    if value is _MISSING:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        else:
            add_error(errors, name, f'{label} must be a whole number')
            return None
    if min_value is not None and value < min_value:
        add_error(errors, name, f'{label} must be at least {min_value}')
        return None
    if max_value is not None and value > max_value:
        add_error(errors, name, f'{label} cannot exceed {max_value}')
        return None
    return value


def str_field(data, name, errors, required=False, default=None, min_length=None, max_length=None,
              choices=None, pattern=None, pattern_message=None, strip=True):
    value = _get(data, name, required, errors)
    if value is _MISSING:
        return default
    if not isinstance(value, str):
        add_error(errors, name, f'{name} must be a string')
        return None
    if strip:
        value = value.strip()
    if min_length is not None and len(value) < min_length:
        if min_length == 1:
            add_error(errors, name, f'{name} cannot be empty')
        else:
            add_error(errors, name, f'{name} must be at least {min_length} characters')
        return None
    if max_length is not None and len(value) > max_length:
        add_error(errors, name, f'{name} cannot exceed {max_length} characters')
        return None
    if choices is not None and value not in choices:
        add_error(errors, name, f"{name} must be one of: {', '.join(choices)}")
        return None
    if pattern is not None and value and not pattern.match(value):
        add_error(errors, name, pattern_message or f'{name} has an invalid format')
        return None
    return value


def bool_field(data, name, errors, required=False, default=None):
    value = _get(data, name, required, errors)
    if value is _MISSING:
        return default
    if not isinstance(value, bool):
        add_error(errors, name, f'{name} must be true or false')
        return None
    return value


def date_field(data, name, errors, required=False, default=None):
    value = _get(data, name, required, errors)
    if value is _MISSING:
        return default
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        add_error(errors, name, f'{name} must be a date in YYYY-MM-DD format')
        return None


def time_field(data, name, errors, required=False, default=None):
    value = _get(data, name, required, errors)
    if value is _MISSING:
        return default
    for fmt in ('%H:%M', '%H:%M:%S'):
        try:
            return datetime.strptime(str(value), fmt).time()
        except ValueError:
            continue
    add_error(errors, name, f'{name} must be a time in HH:MM format')
    return None


def datetime_field(data, name, errors, required=False, default=None):
    value = _get(data, name, required, errors)
    if value is _MISSING:
        return default
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        add_error(errors, name, f'{name} must be an ISO 8601 timestamp')
        return None


def list_field(data, name, errors, required=False, default=None, item_min=None):
    """A list of non-negative-style integers, e.g. per-inning run totals."""
    value = _get(data, name, required, errors)
    if value is _MISSING:
        return default
    if not isinstance(value, list):
        add_error(errors, name, f'{name} must be a list')
        return None
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            add_error(errors, name, f'{name} must contain whole numbers')
            return None
        if item_min is not None and item < item_min:
            add_error(errors, name, f'{name} values must be at least {item_min}')
            return None
    return list(value)


def query_int(name, default=None, min_value=None, max_value=None):
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError({name: [f'{name} must be a whole number']})
    if min_value is not None and value < min_value:
        raise ValidationError({name: [f'{name} must be at least {min_value}']})
    if max_value is not None and value > max_value:
        raise ValidationError({name: [f'{name} cannot exceed {max_value}']})
    return value


def query_date(name):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError({name: [f'{name} must be a date in YYYY-MM-DD format']})


def query_bool(name, default=False):
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.lower() in ('1', 'true', 'yes')


def sanitize_text(value: str, max_length: int = 2000) -> str:
    """Trim, strip control characters and collapse whitespace runs."""
    value = value.strip().replace('\0', '')
    value = _CONTROL_CHARS.sub('', value)
    value = _RUN_OF_SPACES.sub(' ', value)
    value = _RUN_OF_NEWLINES.sub('\n\n', value)
    return value[:max_length]


def sanitize_name(value: str, max_length: int = 100) -> str:
    value = re.sub(r'[\x00-\x1F\x7F]', '', value.strip())
    return _SPOOFING_CHARS.sub('', value)[:max_length]


def normalize_email(value):
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    if len(value) > 254 or not EMAIL.match(value):
        return None
    return value
