"""API error taxonomy and the JSON envelope every route responds with."""

from flask import jsonify


class ApiError(Exception):
    status_code = 500
    code = 'INTERNAL_ERROR'
    default_message = 'An internal server error occurred'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        error = {'code': self.code, 'message': self.message}
        if self.details:
            error['details'] = self.details
        return {'success': False, 'error': error}


class BadRequestError(ApiError):
    status_code = 400
    code = 'BAD_REQUEST'
    default_message = 'Bad request'


class BusinessRuleError(ApiError):
    """The request was well formed but the game or message state forbids it."""
    status_code = 400
    code = 'ACTION_BLOCKED'
    default_message = 'Action not permitted in the current state'


class AuthenticationError(ApiError):
    status_code = 401
    code = 'UNAUTHORIZED'
    default_message = 'Authentication required'


class AuthorizationError(ApiError):
    status_code = 403
    code = 'FORBIDDEN'
    default_message = 'Access denied'


class NotFoundError(ApiError):
    status_code = 404
    code = 'NOT_FOUND'
    default_message = 'Resource not found'

    @classmethod
    def for_resource(cls, resource, resource_id=None):
        if resource_id is None:
            return cls(f'{resource} not found')
        return cls(f"{resource} with ID '{resource_id}' not found")


class ConflictError(ApiError):
    status_code = 409
    code = 'CONFLICT'
    default_message = 'The resource was modified by another request'


class ValidationError(ApiError):
    status_code = 422
    code = 'VALIDATION_ERROR'
    default_message = 'Validation failed'

    def __init__(self, errors, message=None):
        super().__init__(message, details={'errors': errors})
        self.errors = errors


class RateLimitError(ApiError):
    status_code = 429
    code = 'RATE_LIMITED'
    default_message = 'Too many requests'

    def __init__(self, retry_after, message=None):
        super().__init__(message, details={'retryAfter': retry_after})
        self.retry_after = retry_after


def success(data=None, status=200):
    return jsonify({'success': True, 'data': data}), status


def created(data):
    return success(data, 201)


def no_content():
    return '', 204


def paginated(items, page, page_size, total_items):
    total_pages = (total_items + page_size - 1) // page_size if page_size else 0
    return jsonify({
        'success': True,
        'data': items,
        'pagination': {
            'page': page,
            'pageSize': page_size,
            'totalItems': total_items,
            'totalPages': total_pages,
            'hasNextPage': page < total_pages,
            'hasPreviousPage': page > 1,
        },
    }), 200


def error_response(err: ApiError):
    response = jsonify(err.to_dict())
    response.status_code = err.status_code
    if isinstance(err, RateLimitError):
        response.headers['Retry-After'] = str(int(err.retry_after))
    return response
