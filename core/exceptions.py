"""
API error types and the project-wide DRF exception handler.

Every error leaves the API in the same envelope::

    {"ok": false, "message": "...", "error": {"code": "...", "message": ...}}

``message`` is always a plain string so the browser client can show it
in a toast; ``error.message`` keeps DRF's structured field errors.
"""
import logging

from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class BusinessRuleViolation(APIException):
    """A request that is well formed but breaks a hospital rule."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'business rule violated'
    default_code = 'business_rule'


class InvalidLineItems(BusinessRuleViolation):
    default_detail = 'bill needs at least one service with a positive amount'
    default_code = 'invalid_line_items'


class InvalidPayment(BusinessRuleViolation):
    default_detail = 'paid amount cannot exceed total amount'
    default_code = 'invalid_payment'


class OccupancyViolation(BusinessRuleViolation):
    default_detail = 'occupied beds must stay between 0 and capacity'
    default_code = 'occupancy'


class ResourceInUse(BusinessRuleViolation):
    default_detail = 'resource is still in use'
    default_code = 'in_use'


class InvalidStateTransition(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'transition not allowed from the current state'
    default_code = 'invalid_state'


def _flatten(detail) -> str:
    """Reduce DRF's nested error detail to one readable line."""
    if isinstance(detail, dict):
        parts = []
        for key, value in detail.items():
            text = _flatten(value)
            parts.append(text if key in ('detail', 'non_field_errors') else f"{key}: {text}")
        return '; '.join(parts)
    if isinstance(detail, (list, tuple)):
        return '; '.join(_flatten(v) for v in detail)
    return str(detail)


def api_exception_handler(exc, context):
    if isinstance(exc, IntegrityError):
        logger.warning('integrity error in %s: %s', context.get('view'), exc)
        message = 'request conflicts with existing data'
        return Response(
            {'ok': False, 'message': message, 'error': {'code': 'integrity_error', 'message': message}},
            status=status.HTTP_400_BAD_REQUEST,
        )
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'), exc_info=exc)
        return Response(
            {'ok': False, 'message': 'internal server error', 'error': {'code': 'server_error', 'message': str(exc)}},
            status=500,
        )
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', None) or 'api_error'
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        if isinstance(codes, str):
            code = codes
    resp.data = {'ok': False, 'message': _flatten(detail), 'error': {'code': code, 'message': detail}}
    return resp
