"""
Authentication views.

Login accepts a username and password and starts a Django session (the
browser client relies on the cookie).  The same response carries a DRF
token and a JWT pair for scripts and other API clients.  Keeping these
views out of ``core.authentication`` prevents circular imports when
Django REST framework initialises authentication classes.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate, login, logout
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from core.permissions import IsAdminRole
from core.serializers.auth import LoginSerializer, RegisterSerializer
from core.services.accounts import register_user, serialize_user
from core.services.audit import log_action

from .models import User

logger = logging.getLogger(__name__)


def _profile(user: User) -> dict:
    data = serialize_user(user)
    doctor = getattr(user, 'doctor_profile', None)
    patient = getattr(user, 'patient_record', None)
    data['doctorId'] = doctor.id if doctor else None
    data['patientId'] = patient.id if patient else None
    return data


def _session_payload(request, user: User) -> dict:
    login(request, user)
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return {
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': _profile(user),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """Create an account and sign it in.

    Visitors may sign up as doctor, staff or patient.  An administrator
    calling this endpoint may also create other administrators.
    """
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    creator = request.user if getattr(request.user, 'role', None) == User.ROLE_ADMIN else None
    user = register_user(
        username=vd['username'],
        password=vd['password'],
        email=vd['email'],
        full_name=vd['full_name'],
        role=vd.get('role'),
        created_by=creator,
    )
    if creator is not None:
        return Response({'ok': True, 'user': _profile(user)}, status=201)
    return Response(_session_payload(request, user), status=201)


register_view.cls.throttle_scope = 'register'


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Username/password login; the role always comes from the account."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']

    user = authenticate(request, username=username, password=password)
    ip = request.META.get('REMOTE_ADDR')
    if not user:
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'username': username, 'ip': ip})
        logger.info('failed login for %s from %s', username, ip)
        raise AuthenticationFailed('invalid username or password')

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': ip})
    return Response(_session_payload(request, user), status=200)


# ScopedRateThrottle reads the scope from the view class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """End the session, drop the API token and blacklist refresh tokens.

    A ``refresh`` token in the body blacklists only that token; without
    one every outstanding refresh token of the user is blacklisted.
    """
    user = request.user
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            logger.info('logout with unusable refresh token for user %s: %s', user.pk, e)
    else:
        for token in OutstandingToken.objects.filter(user=user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=user).delete()
    log_action(user=user, action='logout', object_type='user', object_id=user.pk)
    logout(request)
    return Response({'ok': True, 'blacklisted': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user_view(request):
    return Response(_profile(request.user))


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    data = dict(resp.data)
    if 'access' in data and 'jwt_access' not in data:
        data['jwt_access'] = data.pop('access')
    return Response(data, status=resp.status_code)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def users_list(request):
    qs = User.objects.all().order_by('id')
    role = request.query_params.get('role')
    if role:
        qs = qs.filter(role=role)
    return Response([serialize_user(u) for u in qs])
