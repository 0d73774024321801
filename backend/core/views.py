from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .models import Setting, AuditLog
from .serializers import (
    UserSerializer, UserCreateSerializer,
    SettingSerializer, AuditLogSerializer
)
from .api_utils import success_response, validation_error, paginated_response
from .permissions import IsAdminRoleOrReadOnly

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that treats a deleted user as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get the current user"""
    user_data = UserSerializer(request.user).data
    user_data['is_manager'] = request.user.is_manager
    return success_response(user_data)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminRoleOrReadOnly])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        return paginated_response(request, User.objects.order_by('username'), UserSerializer)

    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        return success_response(UserSerializer(user).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAdminRoleOrReadOnly])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return success_response(UserSerializer(user).data)
    elif request.method == 'PATCH':
        serializer = UserSerializer(user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return success_response(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        user.delete()
        return success_response(None, message='User deleted')


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def setting_list_create(request):
    """List all settings or upsert one by key"""
    if request.method == 'GET':
        settings = Setting.objects.order_by('key')
        prefix = request.query_params.get('prefix')
        if prefix:
            settings = settings.filter(key__startswith=prefix)
        return success_response(SettingSerializer(settings, many=True).data)

    key = request.data.get('key')
    existing = Setting.objects.filter(key=key).first() if key else None
    serializer = SettingSerializer(existing, data=request.data)
    if serializer.is_valid():
        setting = serializer.save()
        return success_response(
            SettingSerializer(setting).data,
            status_code=status.HTTP_200_OK if existing else status.HTTP_201_CREATED
        )
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def setting_detail(request, key):
    """Retrieve or update a setting by key"""
    if request.method == 'GET':
        setting = get_object_or_404(Setting, key=key)
        return success_response(SettingSerializer(setting).data)

    setting = Setting.objects.filter(key=key).first()
    data = {'key': key, 'value': request.data.get('value'),
            'description': request.data.get('description', setting.description if setting else '')}
    serializer = SettingSerializer(setting, data=data)
    if serializer.is_valid():
        serializer.save()
        return success_response(serializer.data)
    return validation_error(serializer.errors)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    return paginated_response(request, queryset.order_by('-created_at'), AuditLogSerializer, default_limit=50)
