import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.exceptions import AuthenticationFailed, ValidationError
from django.contrib.auth import get_user_model
from django.db import transaction, IntegrityError
from backend.pharmacies.models import Pharmacy
from .authentication import issue_auth_token, set_auth_cookie, clear_auth_cookie
from .exceptions import ApiError
from .serializers import (
    UserSerializer, RegisterSerializer, LoginSerializer,
    ProfileUpdateSerializer, AvatarSerializer, PasswordChangeSerializer
)
from .utils import get_client_ip

User = get_user_model()
logger = logging.getLogger('backend.core')


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a patient, or a pharmacy user together with an unapproved pharmacy"""
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if User.objects.filter(email__iexact=data['email']).exists():
        logger.warning(f"Registration rejected, email already in use: {data['email']}")
        raise ApiError('An account with this email already exists', error='EMAIL_EXISTS')

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=data['email'],
                password=data['password'],
                name=data['name'],
                phone=data.get('phone'),
                role=data['role'],
            )
            if data['role'] == User.ROLE_PHARMACY:
                Pharmacy.objects.create(user=user, is_approved=False, **data['pharmacy_data'])
    except IntegrityError:
        logger.warning(f"Registration raced on email {data['email']}", exc_info=True)
        raise ApiError('An account with this email already exists', error='EMAIL_EXISTS')

    if user.is_pharmacy:
        message = 'Pharmacy registration successful. Awaiting admin approval.'
    else:
        message = 'Registration successful'
    logger.info(f"Registered {user.role} user {user.email}")

    return Response({
        'success': True,
        'message': message,
        'user': UserSerializer(user).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Authenticate by email and password and set the auth cookie"""
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email']
    password = serializer.validated_data['password']

    user = User.objects.filter(email__iexact=email).first()
    if user is None or not user.is_active or not user.check_password(password):
        logger.warning(f"Failed login for {email} from {get_client_ip(request)}")
        raise AuthenticationFailed('Invalid email or password')

    token = issue_auth_token(user)
    logger.info(f"User {user.email} logged in")

    response = Response({
        'success': True,
        'message': 'Login successful',
        'user': UserSerializer(user).data,
        'token': token,
    })
    return set_auth_cookie(response, token)


@api_view(['POST'])
@permission_classes([AllowAny])
def logout(request):
    """Clear the auth cookie"""
    response = Response({'success': True, 'message': 'Logged out successfully'})
    return clear_auth_cookie(response)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get the current user with pharmacy info"""
    return Response({'user': UserSerializer(request.user).data})


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def profile(request):
    """Retrieve or update the current user's profile"""
    user = request.user

    if request.method == 'GET':
        return Response({'user': UserSerializer(user).data})

    serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    logger.info(f"User {user.email} updated profile fields: {list(serializer.validated_data.keys())}")
    return Response({
        'success': True,
        'message': 'Profile updated successfully',
        'user': UserSerializer(user).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def profile_avatar(request):
    """Set the avatar to an image URL"""
    serializer = AvatarSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = request.user
    user.avatar = serializer.validated_data['avatar_url']
    user.save(update_fields=['avatar', 'updated_at'])
    logger.info(f"User {user.email} updated avatar")

    return Response({
        'success': True,
        'message': 'Avatar updated successfully',
        'user': UserSerializer(user).data,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def profile_password(request):
    """Change password after verifying the current one"""
    user = request.user
    serializer = PasswordChangeSerializer(data=request.data, context={'user': user})
    serializer.is_valid(raise_exception=True)

    if not user.check_password(serializer.validated_data['current_password']):
        logger.warning(f"User {user.email} supplied a wrong current password")
        raise ValidationError('Current password is incorrect')

    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password', 'updated_at'])
    logger.info(f"User {user.email} changed password")

    return Response({'success': True, 'message': 'Password updated successfully'})
