import logging
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied, ValidationError
from django.shortcuts import get_object_or_404
from backend.core.utils import parse_bool_param, MAX_PAGE_SIZE
from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger('backend.notifications')

DEFAULT_NOTIFICATION_LIMIT = 50


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """Latest notifications of the current user plus the unread count"""
    try:
        limit = int(request.query_params.get('limit', DEFAULT_NOTIFICATION_LIMIT))
    except (TypeError, ValueError):
        raise ValidationError({'limit': ['limit must be an integer']})
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError({'limit': [f'limit must be between 1 and {MAX_PAGE_SIZE}']})

    unread_only = parse_bool_param(request.query_params.get('unread_only'), 'unread_only')

    notifications = Notification.objects.filter(user=request.user)
    if unread_only:
        notifications = notifications.filter(is_read=False)
    notifications = notifications.order_by('-created_at', '-id')[:limit]

    unread_count = Notification.objects.filter(user=request.user, is_read=False).count()

    return Response({
        'notifications': NotificationSerializer(notifications, many=True).data,
        'unread_count': unread_count,
    })


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk):
    """Mark one of the current user's notifications as read"""
    notification = get_object_or_404(Notification, pk=pk)
    if notification.user_id != request.user.id:
        logger.warning(f"User {request.user.email} attempted to mark notification {pk} of another user")
        raise PermissionDenied('You can only update your own notifications')

    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read'])

    return Response({
        'success': True,
        'notification': NotificationSerializer(notification).data,
    })


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    """Mark every unread notification of the current user as read"""
    updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
    logger.info(f"User {request.user.email} marked {updated} notifications as read")
    return Response({'success': True, 'updated': updated})
