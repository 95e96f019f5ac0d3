from django.urls import path
from .views import (
    register, login, logout, user_me,
    profile, profile_avatar, profile_password
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', login, name='login'),
    path('auth/logout/', logout, name='logout'),
    path('auth/me/', user_me, name='user-me'),

    # Profile endpoints
    path('profile/', profile, name='profile'),
    path('profile/avatar/', profile_avatar, name='profile-avatar'),
    path('profile/password/', profile_password, name='profile-password'),
]
