from django.contrib import admin
from .models import Reservation, DirectCall


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'pharmacy', 'medicine', 'quantity', 'status', 'request_time']
    list_filter = ['status', 'request_time']
    search_fields = ['user__email', 'pharmacy__name', 'medicine__name']
    ordering = ['-request_time']
    readonly_fields = ['request_time', 'accepted_time', 'rejected_time', 'no_response_time', 'created_at', 'updated_at']


@admin.register(DirectCall)
class DirectCallAdmin(admin.ModelAdmin):
    list_display = ['user', 'pharmacy', 'medicine', 'created_at']
    list_filter = ['created_at']
    search_fields = ['user__email', 'pharmacy__name', 'medicine__name']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
