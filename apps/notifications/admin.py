from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['kind', 'user', 'title', 'is_read', 'created_at']
    list_filter = ['kind', 'is_read', 'created_at']
    search_fields = ['user__email', 'title']
    readonly_fields = ['id', 'user', 'kind', 'title', 'payload', 'created_at']
    ordering = ['-created_at']
