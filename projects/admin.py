from django.contrib import admin
from .models import Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['id', 'title', 'client', 'status', 'contact_reveal_enabled', 'created_at']
    list_filter = ['status', 'contact_reveal_enabled', 'created_at']
    search_fields = ['id', 'title', 'client__username']
    ordering = ['-created_at']
    raw_id_fields = ['current_batch', 'contact_revealed_developer']
