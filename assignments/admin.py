from django.contrib import admin
from .models import AssignmentBatch, AssignmentCandidate, RotationCursor, CronRun


class AssignmentCandidateInline(admin.TabularInline):
    model = AssignmentCandidate
    extra = 0
    fields = ['developer', 'level', 'response_status', 'acceptance_deadline', 'is_first_accepted']
    readonly_fields = fields


@admin.register(AssignmentBatch)
class AssignmentBatchAdmin(admin.ModelAdmin):
    list_display = ['id', 'project', 'batch_number', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['id', 'project__id', 'project__title']
    ordering = ['-created_at']
    inlines = [AssignmentCandidateInline]


@admin.register(AssignmentCandidate)
class AssignmentCandidateAdmin(admin.ModelAdmin):
    list_display = ['id', 'developer', 'level', 'response_status', 'is_first_accepted', 'acceptance_deadline']
    list_filter = ['response_status', 'level', 'is_first_accepted']
    search_fields = ['id', 'project__title', 'developer__user__username']
    ordering = ['-assigned_at']


@admin.register(RotationCursor)
class RotationCursorAdmin(admin.ModelAdmin):
    list_display = ['skill', 'level', 'last_developer_id', 'updated_at']
    list_filter = ['level']
    search_fields = ['skill__name']
    ordering = ['skill__name', 'level']


@admin.register(CronRun)
class CronRunAdmin(admin.ModelAdmin):
    list_display = ['id', 'job', 'status', 'started_at', 'finished_at']
    list_filter = ['job', 'status']
    ordering = ['-started_at']
