from django.contrib import admin
from .models import DeveloperProfile, DeveloperSkill, Skill


class DeveloperSkillInline(admin.TabularInline):
    model = DeveloperSkill
    extra = 0


@admin.register(Skill)
class SkillAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'category']
    search_fields = ['name', 'slug']
    ordering = ['name']


@admin.register(DeveloperProfile)
class DeveloperProfileAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'level', 'admin_approval_status', 'availability_status']
    list_filter = ['level', 'admin_approval_status', 'availability_status']
    search_fields = ['id', 'user__username', 'user__email']
    inlines = [DeveloperSkillInline]
