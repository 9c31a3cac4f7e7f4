from django.contrib import admin
from .models import Institution, Programme, UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'onboarding_completed', 'institution', 'created_at']
    list_filter = ['role', 'onboarding_completed']
    search_fields = ['user__username', 'user__email']
    readonly_fields = ['created_at', 'updated_at']
    fieldsets = (
        ('Account', {
            'fields': ('user', 'role', 'onboarding_completed')
        }),
        ('Profile', {
            'fields': ('gender', 'bio', 'institution', 'programme')
        }),
        ('Onboarding Answers', {
            'fields': ('details',),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class ProgrammeInline(admin.TabularInline):
    model = Programme
    extra = 0


@admin.register(Institution)
class InstitutionAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'created_at']
    search_fields = ['name']
    inlines = [ProgrammeInline]
