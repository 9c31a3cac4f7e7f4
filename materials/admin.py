from django.contrib import admin, messages
from core.exceptions import AlreadyResolved
from .models import Course, Material
from .moderation import DECISION_APPROVE, DECISION_REJECT, DECISIONS, ModerationQueue


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['code', 'title', 'institution', 'created_at']
    list_filter = ['institution']
    search_fields = ['code', 'title']


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'material_type', 'course', 'status', 'created_at']
    list_filter = ['status', 'material_type', 'created_at']
    search_fields = ['title', 'description', 'owner__username', 'owner__email']
    readonly_fields = [
        'file_url', 'file_type', 'file_size', 'original_filename',
        'status', 'moderated_by', 'moderated_at', 'extracted_text', 'created_at', 'updated_at',
    ]
    actions = ['approve_materials', 'reject_materials']
    fieldsets = (
        ('Material', {
            'fields': ('owner', 'title', 'description', 'material_type', 'course', 'level', 'semester', 'topic')
        }),
        ('File', {
            'fields': ('file_url', 'file_type', 'file_size', 'original_filename')
        }),
        ('Moderation', {
            'fields': ('status', 'moderated_by', 'moderated_at', 'moderation_notes')
        }),
        ('Preview', {
            'fields': ('extracted_text',),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def _resolve_selected(self, request, queryset, decision):
        resolved, skipped = 0, 0
        for material_id in queryset.values_list('pk', flat=True):
            try:
                ModerationQueue.resolve(material_id, decision, moderator=request.user)
                resolved += 1
            except AlreadyResolved:
                skipped += 1
        self.message_user(request, f"{resolved} material(s) {DECISIONS[decision]}.", messages.SUCCESS)
        if skipped:
            self.message_user(request, f"{skipped} material(s) were already resolved.", messages.WARNING)

    @admin.action(description="Approve selected materials")
    def approve_materials(self, request, queryset):
        self._resolve_selected(request, queryset, DECISION_APPROVE)

    @admin.action(description="Reject selected materials")
    def reject_materials(self, request, queryset):
        self._resolve_selected(request, queryset, DECISION_REJECT)
