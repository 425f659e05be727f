from django.contrib import admin

from .models import Exam, ExamVersion, ExamSection, Question, Option


class OptionInline(admin.TabularInline):
    model = Option
    extra = 0


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ('title', 'slug', 'is_active', 'is_published', 'show_results', 'max_attempts', 'created_at')
    list_filter = ('is_active', 'is_published', 'show_results')
    search_fields = ('title', 'slug')


@admin.register(ExamVersion)
class ExamVersionAdmin(admin.ModelAdmin):
    list_display = ('exam', 'version', 'total_points', 'created_at')

    def has_change_permission(self, request, obj=None):
        # Versions are frozen snapshots
        return False


admin.site.register(ExamSection)


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'question_type', 'points', 'section')
    list_filter = ('question_type',)
    inlines = [OptionInline]
