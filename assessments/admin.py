from django.contrib import admin

from .models import ExamAttempt, ExamAnswer


class ExamAnswerInline(admin.TabularInline):
    model = ExamAnswer
    extra = 0
    fields = ('question', 'text_value', 'json_value', 'grade_status', 'points_earned', 'is_correct', 'feedback')
    readonly_fields = ('question', 'text_value', 'json_value', 'grade_status')


@admin.register(ExamAttempt)
class ExamAttemptAdmin(admin.ModelAdmin):
    list_display = ('exam', 'attempt_number', 'candidate_label', 'status', 'score', 'max_score', 'passed', 'started_at')
    list_filter = ('status', 'passed', 'exam')
    search_fields = ('student_email', 'student_name', 'user__email')
    readonly_fields = ('exam', 'exam_version', 'attempt_number', 'started_at', 'completed_at', 'time_spent')
    inlines = [ExamAnswerInline]
