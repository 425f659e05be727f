import random

from django.utils import timezone
from rest_framework import serializers

from exams.serializers import QuestionPublicSerializer
from .models import ExamAttempt, ExamAnswer


class StartAttemptSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    email = serializers.EmailField(required=False, allow_blank=True, default='')


class SaveAnswerSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    text_value = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    selected_option_ids = serializers.ListField(
        child=serializers.IntegerField(), required=False, allow_null=True, default=None
    )
    json_value = serializers.JSONField(required=False, allow_null=True, default=None)


class ManualGradeSerializer(serializers.Serializer):
    # Range against the question maximum is checked by the engine
    points = serializers.DecimalField(max_digits=7, decimal_places=2)
    feedback = serializers.CharField(required=False, allow_blank=True, default='')


class ExamAnswerSerializer(serializers.ModelSerializer):
    question_text = serializers.CharField(source='question.text', read_only=True)
    question_type = serializers.CharField(source='question.question_type', read_only=True)
    max_points = serializers.DecimalField(source='question.points', max_digits=7, decimal_places=2, read_only=True)
    selected_option_ids = serializers.PrimaryKeyRelatedField(source='selected_options', many=True, read_only=True)

    class Meta:
        model = ExamAnswer
        fields = [
            'id', 'question', 'question_text', 'question_type', 'max_points',
            'text_value', 'selected_option_ids', 'json_value',
            'grade_status', 'points_earned', 'is_correct', 'feedback', 'graded_at',
        ]
        read_only_fields = fields


class ExamAttemptSerializer(serializers.ModelSerializer):
    """Lightweight serializer for lists / grading queues."""
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    version = serializers.IntegerField(source='exam_version.version', read_only=True)
    pending_answers = serializers.SerializerMethodField()

    class Meta:
        model = ExamAttempt
        fields = [
            'id', 'exam', 'exam_title', 'version', 'attempt_number', 'user', 'student_name', 'student_email',
            'status', 'started_at', 'completed_at', 'time_spent', 'score', 'max_score', 'percentage',
            'passed', 'auto_graded', 'graded_at', 'pending_answers',
        ]
        read_only_fields = fields

    def get_pending_answers(self, obj):
        return obj.answers.filter(grade_status=ExamAnswer.GradeStatus.PENDING_MANUAL).count()


class ExamAttemptDetailSerializer(ExamAttemptSerializer):
    """Staff view: every answer with its grade."""
    answers = ExamAnswerSerializer(many=True, read_only=True)

    class Meta(ExamAttemptSerializer.Meta):
        fields = ExamAttemptSerializer.Meta.fields + ['ip_address', 'user_agent', 'answers']
        read_only_fields = fields


def shuffled(items, rng):
    items = list(items)
    rng.shuffle(items)
    return items


class ActiveAttemptSerializer(serializers.ModelSerializer):
    """
    Heavy serializer for taking the exam: questions without answer keys,
    shuffled per attempt when the exam asks for it, plus saved answers.
    """
    exam = serializers.SerializerMethodField()
    sections = serializers.SerializerMethodField()
    answers = serializers.SerializerMethodField()
    time_limit_minutes = serializers.IntegerField(source='exam.time_limit_minutes', read_only=True)
    time_remaining_seconds = serializers.SerializerMethodField()

    class Meta:
        model = ExamAttempt
        fields = [
            'id', 'attempt_number', 'student_name', 'student_email', 'status', 'started_at',
            'time_limit_minutes', 'time_remaining_seconds', 'max_score', 'exam', 'sections', 'answers',
        ]

    def get_exam(self, obj):
        return {
            'id': obj.exam.id,
            'title': obj.exam.title,
            'slug': obj.exam.slug,
            'description': obj.exam.description,
            'version': obj.exam_version.version,
        }

    def get_time_remaining_seconds(self, obj):
        now = self.context.get('now') or timezone.now()
        return obj.time_remaining_seconds(now)

    def get_sections(self, obj):
        exam = obj.exam
        # Seeded by the attempt so a resumed attempt sees the same order
        rng = random.Random(str(obj.id))
        sections = []
        for section in obj.exam_version.sections.prefetch_related('questions__options'):
            questions = list(section.questions.all())
            if exam.shuffle_questions:
                questions = shuffled(questions, rng)
            rendered = []
            for question in questions:
                data = QuestionPublicSerializer(question).data
                if exam.shuffle_options and data['options']:
                    data['options'] = shuffled(data['options'], rng)
                rendered.append(data)
            sections.append({
                'id': section.id,
                'title': section.title,
                'description': section.description,
                'questions': rendered,
            })
        return sections

    def get_answers(self, obj):
        return [
            {
                'question_id': answer.question_id,
                'text_value': answer.text_value,
                'selected_option_ids': [option.id for option in answer.selected_options.all()],
                'json_value': answer.json_value,
            }
            for answer in obj.answers.prefetch_related('selected_options')
        ]
