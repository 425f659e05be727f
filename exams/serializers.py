# formex_platform/exams/serializers.py
from rest_framework import serializers
from .models import Exam, ExamVersion, ExamSection, Question, Option

# --- Authoring Serializers (write side of a new version) ---

class OptionInputSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=255)
    is_correct = serializers.BooleanField(default=False)

class QuestionInputSerializer(serializers.Serializer):
    question_type = serializers.ChoiceField(choices=Question.QuestionType.choices)
    text = serializers.CharField()
    help_text = serializers.CharField(required=False, allow_blank=True, default='')
    points = serializers.DecimalField(max_digits=7, decimal_places=2, min_value=0, default=1)
    correct_answer = serializers.JSONField(required=False, allow_null=True, default=None)
    feedback = serializers.CharField(required=False, allow_blank=True, default='')
    options = OptionInputSerializer(many=True, required=False, default=list)

    def validate(self, attrs):
        q_type = attrs['question_type']
        options = attrs.get('options') or []
        correct = [opt for opt in options if opt.get('is_correct')]
        key = attrs.get('correct_answer')
        key = key if isinstance(key, dict) else {}

        if q_type in (Question.QuestionType.RADIO, Question.QuestionType.TRUE_FALSE):
            if len(correct) != 1:
                raise serializers.ValidationError("Single choice questions need exactly one correct option.")
        elif q_type == Question.QuestionType.CHECKBOX:
            if not correct:
                raise serializers.ValidationError("Multiple choice questions need at least one correct option.")
        elif q_type == Question.QuestionType.MATCHING:
            matches = key.get('matches')
            if not isinstance(matches, dict) or not matches:
                raise serializers.ValidationError("Matching questions need correct_answer.matches.")
        elif q_type == Question.QuestionType.ORDERING:
            order = key.get('order')
            if not isinstance(order, list) or not order:
                raise serializers.ValidationError("Ordering questions need correct_answer.order.")
        return attrs

class SectionInputSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')
    questions = QuestionInputSerializer(many=True)

class PublishVersionSerializer(serializers.Serializer):
    sections = SectionInputSerializer(many=True, allow_empty=False)

# --- Exam Serializers ---

class ExamSerializer(serializers.ModelSerializer):
    # Read-only counts
    total_attempts = serializers.IntegerField(source='attempts.count', read_only=True)
    current_version = serializers.SerializerMethodField()

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'slug', 'description',
            'time_limit_minutes', 'max_attempts', 'passing_score',
            'shuffle_questions', 'shuffle_options', 'show_results', 'allow_review', 'auto_grade',
            'available_from', 'available_until', 'is_active', 'is_published',
            'total_attempts', 'current_version', 'created_at',
        ]
        read_only_fields = ['slug', 'auto_grade', 'created_at']

    def get_current_version(self, obj):
        version = obj.current_version()
        return version.version if version else None

    def validate_passing_score(self, value):
        if value > 100:
            raise serializers.ValidationError("Passing score is a percentage between 0 and 100.")
        return value

    def validate(self, attrs):
        start = attrs.get('available_from', getattr(self.instance, 'available_from', None))
        end = attrs.get('available_until', getattr(self.instance, 'available_until', None))
        if start and end and start >= end:
            raise serializers.ValidationError("available_from must be before available_until.")
        return attrs

# --- Candidate-facing Serializers (answer keys never leave the server) ---

class OptionPublicSerializer(serializers.ModelSerializer):
    class Meta:
        model = Option
        fields = ['id', 'text', 'order']

class QuestionPublicSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source='question_type')
    options = OptionPublicSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'type', 'text', 'help_text', 'points', 'order', 'options']

class SectionPublicSerializer(serializers.ModelSerializer):
    questions = QuestionPublicSerializer(many=True, read_only=True)

    class Meta:
        model = ExamSection
        fields = ['id', 'title', 'description', 'order', 'questions']

class ExamVersionPublicSerializer(serializers.ModelSerializer):
    sections = SectionPublicSerializer(many=True, read_only=True)

    class Meta:
        model = ExamVersion
        fields = ['id', 'version', 'total_points', 'sections']

class ExamPublicSerializer(serializers.ModelSerializer):
    """Detailed view for candidates"""
    version = serializers.SerializerMethodField()

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'slug', 'description', 'time_limit_minutes', 'max_attempts',
            'passing_score', 'available_from', 'available_until', 'version',
        ]

    def get_version(self, obj):
        version = obj.current_version()
        return ExamVersionPublicSerializer(version).data if version else None
