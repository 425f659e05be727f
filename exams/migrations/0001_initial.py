import decimal

import django.db.models.deletion
import exams.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Exam',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('slug', models.SlugField(max_length=255, unique=True)),
                ('description', models.TextField(blank=True)),
                ('time_limit_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('max_attempts', models.PositiveIntegerField(blank=True, default=exams.models.default_max_attempts, help_text='Empty means unlimited', null=True)),
                ('passing_score', models.PositiveIntegerField(default=exams.models.default_passing_score, help_text='Pass mark percentage')),
                ('shuffle_questions', models.BooleanField(default=False)),
                ('shuffle_options', models.BooleanField(default=False)),
                ('show_results', models.CharField(choices=[('IMMEDIATE', 'Immediately after submission'), ('AFTER_DEADLINE', 'After the exam deadline'), ('MANUAL', 'After grading is complete'), ('NEVER', 'Never')], default='IMMEDIATE', max_length=20)),
                ('allow_review', models.BooleanField(default=True)),
                ('auto_grade', models.BooleanField(default=True)),
                ('available_from', models.DateTimeField(blank=True, null=True)),
                ('available_until', models.DateTimeField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=False)),
                ('is_published', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='exams', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='ExamVersion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version', models.PositiveIntegerField()),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('total_points', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=9)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='versions', to='exams.exam')),
            ],
            options={
                'ordering': ['exam', '-version'],
            },
        ),
        migrations.CreateModel(
            name='ExamSection',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(blank=True, max_length=255)),
                ('description', models.TextField(blank=True)),
                ('order', models.PositiveIntegerField(default=0)),
                ('version', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sections', to='exams.examversion')),
            ],
            options={
                'ordering': ['order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Question',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('question_type', models.CharField(choices=[('RADIO', 'Single choice'), ('CHECKBOX', 'Multiple choice'), ('TRUE_FALSE', 'True / False'), ('TEXT', 'Short text'), ('TEXTAREA', 'Long text'), ('MATCHING', 'Matching'), ('ORDERING', 'Ordering')], default='RADIO', max_length=20)),
                ('text', models.TextField()),
                ('help_text', models.TextField(blank=True)),
                ('points', models.DecimalField(decimal_places=2, default=decimal.Decimal('1'), max_digits=7)),
                ('order', models.PositiveIntegerField(default=0)),
                ('correct_answer', models.JSONField(blank=True, null=True)),
                ('feedback', models.TextField(blank=True, help_text='Shown to the candidate when review is allowed')),
                ('section', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='questions', to='exams.examsection')),
            ],
            options={
                'ordering': ['order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Option',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('text', models.CharField(max_length=255)),
                ('order', models.PositiveIntegerField(default=0)),
                ('is_correct', models.BooleanField(default=False)),
                ('question', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='options', to='exams.question')),
            ],
            options={
                'ordering': ['order', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='examversion',
            constraint=models.UniqueConstraint(fields=('exam', 'version'), name='unique_exam_version'),
        ),
    ]
