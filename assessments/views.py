from rest_framework import generics, permissions, status, views
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from django.utils import timezone

from exams.models import Exam
from . import services
from .admission import Candidate, can_start_attempt
from .exceptions import NotFound
from .models import ExamAttempt
from .permissions import IsGraderOrAdmin, can_access_attempt
from .results import ResultBlocked, get_attempt_result
from .serializers import (
    StartAttemptSerializer, SaveAnswerSerializer, ManualGradeSerializer,
    ExamAttemptSerializer, ExamAttemptDetailSerializer, ActiveAttemptSerializer,
)


def _client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def _owned_attempt(request, attempt):
    # Hide attempts of other users instead of revealing that they exist
    if not can_access_attempt(request.user, attempt):
        raise NotFound("Attempt not found")
    return attempt


# --- CANDIDATE VIEWS ---

class CanStartAttemptView(views.APIView):
    """Tells the candidate whether they may start or resume this exam."""
    permission_classes = [permissions.AllowAny]

    def get(self, request, slug):
        exam = get_object_or_404(Exam, slug=slug)
        candidate = Candidate.from_request(request, email=request.query_params.get('email', ''))
        admission = can_start_attempt(exam, candidate)

        pending = admission.resume_attempt
        return Response({
            "can_take": admission.allowed,
            "reason": admission.reason or None,
            "attempts_used": admission.attempts_used,
            "max_attempts": admission.max_attempts,
            "attempts_remaining": admission.attempts_remaining,
            "pending_attempt": {
                "id": pending.id,
                "started_at": pending.started_at,
                "attempt_number": pending.attempt_number,
            } if pending else None,
        })


class StartAttemptView(views.APIView):
    """
    Candidate starts an exam.
    Creates an attempt (or resumes the running one) and returns the questions.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request, slug):
        exam = get_object_or_404(Exam, slug=slug)
        serializer = StartAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        candidate = Candidate.from_request(request, **serializer.validated_data)
        attempt, created = services.start_attempt(
            exam,
            candidate,
            ip_address=_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )
        data = ActiveAttemptSerializer(attempt).data
        data['resumed'] = not created
        return Response(data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class AttemptDetailView(views.APIView):
    """Current state of an attempt; an attempt out of time is submitted first."""
    permission_classes = [permissions.AllowAny]

    def get(self, request, attempt_id):
        now = timezone.now()
        attempt = _owned_attempt(request, services.refresh_attempt(attempt_id, clock=lambda: now))
        return Response(ActiveAttemptSerializer(attempt, context={'now': now}).data)


class SaveAnswerView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def put(self, request, attempt_id):
        _owned_attempt(request, get_object_or_404(ExamAttempt, pk=attempt_id))
        serializer = SaveAnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        answer = services.save_answer(attempt_id, **serializer.validated_data)
        return Response({"success": True, "question_id": answer.question_id})


class SubmitAttemptView(views.APIView):
    """
    Candidate submits the attempt. Objective questions are graded at once;
    calling this again returns the same outcome.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request, attempt_id):
        _owned_attempt(request, get_object_or_404(ExamAttempt, pk=attempt_id))
        attempt = services.submit_attempt(attempt_id)
        return Response({
            "completed": True,
            "status": attempt.status,
            "auto_graded": attempt.auto_graded,
            "is_graded": attempt.is_fully_graded,
        })


class AttemptResultView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, attempt_id):
        _owned_attempt(request, get_object_or_404(ExamAttempt, pk=attempt_id))
        _, result = get_attempt_result(attempt_id)
        if isinstance(result, ResultBlocked):
            return Response(result.to_dict())
        return Response(result)


# --- GRADER / ADMIN VIEWS ---

class ExamAttemptListView(generics.ListAPIView):
    """All attempts of one exam, newest first."""
    permission_classes = [IsGraderOrAdmin]
    serializer_class = ExamAttemptSerializer

    def get_queryset(self):
        queryset = ExamAttempt.objects.filter(exam_id=self.kwargs['exam_id']).select_related('exam', 'exam_version')
        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset.order_by('-started_at')


class ExamAttemptDetailView(generics.RetrieveAPIView):
    permission_classes = [IsGraderOrAdmin]
    serializer_class = ExamAttemptDetailSerializer

    def get_object(self):
        return get_object_or_404(
            ExamAttempt.objects.select_related('exam', 'exam_version'),
            pk=self.kwargs['attempt_id'], exam_id=self.kwargs['exam_id'],
        )


class PendingGradingListView(generics.ListAPIView):
    """List all submitted attempts whose grading is not complete yet."""
    permission_classes = [IsGraderOrAdmin]
    serializer_class = ExamAttemptSerializer

    def get_queryset(self):
        return (
            ExamAttempt.objects.filter(
                completed_at__isnull=False,
                graded_at__isnull=True,
            )
            .select_related('exam', 'exam_version')
            .order_by('completed_at')
        )


class GradeAnswerView(views.APIView):
    """Grader awards points for a specific answer."""
    permission_classes = [IsGraderOrAdmin]

    def put(self, request, exam_id, attempt_id, answer_id):
        get_object_or_404(ExamAttempt, pk=attempt_id, exam_id=exam_id)
        serializer = ManualGradeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        answer, summary = services.grade_manually(
            attempt_id,
            answer_id,
            serializer.validated_data['points'],
            serializer.validated_data['feedback'],
            grader=request.user,
        )
        return Response({
            "status": "Graded successfully",
            "answer_id": answer.id,
            "points_earned": answer.points_earned,
            "is_correct": answer.is_correct,
            "score": summary.score,
            "max_score": summary.max_score,
            "percentage": summary.percentage,
            "passed": summary.passed,
            "pending": summary.pending,
        })
