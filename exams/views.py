from rest_framework import viewsets, permissions, status, filters, serializers
from rest_framework.decorators import action
from rest_framework.response import Response
from django.shortcuts import get_object_or_404

from cores.models import AuditLog
from .models import Exam
from .serializers import ExamSerializer, ExamPublicSerializer, PublishVersionSerializer
from .versioning import create_version, unique_slug, adjust_points_to_100


def _flag(request, name, current):
    """Reads a boolean from the payload; a missing value toggles the current one."""
    if name not in request.data:
        return not current
    return serializers.BooleanField().to_internal_value(request.data[name])


class ExamViewSet(viewsets.ModelViewSet):
    queryset = Exam.objects.all().order_by('-created_at')
    serializer_class = ExamSerializer
    permission_classes = [permissions.IsAdminUser]

    # Enable search on title and slug
    filter_backends = [filters.SearchFilter]
    search_fields = ['title', 'slug']

    def perform_create(self, serializer):
        exam = serializer.save(
            created_by=self.request.user,
            slug=unique_slug(serializer.validated_data['title']),
        )
        # --- AUDIT LOG: CREATE ---
        AuditLog.objects.create(
            actor=self.request.user,
            action='CREATE',
            target_model='Exam',
            target_object_id=str(exam.id),
            details=f"Created exam: {exam.title}"
        )

    def perform_update(self, serializer):
        exam = serializer.save()
        AuditLog.objects.create(
            actor=self.request.user,
            action='UPDATE',
            target_model='Exam',
            target_object_id=str(exam.id),
            details=f"Updated configuration of: {exam.title}"
        )

    @action(detail=True, methods=['post'], url_path='publish-version')
    def publish_version(self, request, pk=None):
        """
        Snapshots the submitted sections into a new, immutable exam version.
        Payload: { "sections": [ { "title": "...", "questions": [ ... ] } ] }
        """
        exam = self.get_object()
        serializer = PublishVersionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        version = create_version(exam, serializer.validated_data['sections'], actor=request.user)
        return Response(
            {"status": f"Published version {version.version}", "version": version.version,
             "total_points": version.total_points},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['patch'], url_path='publish')
    def toggle_publish(self, request, pk=None):
        exam = self.get_object()
        exam.is_published = _flag(request, 'is_published', exam.is_published)
        exam.save(update_fields=['is_published', 'updated_at'])
        return Response({"is_published": exam.is_published})

    @action(detail=True, methods=['patch'], url_path='status')
    def toggle_active(self, request, pk=None):
        exam = self.get_object()
        exam.is_active = _flag(request, 'is_active', exam.is_active)
        exam.save(update_fields=['is_active', 'updated_at'])
        return Response({"is_active": exam.is_active})

    @action(detail=False, methods=['post'], url_path='adjust-points')
    def adjust_points(self, request):
        """Rescales the points of a draft so they add up to 100."""
        serializer = PublishVersionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sections = adjust_points_to_100(serializer.validated_data['sections'])
        return Response({"sections": sections})


class PublicExamViewSet(viewsets.ReadOnlyModelViewSet):
    """Published exams by slug, without answer keys."""
    serializer_class = ExamPublicSerializer
    permission_classes = [permissions.AllowAny]
    lookup_field = 'slug'

    def get_queryset(self):
        return Exam.objects.filter(is_published=True, is_active=True)

    def get_object(self):
        return get_object_or_404(self.get_queryset(), slug=self.kwargs['slug'])
