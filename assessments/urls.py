from django.urls import path
from .views import (
    CanStartAttemptView, StartAttemptView, AttemptDetailView, SaveAnswerView, SubmitAttemptView,
    AttemptResultView, ExamAttemptListView, ExamAttemptDetailView, PendingGradingListView, GradeAnswerView,
)

urlpatterns = [
    # --- Candidate Exam Flow (public) ---
    path('exams/public/<slug:slug>/can-take/', CanStartAttemptView.as_view(), name='can-take-exam'),
    path('exams/public/<slug:slug>/start/', StartAttemptView.as_view(), name='start-attempt'),
    path('exams/attempts/<uuid:attempt_id>/', AttemptDetailView.as_view(), name='attempt-detail'),
    path('exams/attempts/<uuid:attempt_id>/answer/', SaveAnswerView.as_view(), name='save-answer'),
    path('exams/attempts/<uuid:attempt_id>/submit/', SubmitAttemptView.as_view(), name='submit-attempt'),
    path('exams/attempts/<uuid:attempt_id>/result/', AttemptResultView.as_view(), name='attempt-result'),

    # --- Grading Module (staff) ---
    path('exams/<int:exam_id>/attempts/', ExamAttemptListView.as_view(), name='exam-attempts'),
    path('exams/<int:exam_id>/attempts/<uuid:attempt_id>/', ExamAttemptDetailView.as_view(), name='exam-attempt-detail'),
    path('exams/<int:exam_id>/attempts/<uuid:attempt_id>/answers/<int:answer_id>/grade/',
         GradeAnswerView.as_view(), name='grade-answer'),
    path('admin/grading/pending/', PendingGradingListView.as_view(), name='grading-pending'),
]
