from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ExamViewSet, PublicExamViewSet

router = DefaultRouter()
# Registered first so "public" is never read as an exam id
router.register(r'exams/public', PublicExamViewSet, basename='public-exams')
router.register(r'exams', ExamViewSet, basename='exams')

urlpatterns = [
    path('', include(router.urls)),
]
