from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication ---
    path('api/', include('users.urls')),

    # --- Exam Taking & Grading ---
    # Listed before the exam router so "attempts" and "public/<slug>/..." win over exam ids
    path('api/', include('assessments.urls')),

    # --- Exam Authoring ---
    path('api/', include('exams.urls')),

    # --- Audit Trail ---
    path('api/', include('cores.urls')),
]
