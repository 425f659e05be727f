from rest_framework import permissions


def is_grader(user):
    if not user or not user.is_authenticated:
        return False
    return user.can_grade


def can_access_attempt(user, attempt):
    """
    Attempts taken by a logged-in user belong to that user; anonymous
    attempts are reachable through their unguessable id.
    """
    if attempt.user_id is None:
        return True
    if user and user.is_authenticated and user.pk == attempt.user_id:
        return True
    return is_grader(user)


class IsGraderOrAdmin(permissions.BasePermission):
    """
    Allows access to Admins, Examiners, and Graders.
    Strictly blocks Candidates.
    """
    def has_permission(self, request, view):
        return is_grader(request.user)
