"""
URL configuration for the Groups app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.groups.views import (
    AcceptInviteView,
    CancelInviteView,
    GroupViewSet,
    JoinByCodeView,
    JoinRequestDecisionView,
)

app_name = 'groups'

router = DefaultRouter()
router.register(r'groups', GroupViewSet, basename='group')

urlpatterns = [
    # Explicit paths BEFORE router to avoid conflicts with router's {pk} patterns
    path('groups/join/', JoinByCodeView.as_view(), name='group-join-by-code'),
    path(
        'groups/<uuid:group_pk>/requests/<uuid:pk>/approve/',
        JoinRequestDecisionView.as_view(decision='approve'),
        name='join-request-approve',
    ),
    path(
        'groups/<uuid:group_pk>/requests/<uuid:pk>/reject/',
        JoinRequestDecisionView.as_view(decision='reject'),
        name='join-request-reject',
    ),
    path('invites/<str:token>/accept/', AcceptInviteView.as_view(), name='invite-accept'),
    path('invites/<str:token>/cancel/', CancelInviteView.as_view(), name='invite-cancel'),
    path('', include(router.urls)),
]
