"""
URL routing for authentication endpoints.
"""
from django.urls import path
from apps.rbac.views_auth import LoginView, MeView, AcceptInvitationView

app_name = 'auth'

urlpatterns = [
    path('login', LoginView.as_view(), name='login'),
    path('me', MeView.as_view(), name='me'),
    path('invitations/<str:token>/accept', AcceptInvitationView.as_view(), name='invitation-accept'),
]
