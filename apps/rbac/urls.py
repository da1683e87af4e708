"""
RBAC API URLs.
"""
from django.urls import path
from apps.rbac.views import MyPermissionsView

app_name = 'rbac'

urlpatterns = [
    path('me/permissions', MyPermissionsView.as_view(), name='my-permissions'),
]
