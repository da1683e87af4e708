"""
Membership API URLs.
"""
from django.urls import path
from apps.tenants.views import MembershipListView, MembershipDetailView, AcceptInvitationView

app_name = 'tenants'

urlpatterns = [
    path('memberships', MembershipListView.as_view(), name='membership-list'),
    path('memberships/accept', AcceptInvitationView.as_view(), name='membership-accept'),
    path('memberships/<uuid:user_id>', MembershipDetailView.as_view(), name='membership-detail'),
]
