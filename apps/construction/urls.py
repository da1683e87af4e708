"""
Construction resource API URLs.
"""
from django.urls import path
from apps.construction import views

app_name = 'construction'

urlpatterns = [
    # Sites
    path('sites', views.SiteListView.as_view(), name='site-list'),
    path('sites/<uuid:pk>', views.SiteDetailView.as_view(), name='site-detail'),

    # Daily reports
    path('daily-reports', views.DailyReportListView.as_view(), name='daily-report-list'),
    path('daily-reports/<uuid:pk>', views.DailyReportDetailView.as_view(), name='daily-report-detail'),
    path('daily-reports/<uuid:pk>/approve', views.DailyReportApproveView.as_view(), name='daily-report-approve'),

    # Expenses
    path('expenses', views.ExpenseListView.as_view(), name='expense-list'),
    path('expenses/<uuid:pk>', views.ExpenseDetailView.as_view(), name='expense-detail'),
    path('expenses/<uuid:pk>/approve', views.ExpenseApproveView.as_view(), name='expense-approve'),

    # Equipment
    path('equipment', views.EquipmentListView.as_view(), name='equipment-list'),
    path('equipment/<uuid:pk>', views.EquipmentDetailView.as_view(), name='equipment-detail'),

    # Team members
    path('team-members', views.TeamMemberListView.as_view(), name='team-member-list'),
    path('team-members/<uuid:pk>', views.TeamMemberDetailView.as_view(), name='team-member-detail'),
    path('team-members/<uuid:pk>/attendance', views.TeamMemberAttendanceView.as_view(),
         name='team-member-attendance'),

    # Documents
    path('documents', views.DocumentListView.as_view(), name='document-list'),
    path('documents/<uuid:pk>', views.DocumentDetailView.as_view(), name='document-detail'),
]
