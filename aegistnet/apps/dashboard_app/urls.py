from django.urls import path
from .views import (
    SignInView,
    SignUpView,
    PasswordResetView,
    ResendVerificationView,
    CurrentParentView,
    DashboardView,
    ChildListView,
    ChildDetailView,
    ChildAppsView,
    ChildAppBlockView,
    UnblockAllAppsView,
    ContentFiltersView,
    ChildLocationView,
    ChildLocationHistoryView,
    LocationRefreshView,
    DeviceLockView,
    AppDeletedView,
    health_check,
)

urlpatterns = [
    # Health Check
    path('health/', health_check, name='health-check'),

    # Auth
    path('auth/login/', SignInView.as_view(), name='parent-login'),
    path('auth/register/', SignUpView.as_view(), name='parent-register'),
    path('auth/password-reset/', PasswordResetView.as_view(), name='password-reset'),
    path('auth/resend-verification/', ResendVerificationView.as_view(), name='resend-verification'),
    path('auth/me/', CurrentParentView.as_view(), name='current-parent'),

    # Dashboard
    path('dashboard/', DashboardView.as_view(), name='dashboard'),

    # Children
    path('children/', ChildListView.as_view(), name='child-list'),
    path('children/<str:child_id>/', ChildDetailView.as_view(), name='child-detail'),

    # Apps
    path('children/<str:child_id>/apps/', ChildAppsView.as_view(), name='child-apps'),
    path('children/<str:child_id>/apps/unblock-all/', UnblockAllAppsView.as_view(), name='child-apps-unblock-all'),
    path('children/<str:child_id>/apps/<str:app_id>/', ChildAppBlockView.as_view(), name='child-app-block'),

    # Content filters
    path('children/<str:child_id>/filters/', ContentFiltersView.as_view(), name='child-filters'),

    # Location
    path('children/<str:child_id>/location/', ChildLocationView.as_view(), name='child-location'),
    path('children/<str:child_id>/location/history/', ChildLocationHistoryView.as_view(), name='child-location-history'),
    path('children/<str:child_id>/location/refresh/', LocationRefreshView.as_view(), name='child-location-refresh'),

    # Device flags
    path('children/<str:child_id>/lock/', DeviceLockView.as_view(), name='child-device-lock'),
    path('children/<str:child_id>/app-deleted/', AppDeletedView.as_view(), name='child-app-deleted'),
]
