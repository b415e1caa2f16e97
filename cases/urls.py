from django.urls import path

from . import views

app_name = 'cases'

urlpatterns = [
    # --- Client case API ---
    path('cases', views.CaseListCreateView.as_view(), name='case-list'),
    path('cases/<int:case_id>', views.CaseDetailView.as_view(), name='case-detail'),

    # --- Admin case API (admin, internal staff, attorneys) ---
    path('admin/cases', views.AdminCaseListView.as_view(), name='admin-case-list'),
    path('admin/cases/<int:case_id>', views.AdminCaseDetailView.as_view(), name='admin-case-detail'),

    # --- Reference data ---
    path('case-statuses', views.CaseStatusListView.as_view(), name='case-statuses'),
    path('trademark-classes', views.TrademarkClassListView.as_view(), name='trademark-classes'),
]
