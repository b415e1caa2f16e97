from django.urls import path

from . import views

# This line gives your app a "namespace"
app_name = 'users'

urlpatterns = [
    # --- Session API ---
    path('auth/sign-up', views.SignUpView.as_view(), name='sign-up'),
    path('auth/sign-in', views.SignInView.as_view(), name='sign-in'),
    path('auth/logout', views.LogoutView.as_view(), name='logout'),
    path('auth/session', views.SessionView.as_view(), name='session'),

    # --- Staff management (admins only) ---
    # List, create, and change the role of users
    path('admin/staff', views.StaffView.as_view(), name='staff'),
]
