from django.urls import path
from .views import (
    register, login, refresh, me, logout, logout_all, session_list,
    user_search, user_list, user_detail, user_profile, change_password,
    user_role, user_deactivate, user_activate
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', login, name='login'),
    path('auth/refresh/', refresh, name='token-refresh'),
    path('auth/me/', me, name='auth-me'),
    path('auth/logout/', logout, name='logout'),
    path('auth/logout-all/', logout_all, name='logout-all'),
    path('auth/sessions/', session_list, name='session-list'),

    # User endpoints
    path('users/', user_list, name='user-list'),
    path('users/search/', user_search, name='user-search'),
    path('users/profile/', user_profile, name='user-profile'),
    path('users/change-password/', change_password, name='change-password'),
    path('users/<int:pk>/', user_detail, name='user-detail'),
    path('users/<int:pk>/role/', user_role, name='user-role'),
    path('users/<int:pk>/deactivate/', user_deactivate, name='user-deactivate'),
    path('users/<int:pk>/activate/', user_activate, name='user-activate'),
]
