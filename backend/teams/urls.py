from django.urls import path
from .views import team_list_create, team_detail, team_member_add, team_member_remove

urlpatterns = [
    path('teams/', team_list_create, name='team-list-create'),
    path('teams/<int:pk>/', team_detail, name='team-detail'),
    path('teams/<int:pk>/members/', team_member_add, name='team-member-add'),
    path('teams/<int:pk>/members/<int:user_id>/', team_member_remove, name='team-member-remove'),
]
