from django.urls import path
from .views import project_list_create, project_detail, project_member_add, project_member_remove
from backend.activity.views import project_activity

urlpatterns = [
    path('projects/', project_list_create, name='project-list-create'),
    path('projects/<int:pk>/', project_detail, name='project-detail'),
    path('projects/<int:pk>/members/', project_member_add, name='project-member-add'),
    path('projects/<int:pk>/members/<int:user_id>/', project_member_remove, name='project-member-remove'),
    path('projects/<int:pk>/activity/', project_activity, name='project-activity'),
]
