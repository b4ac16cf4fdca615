from django.urls import path
from .views import (
    project_work_packages, work_package_create, work_package_detail,
    project_milestones, milestone_create, milestone_detail, milestone_task_add, milestone_task_remove
)

urlpatterns = [
    path('work-packages/', work_package_create, name='work-package-create'),
    path('work-packages/project/<int:project_id>/', project_work_packages, name='work-package-project-list'),
    path('work-packages/<int:pk>/', work_package_detail, name='work-package-detail'),
    path('milestones/', milestone_create, name='milestone-create'),
    path('milestones/project/<int:project_id>/', project_milestones, name='milestone-project-list'),
    path('milestones/<int:pk>/', milestone_detail, name='milestone-detail'),
    path('milestones/<int:pk>/tasks/', milestone_task_add, name='milestone-task-add'),
    path('milestones/<int:pk>/tasks/<int:task_id>/', milestone_task_remove, name='milestone-task-remove'),
]
