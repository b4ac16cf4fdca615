from django.urls import path
from .views import (
    project_tasks, work_package_tasks, my_tasks, task_create, task_detail, task_reorder,
    task_assign, task_dependencies, task_dependency_remove, task_comments
)

urlpatterns = [
    path('tasks/', task_create, name='task-create'),
    path('tasks/my/', my_tasks, name='task-my'),
    path('tasks/reorder/', task_reorder, name='task-reorder'),
    path('tasks/project/<int:project_id>/', project_tasks, name='task-project-list'),
    path('tasks/work-package/<int:work_package_id>/', work_package_tasks, name='task-work-package-list'),
    path('tasks/<int:pk>/', task_detail, name='task-detail'),
    path('tasks/<int:pk>/assign/', task_assign, name='task-assign'),
    path('tasks/<int:pk>/dependencies/', task_dependencies, name='task-dependencies'),
    path('tasks/<int:pk>/dependencies/<int:depends_on_id>/', task_dependency_remove, name='task-dependency-remove'),
    path('tasks/<int:pk>/comments/', task_comments, name='task-comments'),
]
