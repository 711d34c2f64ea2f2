"""
Task management service
"""

from typing import List, Optional

from tasksync.db.repository import EntityKind, Repository
from tasksync.models.project import Project
from tasksync.models.tag import Tag
from tasksync.models.task import Task, TaskStatus
from tasksync.utils.date_utils import get_current_datetime
from tasksync.utils.error_handler import ValidationError
from tasksync.utils.logger import logger


class TaskService:
    """Service for managing local tasks, projects and tags"""

    def __init__(self, repository: Repository):
        """
        Initialize task service

        Args:
            repository: Local store
        """
        self.repo = repository
        self.logger = logger

    # ---- tasks ----

    def create_task(self, title: str) -> Task:
        """
        Create a new task at the end of the manual order

        Raises:
            ValidationError: If the title is empty
        """
        if not title or not title.strip():
            raise ValidationError("Task title cannot be empty")
        task = Task.new(title.strip())
        task.order_index = self.repo.get_next_order_index(EntityKind.TASKS)
        self.repo.insert_task(task)
        self.logger.info(f"Task created: '{task.title}' ({task.id})")
        return task

    def update_task(self, task: Task) -> None:
        """Persist an edited task, bumping updated_at"""
        if not task.title or not task.title.strip():
            raise ValidationError("Task title cannot be empty")
        task.touch()
        self.repo.update_task(task)

    def set_status(self, task: Task, status: TaskStatus) -> None:
        task.set_status(status, get_current_datetime())
        self.repo.update_task(task)
        self.logger.debug(f"Task {task.id} status -> {status.value}")

    def toggle_completed(self, task: Task) -> None:
        """Complete an open task, or send a completed one back to the inbox"""
        if task.status == TaskStatus.COMPLETED:
            self.set_status(task, TaskStatus.INBOX)
        else:
            self.set_status(task, TaskStatus.COMPLETED)

    def delete_task(self, task_id: str) -> None:
        """Soft delete a task"""
        self.repo.delete_task(task_id)
        self.logger.info(f"Task deleted: {task_id}")

    def get_all_tasks(self) -> List[Task]:
        return self.repo.get_all_tasks()

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.repo.get_task(task_id)

    # ---- projects ----

    def create_project(self, name: str) -> Project:
        if not name or not name.strip():
            raise ValidationError("Project name cannot be empty")
        project = Project.new(name.strip())
        project.order_index = self.repo.get_next_order_index(EntityKind.PROJECTS)
        self.repo.insert_project(project)
        self.logger.info(f"Project created: '{project.name}' ({project.id})")
        return project

    def update_project(self, project: Project) -> None:
        project.updated_at = get_current_datetime()
        self.repo.update_project(project)

    def delete_project(self, project_id: str) -> None:
        """Soft delete a project; its tasks keep their project reference"""
        self.repo.delete_project(project_id)

    def get_all_projects(self) -> List[Project]:
        return self.repo.get_all_projects()

    def get_project(self, project_id: str) -> Optional[Project]:
        return self.repo.get_project(project_id)

    # ---- tags ----

    def create_tag(self, name: str) -> Tag:
        if not name or not name.strip():
            raise ValidationError("Tag name cannot be empty")
        tag = Tag.new(name.strip())
        self.repo.insert_tag(tag)
        return tag

    def update_tag(self, tag: Tag) -> None:
        tag.updated_at = get_current_datetime()
        self.repo.update_tag(tag)

    def delete_tag(self, tag_id: str) -> None:
        """Soft delete a tag; tasks keep the id in their tag list"""
        self.repo.delete_tag(tag_id)

    def get_all_tags(self) -> List[Tag]:
        return self.repo.get_all_tags()

    def get_tag(self, tag_id: str) -> Optional[Tag]:
        return self.repo.get_tag(tag_id)
