from sqlalchemy import select, func
from sqlalchemy.orm import column_property

from taskhub.models.user import User
from taskhub.models.project import Project
from taskhub.models.task import Task, task_tags
from taskhub.models.tag import Tag
from taskhub.models.comment import Comment

# Counts are attached once every mapped class exists, as correlated subqueries
Task.comment_count = column_property(
    select(func.count(Comment.id)).where(Comment.task_id == Task.id).correlate_except(Comment).scalar_subquery()
)
Project.task_count = column_property(
    select(func.count(Task.id)).where(Task.project_id == Project.id).correlate_except(Task).scalar_subquery()
)
Tag.task_count = column_property(
    select(func.count(task_tags.c.task_id)).where(task_tags.c.tag_id == Tag.id).correlate_except(task_tags).scalar_subquery()
)
User.project_count = column_property(
    select(func.count(Project.id)).where(Project.owner_id == User.id).correlate_except(Project).scalar_subquery()
)
User.created_task_count = column_property(
    select(func.count(Task.id)).where(Task.creator_id == User.id).correlate_except(Task).scalar_subquery()
)
User.assigned_task_count = column_property(
    select(func.count(Task.id)).where(Task.assignee_id == User.id).correlate_except(Task).scalar_subquery()
)

__all__ = ["User", "Project", "Task", "Tag", "Comment", "task_tags"]
