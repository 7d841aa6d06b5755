"""
Reset the database and load demo data.

    python -m taskhub.seed

Accounts: admin@prou.com / admin123, john@prou.com / user123, jane@prou.com / user123.
"""
import asyncio
import logging
from datetime import timedelta

from taskhub.core.logging_config import setup_logging
from taskhub.database import AsyncSessionLocal, Base, engine
from taskhub.models import Comment, Project, Tag, Task, User
from taskhub.models.enums import Priority, ProjectStatus, Role, TaskStatus
from taskhub.utils.password import hash_password
from taskhub.utils.time import utcnow

logger = logging.getLogger("taskhub.seed")

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"

TAGS = [
    ("Frontend", "#3b82f6"),
    ("Backend", "#10b981"),
    ("Bug", "#ef4444"),
    ("Feature", "#8b5cf6"),
    ("Documentation", "#f59e0b"),
    ("Testing", "#06b6d4"),
]

# (key, name, description, color, icon, owner)
PROJECTS = [
    ("web", "ProU Web Application", "Main web application for task management with modern UI/UX",
     "#6366f1", "rocket", "admin"),
    ("mobile", "Mobile App Development", "React Native mobile application for iOS and Android",
     "#10b981", "smartphone", "john"),
    ("docs", "API Documentation", "Comprehensive API documentation and developer guides",
     "#f59e0b", "book", "jane"),
]

# (project, title, description, status, priority, creator, assignee, due in days, tag names)
TASKS = [
    ("web", "Design dashboard layout", "Create wireframes and mockups for the main dashboard view",
     TaskStatus.COMPLETED, Priority.HIGH, "admin", "john", None, ["Frontend", "Feature"]),
    ("web", "Implement user authentication", "Set up JWT-based authentication with login, register, and logout",
     TaskStatus.COMPLETED, Priority.URGENT, "admin", "admin", None, ["Backend", "Feature"]),
    ("web", "Create task CRUD API endpoints", "Implement RESTful endpoints for task management operations",
     TaskStatus.IN_PROGRESS, Priority.HIGH, "admin", "john", 3, ["Backend"]),
    ("web", "Add dark mode support", "Implement theme switching with dark/light mode toggle",
     TaskStatus.TODO, Priority.MEDIUM, "john", "jane", 7, ["Frontend", "Feature"]),
    ("web", "Write unit tests for API", "Add comprehensive test coverage for all API endpoints",
     TaskStatus.TODO, Priority.MEDIUM, "admin", None, 10, ["Testing"]),
    ("web", "Fix navigation bug on mobile", "Sidebar not closing properly on mobile devices after navigation",
     TaskStatus.IN_REVIEW, Priority.HIGH, "jane", "john", None, ["Frontend", "Bug"]),
    ("mobile", "Set up React Native project", "Initialize project with Expo and configure development environment",
     TaskStatus.COMPLETED, Priority.HIGH, "john", "john", None, []),
    ("mobile", "Design mobile navigation", "Implement bottom tab navigation and stack navigators",
     TaskStatus.IN_PROGRESS, Priority.MEDIUM, "john", "jane", None, []),
    ("docs", "Document authentication endpoints", "Write comprehensive documentation for auth API with examples",
     TaskStatus.COMPLETED, Priority.HIGH, "jane", "jane", None, ["Documentation"]),
    ("docs", "Create API usage examples", "Add code examples in multiple languages (JavaScript, Python, cURL)",
     TaskStatus.TODO, Priority.LOW, "jane", None, 14, ["Documentation"]),
]

# (task index, author, content)
COMMENTS = [
    (0, "admin", "Great progress on this! The design looks clean and modern."),
    (1, "admin", "I've added JWT refresh token support as well."),
    (2, "john", "Working on the validation middleware now. Should be done by tomorrow."),
]


async def reset_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def seed() -> None:
    await reset_schema()
    now = utcnow()

    async with AsyncSessionLocal() as db:
        admin_password = await hash_password("admin123")
        user_password = await hash_password("user123")
        users = {
            "admin": User(email="admin@prou.com", password=admin_password, first_name="Admin",
                          last_name="User", role=Role.ADMIN.value, avatar=AVATAR_URL.format(seed="admin")),
            "john": User(email="john@prou.com", password=user_password, first_name="John",
                         last_name="Doe", role=Role.USER.value, avatar=AVATAR_URL.format(seed="john")),
            "jane": User(email="jane@prou.com", password=user_password, first_name="Jane",
                         last_name="Smith", role=Role.USER.value, avatar=AVATAR_URL.format(seed="jane")),
        }
        db.add_all(users.values())

        tags = {name: Tag(name=name, color=color) for name, color in TAGS}
        db.add_all(tags.values())

        projects = {}
        for key, name, description, color, icon, owner in PROJECTS:
            projects[key] = Project(
                name=name, description=description, color=color, icon=icon,
                status=ProjectStatus.ACTIVE.value, owner=users[owner],
            )
        db.add_all(projects.values())

        tasks = []
        next_order = {}
        for project, title, description, status, priority, creator, assignee, due_in, tag_names in TASKS:
            next_order[project] = next_order.get(project, 0) + 1
            tasks.append(Task(
                title=title,
                description=description,
                status=status.value,
                priority=priority.value,
                project=projects[project],
                creator=users[creator],
                assignee=users[assignee] if assignee else None,
                due_date=now + timedelta(days=due_in) if due_in else None,
                completed_at=now if status == TaskStatus.COMPLETED else None,
                order=next_order[project],
                tags=[tags[name] for name in tag_names],
            ))
        db.add_all(tasks)

        db.add_all([
            Comment(content=content, task=tasks[index], author=users[author])
            for index, author, content in COMMENTS
        ])
        await db.commit()

    logger.info(
        "Seeded %d users, %d tags, %d projects, %d tasks, %d comments",
        len(users), len(TAGS), len(PROJECTS), len(TASKS), len(COMMENTS),
    )


async def run() -> None:
    try:
        await seed()
    finally:
        await engine.dispose()


def main() -> None:
    setup_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
