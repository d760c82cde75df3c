from enum import Enum

class ProjectStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    archived = "archived"

class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in_progress"
    in_review = "in_review"
    done = "done"

class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"
