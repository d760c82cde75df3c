from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.auth.tokens import now_utc
from app.db import get_db
from app.models.enums import TaskPriority, TaskStatus
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from app.rbac.deps import ProjectContext, load_project, require_perm
from app.rbac.errors import NotFound
from app.rbac.membership import require_permission, resolve_role
from app.rbac.perms import Permission
from app.schemas.tasks import TaskCreateIn, TaskOut, TaskStatsOut, TaskUpdateIn

router = APIRouter(prefix="/tasks", tags=["tasks"])

NULLABLE_FIELDS = {"description", "estimated_hours", "actual_hours", "due_date"}

def task_out(t: Task) -> TaskOut:
    return TaskOut(
        id=t.id,
        project_id=t.project_id,
        title=t.title,
        description=t.description,
        status=t.status,
        priority=t.priority,
        created_by=t.created_by,
        assigned_to=t.assigned_to,
        estimated_hours=t.estimated_hours,
        actual_hours=t.actual_hours,
        tags=list(t.tags or []),
        due_date=t.due_date,
        completed_at=t.completed_at,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )

def _aware(dt: datetime | None) -> datetime | None:
    # sqlite hands back naive datetimes
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt

def _check_assignee(project: Project, assignee: str | None) -> None:
    if assignee is not None and resolve_role(project, assignee) is None:
        raise HTTPException(status_code=400, detail="assignee is not a project member")

def _load_task(db: Session, task_id: str, user: User, permission: Permission) -> tuple[Task, Project]:
    t = db.get(Task, task_id)
    if t is None:
        raise NotFound("task not found")

    project = load_project(db, t.project_id, for_update=permission != Permission.view_project)
    require_permission(project, user.id, permission)
    return t, project

def compute_stats(tasks: list[Task], now: datetime) -> TaskStatsOut:
    by_status = {s: 0 for s in TaskStatus}
    by_priority = {p: 0 for p in TaskPriority}
    overdue = 0
    completed_this_week = 0
    week_ago = now - timedelta(days=7)
    total_hours = 0.0
    completed = 0

    for t in tasks:
        by_status[t.status] += 1
        by_priority[t.priority] += 1

        due = _aware(t.due_date)
        done_at = _aware(t.completed_at)
        if due is not None and due < now and t.status != TaskStatus.done:
            overdue += 1
        if done_at is not None and t.status == TaskStatus.done:
            if done_at >= week_ago:
                completed_this_week += 1
            created = _aware(t.created_at)
            if created is not None:
                total_hours += (done_at - created).total_seconds() / 3600
                completed += 1

    return TaskStatsOut(
        total=len(tasks),
        by_status=by_status,
        by_priority=by_priority,
        overdue=overdue,
        completed_this_week=completed_this_week,
        average_completion_time=(total_hours / completed) if completed else None,
    )

@router.post("", response_model=TaskOut)
def create_task(
    payload: TaskCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskOut:
    project = load_project(db, payload.project_id)
    require_permission(project, user.id, Permission.create_tasks)
    _check_assignee(project, payload.assigned_to)

    t = Task(
        project_id=project.id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
        priority=payload.priority,
        created_by=user.id,
        assigned_to=payload.assigned_to,
        estimated_hours=payload.estimated_hours,
        due_date=payload.due_date,
        tags=list(payload.tags),
        completed_at=now_utc() if payload.status == TaskStatus.done else None,
    )
    db.add(t)
    db.commit()
    db.refresh(t)
    return task_out(t)

@router.get("/project/{project_id}", response_model=list[TaskOut])
def list_tasks(
    project_id: str,
    status: list[TaskStatus] | None = Query(default=None),
    priority: list[TaskPriority] | None = Query(default=None),
    assigned_to: list[str] | None = Query(default=None),
    created_by: list[str] | None = Query(default=None),
    tag: str | None = None,
    ctx: ProjectContext = Depends(require_perm(Permission.view_project)),
    db: Session = Depends(get_db),
) -> list[TaskOut]:
    q = select(Task).where(Task.project_id == project_id)
    if status:
        q = q.where(Task.status.in_(status))
    if priority:
        q = q.where(Task.priority.in_(priority))
    if assigned_to:
        q = q.where(Task.assigned_to.in_(assigned_to))
    if created_by:
        q = q.where(Task.created_by.in_(created_by))

    rows = db.scalars(q.order_by(Task.created_at.desc())).all()
    if tag:
        rows = [r for r in rows if tag in (r.tags or [])]
    return [task_out(r) for r in rows]

@router.get("/project/{project_id}/stats", response_model=TaskStatsOut)
def project_task_stats(
    project_id: str,
    ctx: ProjectContext = Depends(require_perm(Permission.view_project)),
    db: Session = Depends(get_db),
) -> TaskStatsOut:
    rows = db.scalars(select(Task).where(Task.project_id == project_id)).all()
    return compute_stats(list(rows), now_utc())

@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskOut:
    t, _ = _load_task(db, task_id, user, Permission.view_project)
    return task_out(t)

@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    payload: TaskUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskOut:
    t, project = _load_task(db, task_id, user, Permission.edit_tasks)

    # validate everything before touching the row
    if payload.project_id is not None and payload.project_id != t.project_id:
        project = load_project(db, payload.project_id, for_update=True)
        require_permission(project, user.id, Permission.create_tasks)

    reassigned = "assigned_to" in payload.model_fields_set
    assignee = payload.assigned_to if reassigned else t.assigned_to
    if reassigned or project.id != t.project_id:
        _check_assignee(project, assignee)

    t.project_id = project.id
    t.assigned_to = assignee

    for field in ("title", "priority", "tags"):
        value = getattr(payload, field)
        if value is not None:
            setattr(t, field, value)

    # nullable columns: an explicit null clears them
    for field in NULLABLE_FIELDS & payload.model_fields_set:
        setattr(t, field, getattr(payload, field))

    if payload.status is not None and payload.status != t.status:
        # completed_at tracks entering / leaving done
        if payload.status == TaskStatus.done:
            t.completed_at = now_utc()
        elif t.status == TaskStatus.done:
            t.completed_at = None
        t.status = payload.status

    t.updated_at = now_utc()
    db.commit()
    db.refresh(t)
    return task_out(t)

@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    t, _ = _load_task(db, task_id, user, Permission.delete_tasks)
    db.delete(t)
    db.commit()
    return {"deleted": True}
