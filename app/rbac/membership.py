"""Project membership: read-boundary normalisation, role resolution and the
state-transition rules for adding, removing and re-roling members.

Every function here works on a loaded ``Project`` row and mutates it in place;
callers own the transaction (see ``app.rbac.deps.load_project``).
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone

from loguru import logger

from app.config import settings
from app.models.project import Project
from app.rbac.errors import (
    AlreadyMember,
    CannotRemoveOwner,
    Forbidden,
    NotAMember,
    OwnerRoleImmutable,
    OwnerRoleReserved,
)
from app.rbac.hierarchy import can_manage_role
from app.rbac.perms import Permission, Role, get_default_role, has_permission, parse_role

def _now_utc() -> datetime:
    return datetime.now(timezone.utc)

def _parse_dt(raw: object) -> datetime | None:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw:
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None
    return None

@dataclass(frozen=True)
class MemberEntry:
    user_id: str
    # Role when recognised, otherwise the raw stored value (grants nothing)
    role: str
    joined_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_doc(cls, doc: dict) -> MemberEntry:
        raw_role = doc.get("role")
        return cls(
            user_id=str(doc["user_id"]),
            role=parse_role(raw_role) or str(raw_role or ""),
            joined_at=_parse_dt(doc.get("joined_at")),
            updated_at=_parse_dt(doc.get("updated_at")),
        )

    def to_doc(self) -> dict:
        doc = {
            "user_id": self.user_id,
            "role": self.role.value if isinstance(self.role, Role) else self.role,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
        }
        if self.updated_at is not None:
            doc["updated_at"] = self.updated_at.isoformat()
        return doc

@dataclass(frozen=True)
class ModernMembers:
    entries: tuple[MemberEntry, ...]

@dataclass(frozen=True)
class LegacyMembers:
    # rows written before per-member roles existed only carry member_ids
    member_ids: tuple[str, ...]

MembershipView = ModernMembers | LegacyMembers

def membership_view(project: Project) -> MembershipView:
    raw = project.members
    if raw:
        return ModernMembers(
            tuple(MemberEntry.from_doc(d) for d in raw if isinstance(d, dict) and d.get("user_id"))
        )
    ids = tuple(str(i) for i in (project.member_ids or ()))
    if ids:
        return LegacyMembers(ids)
    return ModernMembers(())

def normalize_members(project: Project) -> list[MemberEntry]:
    """Modern membership entries for ``project``, whatever shape it is stored in.

    Legacy rows are synthesised (owner -> owner, everyone else -> default role).
    The owner always appears exactly once, first, with role ``owner``.
    """
    view = membership_view(project)
    if isinstance(view, LegacyMembers):
        logger.debug(f"Synthesising membership for legacy project {project.id}")
        entries = [
            MemberEntry(
                user_id=uid,
                role=Role.owner if uid == project.owner_id else get_default_role(),
                joined_at=project.created_at,
            )
            for uid in view.member_ids
        ]
    else:
        entries = list(view.entries)

    seen: set[str] = set()
    owner: MemberEntry | None = None
    others: list[MemberEntry] = []
    for e in entries:
        if e.user_id in seen:
            continue
        seen.add(e.user_id)
        if e.user_id == project.owner_id:
            owner = e if e.role == Role.owner else replace(e, role=Role.owner)
        elif e.role == Role.owner:
            # only owner_id may hold owner
            logger.warning(f"Demoting stray owner entry {e.user_id} on project {project.id}")
            others.append(replace(e, role=get_default_role()))
        else:
            others.append(e)

    if owner is None and project.owner_id:
        owner = MemberEntry(user_id=project.owner_id, role=Role.owner, joined_at=project.created_at)
    return ([owner] if owner else []) + others

def _find(entries: list[MemberEntry], user_id: str) -> MemberEntry | None:
    for e in entries:
        if e.user_id == user_id:
            return e
    return None

def _write_members(project: Project, entries: list[MemberEntry]) -> None:
    # both halves of the denormalized pair in one assignment
    project.members = [e.to_doc() for e in entries]
    project.member_ids = [e.user_id for e in entries]
    project.updated_at = _now_utc()

def resolve_role(project: Project, user_id: str | None) -> str | None:
    if not user_id:
        return None
    if user_id == project.owner_id:
        logger.debug(f"Owner shortcut for {user_id} on project {project.id}")
        return Role.owner

    entry = _find(normalize_members(project), user_id)
    return entry.role if entry else None

def require_permission(project: Project, user_id: str | None, permission: Permission) -> tuple[Project, str]:
    role = resolve_role(project, user_id)
    if role is None:
        logger.warning(f"User {user_id} denied {permission.value} on project {project.id}: not a member")
        raise Forbidden("not a member of this project")

    if not has_permission(role, permission):
        logger.warning(f"User {user_id} ({role}) denied {permission.value} on project {project.id}")
        raise Forbidden("forbidden")

    return project, role

def _enforce_rank(actor_role: str, granted: str, current: str | None = None) -> None:
    # off by default: holding manage_members / manage_roles is enough
    if not settings.rbac_enforce_rank_on_assignment or actor_role == Role.owner:
        return
    if not can_manage_role(actor_role, granted):
        raise Forbidden("cannot assign a role at or above your own")
    if current is not None and not can_manage_role(actor_role, current):
        raise Forbidden("cannot manage a member at or above your own role")

def add_member(project: Project, actor_id: str, user_id: str, role: Role | None = None) -> MemberEntry:
    _, actor_role = require_permission(project, actor_id, Permission.manage_members)

    entries = normalize_members(project)
    if _find(entries, user_id) is not None:
        raise AlreadyMember()

    new_role = role or get_default_role()
    if new_role == Role.owner:
        raise OwnerRoleReserved()
    _enforce_rank(actor_role, new_role)

    entry = MemberEntry(user_id=user_id, role=new_role, joined_at=_now_utc())
    _write_members(project, entries + [entry])

    logger.info(f"User {actor_id} added {user_id} to project {project.id} as {new_role.value}")
    return entry

def remove_member(project: Project, actor_id: str, user_id: str) -> MemberEntry:
    _, actor_role = require_permission(project, actor_id, Permission.manage_members)

    if user_id == project.owner_id:
        raise CannotRemoveOwner()

    entries = normalize_members(project)
    target = _find(entries, user_id)
    if target is None:
        raise NotAMember()
    _enforce_rank(actor_role, target.role)

    _write_members(project, [e for e in entries if e.user_id != user_id])

    logger.info(f"User {actor_id} removed {user_id} from project {project.id}")
    return target

def change_role(project: Project, actor_id: str, user_id: str, new_role: Role) -> MemberEntry:
    _, actor_role = require_permission(project, actor_id, Permission.manage_roles)

    entries = normalize_members(project)
    target = _find(entries, user_id)
    if target is None:
        raise NotAMember()

    if user_id == project.owner_id:
        if new_role != Role.owner:
            raise OwnerRoleImmutable()
        return target

    if new_role == Role.owner:
        raise OwnerRoleReserved()
    _enforce_rank(actor_role, new_role, current=target.role)

    updated = replace(target, role=new_role, updated_at=_now_utc())
    _write_members(project, [updated if e.user_id == user_id else e for e in entries])

    logger.info(f"User {actor_id} changed {user_id} on project {project.id}: {target.role} -> {new_role.value}")
    return updated
