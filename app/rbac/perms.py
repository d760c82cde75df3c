from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

class Role(str, Enum):
    owner = "owner"
    team_lead = "team_lead"
    developer = "developer"
    designer = "designer"
    tester = "tester"
    viewer = "viewer"

class Permission(str, Enum):
    view_project = "view_project"
    edit_project = "edit_project"
    delete_project = "delete_project"

    manage_members = "manage_members"
    manage_roles = "manage_roles"

    create_tasks = "create_tasks"
    edit_tasks = "edit_tasks"
    delete_tasks = "delete_tasks"

    create_sprints = "create_sprints"
    edit_sprints = "edit_sprints"
    delete_sprints = "delete_sprints"

@dataclass(frozen=True)
class RoleDefinition:
    role: Role
    display_name: str
    description: str
    permissions: frozenset[Permission]
    hierarchy_rank: int

_TASK_WORK = frozenset({Permission.view_project, Permission.create_tasks, Permission.edit_tasks, Permission.delete_tasks})

# literal table; permission sets are not monotonic in rank (designer == developer)
ROLE_DEFINITIONS: Mapping[Role, RoleDefinition] = MappingProxyType({
    Role.owner: RoleDefinition(
        role=Role.owner,
        display_name="Project Owner",
        description="Full control over the project including member management and project settings",
        permissions=frozenset(Permission),
        hierarchy_rank=6,
    ),
    Role.team_lead: RoleDefinition(
        role=Role.team_lead,
        display_name="Team Lead",
        description="Can manage team members, tasks, and sprints but cannot delete the project",
        permissions=frozenset(Permission) - {Permission.delete_project},
        hierarchy_rank=5,
    ),
    Role.developer: RoleDefinition(
        role=Role.developer,
        display_name="Developer",
        description="Can work with tasks and view project details",
        permissions=_TASK_WORK,
        hierarchy_rank=4,
    ),
    Role.designer: RoleDefinition(
        role=Role.designer,
        display_name="Designer",
        description="Can work with design-related tasks and view project details",
        permissions=_TASK_WORK,
        hierarchy_rank=3,
    ),
    Role.tester: RoleDefinition(
        role=Role.tester,
        display_name="Tester",
        description="Can create and edit tasks, typically for bug reports and testing",
        permissions=frozenset({Permission.view_project, Permission.create_tasks, Permission.edit_tasks}),
        hierarchy_rank=2,
    ),
    Role.viewer: RoleDefinition(
        role=Role.viewer,
        display_name="Viewer",
        description="Read-only access to project information",
        permissions=frozenset({Permission.view_project}),
        hierarchy_rank=1,
    ),
})

DEFAULT_ROLE = Role.developer

def parse_role(value: object) -> Role | None:
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None

def get_role_definition(role: object) -> RoleDefinition | None:
    parsed = parse_role(role)
    if parsed is None:
        return None
    return ROLE_DEFINITIONS[parsed]

def get_all_roles() -> list[RoleDefinition]:
    return sorted(ROLE_DEFINITIONS.values(), key=lambda d: d.hierarchy_rank, reverse=True)

def get_default_role() -> Role:
    return DEFAULT_ROLE

def get_role_display_name(role: object) -> str:
    definition = get_role_definition(role)
    if definition is None:
        return str(role.value if isinstance(role, Enum) else role)
    return definition.display_name

def get_role_description(role: object) -> str:
    definition = get_role_definition(role)
    if definition is None:
        return "No description available"
    return definition.description

def get_role_permissions(role: object) -> frozenset[Permission]:
    definition = get_role_definition(role)
    if definition is None:
        return frozenset()
    return definition.permissions

def get_role_options() -> list[dict]:
    return [
        {
            "value": d.role,
            "label": d.display_name,
            "description": d.description,
            "rank": d.hierarchy_rank,
        }
        for d in get_all_roles()
    ]

# unknown roles fail closed
def has_permission(role: object, permission: Permission) -> bool:
    return permission in get_role_permissions(role)

def can_perform_action(user_role: object, required: Permission) -> bool:
    if not user_role:
        return False
    return has_permission(user_role, required)

def role_value(role: object) -> str | None:
    if role is None:
        return None
    return role.value if isinstance(role, Role) else str(role)
