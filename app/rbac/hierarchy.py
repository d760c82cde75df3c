from app.rbac.perms import ROLE_DEFINITIONS, Role, get_all_roles, get_role_definition

def role_rank(role: object) -> int | None:
    definition = get_role_definition(role)
    return definition.hierarchy_rank if definition else None

def can_manage_role(manager_role: object, target_role: object) -> bool:
    """True iff the manager strictly out-ranks the target; never for equal roles."""
    manager = role_rank(manager_role)
    target = role_rank(target_role)
    if manager is None or target is None:
        return False
    return manager > target

def get_assignable_roles(manager_role: object) -> list[Role]:
    manager = role_rank(manager_role)
    if manager is None:
        return []
    return [d.role for d in get_all_roles() if d.hierarchy_rank < manager]

def has_minimum_role(role: object, minimum: Role) -> bool:
    rank = role_rank(role)
    if rank is None:
        return False
    return rank >= ROLE_DEFINITIONS[minimum].hierarchy_rank
