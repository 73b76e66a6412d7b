from .models import User

DASHBOARD = {'title': 'Dashboard', 'url': '/dashboard'}
MY_LEAVES = {'title': 'My Leaves', 'url': '/leaves'}
APPLY_LEAVE = {'title': 'Apply Leave', 'url': '/leaves/new'}
CALENDAR = {'title': 'Calendar', 'url': '/calendar'}
PROFILE = {'title': 'Profile', 'url': '/profile'}

MENUS = {
    User.ROLE_EMPLOYEE: (
        DASHBOARD,
        MY_LEAVES,
        APPLY_LEAVE,
        CALENDAR,
        PROFILE,
    ),
    User.ROLE_MANAGER: (
        DASHBOARD,
        MY_LEAVES,
        APPLY_LEAVE,
        {'title': 'Team Leaves', 'url': '/team-leaves'},
        {'title': 'Approvals', 'url': '/approvals'},
        CALENDAR,
        PROFILE,
    ),
    User.ROLE_ADMIN: (
        DASHBOARD,
        MY_LEAVES,
        APPLY_LEAVE,
        {'title': 'All Leaves', 'url': '/admin/leaves'},
        {'title': 'Users', 'url': '/admin/users'},
        {'title': 'Reports', 'url': '/admin/reports'},
        CALENDAR,
        {'title': 'Settings', 'url': '/admin/settings'},
    ),
}


def menu_for(role: str) -> list:
    """Navigation items for a role; unknown roles get the employee menu."""
    items = MENUS.get(role, MENUS[User.ROLE_EMPLOYEE])
    return [dict(item) for item in items]
