from __future__ import annotations

from .enums import Role

# Advertised to clients for UI decisions; enforcement uses role checks only.
ROLE_PERMISSIONS: dict[Role, tuple[str, ...]] = {
    Role.STUDENT: (
        "view_own_profile",
        "update_own_profile",
        "scan_qr",
        "view_own_attendance",
        "download_own_report",
    ),
    Role.TEACHER: (
        "view_own_profile",
        "update_own_profile",
        "generate_qr",
        "view_student_attendance",
        "mark_attendance_manually",
        "generate_reports",
        "manage_subjects",
    ),
    Role.ADMIN: (
        "manage_users",
        "manage_teachers",
        "manage_students",
        "view_all_attendance",
        "generate_system_reports",
        "manage_system_settings",
        "all_permissions",
    ),
}


def permissions_for(role: Role) -> list[str]:
    return list(ROLE_PERMISSIONS.get(role, ROLE_PERMISSIONS[Role.STUDENT]))
