"""Shared application constants.

Centralizes defaults and vocabularies used by the service, the stores and
the API so we can document and adjust them in one place.
"""

from enum import Enum


# Shift defaults applied when no settings have been saved yet
DEFAULT_START_TIME = "14:00"
DEFAULT_END_TIME = "22:30"
DEFAULT_BREAK_MINUTES = 65
DEFAULT_TRAINING_MINUTES = 0

# Version stamped into full-state JSON exports
STATE_FORMAT_VERSION = 1

# Default page sizes for the list views
WORK_LOG_PAGE_SIZE = 10
AUDIT_LOG_PAGE_SIZE = 20


class AuditAction(str, Enum):
    create_work_log = "CREATE_WORK_LOG"
    update_work_log = "UPDATE_WORK_LOG"
    update_work_log_quick_count = "UPDATE_WORK_LOG_QUICK_COUNT"
    finalize_work_log = "FINALIZE_WORK_LOG"
    delete_work_log = "DELETE_WORK_LOG"
    create_uph_target = "CREATE_UPH_TARGET"
    update_uph_target = "UPDATE_UPH_TARGET"
    delete_uph_target = "DELETE_UPH_TARGET"
    set_active_uph_target = "SET_ACTIVE_UPH_TARGET"
    duplicate_uph_target = "DUPLICATE_UPH_TARGET"
    update_settings = "UPDATE_SETTINGS"
    system_clear_all_data = "SYSTEM_CLEAR_ALL_DATA"
    system_export_data = "SYSTEM_EXPORT_DATA"
    system_import_data = "SYSTEM_IMPORT_DATA"
    system_migrate_data = "SYSTEM_MIGRATE_DATA"


class EntityType(str, Enum):
    work_log = "WorkLog"
    uph_target = "UPHTarget"
    settings = "Settings"
    system = "System"
