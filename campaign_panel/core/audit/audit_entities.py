# campaign_panel/core/audit/audit_entities.py

class AuditTable:
    USERS = "users"


class AuditAction:
    LOGIN = "login"
    LOGOUT = "logout"
    INVALIDATE_SESSIONS = "invalidate_sessions"
    REQUEST_PASSWORD_RESET = "request_password_reset"
    RESET_PASSWORD = "reset_password"
    CREATE = "create"
    UPDATE = "update"
    CHANGE_PASSWORD = "change_password"
    IMPERSONATE = "impersonate"
