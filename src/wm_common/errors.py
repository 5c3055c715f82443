"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Relationship (consultant/customer links, notes)
  3xxx: Dashboard
  9xxx: System

Visibility denial is NOT an error: it is returned as a VisibilityDecision
so callers can tell "not permitted" apart from "no data".
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class RoleRequiredError(AppError):
    def __init__(self, role: str) -> None:
        super().__init__(1006, f"Access denied. {role.capitalize()} role required.", 403)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1007, f"User not found: {user_id}", 404)


class InvalidRoleError(AppError):
    def __init__(self, role: str) -> None:
        super().__init__(1008, f"Invalid role: {role}", 422)


# --- 2xxx: Relationship ---

class LinkNotFoundError(AppError):
    def __init__(self, link_id: str) -> None:
        super().__init__(2001, f"Consultant link not found: {link_id}", 404)


class InvitationExpiredError(AppError):
    def __init__(self, link_id: str) -> None:
        super().__init__(2002, f"Invitation has expired: {link_id}", 422)


class InvitationAlreadyAcceptedError(AppError):
    def __init__(self, link_id: str) -> None:
        super().__init__(2003, f"Invitation already accepted: {link_id}", 422)


class ClientNotLinkedError(AppError):
    def __init__(self, customer_id: str) -> None:
        super().__init__(2004, f"No active link with client {customer_id}", 404)


class NoteNotFoundError(AppError):
    def __init__(self, note_id: str) -> None:
        super().__init__(2005, f"Note not found: {note_id}", 404)


class FeatureUnavailableError(AppError):
    def __init__(self, relation: str) -> None:
        super().__init__(2006, f"Feature unavailable in this deployment: {relation}", 503)


# --- 3xxx: Dashboard ---

class InvalidPeriodError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3001, f"Invalid period: {detail}", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
