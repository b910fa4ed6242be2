"""Account domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import (
    AlreadyExists,
    AuthenticationError,
    ConflictingState,
    NotFound,
    ValidationFailed,
)


class InvalidCredentials(AuthenticationError):
    """Unknown email, wrong password or deactivated account."""

    default_detail = "Invalid email or password."


class EmailAlreadyRegistered(AlreadyExists):
    default_detail = "Email already registered."


class UserNotFound(NotFound):
    default_detail = "User not found."


class WrongPassword(ValidationFailed):
    default_detail = "Current password is incorrect."


class StaffHasPendingDeliveries(ConflictingState):
    default_detail = "Delivery partner still has undelivered orders."
