"""Account service layer: authentication and staff administration.

``AuthService`` covers login, logout, the current user, password change and
admin registration.  ``StaffService`` manages store staff.  Accounts are
never deleted, only deactivated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.contrib.auth.models import update_last_login
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from modules.accounts.authentication import issue_token, revoke_token
from modules.accounts.constants import STAFF_ROLES, STORE_BOUND_ROLES, Role
from modules.accounts.exceptions import (
    EmailAlreadyRegistered,
    InvalidCredentials,
    StaffHasPendingDeliveries,
    UserNotFound,
    WrongPassword,
)
from modules.accounts.permissions import resolve_store_scope
from modules.core.exceptions import NotFound, ValidationFailed

if TYPE_CHECKING:
    from rest_framework_simplejwt.tokens import Token

    from modules.accounts.dtos import (
        Actor,
        CreateStaffDTO,
        RegisterUserDTO,
        UpdateStaffDTO,
    )
    from modules.accounts.models import User
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


def _check_password_strength(password: str, user: Optional[User] = None) -> None:
    try:
        validate_password(password, user)
    except DjangoValidationError as exc:
        raise ValidationFailed(" ".join(exc.messages), attr="password")


class AuthService:
    def __init__(
        self,
        user_repository: IUserRepository,
        store_repository: IStoreRepository,
        customer_repository: ICustomerRepository,
    ) -> None:
        self._users = user_repository
        self._stores = store_repository
        self._customers = customer_repository

    def login(self, email: str, password: str) -> tuple[User, str]:
        """Return the user and a signed access token.

        Unknown email, wrong password and inactive account all produce the
        same error.
        """
        log = logger.bind(email=email)
        user = self._users.get_by_email(email)
        if user is None or not user.is_active or not user.check_password(password):
            log.warning("auth.login_failed")
            raise InvalidCredentials()
        token = issue_token(user)
        update_last_login(None, user)
        log.info("auth.login_succeeded", user_id=str(user.id), role=user.role)
        return user, str(token)

    def logout(self, token: Token) -> None:
        revoke_token(token)

    @transaction.atomic
    def change_password(self, user: User, current: str, new: str) -> None:
        if not user.check_password(current):
            raise WrongPassword(attr="current_password")
        _check_password_strength(new, user)
        user.set_password(new)
        self._users.save(user)
        logger.info("auth.password_changed", user_id=str(user.id))

    @transaction.atomic
    def register(self, dto: RegisterUserDTO) -> User:
        """Create a user of any role; customers get their profile atomically."""
        if self._users.get_by_email(dto.email):
            raise EmailAlreadyRegistered(attr="email")
        if dto.store_id is not None and not self._stores.get_by_id(str(dto.store_id)):
            raise NotFound("Store not found.", attr="store_id")
        _check_password_strength(dto.password)

        user = self._users.create_user(
            dto.password,
            email=dto.email,
            name=dto.name,
            phone=dto.phone,
            role=dto.role,
            store_id=dto.store_id if dto.role in STORE_BOUND_ROLES else None,
        )
        if dto.role == Role.CUSTOMER:
            self._customers.create_profile(
                user=user,
                store_id=dto.store_id,
                apartment=dto.apartment,
                address=dto.address,
            )
        logger.info("auth.user_registered", user_id=str(user.id), role=user.role)
        return user


class StaffService:
    def __init__(
        self,
        user_repository: IUserRepository,
        store_repository: IStoreRepository,
    ) -> None:
        self._users = user_repository
        self._stores = store_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_staff(
        self,
        actor: Actor,
        store_id: Optional[str] = None,
        role: Optional[str] = None,
    ):
        """Staff visible to ``actor``; managers only see their own store."""
        scope = resolve_store_scope(actor, store_id)
        filters: Dict[str, Any] = {"role__in": sorted(STAFF_ROLES)}
        if scope is not None:
            filters["store_id"] = scope
        if role:
            filters["role"] = role
        return self._users.list(filters).order_by("name")

    def get_staff(self, id: str) -> User:
        user = self._users.with_delivery_stats(id)
        if user is None or user.role == Role.CUSTOMER:
            raise UserNotFound()
        return user

    def delivery_boys(self, actor: Actor, store_id: str):
        resolve_store_scope(actor, store_id)
        if not self._stores.get_by_id(store_id):
            raise NotFound("Store not found.", attr="store_id")
        return self._users.active_delivery_boys(store_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_staff(self, dto: CreateStaffDTO) -> User:
        if self._users.get_by_email(dto.email):
            raise EmailAlreadyRegistered(attr="email")
        if dto.role != Role.ADMIN and not self._stores.get_by_id(str(dto.store_id)):
            raise NotFound("Store not found.", attr="store_id")
        _check_password_strength(dto.password)

        user = self._users.create_user(
            dto.password,
            email=dto.email,
            name=dto.name,
            phone=dto.phone,
            role=dto.role,
            store_id=dto.store_id if dto.role != Role.ADMIN else None,
            is_staff=dto.role == Role.ADMIN,
        )
        logger.info("staff.created", user_id=str(user.id), role=user.role)
        return user

    @transaction.atomic
    def update_staff(self, id: str, dto: UpdateStaffDTO) -> User:
        user = self.get_staff(id)
        log = logger.bind(user_id=str(user.id))

        if dto.store_id is not None and not self._stores.get_by_id(str(dto.store_id)):
            raise NotFound("Store not found.", attr="store_id")

        for field in ("name", "phone", "role", "store_id", "is_active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(user, field, value)

        if user.role in STORE_BOUND_ROLES and user.store_id is None:
            raise ValidationFailed("Store is required for this role.", attr="store_id")
        if user.role == Role.ADMIN:
            user.store_id = None

        self._users.save(user)
        log.info("staff.updated")
        return user

    @transaction.atomic
    def reset_password(self, id: str, password: str) -> None:
        user = self.get_staff(id)
        _check_password_strength(password, user)
        user.set_password(password)
        self._users.save(user)
        logger.info("staff.password_reset", user_id=str(user.id))

    @transaction.atomic
    def deactivate_staff(self, id: str) -> None:
        user = self.get_staff(id)
        log = logger.bind(user_id=str(user.id))
        if user.role == Role.DELIVERY_BOY and self._users.pending_delivery_count(id):
            log.warning("staff.deactivate_refused")
            raise StaffHasPendingDeliveries()
        user.is_active = False
        self._users.save(user)
        log.info("staff.deactivated")
