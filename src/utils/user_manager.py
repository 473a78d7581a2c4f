"""User management utilities.

This module provides the account lifecycle: registration, credential
verification, security-question recovery, status and role transitions,
federated (Google) accounts and the access policy the auth gate applies.
"""

import logging
import re
import secrets
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, undefer

from config import SECURITY_QUESTIONS
from core.exceptions import (
    AuthError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from core.security import PasswordHasher
from models.user import UserModel

logger = logging.getLogger(__name__)

ROLES = ("student", "admin")
STATUSES = ("pending", "active", "rejected")
EXPERIENCE_LEVELS = ("beginner", "intermediate", "advanced")

# Shared by every credential failure so that responses never reveal which
# part was wrong.
INVALID_CREDENTIALS = "Invalid credentials"

# Fields update_user may write directly; secrets are handled separately.
_PLAIN_FIELDS = ("username", "email", "name", "phone", "security_question", "profile")
_SECRET_FIELDS = ("password", "security_answer")

_USERNAME_SANITIZE_RE = re.compile(r"[^a-zA-Z0-9._-]")


def ensure_account_active(user: Any) -> None:
    """Apply the approval policy to an authenticated account.

    Admins pass regardless of status; everyone else must be active.

    Raises:
        AuthorizationError: If a non-admin account is not active.
    """
    if user.role == "admin":
        return
    if user.status != "active":
        raise AuthorizationError("Account pending approval")


def ensure_admin(user: Any) -> None:
    if user.role != "admin":
        raise AuthorizationError("Access restricted to admin users")


def _blank(value: Optional[str]) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _unique_violation_field(error: IntegrityError) -> str:
    """Name the unique column an IntegrityError collided on."""
    message = str(error.orig).lower()
    for field in ("google_id", "email", "username"):
        if field in message:
            return field
    return "username"


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, hasher: PasswordHasher):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            hasher: Hasher for passwords and security answers.
        """
        self.db = db
        self.hasher = hasher

    # --- Lookups ---

    def _query(self, with_secrets: bool = False):
        query = self.db.query(UserModel)
        if with_secrets:
            query = query.options(
                undefer(UserModel.password_hash),
                undefer(UserModel.security_answer_hash),
            )
        return query

    def get_user_by_id(self, user_id: str, with_secrets: bool = False) -> Optional[UserModel]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.
            with_secrets: Also load the credential hashes.

        Returns:
            UserModel if found, None otherwise.
        """
        return self._query(with_secrets).filter(UserModel.user_id == user_id).first()

    def get_user(self, user_id: str) -> UserModel:
        """Get a user by ID or raise NotFoundError."""
        user = self.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    def get_user_by_username(self, username: str, with_secrets: bool = False) -> Optional[UserModel]:
        return self._query(with_secrets).filter(UserModel.username == username).first()

    def get_user_by_email(self, email: str, with_secrets: bool = False) -> Optional[UserModel]:
        return self._query(with_secrets).filter(UserModel.email == email).first()

    def list_users(self, page: int = 1, limit: int = 10) -> Tuple[List[UserModel], int]:
        """List users newest first.

        Args:
            page: 1-based page number.
            limit: Page size.

        Returns:
            Tuple of (users on the page, total user count).
        """
        total = self.db.query(UserModel).count()
        users = (
            self.db.query(UserModel)
            .order_by(UserModel.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    def list_students(self) -> List[UserModel]:
        return (
            self.db.query(UserModel)
            .filter(UserModel.role == "student")
            .order_by(UserModel.created_at.desc())
            .all()
        )

    def count_users(self, status: Optional[str] = None) -> int:
        query = self.db.query(UserModel)
        if status:
            query = query.filter(UserModel.status == status)
        return query.count()

    # --- Registration ---

    def _validate_security_question(self, question: str) -> None:
        if question not in SECURITY_QUESTIONS:
            raise ValidationError(
                "Invalid security question",
                fields={"security_question": "must be one of the predefined questions"},
            )

    def _commit_new_user(self, user: UserModel) -> None:
        # The unique indexes are the real guard; the pre-checks only make
        # the common case friendlier.
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            field = _unique_violation_field(e)
            logger.info("Rejected duplicate %s on user insert", field)
            raise ConflictError(field) from e
        self.db.refresh(user)

    def create_user(
        self,
        username: Optional[str],
        password: Optional[str],
        name: Optional[str],
        security_question: Optional[str],
        security_answer: Optional[str],
        email: Optional[str] = None,
        phone: Optional[str] = None,
        role: str = "student",
        status: str = "pending",
    ) -> UserModel:
        """Register a new local account.

        Args:
            username: Unique username.
            password: Plain text password.
            name: Display name; optional for admins.
            security_question: One of ``config.SECURITY_QUESTIONS``.
            security_answer: Plain text answer, stored lowercased and hashed.
            email: Optional unique email address.
            phone: Optional phone number.
            role: Account role.
            status: Initial lifecycle status.

        Returns:
            The persisted UserModel.

        Raises:
            ValidationError: If a required field is missing or invalid.
            ConflictError: If the username or email is already taken.
        """
        required = {
            "username": username,
            "password": password,
            "security_question": security_question,
            "security_answer": security_answer,
        }
        if role != "admin":
            required["name"] = name
        missing = {field: "required" for field, value in required.items() if _blank(value)}
        if missing:
            raise ValidationError(
                "Please provide all required fields: " + ", ".join(missing),
                fields=missing,
            )
        if role not in ROLES:
            raise ValidationError("Invalid role", fields={"role": f"must be one of {', '.join(ROLES)}"})
        if status not in STATUSES:
            raise ValidationError("Invalid status", fields={"status": f"must be one of {', '.join(STATUSES)}"})
        self._validate_security_question(security_question)

        email = email.strip() if email and email.strip() else None
        if self.get_user_by_username(username) is not None:
            raise ConflictError("username")
        if email and self.get_user_by_email(email) is not None:
            raise ConflictError("email")

        user = UserModel(
            user_id=uuid.uuid4().hex,
            username=username,
            email=email,
            password_hash=self.hasher.hash_password(password),
            name=name,
            phone=phone or None,
            role=role,
            status=status,
            security_question=security_question,
            security_answer_hash=self.hasher.hash_security_answer(security_answer),
        )
        self._commit_new_user(user)
        logger.info("Created user: %s (role=%s, status=%s)", username, role, status)
        return user

    # --- Credential verification ---

    def authenticate(self, username: str, password: str) -> UserModel:
        """Verify a username/password pair.

        Raises:
            AuthError: With the same message whether the user is unknown or
                the password is wrong.
        """
        user = self.get_user_by_username(username, with_secrets=True)
        if user is None or not self.hasher.verify_password(password, user.password_hash):
            logger.info("Failed login for username=%s", username)
            raise AuthError(INVALID_CREDENTIALS)
        return user

    def authenticate_admin(self, email: str, password: str) -> UserModel:
        """Verify admin credentials, promoting a pending admin to active.

        Raises:
            AuthError: If the account is unknown, not an admin, or the
                password is wrong. The message is identical in each case.
        """
        user = self.get_user_by_email(email, with_secrets=True)
        if user is None or user.role != "admin":
            logger.info("Failed admin login for email=%s", email)
            raise AuthError(INVALID_CREDENTIALS)
        if not self.hasher.verify_password(password, user.password_hash):
            logger.info("Failed admin login for email=%s", email)
            raise AuthError(INVALID_CREDENTIALS)

        if user.status == "pending":
            # Bootstrap convenience so the first operator is never locked out
            user.status = "active"
            self.db.commit()
            self.db.refresh(user)
            logger.info("Promoted pending admin %s to active on login", user.username)
        return user

    # --- Recovery ---

    def get_security_question(self, username: str) -> str:
        """Return the security question of an account.

        Raises:
            NotFoundError: If the username does not exist. This reveals
                account existence; see DESIGN.md.
        """
        user = self.get_user_by_username(username)
        if user is None or not user.security_question:
            raise NotFoundError("User")
        return user.security_question

    def reset_password(self, username: str, security_answer: str, new_password: Optional[str]) -> None:
        """Replace the password after checking the security answer.

        Raises:
            NotFoundError: If the username does not exist.
            AuthError: If the answer does not match.
            ValidationError: If no new password is supplied.
        """
        user = self.get_user_by_username(username, with_secrets=True)
        if user is None:
            raise NotFoundError("User")
        if not self.hasher.verify_security_answer(security_answer, user.security_answer_hash):
            logger.info("Incorrect security answer for username=%s", username)
            raise AuthError("Incorrect security answer")
        if _blank(new_password):
            raise ValidationError("New password is required", fields={"new_password": "required"})
        self.update_user(user.user_id, password=new_password)
        logger.info("Password reset for username=%s", username)

    # --- Updates ---

    def _changed_fields(self, user: UserModel, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Diff requested changes against the stored row."""
        changed = {}
        for field, value in changes.items():
            if field == "password":
                if value is not None and not self.hasher.verify_password(value, user.password_hash):
                    changed[field] = value
            elif field == "security_answer":
                if value is not None and not self.hasher.verify_security_answer(
                    value, user.security_answer_hash
                ):
                    changed[field] = value
            elif getattr(user, field) != value:
                changed[field] = value
        return changed

    def update_user(self, user_id: str, **changes: Any) -> UserModel:
        """Update account fields, hashing secrets only when they change.

        ``password`` and ``security_answer`` are accepted in plain text and
        re-hashed only if they differ from what is stored, so updating an
        unrelated field never touches the hashes.

        Args:
            user_id: Account to update.
            **changes: Field values to write.

        Returns:
            The updated UserModel.

        Raises:
            ValidationError: On unknown fields, an empty username or an invalid
                security question.
            NotFoundError: If the account does not exist.
            ConflictError: If a unique field collides.
        """
        unknown = set(changes) - set(_PLAIN_FIELDS) - set(_SECRET_FIELDS)
        if unknown:
            raise ValidationError(
                "Unknown fields: " + ", ".join(sorted(unknown)),
                fields={field: "not updatable" for field in sorted(unknown)},
            )
        if "username" in changes and _blank(changes["username"]):
            raise ValidationError("Username cannot be empty", fields={"username": "required"})
        user = self.get_user_by_id(user_id, with_secrets=True)
        if user is None:
            raise NotFoundError("User")

        changed = self._changed_fields(user, changes)
        if not changed:
            return user
        if "security_question" in changed:
            self._validate_security_question(changed["security_question"])

        for field, value in changed.items():
            if field == "password":
                user.password_hash = self.hasher.hash_password(value)
            elif field == "security_answer":
                user.security_answer_hash = self.hasher.hash_security_answer(value)
            else:
                setattr(user, field, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(_unique_violation_field(e)) from e
        self.db.refresh(user)
        logger.info("Updated user %s: %s", user_id, ", ".join(sorted(changed)))
        return user

    # --- Lifecycle transitions ---

    def set_status(self, user_id: str, status: str) -> UserModel:
        """Move an account to any lifecycle status.

        Raises:
            ValidationError: If the status is not pending/active/rejected.
            NotFoundError: If the account does not exist.
        """
        if status not in STATUSES:
            raise ValidationError(
                "Invalid status. Must be one of: " + ", ".join(STATUSES),
                fields={"status": "invalid"},
            )
        user = self.get_user(user_id)
        previous = user.status
        user.status = status
        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s status %s -> %s", user_id, previous, status)
        return user

    def approve_user(self, user_id: str) -> UserModel:
        return self.set_status(user_id, "active")

    def reject_user(self, user_id: str) -> UserModel:
        return self.set_status(user_id, "rejected")

    def set_role(self, user_id: str, role: str) -> UserModel:
        if role not in ROLES:
            raise ValidationError(
                "Invalid role. Must be one of: " + ", ".join(ROLES),
                fields={"role": "invalid"},
            )
        user = self.get_user(user_id)
        user.role = role
        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s role set to %s", user_id, role)
        return user

    def delete_user(self, user_id: str) -> None:
        """Delete the account row only; see AdminManager for the cascade."""
        user = self.get_user(user_id)
        self.db.delete(user)
        self.db.commit()
        logger.info("Deleted user: %s", user_id)

    # --- Federated accounts ---

    def _available_username(self, email: Optional[str], name: Optional[str]) -> str:
        base = (email or "").split("@")[0] or (name or "").replace(" ", ".") or "user"
        base = _USERNAME_SANITIZE_RE.sub("", base)[:30] or "user"
        candidate = base
        while self.get_user_by_username(candidate) is not None:
            candidate = f"{base}{secrets.randbelow(10000):04d}"
        return candidate

    def get_or_create_google_user(
        self, google_id: str, email: Optional[str], name: Optional[str]
    ) -> UserModel:
        """Resolve the account for a Google identity, creating it if needed.

        An existing account with the same email is linked to the identity.
        New accounts have no local password and start pending.
        """
        user = self._query().filter(UserModel.google_id == google_id).first()
        if user is not None:
            return user

        if email:
            user = self.get_user_by_email(email)
            if user is not None:
                user.google_id = google_id
                try:
                    self.db.commit()
                except IntegrityError as e:
                    self.db.rollback()
                    raise ConflictError(_unique_violation_field(e)) from e
                self.db.refresh(user)
                logger.info("Linked Google identity to existing user %s", user.username)
                return user

        user = UserModel(
            user_id=uuid.uuid4().hex,
            username=self._available_username(email, name),
            email=email or None,
            google_id=google_id,
            name=name,
            role="student",
            status="pending",
        )
        self._commit_new_user(user)
        logger.info("Created federated user: %s", user.username)
        return user

    def complete_enrollment(
        self,
        user_id: str,
        phone: Optional[str],
        profile: Dict[str, Any],
        security_question: Optional[str] = None,
        security_answer: Optional[str] = None,
    ) -> UserModel:
        """Fill in the profile of a federated account. Status is not changed.

        Raises:
            ValidationError: If the account has no security question yet and
                none is supplied.
        """
        user = self.get_user(user_id)
        changes: Dict[str, Any] = {"phone": phone, "profile": profile}
        if security_question or security_answer or not user.security_question:
            missing = {
                field: "required"
                for field, value in (
                    ("security_question", security_question),
                    ("security_answer", security_answer),
                )
                if _blank(value)
            }
            if missing:
                raise ValidationError(
                    "Please provide a security question and answer",
                    fields=missing,
                )
            changes["security_question"] = security_question
            changes["security_answer"] = security_answer
        return self.update_user(user_id, **changes)
