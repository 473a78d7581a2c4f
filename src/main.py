"""Command-line entry point for bootstrapping the first admin account.

Registration over HTTP only ever creates students, so the first operator
account is created here. It prompts for the account details, writes the
admin directly to the database and exits.
"""

import getpass
import logging
from typing import Optional

from config import SECURITY_QUESTIONS, get_auth_settings
from core.database import SessionLocal, init_db
from core.exceptions import DrawingTutorialError
from core.security import PasswordHasher
from models.user import UserModel
from utils.user_manager import UserManager

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def print_banner() -> None:
    """Print program banner and description."""
    print("=" * 70)
    print("  Drawing Tutorial: admin account setup")
    print("=" * 70)
    print()
    print("Creates an active admin account in the configured database.")
    print("Admins log in at /api/admin/login with their email and password.")
    print()
    print("=" * 70)
    print()


def prompt(label: str, required: bool = True) -> Optional[str]:
    """Prompt until a value is given (or once, for optional fields)."""
    while True:
        value = input(f"{label}: ").strip()
        if value or not required:
            return value or None
        print("  This field is required.")


def choose_security_question() -> str:
    print("\nSecurity questions:")
    for i, question in enumerate(SECURITY_QUESTIONS, 1):
        print(f"  {i}. {question}")
    while True:
        choice = input(f"Choose a question [1-{len(SECURITY_QUESTIONS)}]: ").strip()
        if choice.isdigit() and 1 <= int(choice) <= len(SECURITY_QUESTIONS):
            return SECURITY_QUESTIONS[int(choice) - 1]
        print("  Invalid choice.")


def create_admin_account(
    user_manager: UserManager,
    username: str,
    email: str,
    password: str,
    security_question: str,
    security_answer: str,
    name: Optional[str] = None,
) -> UserModel:
    """Create an active admin account.

    Args:
        user_manager: UserManager bound to an open session.
        username: Unique username.
        email: Unique email, used for admin login.
        password: Plain text password.
        security_question: One of ``config.SECURITY_QUESTIONS``.
        security_answer: Plain text answer.
        name: Optional display name.

    Returns:
        The created UserModel.

    Raises:
        ValidationError: If a field is missing or invalid.
        ConflictError: If the username or email is already taken.
    """
    return user_manager.create_user(
        username=username,
        password=password,
        name=name,
        security_question=security_question,
        security_answer=security_answer,
        email=email,
        role="admin",
        status="active",
    )


def main() -> None:
    print_banner()
    init_db()

    username = prompt("Username")
    email = prompt("Email")
    name = prompt("Name (optional)", required=False)
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Confirm password: "):
        print("\nPasswords do not match.")
        return
    question = choose_security_question()
    answer = prompt("Answer")

    db = SessionLocal()
    try:
        hasher = PasswordHasher(rounds=get_auth_settings().bcrypt_rounds)
        user = create_admin_account(
            UserManager(db, hasher), username, email, password, question, answer, name=name
        )
    except DrawingTutorialError as e:
        print(f"\nFailed to create admin: {e.message}")
        return
    finally:
        db.close()

    logger.info("Admin account created: %s", user.username)
    print(f"\nAdmin '{username}' created. Log in with {email}.")


if __name__ == "__main__":
    main()
