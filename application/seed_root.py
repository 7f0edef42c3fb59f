#!/usr/bin/env python3
"""
Create the root admin account.

Usage: python seed_root.py <email> <password>
"""
import sys

from support_directory.core.constants import ROOT_BRANCH_NAME, ROOT_USER_ID, Roles
from support_directory.repository.accounts import AccountRepository
from support_directory.utils.passwords import hash_password
from support_directory.config.settings import DirectoryConfigs

configs = DirectoryConfigs()


def seed_root(email: str, password: str) -> bool:
    """Returns False when an account with this email already exists."""
    accounts = AccountRepository()
    email = email.strip().lower()
    if accounts.get_by_email(email) is not None:
        print(f"Account with email {email} already exists, nothing to do")
        return False

    accounts.create(
        user_id=ROOT_USER_ID,
        username="root",
        email=email,
        name=ROOT_BRANCH_NAME,
        role=Roles.ROOT,
        password_hash=hash_password(password),
    )
    print(f"Root account created for {email}")
    return True


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python seed_root.py <email> <password>")
        sys.exit(1)

    _, email_arg, password_arg = sys.argv
    if len(password_arg) < configs.PASSWORD_MIN_LENGTH:
        print(f"Password must be at least {configs.PASSWORD_MIN_LENGTH} characters")
        sys.exit(1)

    seed_root(email_arg, password_arg)
