#!/usr/bin/env python3
"""
Password Hash Utility
Generates the bcrypt ADMIN_PASSWORD_HASH for the CMS, or checks a password
against an existing hash.

Usage:
  python generate_password_hash.py              - Generate a new hash
  python generate_password_hash.py --check HASH - Test a password against HASH
"""
import getpass
import sys

from portfolio.utils.auth import hash_password, verify_password


def generate() -> int:
    password = getpass.getpass("Enter admin password: ")
    if not password:
        print("Error: Password cannot be empty")
        return 1

    if password != getpass.getpass("Confirm password: "):
        print("Error: Passwords do not match")
        return 1

    print("\nGenerating hash (this may take a moment)...")
    print("\nCopy this line to your .env file:\n")
    print(f"ADMIN_PASSWORD_HASH={hash_password(password)}")
    print("\nKeep this hash secret and never commit it to version control!")
    return 0


def check(hash_value: str) -> int:
    print(f"Testing against hash: {hash_value[:30]}...")
    password = getpass.getpass("Enter password to test: ")

    if verify_password(password, hash_value):
        print("Password matches!")
        return 0

    print("Password does not match.")
    print("Generate a new hash with: python generate_password_hash.py")
    return 1


def main() -> int:
    print("=" * 60)
    print("CMS Admin Password Hash Utility")
    print("=" * 60)

    if len(sys.argv) >= 3 and sys.argv[1] == "--check":
        return check(sys.argv[2])
    if len(sys.argv) > 1:
        print(__doc__)
        return 2
    return generate()


if __name__ == "__main__":
    sys.exit(main())
