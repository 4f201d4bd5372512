"""CLI tool for admin operations.

Usage:
    python -m journal.cli create-admin
    python -m journal.cli unlock-user <username>
    python -m journal.cli export-backup <account_id> [output.json]
    python -m journal.cli import-backup <account_id> <backup.json>
"""

import asyncio
import sys
import getpass
from pathlib import Path

from sqlmodel import Session, select

from journal.database import engine, create_db_and_tables
from journal.engine import backup
from journal.engine.journal import Journal
from journal.engine.persistence import SqlPersistence
from journal.engine.records import Identity
from journal.errors import JournalError
from journal.models.user import User
from journal.services.auth import hash_password, generate_totp_secret, get_totp_uri, unlock_user
from journal.utils.logging import setup_logging


def create_admin():
    """Create an admin user with TOTP setup."""
    create_db_and_tables()

    username = input("Username: ").strip()
    if not username:
        print("Username cannot be empty.")
        sys.exit(1)

    with Session(engine) as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            print(f"User '{username}' already exists.")
            sys.exit(1)

    password = getpass.getpass("Password: ")
    password_confirm = getpass.getpass("Confirm password: ")
    if password != password_confirm:
        print("Passwords do not match.")
        sys.exit(1)

    totp_secret = generate_totp_secret()
    totp_uri = get_totp_uri(totp_secret, username)

    user = User(
        username=username,
        hashed_password=hash_password(password),
        totp_secret=totp_secret,
    )

    with Session(engine) as session:
        session.add(user)
        session.commit()

    print(f"\nAdmin user '{username}' created successfully.")
    print(f"\nTOTP Secret: {totp_secret}")
    print(f"TOTP URI: {totp_uri}")
    print("\nScan the QR code below with your authenticator app:")

    try:
        import qrcode
        qr = qrcode.QRCode(box_size=1, border=1)
        qr.add_data(totp_uri)
        qr.make(fit=True)
        qr.print_ascii(invert=True)
    except ImportError:
        print("(Install qrcode[pil] to display QR code in terminal)")


def unlock(args: list[str]):
    """Reset the failed-login counter of a locked-out user."""
    if not args:
        print("Usage: python -m journal.cli unlock-user <username>")
        sys.exit(1)
    create_db_and_tables()
    with Session(engine) as session:
        unlock_user(session, args[0])
    print(f"User '{args[0]}' unlocked.")


async def _owner_identity(journal: Journal, account_id: str) -> Identity:
    account = await journal.port.load_account(account_id)
    return Identity(user_id=account.user_id, account_id=account.id)


async def _export(account_id: str, output: Path | None):
    journal = Journal(SqlPersistence(engine))
    identity = await _owner_identity(journal, account_id)
    state = await journal.state(identity)
    text = backup.dumps_backup(state)
    if output is None:
        print(text)
    else:
        output.write_text(text, encoding="utf-8")
        print(f"Exported {len(state.trades)} trades to {output}")


async def _import(account_id: str, source: Path):
    journal = Journal(SqlPersistence(engine))
    identity = await _owner_identity(journal, account_id)
    command = backup.import_command(backup.parse_backup(source.read_bytes()))
    state = await journal.execute(identity, command)
    print(f"Imported {len(state.trades)} trades and {len(state.transactions)} transactions "
          f"into account '{state.account.name}'")


def export_backup(args: list[str]):
    if not args:
        print("Usage: python -m journal.cli export-backup <account_id> [output.json]")
        sys.exit(1)
    create_db_and_tables()
    asyncio.run(_export(args[0], Path(args[1]) if len(args) > 1 else None))


def import_backup(args: list[str]):
    if len(args) < 2:
        print("Usage: python -m journal.cli import-backup <account_id> <backup.json>")
        sys.exit(1)
    create_db_and_tables()
    asyncio.run(_import(args[0], Path(args[1])))


def main():
    if len(sys.argv) < 2:
        print("Usage: python -m journal.cli <command>")
        print("Commands: create-admin, unlock-user, export-backup, import-backup")
        sys.exit(1)

    setup_logging()
    command, args = sys.argv[1], sys.argv[2:]
    try:
        if command == "create-admin":
            create_admin()
        elif command == "unlock-user":
            unlock(args)
        elif command == "export-backup":
            export_backup(args)
        elif command == "import-backup":
            import_backup(args)
        else:
            print(f"Unknown command: {command}")
            sys.exit(1)
    except JournalError as e:
        print(f"Error ({e.code}): {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
