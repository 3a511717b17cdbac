#!/usr/bin/env python3
"""
Manage the administrator and disabled flags of a user in the SQLite database.

Administrators may update the status of any delegation operation, not
only their own.  A disabled user can no longer log in and any token
already issued to them is rejected.

Usage:
    python create_admin.py --db ./delegation_portal_api/delegation_portal.db --email admin@example.com
    python create_admin.py --db ./delegation_portal_api/delegation_portal.db --email admin@example.com --revoke
    python create_admin.py --db ./delegation_portal_api/delegation_portal.db --email user@example.com --disable
    python create_admin.py --db ./delegation_portal_api/delegation_portal.db --email user@example.com --enable
"""

import argparse
import os
import sqlite3
import sys


def main(argv=None):
    ap = argparse.ArgumentParser(description="Manage Delegation Portal user flags (SQLite).")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file (e.g., ./delegation_portal_api/delegation_portal.db)")
    ap.add_argument("--email", required=True, help="User email to update")
    action = ap.add_mutually_exclusive_group()
    action.add_argument("--revoke", action="store_true", help="Remove the administrator flag instead of granting it")
    action.add_argument("--disable", action="store_true", help="Disable the account (login and tokens refused)")
    action.add_argument("--enable", action="store_true", help="Re-enable a disabled account")
    args = ap.parse_args(argv)

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        sys.exit(1)

    email = args.email.strip().lower()
    if args.disable or args.enable:
        column, value = "disabled", 1 if args.disable else 0
        message = "Account disabled" if args.disable else "Account enabled"
    else:
        column, value = "is_admin", 0 if args.revoke else 1
        message = "Administrator flag revoked from" if args.revoke else "Administrator flag granted to"

    conn = sqlite3.connect(args.db)
    try:
        cur = conn.cursor()
        cur.execute("SELECT id FROM users WHERE email = ?", (email,))
        if not cur.fetchone():
            print(f"[!] No user found with email: {email}", file=sys.stderr)
            sys.exit(2)

        cur.execute(
            f"UPDATE users SET {column} = ?, updated_at = CURRENT_TIMESTAMP WHERE email = ?",
            (value, email),
        )
        conn.commit()
        print(f"[+] {message}: {email}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
