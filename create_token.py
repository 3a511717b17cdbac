"""Print a long-lived access token for an existing user.

Usage:
    python create_token.py conseiller@example.com [days]
"""
import sys

from delegation_portal_api.app.core.security import create_access_token

email = sys.argv[1] if len(sys.argv) > 1 else "admin@example.com"
days = int(sys.argv[2]) if len(sys.argv) > 2 else 365
print(create_access_token({"sub": email.strip().lower()}, expires_delta=days * 24 * 60 * 60))
