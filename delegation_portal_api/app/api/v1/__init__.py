"""Version 1 of the Delegation Portal API."""
