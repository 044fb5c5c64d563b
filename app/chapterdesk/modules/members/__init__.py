"""
Members module (admin-only).

Scope:
- Member CRUD with profile/cover/logo uploads (multipart to the backend)
- Login credentials set on create only (password + verify)
- Activate/deactivate the member's user account from the list
"""
