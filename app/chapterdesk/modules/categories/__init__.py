"""
Categories module (admin-only).

Business categories members are filed under; subcategories and power teams
refer to them by id.
"""
