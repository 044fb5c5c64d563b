"""
Entity modules live under this package.

Each module owns its Resource definition (service.py) and its blueprint
(admin.py), and reuses the shared primitives: gateway, CrudViews, RBAC, session.
"""
