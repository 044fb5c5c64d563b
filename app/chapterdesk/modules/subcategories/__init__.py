"""Subcategories module (admin-only). Each subcategory belongs to one category."""
