"""States module (admin-only). Member addresses pick their state from this list."""
