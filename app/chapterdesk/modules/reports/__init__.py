"""Reports module (admin-only): member and transaction spreadsheets generated by the backend."""
