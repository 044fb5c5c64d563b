"""Power teams module (admin-only): named groups of related business categories."""
