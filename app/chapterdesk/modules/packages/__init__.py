"""
Packages module (admin-only).

Membership packages priced as basic fees plus GST. Venue-fee packages are tied
to one chapter; everything else is chapter-independent.
"""
