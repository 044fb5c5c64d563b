"""
Memberships module (admin-only).

Package purchases by members: invoice and payment details, CGST/SGST or IGST
depending on the member's state, and the VENUE/HO rule that a member holds at
most one active membership of each primary kind.
"""
