"""
Chapter transactions module (admin-only).

Cash/bank ledger entries per chapter. The backend refuses entries that would
take a balance below zero; that rejection comes back with the NEGATIVE_BALANCE
code and is shown as a banner on the chapter's transaction list.
"""
