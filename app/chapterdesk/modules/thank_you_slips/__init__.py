"""
Thank-you slips module.

Slips record business that came out of a reference (or directly between
members). They are created from a "business done" reference by its receiver
and listed as given / received for the logged-in member.
"""
