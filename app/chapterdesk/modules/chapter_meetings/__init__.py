"""
Chapter meetings module.

Meetings belong to the logged-in member's chapter; the chapter is taken from
the session rather than picked on the form.
"""
