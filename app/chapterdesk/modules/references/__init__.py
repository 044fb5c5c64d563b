"""
References module.

Members pass business references to each other. Scope:
- Reference CRUD (date, chapter, receiving member, referral contact details)
- Given / received views with status and date filters
- Status tracking: pending -> contacted -> business done | rejected, changed
  only by the receiving member; every change is appended to the history
  server-side
- "business done" references lead on to a thank-you slip
"""
