"""
Visitors module.

Guests invited to a chapter meeting. A cross-chapter visitor is a member of
another chapter and only needs the home chapter and the inviting member; any
other visitor needs full contact and business details.
"""
