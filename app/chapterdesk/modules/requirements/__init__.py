"""
Requirements module.

Members post what they are looking for; the backend returns the whole list as a
bare array, so searching and paging happen here.
"""
