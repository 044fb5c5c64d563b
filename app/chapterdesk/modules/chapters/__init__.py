"""Chapters module (admin-only): chapter CRUD, with a link through to each chapter's transactions."""
