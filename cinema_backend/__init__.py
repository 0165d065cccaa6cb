"""
Backend package for the movie catalog and watch-tracking API.

This package provides a FastAPI application that relays requests to a
managed auth/database provider (Supabase) and appends movie suggestions
to a Google spreadsheet. Each remote collaborator sits behind a small
client abstraction with an in-memory implementation for tests and local runs.
"""
