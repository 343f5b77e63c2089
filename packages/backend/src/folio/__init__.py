"""Folio — backend for a personal portfolio site.

Serves the public content API (tracks, images, projects, comments,
visit counters), the admin CRUD endpoints that manage it, and a
real-time event stream that pushes content changes to open pages.
"""

__version__ = "0.1.0"
