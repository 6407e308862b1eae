"""Top-level package for newsdesk.

A terminal reader for news section feeds. Article pages are fetched through a
background daemon that keeps one warm HTTP session, with a TTL file cache in
front of it for instant repeat reads.
"""

__all__ = []
