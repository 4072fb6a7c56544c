"""Composite membership (tag teams, stables).

- repo: pure DB I/O on the ``memberships`` table
- service: create composites and change their members, re-deriving status
"""
