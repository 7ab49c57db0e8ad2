"""Business logic services.

Variant expansion/collapse, validation and selection are pure and
synchronous; only the catalog client and the editor orchestration do I/O.
"""
