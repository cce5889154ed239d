"""
Bounded contexts of CV Studio.

Each context owns one concern and exposes its public API from its __init__.
Dependencies point leaf-first: schema <- intake, templating <- rendering <- lifecycle.
"""
