"""Pure costing, pricing and reporting functions.

Nothing in this package touches the database; callers fetch rows, hand them in
as mappings and persist what comes back.
"""
