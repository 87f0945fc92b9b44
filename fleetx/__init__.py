"""
FleetX - Client Core Package

The non-presentational core of the FleetX fleet-management client:
session lifecycle, role-based screen gating, remote collection
fetching, transaction aggregation and the double-tap delete pipeline.

DESIGN PRINCIPLES:
1. One owned session store, never ad hoc global auth state
2. Fail closed: unknown roles are treated as logged out
3. No optimistic deletes: the view changes only after the backend agrees
4. Every session transition and destructive action is audited
5. Storage and HTTP transport are swappable
"""

__version__ = "1.0.0"
__author__ = "FleetX Team"
