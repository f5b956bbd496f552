"""
Service layer abstraction.

``client_store`` owns persistence, ``lane_reorder`` the ordering
algorithm and ``client_service`` the async facade the API handlers
call.
"""
