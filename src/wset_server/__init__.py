"""wset_server — FastAPI REST API for the WSET exam workflow.

Exposes the ``wset_workflow`` SDK to the storefront webhook and the
dashboard UI: order intake, workflow queries, deadline checks, and
operator actions.
"""
