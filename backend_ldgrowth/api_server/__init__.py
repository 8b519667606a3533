"""
API server package: HTTP/REST interface for store operations.

Routers translate requests into service calls; services own validation,
permissions and persistence. Domain errors map to HTTP statuses in server.
"""
