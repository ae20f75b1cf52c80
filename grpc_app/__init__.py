"""gRPC transport layer for the transaction command service.

This package hosts:
- Server bootstrap and interceptors.
- A Struct-based service adapter that maps RPCs to the application service.
"""
