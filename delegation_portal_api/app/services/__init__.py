"""
Service layer abstraction.

Each service encapsulates the business logic of one domain and is
called by the API handlers with the caller context.  Persistence goes
through ``core.db`` (and ``OperationStore`` for operations).
"""
