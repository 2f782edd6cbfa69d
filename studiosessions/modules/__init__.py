"""
Studio Sessions modules.

Each package exposes a small public surface from its __init__ and keeps
the rest private:
- config: environment-backed settings
- auth: request authentication
- storage: SQL execution and schema
- session: session operations returning OperationResult
- api: pydantic models and the HTTP router
"""
