"""
Studio Sessions - Recording Studio Session Tracking

Tracks band recording sessions at studios: starting and ending sessions,
duration accounting, history and per-studio statistics.

Modules are replaceable black boxes that only talk through their package
interfaces:
- auth: Authentication gate (JWT bearer tokens and API keys)
- session: Session resource handler
- storage: Parameterized query execution over the relational store
- api: REST API interface
- config: Application configuration
"""

__version__ = "1.0.0"
