"""Core utilities and shared infrastructure.

- config: Step configuration loading and validation
- constants: Defaults, option names, environment variable names
- clock: Monotonic clock abstraction used for deadlines
- exceptions: Classified exception hierarchy
- secrets: Secret masking for log output
"""
