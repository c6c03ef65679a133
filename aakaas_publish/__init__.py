"""AAKaaS Target Vector publication step.

Pipeline step that triggers publication of a Target Vector in the Addon
Assembly Kit as a Service (AAKaaS) and waits, within a bounded time
budget, for the publication to reach a terminal state.
"""

__version__ = "0.1.0"
