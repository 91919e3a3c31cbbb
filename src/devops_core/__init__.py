"""DevOps Core - Azure DevOps work item access and hierarchy resolution.

Modules:
- config: environment-driven settings
- errors: failure taxonomy shared by the client, gate and resolver
- models: work item, identity and credential models
- client: remote work item client (no retries)
- identity: identity gate run before any work item access
- hierarchy: bounded parent-hierarchy resolver
"""

__version__ = "1.0.0"
