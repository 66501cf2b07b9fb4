"""
Licensing Service package for the access layer.

Resolves which license governs an organization at a given moment and which
product features it may use. It provides:

- app.main: API surface for activation, active-license lookup, billing
  sessions and feature flags.
- app.licenses: catalog, models, payload parsing, active-license selection
  and the synthetic fallback license.
- app.persistence: the license store contract and its PostgreSQL implementation.
- app.upstream: client for the upstream entitlement authority.
- app.flags: dynamically evaluated, organization-keyed boolean flags.

Guidelines:
- The service is stateless; rely on the store for license history.
- Every caller always gets exactly one license view, real or synthetic.
"""
