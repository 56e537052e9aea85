"""mindflow_server — FastAPI REST API for the stepped flow engine.

Exposes FlowService as a stateless HTTP API: flow lifecycle, step-by-step
navigation, submission retry and reference data (flow definitions,
support resources).
"""
