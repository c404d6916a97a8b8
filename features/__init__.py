"""
Features package — each sub-package encapsulates a self-contained engine.

Convention:
  features/<engine_name>/
    __init__.py      — public API re-exports
    models.py        — data models specific to this engine
    ...              — the stages of the engine, one module each
"""
