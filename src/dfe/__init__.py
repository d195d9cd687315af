"""
Dynamic Form Engine (DFE) Package

Declarative multi-page forms: authored, previewed, persisted, and replayed
by anonymous respondents to collect validated, structured answers.

LAYERS:
-------
    - Schema model:     model, conditions, serialization, integrity, editor
    - Runtime logic:    validator, visibility, navigator, submission
    - Rendering:        backends (input contracts, text preview, DOT)
    - Collaborators:    client, autosave, session, config
    - Tooling:          cli

The schema model knows nothing about rendering or transport.
Validation and visibility are pure and synchronous.
"""

__version__ = "0.1.0"
