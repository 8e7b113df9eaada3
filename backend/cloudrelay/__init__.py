"""
Cloud Relay — Application Package Initializer
==============================================

What: Marks the `cloudrelay` directory as a Python package.
Who:  Imported by uvicorn (`cloudrelay.main:app`), the console entry point
      (`python -m cloudrelay`) and pytest.

Architecture Note:
    The relay keeps the same layering throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP shapes and status codes
    ├─────────────────────────────────────┤
    │      Services (Provider clients)    │  ← Anthropic, Blob, Vision, Translator
    ├─────────────────────────────────────┤
    │             Schemas (Data)          │  ← Pydantic response models
    └─────────────────────────────────────┘

    There is no persistence layer: all durable state lives in the remote
    blob container.
"""

__version__ = "1.0.0"
