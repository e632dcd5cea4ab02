"""
Services Layer

Pure business logic services that:
- Accept domain inputs (IDs, sessions, etc.)
- Return domain outputs (models, dicts, etc.)
- Raise pickem.errors exceptions, never HTTP exceptions
- Own their transaction boundary (one commit per public operation)
"""
