"""
Services Layer

Bracket logic over the Storage interface:
- Accept domain inputs (InputStage, ids, a Storage)
- Return plain record dicts
- Do NOT depend on HTTP request/response objects or on a database session
"""
