"""
Negotiated content test suite

Structure:
- unit/: negotiation, cache stores, artifact cache, renderers, content templates, config
- integration/: the FastAPI app end to end (TestClient, fake renderer)
"""
