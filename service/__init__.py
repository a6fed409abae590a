"""
Service: HTTP front for the negotiated dashboard resource

- GET /{name}[.ext] -> Markdown / HTML / JSON / YAML / PNG preview, chosen per request
- every hit schedules a background prefetch of the preview image
- Optional endpoints: /, /-/health

Run:
    uvicorn service.server:create_app --factory --port 8000
    python -m service.server
"""
