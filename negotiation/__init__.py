"""
Negotiation: pick one representation per request

- Crawler override: known link-preview/search bots always get HTML
- Path suffix override: /alice.json, /alice.md, ...
- `Accept: */*` (or none) defaults to Markdown
- Otherwise first literal MIME match in the client's Accept order

Usage:
    from negotiation.formats import resolve
    rep = resolve(NegotiationInput(user_agent, accept, path))
"""
