"""
Preview: Open Graph card images, rendered lazily and cached

- card.py:     1200x630 flex-layout HTML for a dashboard record
- renderer.py: HTML -> PNG (headless Chromium screenshot, or a remote render service)
- store.py:    key/value stores with TTL (in-memory, filesystem)
- cache.py:    cache-aside ArtifactCache (immediate vs prefetch operations)
"""
