from __future__ import annotations


class GenerationFailure(Exception):
    """Producing or persisting a preview artifact failed."""


class RenderError(GenerationFailure):
    """The renderer could not turn the card HTML into image bytes."""


class StoreUnavailable(GenerationFailure):
    """The cache store could not be read or written."""


class RenderTimeout(RenderError):
    """The render did not finish within renderer.render_timeout_s."""
