from __future__ import annotations

import logging
from typing import List, Optional, Pattern, Tuple

from common.types import NegotiationInput, Representation
from negotiation.crawlers import CRAWLERS, detect_crawler


log = logging.getLogger(__name__)

# Path-suffix aliases, scanned in order. png is opt-in (see FormatResolver).
TEXT_ALIASES: List[Tuple[str, Representation]] = [
    ("md", Representation.MARKDOWN),
    ("html", Representation.HTML),
    ("json", Representation.JSON),
    ("yaml", Representation.YAML),
]

WILDCARD = "*/*"


def path_extension(path: str) -> Optional[str]:
    """Text after the last '.' of the final '/' segment, or None if it has no '.'."""
    segment = path.split("/")[-1]
    if "." not in segment:
        return None
    return segment.rsplit(".", 1)[1]


def accept_tokens(accept: str) -> List[str]:
    """Media ranges in client order, parameters (';q=...') stripped."""
    return [part.split(";")[0].strip() for part in accept.split(",")]


class FormatResolver:
    """
    Decide which single representation answers a request.

    Order (first hit wins):
      1) crawler UA            -> HTML
      2) known path extension  -> aliased representation
      3) no Accept / '*/*'     -> Markdown
      4) first Accept token equal to a canonical MIME type
      5) None (not acceptable)
    """

    def __init__(
        self,
        *,
        png_path_alias: bool = True,
        crawlers: Optional[List[Tuple[str, Pattern[str]]]] = None,
    ) -> None:
        self.crawlers = list(CRAWLERS if crawlers is None else crawlers)
        self.aliases: List[Tuple[str, Representation]] = list(TEXT_ALIASES)
        if png_path_alias:
            self.aliases.append((Representation.IMAGE.extension, Representation.IMAGE))

    def resolve(self, inp: NegotiationInput) -> Optional[Representation]:
        crawler = detect_crawler(inp.user_agent, self.crawlers)
        if crawler:
            log.debug("crawler override", extra={"extra": {"crawler": crawler, "path": inp.path}})
            return Representation.HTML

        ext = path_extension(inp.path)
        if ext is not None:
            for alias, rep in self.aliases:
                if alias == ext:
                    return rep

        if not inp.accept or inp.accept == WILDCARD:
            return Representation.MARKDOWN

        for token in accept_tokens(inp.accept):
            rep = Representation.from_mime(token)
            if rep is not None:
                return rep
        return None


_default = FormatResolver()


def resolve(inp: NegotiationInput) -> Optional[Representation]:
    """Resolve with the default resolver (png path alias enabled)."""
    return _default.resolve(inp)
