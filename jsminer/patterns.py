"""
Named regex registry for JS Miner scanners.

Every pattern a scanner uses is defined here, compiled once at import.
"""

from __future__ import annotations

import re

# Quoted key/value assignment whose key names a credential. The value is
# captured as ``secret`` and never spans whitespace or quotes.
SECRETS = re.compile(
    r"""
    (?<![\w$-])
    ["'`]?
    [\w$-]*
    (?:api[_-]?key|secret|token|passw(?:or)?d|pwd|auth|access[_-]?key|
       private[_-]?key|client[_-]?id|credential|session[_-]?key|signature)
    [\w$-]*
    ["'`]?
    \s*[:=]\s*
    ["'`](?P<secret>[^"'`\s]{1,512})["'`]
    """,
    re.IGNORECASE | re.VERBOSE,
)

HTTP_BASIC_AUTH = re.compile(
    r"""
    (?P<prefix>authorization["'`]?\s*[:=]\s*["'`]?basic\s+)
    (?P<credential>[A-Za-z0-9+/]{4,}={0,2})
    """,
    re.IGNORECASE | re.VERBOSE,
)

# Applied to whitespace-stripped content; ``block`` holds the
# comma separated "name":"version" pairs.
DEPENDENCY_BLOCK = re.compile(
    r"""["'`]?(?:dependencies|devDependencies|peerDependencies|optionalDependencies|bundledDependencies)["'`]?:\{(?P<block>[^{}]*)\}""",
    re.IGNORECASE,
)

DEPENDENCY_ENTRY = re.compile(r"""["'`](.*)["'`]:["'`](.*)["'`]""")

NODE_MODULES_DISCLOSURE = re.compile(r"/node_modules/(?P<name>(?:@[\w.~-]+/)?[\w.~-]+)")

CLOUD_URLS = re.compile(
    r"""
    (?:https?:)?//
    (?:
        [\w.-]+\.s3(?:[.-][\w-]+)*\.amazonaws\.com(?:\.cn)?
      | s3(?:[.-][\w-]+)*\.amazonaws\.com(?:\.cn)?/[\w.-]+
      | [\w-]+\.execute-api\.[\w-]+\.amazonaws\.com
      | [\w-]+\.lambda-url\.[\w-]+\.on\.aws
      | [\w-]+\.cloudfront\.net
      | storage\.googleapis\.com/[\w.-]+
      | [\w.-]+\.storage\.googleapis\.com
      | [\w-]+\.cloudfunctions\.net
      | [\w-]+\.run\.app
      | [\w-]+(?:-default-rtdb)?\.firebaseio\.com
      | [\w-]+\.firebasestorage\.app
      | [\w-]+\.blob\.core\.windows\.net
      | [\w-]+\.azurewebsites\.net
      | [\w-]+\.azureedge\.net
      | (?:[\w-]+\.)?[\w-]+\.digitaloceanspaces\.com
      | [\w-]+\.r2\.cloudflarestorage\.com
    )
    (?:/[\w./%~+-]*)?
    """,
    re.IGNORECASE | re.VERBOSE,
)


def _endpoint_pattern(method: str) -> re.Pattern[str]:
    """
    Call shapes that send a request with the given HTTP method.

    Covers ``client.<method>("/path")``, ``xhr.open("<METHOD>", "/path")``
    and ``fetch("/path", {method: "<METHOD>"})``. A bare ``fetch("/path")``
    counts as GET. Exactly one group captures the path.
    """
    shapes = [
        rf"""\.{method}\s*\(\s*["'`]([^"'`\s]+)["'`]""",
        rf"""\.open\s*\(\s*["'`]{method}["'`]\s*,\s*["'`]([^"'`\s]+)["'`]""",
        rf"""\bfetch\s*\(\s*["'`]([^"'`\s]+)["'`]\s*,\s*\{{[^{{}}]*?method\s*:\s*["'`]{method}["'`]""",
    ]
    if method == "get":
        shapes.append(r"""\bfetch\s*\(\s*["'`]([^"'`\s]+)["'`]\s*\)""")
    return re.compile("|".join(shapes), re.IGNORECASE)


ENDPOINTS: dict[str, re.Pattern[str]] = {
    method.upper(): _endpoint_pattern(method)
    for method in ("get", "post", "put", "delete", "patch")
}

INLINE_SOURCE_MAP = re.compile(
    r"""
    sourceMappingURL\s*=\s*
    data:application/json(?:;charset=[\w-]+)?;base64,
    (?P<payload>[A-Za-z0-9+/]+={0,2})
    """,
    re.IGNORECASE | re.VERBOSE,
)

SCRIPT_TAG = re.compile(r"<script\b(?P<attrs>[^>]*)>(?P<body>.*?)</script\s*>", re.IGNORECASE | re.DOTALL)
STYLE_TAG = re.compile(r"<style\b[^>]*>(?P<body>.*?)</style\s*>", re.IGNORECASE | re.DOTALL)
LINK_TAG = re.compile(r"<link\b(?P<attrs>[^>]*)>", re.IGNORECASE)
TAG_ATTRIBUTE = re.compile(r"""(?P<name>[\w:-]+)\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s>]+))""")


def subdomain_pattern(root_domain: str) -> re.Pattern[str]:
    """Label sequence ending in exactly the given root domain."""
    return re.compile(rf"(?<![a-z0-9-])(?:[a-z0-9-]+\.)+{re.escape(root_domain)}", re.IGNORECASE)
