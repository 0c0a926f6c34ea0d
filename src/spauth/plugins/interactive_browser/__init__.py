"""Interactive browser resolver (authorization-code grant with PKCE).

See Also:
    :class:`~spauth.plugins.interactive_browser.plugin.InteractiveBrowserResolver`
    :class:`~spauth.plugins.interactive_browser.callback.CallbackListener`
"""

from spauth.plugins.interactive_browser.plugin import (
    InteractiveBrowserResolver,
    generate_pkce_pair,
    generate_state,
)

__all__ = ["InteractiveBrowserResolver", "generate_pkce_pair", "generate_state"]
