"""OAuth 1.0a request-signing plugin.

See Also:
    :class:`~xurl.plugins.oauth1.plugin.OAuth1AuthPlugin`
"""

from xurl.plugins.oauth1.plugin import OAuth1AuthPlugin

__all__ = ["OAuth1AuthPlugin"]
