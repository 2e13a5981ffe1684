"""OAuth2 user-token plugin.

See Also:
    :class:`~xurl.plugins.oauth2.plugin.OAuth2AuthPlugin`
"""

from xurl.plugins.oauth2.plugin import OAuth2AuthPlugin

__all__ = ["OAuth2AuthPlugin"]
