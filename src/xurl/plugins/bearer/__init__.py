"""Bearer token authentication plugin.

See Also:
    :class:`~xurl.plugins.bearer.plugin.BearerAuthPlugin`
"""

from xurl.plugins.bearer.plugin import BearerAuthPlugin

__all__ = ["BearerAuthPlugin"]
