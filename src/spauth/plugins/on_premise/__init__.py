"""On-premise resolvers: high-trust add-in tokens and the NTLM placeholder.

See Also:
    :class:`~spauth.plugins.on_premise.plugin.OnPremiseAddinResolver`
"""

from spauth.plugins.on_premise.plugin import (
    OnPremiseAddinResolver,
    OnPremiseUserCredentialsResolver,
)

__all__ = ["OnPremiseAddinResolver", "OnPremiseUserCredentialsResolver"]
