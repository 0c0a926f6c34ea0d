"""Built-in credential resolvers, one subpackage per strategy.

- :mod:`~spauth.plugins.client_credentials` -- app-only, client secret.
- :mod:`~spauth.plugins.certificate` -- app-only, certificate assertion.
- :mod:`~spauth.plugins.device_code` -- delegated, device authorization grant.
- :mod:`~spauth.plugins.interactive_browser` -- delegated, PKCE in the browser.
- :mod:`~spauth.plugins.on_premise` -- high-trust add-in and NTLM descriptors.
"""
