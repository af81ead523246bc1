"""Authentication and authorization.

Learn: Users log in with username/password and receive a one-day JWT.
Every protected request resolves the bearer token to a CurrentIdentity,
and handlers ask the access policy (auth.policy) before touching data.
"""
