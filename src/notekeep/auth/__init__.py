"""Authentication: password hashing, identity tokens, request identity.

Learn: Registration and login verify a password against its bcrypt
hash and mint a signed JWT. Every protected request carries that token
as `Authorization: Bearer <token>`; get_current_user resolves it to a
CurrentIdentity, which the note and profile services use to scope
every query to the caller.
"""
