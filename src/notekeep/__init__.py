"""Notekeep — personal notes behind captcha-gated accounts.

Users solve a math captcha to register or log in, receive a signed
session token, and manage their own notes and profile.
"""

__version__ = "0.1.0"
