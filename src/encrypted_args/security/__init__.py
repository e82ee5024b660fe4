"""Security module for encrypted job arguments.

Provides the password-derived AES-256-GCM encryptor and the key ring that
rotates between secrets.
"""

from encrypted_args.security.encryptor import Encryptor
from encrypted_args.security.keys import SALT, CipherProvider

__all__ = ["SALT", "CipherProvider", "Encryptor"]
