"""Enqueue and execute middleware for encrypted job arguments."""

from encrypted_args.middleware.chain import Middleware, MiddlewareChain
from encrypted_args.middleware.client import EncryptArgsMiddleware
from encrypted_args.middleware.server import DecryptArgsMiddleware

__all__ = [
    "DecryptArgsMiddleware",
    "EncryptArgsMiddleware",
    "Middleware",
    "MiddlewareChain",
]
