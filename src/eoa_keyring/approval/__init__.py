"""
Signing request queue with synchronous and asynchronous approval.

The queue itself lives in ``eoa_keyring.approval.queue``.
"""

from eoa_keyring.approval.models import KeyringRequest, SubmitRequestResponse

__all__ = ["KeyringRequest", "SubmitRequestResponse"]
