"""
Multipart batching layer.

Encodes logical requests as embedded HTTP messages inside a multipart/mixed
envelope and decodes the multipart response the service sends back.
"""

from pushbatch.multipart.part import BatchItem, encode_item
from pushbatch.multipart.envelope import Envelope, build_envelope
from pushbatch.multipart.decoder import decode_batch_response, parse_boundary

__all__ = [
    "BatchItem",
    "encode_item",
    "Envelope",
    "build_envelope",
    "decode_batch_response",
    "parse_boundary",
]
