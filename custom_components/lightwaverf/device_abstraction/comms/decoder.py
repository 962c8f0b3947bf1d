"""Decoding of datagrams received from the LightwaveRF Link.

The Link answers in one of two shapes:

* ``*!{"trans": 12, "fn": "on", ...}`` - a JSON document behind a fixed
  two character marker, sent by newer firmware.
* ``12,OK`` - the legacy comma-delimited reply; the text after the first
  comma is ``OK``, an ``ERR...`` token or command specific content such
  as the ``?W=...`` energy report.

Legacy replies carry no error flag, so the error is read from the text:
``OK`` is success, anything starting with ``ERR`` is a protocol error and
any other text is successful content. Structured replies report errors in
their ``error`` field, or through ``pkt: "error"`` with the reason in
``fn`` or ``payload``.
"""
import json
import logging
from typing import Union

from .results import DecodeFailed, Response

_LOGGER = logging.getLogger(__name__)

STRUCTURED_MARKER = "*!"
OK_TOKEN = "OK"
ERROR_PREFIX = "ERR"


def decode_response(data: bytes) -> Union[Response, DecodeFailed]:
    """Decode a raw datagram. Never raises."""
    try:
        message = data.decode("utf-8")
    except UnicodeDecodeError:
        return DecodeFailed("payload is not valid UTF-8", data)

    if message.startswith(STRUCTURED_MARKER):
        return _decode_structured(message[len(STRUCTURED_MARKER):], data)
    return _decode_legacy(message, data)


def _decode_structured(document: str, raw: bytes) -> Union[Response, DecodeFailed]:
    try:
        fields = json.loads(document)
    except json.JSONDecodeError as e:
        return DecodeFailed(f"invalid JSON document: {e}", raw)

    if not isinstance(fields, dict):
        return DecodeFailed("JSON document is not an object", raw)

    trans = fields.get("trans")
    if isinstance(trans, bool) or not isinstance(trans, int):
        return DecodeFailed("missing or invalid 'trans' field", raw)

    error = fields.get("error")
    if not error and fields.get("pkt") == "error":
        error = fields.get("fn") or fields.get("payload") or "error"

    return Response(
        transaction_id=trans,
        content=fields.get("fn"),
        fields=fields,
        error=str(error) if error else None,
    )


def _decode_legacy(message: str, raw: bytes) -> Union[Response, DecodeFailed]:
    trans, sep, content = message.partition(",")
    if not sep:
        return DecodeFailed("no transaction separator", raw)

    try:
        transaction_id = int(trans.strip())
    except ValueError:
        return DecodeFailed(f"invalid transaction id {trans!r}", raw)

    content = content.replace("\r", "").replace("\n", "")
    error = content if content.startswith(ERROR_PREFIX) else None

    return Response(transaction_id=transaction_id, content=content, error=error)
